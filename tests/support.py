from __future__ import annotations

import dataclasses
from typing import Any

from sqlalchemy import Column, Integer, MetaData, String, Table

metadata = MetaData()

items = Table(
    "items",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(32), nullable=False),
    Column("grp", Integer, nullable=False),
)

ROWS = [{"id": i, "name": f"item-{i:02d}", "grp": i % 3} for i in range(1, 26)]
IDS = [r["id"] for r in ROWS]


def drain(result) -> list[Any]:
    """Прогон по протоколу rewind/advance без reset в конце."""
    values = []
    result.rewind()
    while result.has_current():
        values.append(result.current_value())
        result.advance()
    return values


def flatten(batches: list[list[Any]]) -> list[Any]:
    return [row for batch in batches for row in batch]


# ----------------------------
# In-memory QuerySpec fakes
# ----------------------------

class FakeSource:
    def __init__(self, rows: list[dict]) -> None:
        self._rows = iter(rows)
        self.closes = 0

    def read_one(self) -> dict | None:
        return next(self._rows, None)

    def close(self) -> None:
        self.closes += 1


class AsyncFakeSource(FakeSource):
    async def read_one(self) -> dict | None:  # type: ignore[override]
        return next(self._rows, None)

    async def close(self) -> None:  # type: ignore[override]
        self.closes += 1


@dataclasses.dataclass
class FakeQuery:
    data: list[dict]
    limit: int | None = None
    offset: int | None = None
    index_by: Any = None
    fail_on_call: int | None = None
    error: Exception | None = None
    calls: list[tuple[int | None, int | None]] = dataclasses.field(default_factory=list)
    sources: list[FakeSource] = dataclasses.field(default_factory=list)

    def with_bounds(self, limit, offset):
        # calls/sources остаются общими со снимком
        return dataclasses.replace(self, limit=limit, offset=offset)

    def _rows(self) -> list[dict]:
        start = self.offset or 0
        end = None if self.limit is None else start + self.limit
        return self.data[start:end]

    def _maybe_fail(self) -> None:
        self.calls.append((self.limit, self.offset))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise self.error or RuntimeError("boom")

    def execute_bounded(self, connection):
        self._maybe_fail()
        return self._rows()

    async def execute_bounded_async(self, connection):
        return self.execute_bounded(connection)

    def open_stream(self, connection):
        self._maybe_fail()
        source = FakeSource(self._rows())
        self.sources.append(source)
        return source

    async def open_stream_async(self, connection):
        self._maybe_fail()
        source = AsyncFakeSource(self._rows())
        self.sources.append(source)
        return source

    def populate(self, rows):
        return [dict(r) for r in rows]

    def key_of(self, row):
        return row[self.index_by]
