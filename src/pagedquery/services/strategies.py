from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Connection
from sqlalchemy.ext.asyncio import AsyncConnection

from src.pagedquery.ports.query import AsyncQuerySpec, AsyncRowSource, QuerySpec, RowSource
from src.pagedquery.services.window import fetch_window

logger = logging.getLogger("pagedquery")


class _PagedWindows:
    """Учёт окон LIMIT/OFFSET, общий для sync и async варианта."""

    def __init__(self, batch_size: int) -> None:
        self.batch_size = batch_size
        self.fetch_offset = 0
        self.declared_limit: int | None = None
        self.base_offset = 0
        self.windows: list[int] = []
        self._captured = False

    def capture(self, query: Any) -> None:
        if not self._captured:
            # лимит читаем один раз: дальнейшие правки query не влияют
            self.declared_limit = query.limit
            # собственный OFFSET запроса; окна и лимит считаются от него
            self.base_offset = query.offset or 0
            self._captured = True

    def next_window(self) -> int:
        # лимит исчерпан: правило offset == limit -> 1 из fetch_window сюда не доходит,
        # иначе запросили бы строку за лимитом
        if self.declared_limit is not None and self.fetch_offset >= self.declared_limit:
            return 0
        return fetch_window(self.batch_size, self.fetch_offset, self.declared_limit)

    def absolute_offset(self) -> int:
        return self.base_offset + self.fetch_offset

    def commit(self, window: int) -> None:
        # сдвигаем на запрошенное окно, а не на число полученных строк
        self.windows.append(window)
        self.fetch_offset += window


class PagedFetch(_PagedWindows):
    """Перевыполняет запрос с растущим OFFSET и ограниченным LIMIT."""

    def fetch(self, query: QuerySpec, connection: Connection) -> list[Any]:
        self.capture(query)
        window = self.next_window()
        logger.debug("PAGE fetch offset=%d window=%d", self.fetch_offset, window)

        if window == 0:
            rows: list[Any] = []
        else:
            bounded = query.with_bounds(window, self.absolute_offset())
            rows = query.populate(bounded.execute_bounded(connection))

        self.commit(window)
        return rows

    def close(self) -> None:
        return None


class StreamFetch:
    """Один серверный курсор, из которого строки дочитываются порциями."""

    def __init__(self, batch_size: int) -> None:
        self.batch_size = batch_size
        self.source: RowSource | None = None

    def fetch(self, query: QuerySpec, connection: Connection) -> list[Any]:
        if self.source is None:
            logger.debug("CURSOR open stream")
            self.source = query.open_stream(connection)

        raw = []
        while len(raw) < self.batch_size:
            row = self.source.read_one()
            if row is None:
                break
            raw.append(row)

        logger.debug("CURSOR fetched rows=%d", len(raw))
        return query.populate(raw)

    def close(self) -> None:
        source, self.source = self.source, None
        if source is None:
            return
        try:
            source.close()
        except Exception as exc:
            logger.warning("Failed to close row source cleanly: %r", exc)


class AsyncPagedFetch(_PagedWindows):
    async def fetch(self, query: AsyncQuerySpec, connection: AsyncConnection) -> list[Any]:
        self.capture(query)
        window = self.next_window()
        logger.debug("PAGE fetch offset=%d window=%d", self.fetch_offset, window)

        if window == 0:
            rows: list[Any] = []
        else:
            bounded = query.with_bounds(window, self.absolute_offset())
            rows = query.populate(await bounded.execute_bounded_async(connection))

        self.commit(window)
        return rows

    async def close(self) -> None:
        return None


class AsyncStreamFetch:
    def __init__(self, batch_size: int) -> None:
        self.batch_size = batch_size
        self.source: AsyncRowSource | None = None

    async def fetch(self, query: AsyncQuerySpec, connection: AsyncConnection) -> list[Any]:
        if self.source is None:
            logger.debug("CURSOR open stream")
            self.source = await query.open_stream_async(connection)

        raw = []
        while len(raw) < self.batch_size:
            row = await self.source.read_one()
            if row is None:
                break
            raw.append(row)

        logger.debug("CURSOR fetched rows=%d", len(raw))
        return query.populate(raw)

    async def close(self) -> None:
        source, self.source = self.source, None
        if source is None:
            return
        try:
            await source.close()
        except Exception as exc:
            logger.warning("Failed to close async row source cleanly: %r", exc)
