from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping, Sequence

from sqlalchemy import Connection, text
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.sql.base import Executable
from sqlalchemy.sql.selectable import GenerativeSelect

from src.pagedquery.adapters.row_sources import AsyncResultRowSource, ResultRowSource
from src.pagedquery.ports.query import IndexBy
from src.pagedquery.services.sql_pagination import check_pageable, wrap_query_with_limit_offset

if TYPE_CHECKING:
    from src.pagedquery.services.async_result import AsyncPagedQueryResult
    from src.pagedquery.services.result import PagedQueryResult


@dataclass(slots=True)
class SqlQuery:
    """
    Запрос, который PagedQueryResult читает окнами.

    statement — SQLAlchemy Select или сырой SQL. Для сырого SQL окно
    накладывается оборачиванием в подзапрос. Объект обычный изменяемый
    builder: итератор запоминает limit/index_by при первом fetch и дальше
    на изменения не реагирует.
    """

    statement: GenerativeSelect | str
    params: Mapping[str, Any] = field(default_factory=dict)
    limit: int | None = None
    offset: int | None = None
    index_by: IndexBy | None = None
    row_factory: Callable[[dict[str, Any]], Any] | None = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be >= 0, got {self.limit}")
        if self.offset is not None and self.offset < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")
        if self.is_raw_sql and self.offset and self.limit is None:
            raise ValueError("Raw SQL with an offset needs a limit as well.")

    @property
    def is_raw_sql(self) -> bool:
        return isinstance(self.statement, str)

    def with_bounds(self, limit: int | None, offset: int | None) -> SqlQuery:
        return dataclasses.replace(self, limit=limit, offset=offset)

    def compile_statement(self) -> Executable:
        if isinstance(self.statement, str):
            return text(
                wrap_query_with_limit_offset(
                    self.statement, limit=self.limit, offset=self.offset
                )
            )
        # .limit(None) / .offset(None) снимают ограничения самого Select
        return self.statement.limit(self.limit).offset(self.offset)

    def _bind_params(self) -> dict[str, Any] | None:
        return dict(self.params) if self.params else None

    # --- paging ---

    def execute_bounded(self, connection: Connection) -> Sequence[RowMapping]:
        if self.is_raw_sql:
            check_pageable(str(self.statement))
        result = connection.execute(self.compile_statement(), self._bind_params())
        return result.mappings().all()

    async def execute_bounded_async(self, connection: AsyncConnection) -> Sequence[RowMapping]:
        if self.is_raw_sql:
            check_pageable(str(self.statement))
        result = await connection.execute(self.compile_statement(), self._bind_params())
        return result.mappings().all()

    # --- cursor ---

    def open_stream(self, connection: Connection) -> ResultRowSource:
        # execution_options на самом Connection меняют его на месте, поэтому только на запрос
        result = connection.execute(
            self.compile_statement(),
            self._bind_params(),
            execution_options={"stream_results": True},
        )
        return ResultRowSource(result)

    async def open_stream_async(self, connection: AsyncConnection) -> AsyncResultRowSource:
        result = await connection.stream(self.compile_statement(), self._bind_params())
        return AsyncResultRowSource(result)

    # --- post-processing ---

    def populate(self, rows: Sequence[Mapping[str, Any]]) -> list[Any]:
        # RowMapping -> dict, чтобы строки жили дольше курсора
        out: list[Any] = [dict(r) for r in rows]
        if self.row_factory is not None:
            out = [self.row_factory(r) for r in out]
        return out

    def key_of(self, row: Any) -> Any:
        if self.index_by is None:
            raise ValueError("index_by is not configured for this query")
        if callable(self.index_by):
            return self.index_by(row)
        if isinstance(row, Mapping):
            return row[self.index_by]
        return getattr(row, self.index_by)

    # --- factories ---

    def batch(
        self,
        batch_size: int = 100,
        connection: Connection | None = None,
        page: bool = True,
    ) -> PagedQueryResult:
        """Итератор, отдающий списки до batch_size строк за шаг."""
        from src.pagedquery.services.result import PagedQueryResult

        return PagedQueryResult(
            self, connection, batch_size=batch_size, each=False, page=page
        )

    def each(
        self,
        batch_size: int = 100,
        connection: Connection | None = None,
        page: bool = True,
    ) -> PagedQueryResult:
        """Итератор по одной строке; внутри всё равно читает по batch_size."""
        from src.pagedquery.services.result import PagedQueryResult

        return PagedQueryResult(
            self, connection, batch_size=batch_size, each=True, page=page
        )

    def abatch(
        self,
        batch_size: int = 100,
        connection: AsyncConnection | None = None,
        page: bool = True,
    ) -> AsyncPagedQueryResult:
        from src.pagedquery.services.async_result import AsyncPagedQueryResult

        return AsyncPagedQueryResult(
            self, connection, batch_size=batch_size, each=False, page=page
        )

    def aeach(
        self,
        batch_size: int = 100,
        connection: AsyncConnection | None = None,
        page: bool = True,
    ) -> AsyncPagedQueryResult:
        from src.pagedquery.services.async_result import AsyncPagedQueryResult

        return AsyncPagedQueryResult(
            self, connection, batch_size=batch_size, each=True, page=page
        )
