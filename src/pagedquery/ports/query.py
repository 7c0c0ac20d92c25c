from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol, Sequence

from sqlalchemy import Connection
from sqlalchemy.ext.asyncio import AsyncConnection


Row = Mapping[str, Any]
IndexBy = str | Callable[[Any], Any]


class RowSource(Protocol):
    """Открытый поток строк (серверный курсор), читается по одной строке."""

    def read_one(self) -> Row | None:
        """Следующая строка или None, если поток исчерпан."""
        ...

    def close(self) -> None:
        """Идемпотентно освобождает курсор; никогда не бросает исключений."""
        ...


class AsyncRowSource(Protocol):
    async def read_one(self) -> Row | None: ...

    async def close(self) -> None: ...


class QuerySpec(Protocol):
    """Описание запроса, которое умеет выполняться окнами LIMIT/OFFSET."""

    limit: int | None
    offset: int | None
    index_by: IndexBy | None

    def with_bounds(self, limit: int | None, offset: int | None) -> QuerySpec:
        """Копия запроса с другим окном; исходный объект не меняется."""
        ...

    def execute_bounded(self, connection: Connection) -> Sequence[Row]:
        ...

    def open_stream(self, connection: Connection) -> RowSource:
        ...

    def populate(self, rows: Sequence[Row]) -> list[Any]:
        """Пост-обработка строк одного окна (приведение типов, связи и т.п.)."""
        ...

    def key_of(self, row: Any) -> Any:
        ...


class AsyncQuerySpec(Protocol):
    limit: int | None
    offset: int | None
    index_by: IndexBy | None

    def with_bounds(self, limit: int | None, offset: int | None) -> AsyncQuerySpec: ...

    async def execute_bounded_async(self, connection: AsyncConnection) -> Sequence[Row]: ...

    async def open_stream_async(self, connection: AsyncConnection) -> AsyncRowSource: ...

    def populate(self, rows: Sequence[Row]) -> list[Any]: ...

    def key_of(self, row: Any) -> Any: ...
