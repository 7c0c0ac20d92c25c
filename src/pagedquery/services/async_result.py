from __future__ import annotations

from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import AsyncConnection

from src.pagedquery.ports.query import AsyncQuerySpec
from src.pagedquery.services.result import IterationState
from src.pagedquery.services.strategies import AsyncPagedFetch, AsyncStreamFetch


class AsyncPagedQueryResult(IterationState):
    """
    Async-вариант PagedQueryResult поверх AsyncConnection.

    async for rows in query.abatch(10, conn):
        ...

    __del__ здесь нет (await в нём невозможен): курсор закрывают
    async for / aitems() или async with.
    """

    query: AsyncQuerySpec
    connection: AsyncConnection

    def _new_paged(self, batch_size: int) -> Any:
        return AsyncPagedFetch(batch_size)

    def _new_stream(self, batch_size: int) -> Any:
        return AsyncStreamFetch(batch_size)

    async def __aenter__(self) -> AsyncPagedQueryResult:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.reset()

    async def reset(self) -> None:
        strategy = self.strategy
        if strategy is not None:
            await strategy.close()
        self._clear()

    async def rewind(self) -> None:
        await self.reset()
        await self.advance()

    async def advance(self) -> None:
        if self._needs_fetch():
            self._accept(await self._fetch_data())
        self._set_current()

    async def _fetch_data(self) -> list[Any]:
        query = self._prepare_fetch()
        try:
            return await self.strategy.fetch(query, self.connection)
        except Exception as exc:
            err = self._fetch_failed(exc)
            if err is None:
                raise
            raise err from exc

    async def __aiter__(self) -> AsyncIterator[Any]:
        try:
            await self.rewind()
            while self.has_current():
                yield self._value
                await self.advance()
        finally:
            await self.reset()

    async def aitems(self) -> AsyncIterator[tuple[Any, Any]]:
        try:
            await self.rewind()
            while self.has_current():
                yield self._key, self._value
                await self.advance()
        finally:
            await self.reset()
