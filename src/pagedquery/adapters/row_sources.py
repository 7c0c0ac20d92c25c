from __future__ import annotations

import logging

from sqlalchemy import CursorResult
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncResult

logger = logging.getLogger("pagedquery")


class ResultRowSource:
    """RowSource поверх открытого (server-side) результата SQLAlchemy."""

    def __init__(self, result: CursorResult) -> None:
        self._result: CursorResult | None = result
        self._mappings = result.mappings()

    @property
    def closed(self) -> bool:
        return self._result is None

    def read_one(self) -> RowMapping | None:
        if self._result is None:
            return None
        return self._mappings.fetchone()

    def close(self) -> None:
        result, self._result = self._result, None
        if result is None:
            return
        try:
            result.close()
        except Exception as exc:
            logger.warning("Failed to close row source cleanly: %r", exc)


class AsyncResultRowSource:
    """То же самое для AsyncConnection.stream()."""

    def __init__(self, result: AsyncResult) -> None:
        self._result: AsyncResult | None = result
        self._mappings = result.mappings()

    @property
    def closed(self) -> bool:
        return self._result is None

    async def read_one(self) -> RowMapping | None:
        if self._result is None:
            return None
        return await self._mappings.fetchone()

    async def close(self) -> None:
        result, self._result = self._result, None
        if result is None:
            return
        try:
            await result.close()
        except Exception as exc:
            logger.warning("Failed to close async row source cleanly: %r", exc)
