from __future__ import annotations

import asyncpg
from sqlalchemy.exc import DBAPIError, DisconnectionError, SQLAlchemyError

from src.pagedquery.core.exceptions import QueryExecutionError

# ошибки, которые fetch окна/курсора оборачивает в QueryExecutionError
FETCH_ERRORS: tuple[type[BaseException], ...] = (
    SQLAlchemyError,
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)

_ASYNCPG_LOST = (
    asyncpg.exceptions.ConnectionDoesNotExistError,
    asyncpg.exceptions.ConnectionFailureError,
)


def is_db_disconnect(exc: BaseException) -> bool:
    """Соединение потеряно: продолжать итерацию на этом connection бессмысленно."""
    if isinstance(exc, DisconnectionError):
        return True
    if isinstance(exc, DBAPIError):
        # SQLAlchemy сам помечает разрыв, исходная ошибка драйвера в .orig
        if exc.connection_invalidated:
            return True
        return exc.orig is not None and is_db_disconnect(exc.orig)
    return isinstance(exc, (ConnectionError, *_ASYNCPG_LOST))


def wrap_fetch_error(exc: BaseException, *, offset: int | None) -> QueryExecutionError | None:
    """QueryExecutionError для ошибки драйвера; None — ошибка не из БД, пусть летит как есть."""
    if not isinstance(exc, FETCH_ERRORS):
        return None
    return QueryExecutionError(
        f"Failed to fetch next batch: {exc}",
        offset=offset,
        disconnect=is_db_disconnect(exc),
    )
