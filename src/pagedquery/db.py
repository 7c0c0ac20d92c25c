from sqlalchemy import Engine, create_engine
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from src.config import get_settings


def make_async_engine(url: str | None = None) -> AsyncEngine:
    # asyncpg по умолчанию; url переопределяет настройки (например sqlite+aiosqlite)
    return create_async_engine(
        url or get_settings().database_url,
        echo=False,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


def make_engine(url: str) -> Engine:
    """Синхронный движок для PagedQueryResult (драйвер задаётся в url)."""
    return create_engine(url, echo=False, pool_pre_ping=True, pool_recycle=1800)
