from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Sequence, TextIO

from src.config import get_settings
from src.pagedquery.adapters.sql_query import SqlQuery
from src.pagedquery.core.exceptions import QueryExecutionError
from src.pagedquery.db import make_async_engine

logger = logging.getLogger("pagedquery")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] [pagedquery] %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="pagedquery",
        description="Stream a SQL query as JSON lines, batch by batch.",
    )
    parser.add_argument("sql", help="SELECT ... ORDER BY ... (no LIMIT/OFFSET)")
    parser.add_argument("--batch-size", type=int, default=settings.batch_size)
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--each", action="store_true", help="one JSON object per row")
    parser.add_argument(
        "--cursor",
        action="store_true",
        default=not settings.page,
        help="read one server-side cursor instead of LIMIT/OFFSET pages",
    )
    parser.add_argument("--dsn", default=None, help="SQLAlchemy async URL")
    return parser


async def dump(
    sql: str,
    *,
    batch_size: int,
    limit: int | None,
    each: bool,
    page: bool,
    dsn: str | None,
    out: TextIO | None = None,
) -> int:
    out = out or sys.stdout
    engine = make_async_engine(dsn)
    query = SqlQuery(sql, limit=limit)
    written = 0
    try:
        async with engine.connect() as conn:
            result = (
                query.aeach(batch_size, conn, page=page)
                if each
                else query.abatch(batch_size, conn, page=page)
            )
            async with result:
                async for value in result:
                    out.write(json.dumps(value, default=str) + "\n")
                    written += 1 if each else len(value)
    finally:
        await engine.dispose()
    return written


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(get_settings().log_level)

    try:
        rows = asyncio.run(
            dump(
                args.sql,
                batch_size=args.batch_size,
                limit=args.limit,
                each=args.each,
                page=not args.cursor,
                dsn=args.dsn,
            )
        )
    except QueryExecutionError as exc:
        logger.error("Query failed (disconnect=%s): %s", exc.disconnect, exc)
        return 1
    except ValueError as exc:
        logger.error("Invalid query: %s", exc)
        return 2

    logger.info("Dumped rows=%d", rows)
    return 0


if __name__ == "__main__":
    sys.exit(main())
