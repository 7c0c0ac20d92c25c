import re

_ORDER_BY_RE = re.compile(r"\border\s+by\b", re.IGNORECASE)
_LIMIT_RE = re.compile(r"\blimit\b", re.IGNORECASE)
_OFFSET_RE = re.compile(r"\boffset\b", re.IGNORECASE)


def normalize_query(base_query: str) -> str:
    q = (base_query or "").strip().rstrip(";")
    if not q:
        raise ValueError("Empty SQL query.")
    return q


def check_pageable(base_query: str) -> None:
    """
    Raw SQL must be safe to re-execute window by window:
    - it must contain ORDER BY (deterministic paging)
    - it must NOT contain LIMIT/OFFSET (the iterator applies them)
    """
    q = normalize_query(base_query)

    if not _ORDER_BY_RE.search(q):
        raise ValueError("Paging requires deterministic ORDER BY in the query.")

    if _LIMIT_RE.search(q) or _OFFSET_RE.search(q):
        raise ValueError(
            "Query must not contain LIMIT/OFFSET; use SqlQuery.limit/offset instead."
        )


def wrap_query_with_limit_offset(
    base_query: str, *, limit: int | None, offset: int | None
) -> str:
    """Оборачиваем в подзапрос, чтобы не ломать WITH/ORDER BY и т.д."""
    q = normalize_query(base_query)
    if limit is None and not offset:
        return q
    if limit is None:
        # OFFSET без LIMIT: SQLite не принимает, у Postgres свой синтаксис
        raise ValueError("Raw SQL with an offset needs a limit as well.")

    wrapped = f"SELECT * FROM ({q}) AS src LIMIT {int(limit)}"
    if offset:
        wrapped += f" OFFSET {int(offset)}"
    return wrapped
