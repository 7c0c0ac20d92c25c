from src.pagedquery.adapters.sql_query import SqlQuery
from src.pagedquery.core.exceptions import PagedQueryError, QueryExecutionError
from src.pagedquery.services.async_result import AsyncPagedQueryResult
from src.pagedquery.services.result import PagedQueryResult
from src.pagedquery.services.window import fetch_window

__all__ = [
    "AsyncPagedQueryResult",
    "PagedQueryError",
    "PagedQueryResult",
    "QueryExecutionError",
    "SqlQuery",
    "fetch_window",
]
