from __future__ import annotations

import logging
from typing import Any, Iterator

from sqlalchemy import Connection

from src.pagedquery.core.exceptions import QueryExecutionError
from src.pagedquery.ports.query import QuerySpec
from src.pagedquery.services.db_errors import wrap_fetch_error
from src.pagedquery.services.logctx import ctx_prefix
from src.pagedquery.services.strategies import PagedFetch, StreamFetch

logger = logging.getLogger("pagedquery")


class IterationState:
    """
    Состояние итерации без I/O: текущий батч, позиция в нём, key/value.

    Общая часть для PagedQueryResult и AsyncPagedQueryResult; сами fetch
    делают стратегии (PagedFetch / StreamFetch и их async-версии).
    """

    def __init__(
        self,
        query: Any,
        connection: Any,
        *,
        batch_size: int = 100,
        each: bool = False,
        page: bool = False,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if connection is None:
            raise ValueError("A database connection is required to iterate a query.")

        self.query = query
        self.connection = connection
        self.batch_size = batch_size
        self.each = each
        self.page = page

        self.strategy: Any = None
        self._snapshot: Any = None
        self._batch: list[Any] | None = None
        self._pos = 0
        self._value: Any = None
        self._key: Any = None
        self._rows_seen = 0
        self._batches = 0
        self._ctx = ctx_prefix(each=each, page=page, batch_size=batch_size)

    # --- accessors ---

    def has_current(self) -> bool:
        return bool(self._batch)

    def current_value(self) -> Any:
        return self._value

    def current_key(self) -> Any:
        return self._key

    @property
    def fetch_offset(self) -> int | None:
        return getattr(self.strategy, "fetch_offset", None)

    @property
    def declared_limit(self) -> int | None:
        return getattr(self.strategy, "declared_limit", None)

    @property
    def windows(self) -> list[int]:
        return list(getattr(self.strategy, "windows", ()))

    # --- state transitions ---

    def _clear(self) -> None:
        self.strategy = None
        self._snapshot = None
        self._batch = None
        self._pos = 0
        self._value = None
        self._key = None
        self._rows_seen = 0
        self._batches = 0

    def _needs_fetch(self) -> bool:
        if self._batch is None or not self.each:
            return True
        self._pos += 1
        return self._pos >= len(self._batch)

    def _prepare_fetch(self) -> Any:
        if self._snapshot is None:
            # снимок запроса: правки исходного объекта не влияют на итерацию
            self._snapshot = self.query.with_bounds(self.query.limit, self.query.offset)
            self.strategy = (
                self._new_paged(self.batch_size) if self.page else self._new_stream(self.batch_size)
            )
            logger.info("%s start", self._ctx)
        return self._snapshot

    def _new_paged(self, batch_size: int) -> Any:
        return PagedFetch(batch_size)

    def _new_stream(self, batch_size: int) -> Any:
        return StreamFetch(batch_size)

    def _accept(self, rows: list[Any]) -> None:
        self._batch = rows
        self._pos = 0
        if rows:
            self._batches += 1
            self._rows_seen += len(rows)
        else:
            logger.info(
                "%s done batches=%d rows=%d", self._ctx, self._batches, self._rows_seen
            )

    def _fetch_failed(self, exc: Exception) -> QueryExecutionError | None:
        # частичный/битый батч наружу не отдаём
        self._batch = []
        self._pos = 0
        self._value = None
        logger.exception("%s fetch failed offset=%s", self._ctx, self.fetch_offset)
        return wrap_fetch_error(exc, offset=self.fetch_offset)

    def _set_current(self) -> None:
        batch = self._batch or []
        if not self.each:
            self._value = batch
            self._key = 0 if self._key is None else self._key + 1
            return

        if self._pos < len(batch):
            self._value = batch[self._pos]
            if self._snapshot.index_by is not None:
                self._key = self._snapshot.key_of(self._value)
            else:
                self._key = 0 if self._key is None else self._key + 1
        else:
            self._value = None
            self._key = None


class PagedQueryResult(IterationState):
    """
    Итератор по результату запроса, читающий данные порциями.

    each=False — на каждом шаге отдаётся список до batch_size строк;
    each=True — по одной строке (ключ — счётчик 0, 1, 2, ... или index_by).
    page=True — каждое окно отдельным запросом LIMIT/OFFSET;
    page=False — один серверный курсор, дочитываемый порциями.

    for rows in query.batch(10, conn):
        ...
    for key, row in query.each(10, conn).items():
        ...
    """

    query: QuerySpec
    connection: Connection

    def __del__(self) -> None:
        # курсор должен закрыться, даже если итерацию бросили на середине
        self.reset()

    def __enter__(self) -> PagedQueryResult:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.reset()

    def reset(self) -> None:
        strategy = getattr(self, "strategy", None)
        if strategy is not None:
            strategy.close()
        self._clear()

    def rewind(self) -> None:
        self.reset()
        self.advance()

    def advance(self) -> None:
        if self._needs_fetch():
            self._accept(self._fetch_data())
        self._set_current()

    def _fetch_data(self) -> list[Any]:
        query = self._prepare_fetch()
        try:
            return self.strategy.fetch(query, self.connection)
        except Exception as exc:
            err = self._fetch_failed(exc)
            if err is None:
                raise
            raise err from exc

    def __iter__(self) -> Iterator[Any]:
        try:
            self.rewind()
            while self.has_current():
                yield self._value
                self.advance()
        finally:
            self.reset()

    def items(self) -> Iterator[tuple[Any, Any]]:
        try:
            self.rewind()
            while self.has_current():
                yield self._key, self._value
                self.advance()
        finally:
            self.reset()
