from __future__ import annotations


class PagedQueryError(Exception):
    """Базовая ошибка постраничного чтения результатов запроса."""


class QueryExecutionError(PagedQueryError):
    """Запрос очередного окна (или открытие курсора) завершился ошибкой.

    Исходная ошибка драйвера доступна через ``__cause__``.
    """

    def __init__(self, message: str, *, offset: int | None = None, disconnect: bool = False):
        super().__init__(message)
        self.offset = offset
        self.disconnect = disconnect
