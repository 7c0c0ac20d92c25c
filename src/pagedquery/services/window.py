from __future__ import annotations


def fetch_window(batch_size: int, offset: int, declared_limit: int | None) -> int:
    """
    Сколько строк запросить очередным окном LIMIT/OFFSET.

    - без лимита окно всегда равно batch_size;
    - offset уже за лимитом -> 0 (забирать нечего);
    - offset ровно на лимите -> 1 (OFFSET в БД исключающий);
    - последнее окно ужимается до declared_limit - offset.
    """
    if declared_limit is None:
        return batch_size
    if offset > declared_limit:
        return 0
    if offset == declared_limit:
        return 1
    if batch_size + offset >= declared_limit:
        return declared_limit - offset
    return batch_size
