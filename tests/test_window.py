import pytest

from src.pagedquery.services.window import fetch_window


def test_without_limit_window_is_batch_size():
    assert fetch_window(10, 0, None) == 10
    assert fetch_window(10, 1000, None) == 10


@pytest.mark.parametrize("k", [0, 1, 2])
def test_full_windows_while_below_limit(k):
    # k*B + B < L: окно не ужимается
    assert fetch_window(10, k * 10, 100) == 10


def test_last_window_shrinks_to_limit():
    assert fetch_window(10, 20, 22) == 2
    assert fetch_window(10, 10, 20) == 10


def test_offset_equal_to_limit_requests_one_row():
    assert fetch_window(10, 22, 22) == 1
    assert fetch_window(10, 0, 0) == 1


def test_offset_past_limit_requests_nothing():
    assert fetch_window(10, 23, 22) == 0
    assert fetch_window(1, 5, 0) == 0


def test_batch_larger_than_limit():
    assert fetch_window(100, 0, 7) == 7
