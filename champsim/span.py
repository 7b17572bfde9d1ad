"""Helpers for taking bounded leading runs out of sequences and queues."""

from __future__ import annotations

from collections import deque
from itertools import islice, takewhile
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

__all__ = ["get_span", "get_span_p", "extract_if", "transform_while_n"]

T = TypeVar("T")
U = TypeVar("U")


def get_span(items: Iterable[T], size: Optional[int] = None) -> List[T]:
    """Return at most ``size`` leading items (all of them when size is None)."""
    if size is not None and size < 0:
        raise ValueError("span size must not be negative")
    return list(islice(items, size))


def get_span_p(items: Iterable[T], func: Callable[[T], bool], size: Optional[int] = None) -> List[T]:
    """Return the leading items, at most ``size``, for which ``func`` holds."""
    return list(takewhile(func, get_span(items, size)))


def extract_if(items: Iterable[T], func: Callable[[T], bool]) -> Tuple[List[T], List[T]]:
    """Split items into (kept, extracted), both in their original order."""
    kept: List[T] = []
    extracted: List[T] = []
    for item in items:
        (extracted if func(item) else kept).append(item)
    return kept, extracted


def transform_while_n(queue, out: list, size: int, test_func: Callable[[T], bool], transform_func: Callable[[T], U]) -> int:
    """Move up to ``size`` leading items satisfying ``test_func`` from ``queue`` to ``out``.

    Each moved item is passed through ``transform_func``. Returns the count moved.
    """
    taken = get_span_p(queue, test_func, size)
    count = len(taken)
    if isinstance(queue, deque):
        for _ in range(count):
            queue.popleft()
    else:
        del queue[:count]
    out.extend(transform_func(item) for item in taken)
    return count