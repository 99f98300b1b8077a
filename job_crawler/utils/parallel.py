"""Bounded, order-preserving fan-out over a thread pool."""

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


def ordered_map(func: Callable[[T], R], items: Iterable[T], max_workers: int = 1) -> list[R]:
    """Apply func to every item and return results in input order.

    With max_workers <= 1 this is a plain sequential loop; otherwise items are
    dispatched to at most max_workers threads and recombined by input index.
    """
    items = list(items)
    if max_workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]

    results: list[R | None] = [None] * len(items)
    with ThreadPoolExecutor(max_workers=min(max_workers, len(items))) as pool:
        futures = {pool.submit(func, item): index for index, item in enumerate(items)}
        for future, index in futures.items():
            results[index] = future.result()
    return results  # type: ignore[return-value]
