"""
Batching helpers for store lookups and inserts.
"""

from typing import Iterator, Sequence, TypeVar

T = TypeVar("T")


def chunked(values: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """
    Split a sequence into consecutive chunks of at most `size`.

    chunked([1, 2, 3, 4, 5], 2) → [1, 2], [3, 4], [5]
    """
    if size < 1:
        raise ValueError("size must be at least 1")
    for start in range(0, len(values), size):
        yield values[start:start + size]
