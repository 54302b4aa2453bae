from collections.abc import Iterable, Iterator
from itertools import islice
from typing import TypeVar

T = TypeVar("T")


def chunked(items: Iterable[T], size: int) -> Iterator[list[T]]:
    """Lazily split items into consecutive groups of at most size elements.

    Order is preserved and only the last group may be shorter. An empty input
    yields nothing.

    Raises:
        ValueError: if size is not a positive integer.
    """
    if size <= 0:
        raise ValueError(f"Chunk size must be positive, got {size}")
    iterator = iter(items)
    while True:
        group = list(islice(iterator, size))
        if not group:
            return
        yield group
