"""Leaf helpers shared by the engine modules."""

from __future__ import annotations

import random
from typing import Iterator, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a shuffled copy of ``items`` using the Fisher–Yates algorithm.

    ``items`` itself is left untouched.  Passing ``rng`` makes the result
    reproducible, which the piece queue relies on for seeded games.
    """

    rng = rng or random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def iterate_matrix(matrix: Sequence[Sequence[T]]) -> Iterator[Tuple[int, int, T]]:
    """Yield ``(row, col, value)`` for every cell of a 2D matrix."""

    for i, row in enumerate(matrix):
        for j, value in enumerate(row):
            yield i, j, value


def format_duration(milliseconds: float, long: bool = False) -> str:
    """Format a duration as ``m:ss`` or, with ``long``, ``"2 minutes 5 seconds"``."""

    total_seconds = max(0, int(milliseconds // 1000))
    minutes, seconds = divmod(total_seconds, 60)
    if not long:
        return f"{minutes}:{seconds:02d}"

    parts = []
    if minutes:
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    if seconds or not minutes:
        parts.append(f"{seconds} second{'s' if seconds != 1 else ''}")
    return " ".join(parts)
