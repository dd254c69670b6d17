"""Bag randomizer for upcoming pieces."""

from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional
import random

from .tetromino import TetrominoType
from .utils import shuffle


# Top up the queue with a new bag once fewer than this many pieces remain.
REFILL_THRESHOLD = 3


class PieceQueue:
    """Queue of upcoming tetromino types fed by shuffled bags of all seven."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()
        self._queue: Deque[TetrominoType] = deque()
        self._refill()

    def __len__(self) -> int:
        return len(self._queue)

    def _refill(self) -> None:
        while len(self._queue) < REFILL_THRESHOLD:
            self._queue.extend(shuffle(list(TetrominoType), self._rng))

    def pop(self) -> TetrominoType:
        """Remove and return the next piece type."""

        self._refill()
        shape = self._queue.popleft()
        self._refill()
        return shape

    def peek(self) -> TetrominoType:
        """Return the next piece type without consuming it."""

        return self._queue[0]

    def upcoming(self, count: int) -> List[TetrominoType]:
        return list(self._queue)[:count]
