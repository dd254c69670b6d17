"""Score, level and gravity tables.

Level is never stored: it is always recomputed from the score with
:func:`level_for_score`.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Dict, Tuple


# Points for clearing 1-4 rows with one piece, multiplied by the level.
LINE_CLEAR_POINTS: Dict[int, int] = {1: 40, 2: 100, 3: 300, 4: 1200}

# Points per row fallen during a hard drop, multiplied by the level.
DROP_BONUS_PER_ROW = 1

# Ascending score thresholds; the level is how many of them the score reaches.
LEVEL_THRESHOLDS: Tuple[int, ...] = (0, 40, 200, 500, 1000, 2000, 3500, 5000, 7500, 10000)

# Milliseconds between gravity ticks for level 1, 2, ...  Never increases.
GRAVITY_INTERVALS_MS: Tuple[int, ...] = (1000, 900, 800, 700, 600, 500, 450, 400, 350, 300)


def level_for_score(score: int) -> int:
    """Return the number of thresholds in ``LEVEL_THRESHOLDS`` that ``score`` meets."""

    return bisect_right(LEVEL_THRESHOLDS, score)


def gravity_interval_ms(level: int) -> int:
    """Return the fall interval in milliseconds for ``level``.

    Levels past the end of the table keep the fastest interval.
    """

    index = min(max(level, 1), len(GRAVITY_INTERVALS_MS)) - 1
    return GRAVITY_INTERVALS_MS[index]


def score_for_lines(lines: int, level: int) -> int:
    """Return the reward for clearing ``lines`` rows at once at ``level``."""

    if lines <= 0:
        return 0
    return LINE_CLEAR_POINTS[min(lines, 4)] * level


def drop_bonus(rows: int, level: int) -> int:
    """Return the hard-drop bonus for falling ``rows`` rows at ``level``."""

    return max(rows, 0) * DROP_BONUS_PER_ROW * level
