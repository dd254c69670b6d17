"""Board representation for the Tetris playfield.

The board is never the source of truth on its own: a game keeps an
append-only history of pieces and events, and :meth:`Board.replay` rebuilds
the grid from it.  Row ``0`` is the bottom of the board.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

import numpy as np
from numpy.typing import NDArray

from .config import GRID_HEIGHT, GRID_WIDTH, MIN_GRID_SIZE
from .tetromino import Tetromino, TetrominoType


Grid = NDArray[np.uint8]

EMPTY = 0
# Mapping from ``TetrominoType`` to the integer stored in the grid.  ``0`` is an
# empty cell and the value after the last tetromino marks garbage fill.
PIECE_VALUES = {t: i + 1 for i, t in enumerate(TetrominoType)}
FILL_VALUE = len(PIECE_VALUES) + 1
FILL_TAG = "FILL"

CELL_TAGS = {value: shape.value for shape, value in PIECE_VALUES.items()}
CELL_TAGS[FILL_VALUE] = FILL_TAG


@dataclass(frozen=True)
class LineClear:
    """History event: ``row`` was cleared and everything above fell by one."""

    row: int


@dataclass(frozen=True)
class GarbageFill:
    """History event: a fill row with a hole at ``gap_column`` pushed in from below."""

    gap_column: int


Piece = Union[Tetromino, LineClear, GarbageFill]


def create_empty_grid(height: int = GRID_HEIGHT, width: int = GRID_WIDTH) -> Grid:
    """Return a new empty board grid filled with zeros."""

    return np.zeros((height, width), dtype=np.uint8)


class Board:
    """Tetris board holding the occupied cells."""

    def __init__(self, width: int = GRID_WIDTH, height: int = GRID_HEIGHT) -> None:
        if width < MIN_GRID_SIZE or height < MIN_GRID_SIZE:
            raise ValueError(
                f"Board must be at least {MIN_GRID_SIZE}x{MIN_GRID_SIZE}, got {height}x{width}"
            )
        self.width = width
        self.height = height
        self.grid: Grid = create_empty_grid(height, width)

    @classmethod
    def replay(
        cls,
        history: Iterable[Piece],
        width: int = GRID_WIDTH,
        height: int = GRID_HEIGHT,
    ) -> "Board":
        """Build a board by applying ``history`` in order to an empty grid."""

        board = cls(width, height)
        for piece in history:
            board.apply(piece)
        return board

    def apply(self, piece: Piece) -> None:
        """Apply a single history entry to the grid."""

        if isinstance(piece, Tetromino):
            self.lock_piece(piece)
        elif isinstance(piece, LineClear):
            self.clear_row(piece.row)
        elif isinstance(piece, GarbageFill):
            self.insert_garbage(piece.gap_column)
        else:
            raise TypeError(f"Unknown history entry: {piece!r}")

    def get_cell(self, row: int, col: int) -> int:
        """Safely return the value at ``(row, col)``.

        Raises:
            IndexError: If the coordinates are outside the board.
        """
        if 0 <= row < self.height and 0 <= col < self.width:
            return int(self.grid[row, col])
        raise IndexError("Cell out of bounds")

    def set_cell(self, row: int, col: int, value: int) -> None:
        """Safely set the value at ``(row, col)``.

        Raises:
            IndexError: If the coordinates are outside the board.
        """
        if 0 <= row < self.height and 0 <= col < self.width:
            self.grid[row, col] = np.uint8(value)
        else:
            raise IndexError("Cell out of bounds")

    def is_empty(self, row: int, col: int) -> bool:
        """Return ``True`` if the cell at ``(row, col)`` is empty.

        Cells above the top row are open space and count as empty; anything
        below the floor or beyond the walls counts as occupied.
        """

        if row >= self.height and 0 <= col < self.width:
            return True
        if 0 <= row < self.height and 0 <= col < self.width:
            return bool(self.grid[row, col] == EMPTY)
        return False

    def lock_piece(self, tetromino: Tetromino) -> None:
        """Write the tetromino's blocks into the grid.

        Blocks above the top row are dropped; a game treats locking such a
        piece as a lock-out before it ever reaches the board.
        """

        value = np.uint8(PIECE_VALUES[tetromino.shape])
        for row, col in tetromino.blocks():
            if row < self.height:
                self.set_cell(row, col, value)

    def clear_row(self, row: int) -> None:
        """Remove ``row`` and add an empty row at the top."""

        if not 0 <= row < self.height:
            raise IndexError("Row out of bounds")
        remaining = np.delete(self.grid, row, axis=0)
        self.grid = np.vstack((remaining, create_empty_grid(1, self.width)))

    def insert_garbage(self, gap_column: int) -> None:
        """Push a fill row with a single hole in from the bottom.

        The top row is pushed off the board.
        """

        fill = np.full((1, self.width), FILL_VALUE, dtype=np.uint8)
        fill[0, gap_column] = EMPTY
        self.grid = np.vstack((fill, self.grid[:-1]))

    def full_rows(self) -> List[int]:
        """Return the indices of completely filled rows, bottom first."""

        return [int(r) for r in np.flatnonzero(np.all(self.grid != EMPTY, axis=1))]

    def is_garbage_row(self, row: int) -> bool:
        """Return ``True`` if every cell in ``row`` is garbage fill."""

        return bool(np.all(self.grid[row] == FILL_VALUE))


def can_move(board: Board, tetromino: Tetromino, dx: int, dy: int) -> bool:
    """Return ``True`` if ``tetromino`` can move by ``dx`` and ``dy`` on ``board``.

    A placement is rejected when any block would end up below the floor,
    beyond a side wall or on an occupied cell.  ``board`` must not contain the
    tetromino itself, so callers pass the board replayed from finalized history.
    This single check validates spawning, movement, rotation and gravity.
    """

    for row, col in tetromino.blocks():
        if not board.is_empty(row + dy, col + dx):
            return False
    return True


def render_grid(board: Board, active: Optional[Tetromino] = None) -> List[List[Optional[str]]]:
    """Return the board as cell tags, top row first, with ``active`` overlaid.

    Each cell is ``None`` when empty, a tetromino letter, or ``"FILL"`` for
    garbage.  The board itself is not modified.
    """

    grid = board.grid.copy()
    if active is not None:
        value = PIECE_VALUES[active.shape]
        for r, c in active.blocks():
            if 0 <= r < board.height and 0 <= c < board.width:
                grid[r, c] = value
    return [[CELL_TAGS.get(int(cell)) for cell in row] for row in grid[::-1]]
