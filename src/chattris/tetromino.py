"""Tetromino definitions and basic behaviour.

Shapes are described with a compact row-major string encoding and turned into
square boolean matrices on demand.  Matrix row ``0`` is the *bottom* of the
piece so that matrix coordinates line up with board coordinates, where row
``0`` is the floor.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from .utils import iterate_matrix

Matrix = Tuple[Tuple[bool, ...], ...]


class TetrominoType(str, Enum):
    """Enumeration of the seven standard tetromino shapes."""

    I = "I"
    J = "J"
    L = "L"
    O = "O"
    S = "S"
    T = "T"
    Z = "Z"


# ``#`` is a filled cell, ``-`` a blank one and ``,`` starts the next row down.
# Every shape is a 3x3 matrix except ``I`` (4x4) and ``O`` (2x2).
SHAPE_STRINGS: Dict[TetrominoType, str] = {
    TetrominoType.I: "--#-,--#-,--#-,--#-",
    TetrominoType.O: "##,##",
    TetrominoType.T: "---,###,-#-",
    TetrominoType.S: "---,-##,##-",
    TetrominoType.L: "#--,#--,##-",
    TetrominoType.J: "--#,--#,-##",
    TetrominoType.Z: "---,##-,-##",
}


def parse_shape(encoded: str) -> List[List[bool]]:
    """Decode a shape string into rows of booleans, top row first."""

    return [[char == "#" for char in row] for row in encoded.split(",")]


def rotate_clockwise(matrix):
    """Return ``matrix`` rotated a quarter turn clockwise.

    Transposing and then reversing every row is equivalent to a clockwise
    rotation for square matrices.
    """

    return [list(reversed(column)) for column in zip(*matrix)]


def shape_matrix(shape: TetrominoType, rotation: int) -> Matrix:
    """Return the boolean matrix for ``shape`` turned ``rotation`` times.

    The result is derived from scratch on every call and is therefore stable:
    equal arguments always yield equal matrices, and ``rotation + 4`` gives the
    same matrix as ``rotation``.

    Raises:
        ValueError: If ``rotation`` is negative.
    """

    if rotation < 0:
        raise ValueError(f"Rotation must be non-negative, got {rotation}")

    rows = parse_shape(SHAPE_STRINGS[TetrominoType(shape)])
    for _ in range(rotation % 4):
        rows = rotate_clockwise(rows)
    # Flip vertically so index 0 is the bottom row in board coordinates.
    return tuple(tuple(row) for row in reversed(rows))


@dataclass
class Tetromino:
    """A tetromino placed on the board, falling or locked."""

    shape: TetrominoType
    rotation: int = 0
    position: Tuple[int, int] = (0, 0)  # (row, col) of the lower-left corner

    @property
    def matrix(self) -> Matrix:
        return shape_matrix(self.shape, self.rotation)

    def rotate(self, direction: int = 1) -> None:
        """Rotate the piece by ``direction`` quarter turns (negative undoes)."""

        self.rotation = (self.rotation + direction) % 4

    def move(self, dx: int, dy: int) -> None:
        """Move the piece by the given offsets.

        ``dx`` moves horizontally (columns) and ``dy`` vertically (rows, with
        positive values moving *up*).
        """

        row, col = self.position
        self.position = (row + dy, col + dx)

    def blocks(self) -> List[Tuple[int, int]]:
        """Return the board coordinates of the piece's filled cells."""

        row, col = self.position
        return [(row + r, col + c) for r, c, filled in iterate_matrix(self.matrix) if filled]
