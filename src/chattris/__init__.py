"""Tetris engine for chat apps: boards as grids out, button presses in."""

from .bag import PieceQueue
from .board import Board, GarbageFill, LineClear, can_move, render_grid
from .config import Control, GameConfig, GameMode
from .game import Game, GameStatus
from .presenter import CallbackLifecycle, GameLifecycle, Presenter, RenderState, TextPresenter
from .registry import GameRegistry
from .runner import GameRunner
from .scoring import gravity_interval_ms, level_for_score, score_for_lines
from .tetromino import Tetromino, TetrominoType, shape_matrix

__all__ = [
    "Board",
    "CallbackLifecycle",
    "Control",
    "Game",
    "GameConfig",
    "GameLifecycle",
    "GameMode",
    "GameRegistry",
    "GameRunner",
    "GameStatus",
    "GarbageFill",
    "LineClear",
    "PieceQueue",
    "Presenter",
    "RenderState",
    "Tetromino",
    "TetrominoType",
    "TextPresenter",
    "can_move",
    "gravity_interval_ms",
    "level_for_score",
    "render_grid",
    "score_for_lines",
    "shape_matrix",
]
