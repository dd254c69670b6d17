"""Interfaces between a game and the outside world.

A game never talks to a chat platform directly.  It hands a
:class:`RenderState` to a :class:`Presenter` after every change and reports
the end of the game to a :class:`GameLifecycle`.  Both are best effort: the
game logs and ignores any exception they raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence, TextIO
import math
import sys

from .board import FILL_TAG
from .config import GameConfig, GameMode
from .utils import format_duration


Row = Sequence[Optional[str]]


@dataclass(frozen=True)
class RenderState:
    """Everything a presenter needs to draw one frame of a game."""

    game_id: str
    user: str
    mode: GameMode
    grid: Sequence[Row]  # top row first; None, a tetromino letter or "FILL"
    score: int
    level: int
    duration_ms: int
    next_piece: Optional[str]
    held_piece: Optional[str]
    game_over: bool
    starting_in_ms: Optional[int] = None


def countdown_seconds(starting_in_ms: int) -> int:
    """Whole seconds to show for a countdown, rounded up."""

    return math.ceil(starting_in_ms / 1000)


class Presenter(Protocol):
    def create_session(self, config: GameConfig) -> str:
        """Return an opaque handle passed back with every snapshot."""

    def snapshot(self, session_id: str, state: RenderState) -> None:
        """Draw ``state``; must not touch the game."""


class GameLifecycle(Protocol):
    def on_ended(self, game_id: str, final_score: int, user: str) -> None:
        """Called exactly once when a game ends, whatever the cause."""


class TextPresenter:
    """Presenter printing frames as plain text, for terminals and logs."""

    CHARS = {None: ".", FILL_TAG: "%"}

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream or sys.stdout
        self.sessions: List[str] = []

    def create_session(self, config: GameConfig) -> str:
        session_id = f"{config.channel or 'local'}:{config.game_id}"
        self.sessions.append(session_id)
        return session_id

    def format(self, state: RenderState) -> str:
        if state.game_over:
            header = (
                f"{state.user or 'Someone'} played Tetris for "
                f"{format_duration(state.duration_ms, long=True)}. Final score: {state.score}"
            )
        else:
            header = (
                f"Score: {state.score} | {format_duration(state.duration_ms)} | Lvl {state.level}"
                f" | Next: {state.next_piece or '-'} | Hold: {state.held_piece or '-'}"
            )
            if state.starting_in_ms:
                header += f" | Starting in {countdown_seconds(state.starting_in_ms)}s"
        lines = [header]
        for row in state.grid:
            lines.append("|" + "".join(self.CHARS.get(cell, "#") for cell in row) + "|")
        if state.game_over:
            lines.append("GAME OVER")
        return "\n".join(lines)

    def snapshot(self, session_id: str, state: RenderState) -> None:
        print(self.format(state), file=self.stream)
        print(file=self.stream)


class CallbackLifecycle:
    """Adapter turning a plain callable into a :class:`GameLifecycle`."""

    def __init__(self, callback: Callable[[str, int, str], None]) -> None:
        self._callback = callback

    def on_ended(self, game_id: str, final_score: int, user: str) -> None:
        self._callback(game_id, final_score, user)
