"""Per-game engine: board history, active piece, scoring and the gravity step.

A :class:`Game` is driven from outside.  Something (usually a
:class:`~chattris.runner.GameRunner`) calls :meth:`Game.tick` on a timer and
forwards player controls to :meth:`Game.apply`.  Every call runs to completion
synchronously and ends with a snapshot sent to the presenter.
"""

from __future__ import annotations

from enum import Enum
from math import ceil
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple
import logging
import random
import time

from .bag import PieceQueue
from .board import Board, GarbageFill, LineClear, Piece, can_move, render_grid
from .config import Control, GameConfig
from .presenter import GameLifecycle, Presenter, RenderState
from .scoring import drop_bonus, level_for_score, score_for_lines
from .tetromino import Tetromino, TetrominoType

if TYPE_CHECKING:
    from .registry import GameRegistry


LOGGER = logging.getLogger(__name__)

DIRECTIONS = {"left": -1, "right": 1}


class GameStatus(str, Enum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    ENDED = "ended"


class Game:
    """State machine for one game of Tetris."""

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        *,
        presenter: Optional[Presenter] = None,
        lifecycle: Optional[GameLifecycle] = None,
        registry: Optional["GameRegistry"] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.presenter = presenter
        self.lifecycle = lifecycle
        self.registry = registry
        self._clock = clock or time.time

        self.rng = random.Random(self.config.seed)
        # Every garbage row of this game leaves the same column open.
        self.gap_column = self.rng.randrange(self.config.width)
        self.queue = PieceQueue(self.rng)

        self.history: List[Piece] = []
        self.active: Optional[Tetromino] = None
        self.held: Optional[TetrominoType] = None
        self.hold_used = False
        self.score = 0
        self.last_level = self.level

        self.status = GameStatus.NOT_STARTED
        self.session_id: Optional[str] = None
        self.started_at: Optional[float] = None
        self.ended_at: Optional[float] = None
        self._final_rendered = False
        self._board_cache: Optional[Tuple[int, Board]] = None
        self._end_listeners: List[Callable[[], None]] = []

    # Derived state ------------------------------------------------------
    @property
    def game_id(self) -> str:
        return self.config.game_id

    @property
    def level(self) -> int:
        return level_for_score(self.score)

    @property
    def running(self) -> bool:
        return self.status is GameStatus.RUNNING

    @property
    def game_over(self) -> bool:
        return self.status is GameStatus.ENDED

    @property
    def starts_at(self) -> Optional[float]:
        if self.started_at is None:
            return None
        return self.started_at + self.config.start_delay_ms / 1000.0

    @property
    def starting_in_ms(self) -> Optional[int]:
        """Milliseconds left on the start countdown, or ``None`` once started."""

        if self.starts_at is None or self.game_over:
            return None
        remaining = int(round((self.starts_at - self._clock()) * 1000))
        return remaining if remaining > 0 else None

    @property
    def duration_ms(self) -> int:
        if self.starts_at is None:
            return 0
        end = self.ended_at if self.ended_at is not None else self._clock()
        return max(0, int((end - self.starts_at) * 1000))

    def board(self) -> Board:
        """Return the board replayed from finalized history (no active piece).

        The result is cached per history length, which is safe because the
        history only ever grows.  Callers must not mutate it.
        """

        if self._board_cache is None or self._board_cache[0] != len(self.history):
            board = Board.replay(self.history, self.config.width, self.config.height)
            self._board_cache = (len(self.history), board)
        return self._board_cache[1]

    def level_changed(self) -> bool:
        """Return ``True`` once after each level-up, for gravity rescheduling."""

        level = self.level
        if level != self.last_level:
            self.last_level = level
            return True
        return False

    def render_state(self) -> RenderState:
        return RenderState(
            game_id=self.game_id,
            user=self.config.user,
            mode=self.config.mode,
            grid=render_grid(self.board(), self.active),
            score=self.score,
            level=self.level,
            duration_ms=self.duration_ms,
            next_piece=self.queue.peek().value,
            held_piece=self.held.value if self.held else None,
            game_over=self.game_over,
            starting_in_ms=self.starting_in_ms,
        )

    # Lifecycle ----------------------------------------------------------
    def begin(self) -> None:
        """Start the game: open a presenter session and spawn the first piece.

        Gravity is not started here; the caller starts ticking once the
        configured start delay has passed.
        """

        if self.status is not GameStatus.NOT_STARTED:
            LOGGER.debug("Game %s already started", self.game_id)
            return
        self.status = GameStatus.RUNNING
        self.started_at = self._clock()
        self.session_id = self._create_session()
        LOGGER.info(
            "Game %s started by %s in %s mode", self.game_id, self.config.user, self.config.mode.value
        )
        if self._spawn():
            self._render()

    def add_end_listener(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` once when the game ends."""

        self._end_listeners.append(listener)

    def stop(self) -> bool:
        """End the game now, whatever the board looks like."""

        if self.game_over:
            return False
        LOGGER.info("Game %s stopped with score %d", self.game_id, self.score)
        self._end()
        return True

    def _end(self) -> None:
        self.status = GameStatus.ENDED
        self.ended_at = self._clock()
        self._render()
        self._final_rendered = True
        if self.lifecycle is not None:
            try:
                self.lifecycle.on_ended(self.game_id, self.score, self.config.user)
            except Exception:
                LOGGER.exception("Lifecycle hook failed for game %s", self.game_id)
        for listener in list(self._end_listeners):
            try:
                listener()
            except Exception:
                LOGGER.exception("End listener failed for game %s", self.game_id)
        if self.registry is not None:
            self.registry.game_ended(self.game_id)

    # Gravity ------------------------------------------------------------
    def tick(self) -> None:
        """Advance gravity by one step."""

        if not self.running:
            return
        level = self.level
        if self.active is None:
            self._spawn()
        elif can_move(self.board(), self.active, 0, -1):
            self.active.move(0, -1)
        else:
            self._lock(level)
            if self.running:
                self._spawn()
        self._render()

    # Player actions -----------------------------------------------------
    def accepting_input(self) -> bool:
        return self.running and self.active is not None and self.starting_in_ms is None

    def move(self, direction: str) -> bool:
        """Shift the active piece one column ``"left"`` or ``"right"``."""

        try:
            dx = DIRECTIONS[direction]
        except KeyError:
            raise ValueError(f"Unknown direction: {direction!r}") from None
        if not self.accepting_input() or not can_move(self.board(), self.active, dx, 0):
            return False
        self.active.move(dx, 0)
        self._render()
        return True

    def rotate(self) -> bool:
        """Rotate the active piece clockwise; no wall kicks."""

        if not self.accepting_input():
            return False
        self.active.rotate()
        if not can_move(self.board(), self.active, 0, 0):
            self.active.rotate(-1)
            return False
        self._render()
        return True

    def drop(self) -> bool:
        """Hard-drop the active piece and lock it.

        The next piece appears on the following gravity tick.
        """

        if not self.accepting_input():
            return False
        level = self.level
        board = self.board()
        rows = 0
        while can_move(board, self.active, 0, -1):
            self.active.move(0, -1)
            rows += 1
        self.score += drop_bonus(rows, level)
        self._lock(level)
        self._render()
        return True

    def hold(self) -> bool:
        """Swap the active piece with the held one, once per locked piece."""

        if not self.accepting_input() or self.hold_used:
            return False
        current = self.active.shape
        shape = self.held if self.held is not None else self.queue.pop()
        self.held = current
        self.hold_used = True
        self.active = None
        if self._spawn(shape):
            self._render()
        return True

    def apply(self, control: Control) -> bool:
        """Run the operation bound to ``control``."""

        control = Control(control)
        if control is Control.LEFT or control is Control.RIGHT:
            return self.move(control.value)
        if control is Control.DOWN:
            return self.drop()
        if control is Control.ROTATE:
            return self.rotate()
        if control is Control.HOLD:
            return self.hold()
        if control is Control.STOP:
            return self.stop()
        self.tick()
        return True

    # Opponent -----------------------------------------------------------
    def receive_garbage(self, count: int) -> None:
        """Push ``count`` garbage rows in from the bottom.

        The active piece rises with the stack so it does not end up inside
        the new rows.
        """

        if not self.running or count <= 0:
            return
        self.history.extend(GarbageFill(self.gap_column) for _ in range(count))
        if self.active is not None:
            self.active.move(0, count)
        LOGGER.debug("Game %s received %d garbage row(s)", self.game_id, count)
        self._render()

    # Internals ----------------------------------------------------------
    def _spawn(self, shape: Optional[TetrominoType] = None) -> bool:
        """Place a new active piece at the top centre, or end on a top-out."""

        shape = shape or self.queue.pop()
        piece = Tetromino(shape)
        piece.position = (
            self.config.height - len(piece.matrix),
            ceil(self.config.width / 2) - 2,
        )
        if not can_move(self.board(), piece, 0, 0):
            LOGGER.info("Game %s topped out with score %d", self.game_id, self.score)
            self._end()
            return False
        self.active = piece
        return True

    def _lock(self, level: int) -> int:
        """Finalize the active piece, clear lines and score them at ``level``."""

        piece = self.active
        self.active = None
        self.history.append(piece)
        self.hold_used = False
        if any(row >= self.config.height for row, _ in piece.blocks()):
            LOGGER.info("Game %s locked out with score %d", self.game_id, self.score)
            self._end()
            return 0

        cleared = self._clear_lines()
        if cleared:
            self.score += score_for_lines(cleared, level)
            LOGGER.debug("Game %s cleared %d row(s), score %d", self.game_id, cleared, self.score)
            if self.registry is not None:
                self.registry.send_garbage(self.game_id, cleared)
        return cleared

    def _clear_lines(self) -> int:
        board = self.board()
        cleared = 0
        for row in board.full_rows():
            # Untouched garbage is structurally full but earns nothing.
            if board.is_garbage_row(row):
                continue
            # Rows below were already removed by earlier events in this batch.
            self.history.append(LineClear(row - cleared))
            cleared += 1
        return cleared

    def _create_session(self) -> str:
        if self.presenter is None:
            return self.game_id
        try:
            return self.presenter.create_session(self.config)
        except Exception:
            LOGGER.exception("Presenter could not create a session for game %s", self.game_id)
            return self.game_id

    def _render(self) -> None:
        if self.presenter is None or self._final_rendered:
            return
        try:
            self.presenter.snapshot(self.session_id or self.game_id, self.render_state())
        except Exception:
            LOGGER.exception("Presenter failed to render game %s", self.game_id)
