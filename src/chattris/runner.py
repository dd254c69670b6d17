"""Asyncio driver for a single game.

Each :class:`GameRunner` owns two tasks: a gravity timer that enqueues
``Control.TICK`` at the current level's interval, and a worker that applies
queued controls to the game one at a time.  Because the worker is the only
code mutating the game, timer ticks and player input never interleave.
"""

from __future__ import annotations

from typing import Callable, Optional
import asyncio
import logging

from .config import Control
from .game import Game
from .scoring import gravity_interval_ms


LOGGER = logging.getLogger(__name__)


class GameRunner:
    """Run a :class:`Game` on the current event loop."""

    def __init__(
        self,
        game: Game,
        *,
        gravity: Callable[[int], float] = gravity_interval_ms,
    ) -> None:
        self.game = game
        self._gravity = gravity
        self.interval_ms = float(gravity(game.level))
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._timer: Optional[asyncio.Task] = None
        game.add_end_listener(self.on_game_ended)

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        """Begin the game and start gravity after its start delay."""

        if self._worker is not None:
            LOGGER.debug("Runner for game %s already started", self.game.game_id)
            return
        self._queue = asyncio.Queue()
        self.game.begin()
        if self.game.game_over:
            return
        self._worker = asyncio.create_task(self._work())
        delay_ms = self.game.config.start_delay_ms + self.interval_ms
        self._schedule(delay_ms / 1000.0)

    def submit(self, control: Control) -> bool:
        """Queue ``control`` for the worker; ``False`` once the game is over."""

        if self._queue is None or self.game.game_over:
            return False
        self._queue.put_nowait(Control(control))
        return True

    def stop(self) -> bool:
        return self.submit(Control.STOP)

    async def stop_async(self) -> None:
        """Stop the game and wait for the worker to finish."""

        self.stop()
        await self.wait_closed()

    async def wait_closed(self) -> None:
        if self._worker is not None:
            await self._worker

    def on_game_ended(self) -> None:
        """Stop the timer and wake the worker so it can exit."""

        self.cancel_timer()
        if self._queue is not None:
            # Ticks are ignored by an ended game; this only unblocks ``get``.
            self._queue.put_nowait(Control.TICK)

    def cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    # Internal helpers -------------------------------------------------
    def _schedule(self, first_delay: float) -> None:
        self.cancel_timer()
        self._timer = asyncio.create_task(self._tick_loop(first_delay))

    async def _tick_loop(self, first_delay: float) -> None:
        await asyncio.sleep(first_delay)
        while True:
            if not self.submit(Control.TICK):
                return
            await asyncio.sleep(self.interval_ms / 1000.0)

    def _handle(self, control: Control) -> None:
        self.game.apply(control)
        if self.game.running and self.game.level_changed():
            self.interval_ms = float(self._gravity(self.game.level))
            LOGGER.info(
                "Game %s reached level %d, gravity every %.0fms",
                self.game.game_id,
                self.game.level,
                self.interval_ms,
            )
            # The new speed applies from the next tick on.
            self._schedule(self.interval_ms / 1000.0)

    async def _work(self) -> None:
        assert self._queue is not None
        try:
            while not self.game.game_over:
                control = await self._queue.get()
                try:
                    self._handle(control)
                except Exception:
                    LOGGER.exception("Game %s failed to apply %s", self.game.game_id, control.value)
                finally:
                    self._queue.task_done()
        finally:
            self.cancel_timer()
