"""Simple pygame front-end for the Tetris engine.

Plays one game locally through the same surface a chat host uses: frames
arrive as :class:`~chattris.presenter.RenderState` snapshots and key presses
are dispatched as :class:`~chattris.config.Control` values.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import pygame

from .board import FILL_TAG
from .config import Control, GameConfig, GameMode
from .presenter import RenderState, countdown_seconds
from .registry import GameRegistry
from .runner import GameRunner
from .tetromino import TetrominoType


LOGGER = logging.getLogger(__name__)

# Size of a single board cell in pixels
CELL_SIZE = 30
# Frames per second to run the game loop at
FPS = 60

# Colours for each tetromino type
SHAPE_COLORS = {
    TetrominoType.I.value: (0, 255, 255),
    TetrominoType.O.value: (255, 255, 0),
    TetrominoType.T.value: (128, 0, 128),
    TetrominoType.S.value: (0, 255, 0),
    TetrominoType.Z.value: (255, 0, 0),
    TetrominoType.J.value: (0, 0, 255),
    TetrominoType.L.value: (255, 165, 0),
    FILL_TAG: (128, 128, 128),
}
EMPTY_COLOR = (0, 0, 0)
GRID_LINE_COLOR = (50, 50, 50)

KEY_CONTROLS = {
    pygame.K_LEFT: Control.LEFT,
    pygame.K_RIGHT: Control.RIGHT,
    pygame.K_UP: Control.ROTATE,
    pygame.K_DOWN: Control.DOWN,
    pygame.K_SPACE: Control.DOWN,
    pygame.K_c: Control.HOLD,
    pygame.K_ESCAPE: Control.STOP,
}


def control_for_key(key: int) -> Optional[Control]:
    return KEY_CONTROLS.get(key)


class PygamePresenter:
    """Keep the latest snapshot; the front-end loop draws it every frame."""

    def __init__(self) -> None:
        self.state: Optional[RenderState] = None

    def create_session(self, config: GameConfig) -> str:
        return config.game_id

    def snapshot(self, session_id: str, state: RenderState) -> None:
        self.state = state


def caption(state: RenderState) -> str:
    if state.game_over:
        return f"Tetris - Game over - Score: {state.score}"
    text = f"Tetris - Score: {state.score} - Level: {state.level}"
    if state.starting_in_ms:
        text += f" - Starting in {countdown_seconds(state.starting_in_ms)}"
    return text


def draw_state(screen: pygame.Surface, state: RenderState) -> None:
    """Render a snapshot grid, top row first."""

    for r, row in enumerate(state.grid):
        for c, cell in enumerate(row):
            color = SHAPE_COLORS.get(cell, EMPTY_COLOR) if cell else EMPTY_COLOR
            rect = pygame.Rect(c * CELL_SIZE, r * CELL_SIZE, CELL_SIZE, CELL_SIZE)
            pygame.draw.rect(screen, color, rect)
            pygame.draw.rect(screen, GRID_LINE_COLOR, rect, 1)


class PygameFrontend:
    """Drive a local game with a pygame window and the keyboard."""

    def __init__(self, config: Optional[GameConfig] = None) -> None:
        self.config = config or GameConfig(channel="pygame", user="local", mode=GameMode.SINGLE)
        self.presenter = PygamePresenter()
        self.registry = GameRegistry(presenter=self.presenter)
        self._runner: Optional[GameRunner] = None

    async def run(self) -> None:
        pygame.init()
        screen = pygame.display.set_mode(
            (self.config.width * CELL_SIZE, self.config.height * CELL_SIZE)
        )
        clock = pygame.time.Clock()
        self._runner = await self.registry.start_game(self.config)
        game_id = self._runner.game.game_id
        LOGGER.info("Game %s started", game_id)

        running = True
        while running:
            clock.tick(FPS)
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    control = control_for_key(event.key)
                    if control is not None:
                        self.registry.dispatch(game_id, control, user=self.config.user)

            state = self.presenter.state
            if state is not None:
                screen.fill(EMPTY_COLOR)
                draw_state(screen, state)
                pygame.display.set_caption(caption(state))
                pygame.display.flip()

            # Yield so the runner's timer and worker can make progress
            await asyncio.sleep(0)

        await self._runner.stop_async()
        pygame.quit()
        LOGGER.info("Game %s closed", game_id)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    asyncio.run(PygameFrontend().run())


if __name__ == "__main__":  # pragma: no cover - manual execution only
    main()
