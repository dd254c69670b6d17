import os

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import pygame  # noqa: E402

from chattris.config import Control, GameConfig  # noqa: E402
from chattris.game import Game  # noqa: E402
from chattris.run_pygame import PygamePresenter, caption, control_for_key  # noqa: E402


def test_keys_map_to_controls():
    assert control_for_key(pygame.K_LEFT) is Control.LEFT
    assert control_for_key(pygame.K_UP) is Control.ROTATE
    assert control_for_key(pygame.K_SPACE) is Control.DOWN
    assert control_for_key(pygame.K_c) is Control.HOLD
    assert control_for_key(pygame.K_ESCAPE) is Control.STOP
    assert control_for_key(pygame.K_a) is None


def test_presenter_keeps_latest_frame():
    presenter = PygamePresenter()
    game = Game(GameConfig(seed=1), presenter=presenter)
    game.begin()
    assert presenter.state is not None
    assert caption(presenter.state) == "Tetris - Score: 0 - Level: 1"
    game.stop()
    assert presenter.state.game_over
    assert caption(presenter.state) == "Tetris - Game over - Score: 0"


def test_caption_shows_countdown():
    presenter = PygamePresenter()
    game = Game(GameConfig(seed=1, start_delay_ms=2000), presenter=presenter, clock=lambda: 50.0)
    game.begin()
    assert caption(presenter.state) == "Tetris - Score: 0 - Level: 1 - Starting in 2"
