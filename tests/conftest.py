import pytest

from chattris.config import GameConfig
from chattris.game import Game
from chattris.tetromino import Tetromino, TetrominoType


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.current = start

    def advance(self, delta: float) -> None:
        self.current += delta

    def __call__(self) -> float:
        return self.current


class RecordingPresenter:
    def __init__(self) -> None:
        self.sessions = []
        self.snapshots = []

    def create_session(self, config):
        session_id = f"session-{config.game_id}"
        self.sessions.append(session_id)
        return session_id

    def snapshot(self, session_id, state):
        self.snapshots.append((session_id, state))


class RecordingLifecycle:
    def __init__(self) -> None:
        self.ended = []

    def on_ended(self, game_id, final_score, user):
        self.ended.append((game_id, final_score, user))


def i_piece_wall(rows, gap_col=0):
    """History filling ``rows`` bottom rows of a 10-wide board except ``gap_col``.

    Only ``gap_col == 0`` is supported: two horizontal ``I`` pieces cover
    columns 1-8 of each row and vertical ``I`` pieces fill column 9.
    """

    assert gap_col == 0
    history = []
    for row in range(rows):
        history.append(Tetromino(TetrominoType.I, rotation=1, position=(row - 1, 1)))
        history.append(Tetromino(TetrominoType.I, rotation=1, position=(row - 1, 5)))
    for base in range(0, rows, 4):
        history.append(Tetromino(TetrominoType.I, rotation=0, position=(base, 7)))
    return history


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def lifecycle():
    return RecordingLifecycle()


@pytest.fixture
def make_game(clock, presenter, lifecycle):
    def _make(**config_kwargs):
        config_kwargs.setdefault("seed", 7)
        config_kwargs.setdefault("user", "U1")
        return Game(
            GameConfig(**config_kwargs),
            presenter=presenter,
            lifecycle=lifecycle,
            clock=clock,
        )

    return _make
