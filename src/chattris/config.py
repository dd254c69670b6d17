"""Configuration objects and shared constants."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import uuid


# Dimensions of the chat-sized board.
GRID_WIDTH = 10
GRID_HEIGHT = 16
# Anything smaller cannot fit the 4x4 ``I`` matrix.
MIN_GRID_SIZE = 4


class GameMode(str, Enum):
    """Who may control a game."""

    OPEN = "open"  # anyone in the channel
    SINGLE = "1p"  # only the user who started it
    VERSUS = "2p"  # one player per board, paired with an opponent


class Control(str, Enum):
    """Inbound control signals, one per game button."""

    LEFT = "left"
    RIGHT = "right"
    DOWN = "down"
    ROTATE = "rotate"
    HOLD = "hold"
    STOP = "stop"
    # Internal: emitted by the gravity timer, never by a button.
    TICK = "tick"

    @classmethod
    def from_action_id(cls, action_id: str) -> "Control":
        """Parse a button action id such as ``"btn_left"``.

        Raises:
            ValueError: If the id does not name a player control.
        """

        name = action_id[len("btn_"):] if action_id.startswith("btn_") else action_id
        control = cls(name)
        if control is cls.TICK:
            raise ValueError(f"{action_id!r} is not a player control")
        return control


def _new_game_id() -> str:
    return uuid.uuid4().hex


@dataclass
class GameConfig:
    """Settings for a single game, fixed at creation."""

    channel: str = ""
    user: str = ""
    mode: GameMode = GameMode.OPEN
    start_delay_ms: int = 0
    width: int = GRID_WIDTH
    height: int = GRID_HEIGHT
    seed: Optional[int] = None
    game_id: str = field(default_factory=_new_game_id)

    def __post_init__(self) -> None:
        self.mode = GameMode(self.mode)
        if self.width < MIN_GRID_SIZE or self.height < MIN_GRID_SIZE:
            raise ValueError(
                f"Board must be at least {MIN_GRID_SIZE}x{MIN_GRID_SIZE}, "
                f"got {self.height}x{self.width}"
            )
        if self.start_delay_ms < 0:
            raise ValueError("start_delay_ms must be non-negative")

    def accepts_input_from(self, user: Optional[str]) -> bool:
        """Return ``True`` if ``user`` may control this game."""

        return self.mode is GameMode.OPEN or user == self.user
