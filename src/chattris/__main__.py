"""Text demo for the Tetris engine.

Run with: `python -m chattris`

Plays a game with random button presses between gravity ticks and prints the
frames a chat presenter would receive.  Useful as a smoke test that the
engine produces sensible boards without any chat platform attached.
"""

from __future__ import annotations

import argparse
import logging
import random

from . import CallbackLifecycle, Control, GameConfig, GameRegistry, TextPresenter


LOGGER = logging.getLogger(__name__)

PLAYER_CONTROLS = [Control.LEFT, Control.RIGHT, Control.ROTATE, Control.DOWN, Control.HOLD]


class LastFramePresenter(TextPresenter):
    """Print only the final frame unless every frame was requested."""

    def __init__(self, every_frame: bool) -> None:
        super().__init__()
        self.every_frame = every_frame

    def snapshot(self, session_id, state) -> None:
        if self.every_frame or state.game_over:
            super().snapshot(session_id, state)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--ticks", type=int, default=200, help="Gravity ticks to simulate.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for pieces and button presses.")
    parser.add_argument(
        "--press-chance",
        type=float,
        default=0.5,
        help="Probability of a random button press before each tick.",
    )
    parser.add_argument("--every-frame", action="store_true", help="Print every snapshot.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(message)s")

    presenter = LastFramePresenter(args.every_frame)
    lifecycle = CallbackLifecycle(
        lambda game_id, score, user: LOGGER.info("Game %s over, final score %d", game_id, score)
    )
    registry = GameRegistry(presenter=presenter, lifecycle=lifecycle)
    game = registry.create_game(GameConfig(channel="terminal", user="demo", seed=args.seed))
    rng = random.Random(args.seed)

    game.begin()
    for _ in range(args.ticks):
        if game.game_over:
            break
        if rng.random() < args.press_chance:
            registry.dispatch(game.game_id, rng.choice(PLAYER_CONTROLS), user="demo")
        game.tick()
    if not game.game_over:
        registry.dispatch(game.game_id, Control.STOP, user="demo")


if __name__ == "__main__":
    main()
