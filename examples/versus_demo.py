"""Two-player demo: paired games trading garbage rows.

Run with::

    PYTHONPATH=src python examples/versus_demo.py

Both games are played by random button presses on one event loop.  Each
line clear pushes garbage into the other board; the first game to top out
loses, mirroring how the chat bot resolves a versus match.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
from typing import Dict, Optional

from chattris import Control, GameConfig, GameRegistry, TextPresenter


LOGGER = logging.getLogger(__name__)

PLAYER_CONTROLS = [Control.LEFT, Control.RIGHT, Control.ROTATE, Control.DOWN, Control.HOLD]


class MatchResult:
    """Lifecycle hook recording who finished first."""

    def __init__(self) -> None:
        self.scores: Dict[str, int] = {}
        self.loser: Optional[str] = None

    def on_ended(self, game_id: str, final_score: int, user: str) -> None:
        self.scores[user] = final_score
        if self.loser is None:
            self.loser = user
            LOGGER.info("%s finished first with %d points", user, final_score)


async def play(args: argparse.Namespace) -> MatchResult:
    result = MatchResult()
    registry = GameRegistry(lifecycle=result)
    second_seed = args.seed + 1 if args.seed is not None else None
    first, second = await registry.start_versus(
        GameConfig(user="alice", seed=args.seed, start_delay_ms=args.start_delay),
        GameConfig(user="bob", seed=second_seed, start_delay_ms=args.start_delay),
        gravity=lambda level: args.gravity_ms,
    )
    rng = random.Random(args.seed)
    for _ in range(args.presses):
        if first.game.game_over or second.game.game_over:
            break
        for runner in (first, second):
            registry.dispatch(runner.game.game_id, rng.choice(PLAYER_CONTROLS), user=runner.game.config.user)
        await asyncio.sleep(args.gravity_ms / 1000.0)

    for runner in (first, second):
        await runner.stop_async()
    presenter = TextPresenter()
    for runner in (first, second):
        presenter.snapshot(runner.game.game_id, runner.game.render_state())
    return result


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", type=int, default=None, help="Seed for pieces and button presses.")
    parser.add_argument("--presses", type=int, default=400, help="Button presses per player.")
    parser.add_argument("--gravity-ms", type=int, default=20, help="Gravity interval for both games.")
    parser.add_argument("--start-delay", type=int, default=500, help="Shared start delay in ms.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(message)s")
    result = asyncio.run(play(args))
    LOGGER.info("Final scores: %s", ", ".join(f"{u}={s}" for u, s in result.scores.items()))


if __name__ == "__main__":
    main()
