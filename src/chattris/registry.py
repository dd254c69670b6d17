"""Registry of live games.

Games never hold references to each other.  Two games are paired through the
registry, which routes garbage rows from one to the other by game id, so a
game that ends first simply stops receiving them.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Tuple
import logging

from .config import Control, GameConfig, GameMode
from .game import Game
from .presenter import GameLifecycle, Presenter
from .runner import GameRunner
from .scoring import gravity_interval_ms


LOGGER = logging.getLogger(__name__)


class GameRegistry:
    """Look up games by id, pair versus games and dispatch controls."""

    def __init__(
        self,
        *,
        presenter: Optional[Presenter] = None,
        lifecycle: Optional[GameLifecycle] = None,
    ) -> None:
        self.presenter = presenter
        self.lifecycle = lifecycle
        self._games: Dict[str, Game] = {}
        self._opponents: Dict[str, str] = {}
        self._runners: Dict[str, GameRunner] = {}

    def __contains__(self, game_id: object) -> bool:
        return game_id in self._games

    def __len__(self) -> int:
        return len(self._games)

    # Registration -------------------------------------------------------
    def create_game(self, config: Optional[GameConfig] = None, **kwargs) -> Game:
        """Create a game wired to this registry and its collaborators."""

        kwargs.setdefault("presenter", self.presenter)
        kwargs.setdefault("lifecycle", self.lifecycle)
        game = Game(config, registry=self, **kwargs)
        self.register(game)
        return game

    def register(self, game: Game) -> None:
        if game.game_id in self._games:
            raise ValueError(f"Game {game.game_id} is already registered")
        game.registry = self
        self._games[game.game_id] = game

    def remove(self, game_id: str) -> None:
        """Forget a game and any pairing it was part of.

        Ended games are kept until this is called, so long-lived hosts should
        call it once they are done with a game's final state.
        """

        self._games.pop(game_id, None)
        self._runners.pop(game_id, None)
        opponent_id = self._opponents.pop(game_id, None)
        if opponent_id is not None and self._opponents.get(opponent_id) == game_id:
            del self._opponents[opponent_id]

    def get(self, game_id: str) -> Game:
        """Return the game registered under ``game_id``.

        Raises:
            KeyError: If no such game exists.
        """

        try:
            return self._games[game_id]
        except KeyError:
            raise KeyError(f"Unknown game: {game_id}") from None

    # Pairing ------------------------------------------------------------
    def pair(self, first_id: str, second_id: str) -> None:
        """Make two registered games opponents of each other."""

        if first_id == second_id:
            raise ValueError("A game cannot be paired with itself")
        self.get(first_id)
        self.get(second_id)
        self._opponents[first_id] = second_id
        self._opponents[second_id] = first_id

    def opponent_of(self, game_id: str) -> Optional[Game]:
        opponent_id = self._opponents.get(game_id)
        if opponent_id is None:
            return None
        return self._games.get(opponent_id)

    def send_garbage(self, sender_id: str, count: int) -> bool:
        """Deliver ``count`` garbage rows to the opponent of ``sender_id``.

        Returns ``False`` when there is no running opponent to receive them.
        """

        opponent = self.opponent_of(sender_id)
        if opponent is None or not opponent.running:
            return False
        LOGGER.debug("Game %s sends %d row(s) to %s", sender_id, count, opponent.game_id)
        opponent.receive_garbage(count)
        return True

    def game_ended(self, game_id: str) -> None:
        """Called by a game when it ends.

        The runner is released here; the game itself stays registered so its
        final state can still be looked up until the host calls :meth:`remove`.
        """

        self._runners.pop(game_id, None)

    # Input --------------------------------------------------------------
    def dispatch(self, game_id: str, control: Control, user: Optional[str] = None) -> bool:
        """Route an inbound control for ``game_id`` coming from ``user``.

        Controls from users who may not play the game are ignored.  When the
        game is driven by a runner the control is queued and ``True`` means it
        was accepted for processing; otherwise it is applied immediately.

        Raises:
            KeyError: If ``game_id`` is unknown.
        """

        game = self.get(game_id)
        control = Control(control)
        if control is Control.TICK:
            raise ValueError("Gravity ticks cannot be dispatched as input")
        if not game.config.accepts_input_from(user):
            LOGGER.debug("Ignoring %s from %s for game %s", control.value, user, game_id)
            return False
        runner = self._runners.get(game_id)
        if runner is not None:
            return runner.submit(control)
        return game.apply(control)

    # Async hosting ------------------------------------------------------
    async def start_game(
        self,
        config: Optional[GameConfig] = None,
        *,
        gravity: Callable[[int], float] = gravity_interval_ms,
        **kwargs,
    ) -> GameRunner:
        """Create a game and start a runner driving it."""

        game = self.create_game(config, **kwargs)
        runner = GameRunner(game, gravity=gravity)
        self._runners[game.game_id] = runner
        await runner.start()
        return runner

    async def start_versus(
        self,
        first: GameConfig,
        second: GameConfig,
        *,
        gravity: Callable[[int], float] = gravity_interval_ms,
        **kwargs,
    ) -> Tuple[GameRunner, GameRunner]:
        """Start two paired games whose first gravity ticks coincide."""

        if first.start_delay_ms != second.start_delay_ms:
            raise ValueError("Paired games must share the same start delay")
        first.mode = second.mode = GameMode.VERSUS

        games = [self.create_game(config, **kwargs) for config in (first, second)]
        self.pair(games[0].game_id, games[1].game_id)
        runners = []
        for game in games:
            runner = GameRunner(game, gravity=gravity)
            self._runners[game.game_id] = runner
            runners.append(runner)
        for runner in runners:
            await runner.start()
        return runners[0], runners[1]
