# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Single-owner handle for one game.

The engine functions read and then write ``Game``/``Inning`` state without
internal synchronization, so a host must serialize every mutating call for a
given game.  ``GameSession`` is that owner: all writes go through it under
one lock, while readers get a deep-copied snapshot and valid-outcome queries
run without the lock.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from config import DEFAULT_GAME_RULES, DEFAULT_RULES, GameRules, RuleConfiguration
from data.store import GameStore
from game import Game
from lineup import Lineup, add_substitute, remove_substitute, setup_lineup
from models import RecordAtBatCommand, SetupLineupCommand, SituationalParameters, STANDARD_PARAMETERS, TeamSide
from recorder import AtBat, record_at_bat
from rules.advancement import AdvancementOutcome, valid_outcomes
from rules.outcomes import BattingResult
from rules.response import ErrorCode, Result

logger = logging.getLogger(__name__)


class GameSession:
    """The one writer for a game held in ``store``."""

    def __init__(self, store: GameStore, game_id: str, config: RuleConfiguration = DEFAULT_RULES):
        self.store = store
        self.game_id = game_id
        self.config = config
        self._lock = threading.Lock()

    @classmethod
    def create(cls, store: GameStore, name: str = "", our_side: TeamSide = TeamSide.HOME,
               rules: GameRules = DEFAULT_GAME_RULES,
               config: RuleConfiguration = DEFAULT_RULES) -> GameSession:
        game = Game(name=name, our_side=our_side, rules=rules)
        store.save_game(game)
        logger.info("Created game %s (%s)", game.id, name or "unnamed")
        return cls(store, game.id, config)

    def _game(self) -> Optional[Game]:
        return self.store.get_game(self.game_id)

    def _missing(self) -> Result:
        return Result.failure(ErrorCode.GAME_NOT_FOUND, "Game not found", game_id=self.game_id)

    # -- writes --------------------------------------------------------------

    def setup_lineup(self, command: SetupLineupCommand | dict[str, Any]) -> Result[Lineup]:
        if isinstance(command, dict):
            command = {"game_id": self.game_id, **command}
        with self._lock:
            return setup_lineup(command, self.store)

    def add_substitute(self, player_id: str) -> Result[Lineup]:
        with self._lock:
            return add_substitute(self.game_id, player_id, self.store)

    def remove_substitute(self, player_id: str) -> Result[Lineup]:
        with self._lock:
            return remove_substitute(self.game_id, player_id, self.store)

    def start(self) -> Result[Game]:
        with self._lock:
            game = self._game()
            if game is None:
                return self._missing()
            started = game.start()
            if started.ok:
                self.store.save_game(game)
            return started

    def record_at_bat(self, command: RecordAtBatCommand | dict[str, Any]) -> Result[AtBat]:
        if isinstance(command, dict):
            command = {"game_id": self.game_id, **command}
        with self._lock:
            return record_at_bat(command, self.store, self.config)

    def suspend(self) -> Result[Game]:
        with self._lock:
            game = self._game()
            if game is None:
                return self._missing()
            suspended = game.suspend()
            if suspended.ok:
                self.store.save_game(game)
            return suspended

    def complete(self, reason: str = "called") -> Result[Game]:
        with self._lock:
            game = self._game()
            if game is None:
                return self._missing()
            completed = game.complete(reason)
            if completed.ok:
                self.store.save_game(game)
            return completed

    # -- reads ---------------------------------------------------------------

    def snapshot(self) -> Optional[Game]:
        with self._lock:
            game = self._game()
            return game.snapshot() if game else None

    def current_batter(self) -> Optional[str]:
        """Our lineup player due up next, or None without a game or lineup."""
        with self._lock:
            game = self._game()
            return game.current_batter if game else None

    def valid_outcomes(self, result: BattingResult, batter_id: str,
                       params: SituationalParameters = STANDARD_PARAMETERS) -> tuple[AdvancementOutcome, ...]:
        """Outcomes the rules permit from the game's current bases and outs."""
        game = self._game()
        if game is None:
            return ()
        return valid_outcomes(game.bases, result, params, config=self.config,
                              batter_id=batter_id, outs_before=game.outs)
