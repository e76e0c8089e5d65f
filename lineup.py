# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Starting lineup validation.

``setup_lineup`` checks a proposed nine-player lineup and substitute pool in
a fixed order and stops at the first problem:

1. The game exists (and is still in setup)
2. Exactly 9 lineup entries
3. Batting orders are exactly 1 through 9
4. No player appears twice in the lineup
5. Each required defensive position is filled by exactly one player
6. Every lineup player and substitute exists
7. No substitute is already a starter
8. No substitute is listed twice

Only a fully valid lineup is attached to the game.

Once attached, the starters are fixed.  ``add_substitute`` and
``remove_substitute`` change the substitute pool at any point before the
game is completed, keeping the same rules: a substitute exists, is not a
starter and is listed once.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, replace
from typing import Any, Optional

from pydantic import ValidationError

from data.store import GameStore
from models import (
    REQUIRED_POSITIONS,
    GameStatus,
    LineupEntry,
    Position,
    SetupLineupCommand,
    format_validation_error,
)
from rules.response import EngineError, ErrorCode, Result

logger = logging.getLogger(__name__)

LINEUP_SIZE = 9


@dataclass(frozen=True)
class Lineup:
    game_id: str
    entries: tuple[LineupEntry, ...]
    substitutes: tuple[str, ...] = ()

    @classmethod
    def from_command(cls, command: SetupLineupCommand) -> Lineup:
        return cls(
            game_id=command.game_id,
            entries=tuple(sorted(command.lineup, key=lambda e: e.batting_order)),
            substitutes=tuple(command.substitutes),
        )

    @property
    def players(self) -> list[str]:
        return [e.player_id for e in self.entries]

    def contains(self, player_id: str) -> bool:
        return player_id in self.players or player_id in self.substitutes

    def player_at(self, batting_order: int) -> Optional[str]:
        for e in self.entries:
            if e.batting_order == batting_order:
                return e.player_id
        return None

    def batting_order_of(self, player_id: str) -> Optional[int]:
        for e in self.entries:
            if e.player_id == player_id:
                return e.batting_order
        return None

    def position_of(self, player_id: str) -> Optional[Position]:
        for e in self.entries:
            if e.player_id == player_id:
                return e.position
        return None

    def with_substitute(self, player_id: str) -> Result[Lineup]:
        if player_id in self.players:
            return Result.failure(ErrorCode.SUBSTITUTE_IN_LINEUP,
                                  f"Substitute {player_id} is already in the starting lineup",
                                  player_id=player_id)
        if player_id in self.substitutes:
            return Result.failure(ErrorCode.DUPLICATE_SUBSTITUTE,
                                  f"Substitute {player_id} appears multiple times", player_id=player_id)
        return Result.success(replace(self, substitutes=self.substitutes + (player_id,)))

    def without_substitute(self, player_id: str) -> Result[Lineup]:
        if player_id not in self.substitutes:
            return Result.failure(ErrorCode.SUBSTITUTE_NOT_LISTED,
                                  f"{player_id} is not a substitute", player_id=player_id)
        return Result.success(
            replace(self, substitutes=tuple(p for p in self.substitutes if p != player_id))
        )

    def to_dict(self) -> dict:
        return {
            "game_id": self.game_id,
            "lineup": [e.model_dump(mode="json") for e in self.entries],
            "substitutes": list(self.substitutes),
        }


def parse_lineup_command(command: SetupLineupCommand | dict[str, Any]) -> Result[SetupLineupCommand]:
    if isinstance(command, SetupLineupCommand):
        return Result.success(command)
    try:
        return Result.success(SetupLineupCommand.model_validate(command))
    except ValidationError as exc:
        return Result.failure(ErrorCode.MALFORMED_COMMAND, format_validation_error(exc))


# ---------------------------------------------------------------------------
# Store-free checks
# ---------------------------------------------------------------------------

def _check_shape(command: SetupLineupCommand) -> Optional[EngineError]:
    entries = command.lineup
    if len(entries) != LINEUP_SIZE:
        return EngineError(ErrorCode.LINEUP_SIZE, f"Lineup must have exactly {LINEUP_SIZE} players",
                           {"count": len(entries)})

    orders = sorted(e.batting_order for e in entries)
    if orders != list(range(1, LINEUP_SIZE + 1)):
        return EngineError(ErrorCode.BATTING_ORDER, "Batting orders must be exactly 1 through 9",
                           {"batting_orders": orders})

    repeated = [p for p, n in Counter(e.player_id for e in entries).items() if n > 1]
    if repeated:
        return EngineError(ErrorCode.DUPLICATE_PLAYER, "Each player can only appear once in the lineup",
                           {"player_ids": repeated})

    positions = Counter(e.position for e in entries)
    shared = [p.value for p, n in positions.items() if n > 1]
    if shared:
        return EngineError(ErrorCode.DUPLICATE_POSITION, "Each position can only be assigned to one player",
                           {"positions": shared})
    missing = sorted(p.value for p in REQUIRED_POSITIONS - set(positions))
    if missing:
        return EngineError(ErrorCode.MISSING_POSITION, "All required defensive positions must be filled",
                           {"missing": missing})
    return None


def _check_substitutes(command: SetupLineupCommand) -> Optional[EngineError]:
    starters = {e.player_id for e in command.lineup}
    for sub in command.substitutes:
        if sub in starters:
            return EngineError(ErrorCode.SUBSTITUTE_IN_LINEUP,
                               f"Substitute {sub} is already in the starting lineup", {"player_id": sub})
    seen = set()
    for sub in command.substitutes:
        if sub in seen:
            return EngineError(ErrorCode.DUPLICATE_SUBSTITUTE,
                               f"Substitute {sub} appears multiple times", {"player_id": sub})
        seen.add(sub)
    return None


def validate_lineup(command: SetupLineupCommand) -> Result[Lineup]:
    """Run every check that needs no store (steps 2-5, 7 and 8)."""
    error = _check_shape(command) or _check_substitutes(command)
    if error:
        return Result.from_error(error)
    return Result.success(Lineup.from_command(command))


# ---------------------------------------------------------------------------
# Full setup
# ---------------------------------------------------------------------------

def setup_lineup(command: SetupLineupCommand | dict[str, Any], store: GameStore) -> Result[Lineup]:
    """Validate a lineup against the store and attach it to the game."""
    parsed = parse_lineup_command(command)
    if not parsed.ok:
        return parsed
    command = parsed.value

    game = store.get_game(command.game_id)
    if game is None:
        return Result.failure(ErrorCode.GAME_NOT_FOUND, "Game not found", game_id=command.game_id)
    if game.status is not GameStatus.SETUP:
        return Result.failure(
            ErrorCode.LINEUP_LOCKED,
            f"Lineup can only be set while the game is in setup (status: {game.status.value})",
            game_id=game.id,
        )

    error = _check_shape(command)
    if error is None:
        for entry in command.lineup:
            if not store.player_exists(entry.player_id):
                error = EngineError(ErrorCode.PLAYER_NOT_FOUND, f"Player {entry.player_id} not found",
                                    {"player_id": entry.player_id})
                break
    if error is None:
        for sub in command.substitutes:
            if not store.player_exists(sub):
                error = EngineError(ErrorCode.PLAYER_NOT_FOUND, f"Substitute player {sub} not found",
                                    {"player_id": sub})
                break
    if error is None:
        error = _check_substitutes(command)
    if error is not None:
        logger.debug("Lineup for game %s rejected: %s", command.game_id, error)
        return Result.from_error(error)

    lineup = Lineup.from_command(command)
    attached = game.attach_lineup(lineup)
    if not attached.ok:
        return Result.from_error(attached.error)
    store.save_game(game)
    return Result.success(lineup)


# ---------------------------------------------------------------------------
# Substitute pool
# ---------------------------------------------------------------------------

def _change_substitutes(game_id: str, store: GameStore, change) -> Result[Lineup]:
    game = store.get_game(game_id)
    if game is None:
        return Result.failure(ErrorCode.GAME_NOT_FOUND, "Game not found", game_id=game_id)
    if game.lineup is None:
        return Result.failure(ErrorCode.LINEUP_REQUIRED,
                              "A lineup must be set up before its substitutes can change",
                              game_id=game_id)
    if game.status is GameStatus.COMPLETED:
        return Result.failure(ErrorCode.LINEUP_LOCKED, "Lineup cannot change once the game is completed",
                              game_id=game_id)
    changed = change(game.lineup)
    if not changed.ok:
        logger.debug("Substitute change for game %s rejected: %s", game_id, changed.error)
        return changed
    replaced = game.replace_lineup(changed.value)
    if not replaced.ok:
        return Result.from_error(replaced.error)
    store.save_game(game)
    return changed


def add_substitute(game_id: str, player_id: str, store: GameStore) -> Result[Lineup]:
    """Add an existing player to the game's substitute pool."""
    def change(lineup: Lineup) -> Result[Lineup]:
        if not store.player_exists(player_id):
            return Result.failure(ErrorCode.PLAYER_NOT_FOUND, f"Substitute player {player_id} not found",
                                  player_id=player_id)
        return lineup.with_substitute(player_id)

    return _change_substitutes(game_id, store, change)


def remove_substitute(game_id: str, player_id: str, store: GameStore) -> Result[Lineup]:
    return _change_substitutes(game_id, store, lambda lineup: lineup.without_substitute(player_id))
