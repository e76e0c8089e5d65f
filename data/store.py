# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Storage collaborator for games, players and at-bats.

The engine never performs I/O.  It reaches entities through the
``GameStore`` protocol, which the surrounding application implements over
whatever persistence it uses.  ``InMemoryStore`` is the dict-backed
implementation used by the tests and the ``scorebook`` CLI.

Usage::

    from data.store import InMemoryStore

    store = InMemoryStore()
    store.add_player("p1")
    store.add_game(game)

    store.get_game(game.id)               # -> Game or None
    store.player_exists("p1")             # -> True
    store.at_bats_for(game.id)            # -> [AtBat, ...] in record order
    store.remove_game(game.id)
    store.clear()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

from models import Player

if TYPE_CHECKING:
    from game import Game
    from recorder import AtBat


class GameStore(Protocol):
    """What the engine needs from persistence."""

    def get_game(self, game_id: str) -> Optional[Game]: ...

    def save_game(self, game: Game) -> None: ...

    def player_exists(self, player_id: str) -> bool: ...

    def save_at_bat(self, at_bat: AtBat) -> None: ...

    def get_at_bat(self, at_bat_id: str) -> Optional[AtBat]: ...


class InMemoryStore:
    """Dict-backed ``GameStore``."""

    def __init__(self) -> None:
        self._games: dict[str, Game] = {}
        self._players: dict[str, Player] = {}
        self._at_bats: dict[str, AtBat] = {}

    # -- players -------------------------------------------------------------

    def add_player(self, player: Player | str) -> Player:
        if isinstance(player, str):
            player = Player(player_id=player)
        self._players[player.player_id] = player
        return player

    def get_player(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def player_exists(self, player_id: str) -> bool:
        return player_id in self._players

    # -- games ---------------------------------------------------------------

    def add_game(self, game: Game) -> Game:
        self._games[game.id] = game
        return game

    def get_game(self, game_id: str) -> Optional[Game]:
        return self._games.get(game_id)

    def save_game(self, game: Game) -> None:
        self._games[game.id] = game

    def remove_game(self, game_id: str) -> bool:
        if self._games.pop(game_id, None) is None:
            return False
        for at_bat_id in [a.id for a in self._at_bats.values() if a.game_id == game_id]:
            del self._at_bats[at_bat_id]
        return True

    # -- at-bats -------------------------------------------------------------

    def save_at_bat(self, at_bat: AtBat) -> None:
        self._at_bats[at_bat.id] = at_bat

    def get_at_bat(self, at_bat_id: str) -> Optional[AtBat]:
        return self._at_bats.get(at_bat_id)

    def at_bats_for(self, game_id: str) -> list[AtBat]:
        return [a for a in self._at_bats.values() if a.game_id == game_id]

    def clear(self) -> None:
        self._games.clear()
        self._players.clear()
        self._at_bats.clear()
