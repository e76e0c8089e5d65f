# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Game lifecycle and half-inning progression.

``Game`` owns the lifecycle status, the innings played so far and the
scoreboard.  Status moves only along

    setup -> in_progress -> completed
             in_progress -> suspended

and any other request is reported as an ``ILLEGAL_TRANSITION`` failure.

Within an in-progress game, ``apply_play`` folds one recorded at-bat into
the current half-inning and decides when the half ends (three outs), when
the batting side flips, when the inning number advances, and when the game
is over (regulation, walk-off, home team already ahead, mercy rule).
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from config import DEFAULT_GAME_RULES, MAX_OUTS, GameRules
from models import GameStatus, Half, TeamSide
from rules.bases import EMPTY_BASES, BaserunnerState
from rules.response import ErrorCode, Result

if TYPE_CHECKING:
    from lineup import Lineup

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def ordinal(n: int) -> str:
    """Return ordinal string for an integer (1st, 2nd, 3rd, etc.)."""
    if 11 <= n % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


# ---------------------------------------------------------------------------
# Game events
# ---------------------------------------------------------------------------

@dataclass
class GameEvent:
    kind: str  # "at_bat", "inning_change", "game_end"
    inning: int
    half: Half
    description: str
    score_home: int = 0
    score_away: int = 0

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "inning": self.inning,
            "half": self.half.value,
            "description": self.description,
            "score": {"home": self.score_home, "away": self.score_away},
        }


# ---------------------------------------------------------------------------
# Inning
# ---------------------------------------------------------------------------

@dataclass
class Inning:
    """One half-inning: a single side's turn at bat."""
    game_id: str
    number: int
    half: Half
    id: str = field(default_factory=_new_id)
    at_bat_ids: list[str] = field(default_factory=list)
    outs: int = 0
    runs: int = 0
    bases: BaserunnerState = EMPTY_BASES
    is_complete: bool = False

    @property
    def batting_side(self) -> TeamSide:
        return self.half.batting_side

    def add_at_bat(self, at_bat_id: str) -> None:
        if self.is_complete:
            raise ValueError(f"{self.display_text()} is complete; cannot add at-bat {at_bat_id}")
        self.at_bat_ids.append(at_bat_id)

    def is_extra(self, regulation_innings: int) -> bool:
        return self.number > regulation_innings

    def display_text(self) -> str:
        return f"{'Top' if self.half is Half.TOP else 'Bottom'} {ordinal(self.number)}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "number": self.number,
            "half": self.half.value,
            "at_bat_ids": list(self.at_bat_ids),
            "outs": self.outs,
            "runs": self.runs,
            "bases": self.bases.to_dict(),
            "is_complete": self.is_complete,
        }


# ---------------------------------------------------------------------------
# Scoreboard
# ---------------------------------------------------------------------------

@dataclass
class Scoreboard:
    home: int = 0
    away: int = 0
    home_line: list[int] = field(default_factory=list)
    away_line: list[int] = field(default_factory=list)

    def add_runs(self, half: Half, inning: int, runs: int) -> None:
        line = self.away_line if half is Half.TOP else self.home_line
        while len(line) < inning:
            line.append(0)
        line[inning - 1] += runs
        if half is Half.TOP:
            self.away += runs
        else:
            self.home += runs

    def runs_for(self, side: TeamSide) -> int:
        return self.home if side is TeamSide.HOME else self.away

    @property
    def differential(self) -> int:
        return abs(self.home - self.away)

    def leader(self) -> Optional[TeamSide]:
        if self.home > self.away:
            return TeamSide.HOME
        if self.away > self.home:
            return TeamSide.AWAY
        return None

    def line_score(self) -> str:
        innings = max(len(self.away_line), len(self.home_line), 1)
        header = "      " + " ".join(f"{i:>2}" for i in range(1, innings + 1)) + " |  R"

        def row(label: str, line: list[int], total: int) -> str:
            cells = [f"{line[i]:>2}" if i < len(line) else " -" for i in range(innings)]
            return f"{label:<6}" + " ".join(cells) + f" | {total:>2}"

        return "\n".join([
            header,
            row("Away", self.away_line, self.away),
            row("Home", self.home_line, self.home),
        ])

    def to_dict(self) -> dict:
        return {
            "home": self.home,
            "away": self.away,
            "home_line": list(self.home_line),
            "away_line": list(self.away_line),
        }


# ---------------------------------------------------------------------------
# Game
# ---------------------------------------------------------------------------

@dataclass
class Game:
    """Authoritative game state."""
    name: str = ""
    id: str = field(default_factory=_new_id)
    our_side: TeamSide = TeamSide.HOME
    status: GameStatus = GameStatus.SETUP
    rules: GameRules = DEFAULT_GAME_RULES
    lineup: Optional[Lineup] = None
    innings: list[Inning] = field(default_factory=list)
    score: Scoreboard = field(default_factory=Scoreboard)
    winner: Optional[TeamSide] = None
    end_reason: str = ""
    play_log: list[GameEvent] = field(default_factory=list)
    due_up: int = 1  # our batting-order slot due to bat next

    # -- read state ----------------------------------------------------------

    @property
    def current_inning(self) -> Optional[Inning]:
        return self.innings[-1] if self.innings else None

    @property
    def inning_number(self) -> int:
        inning = self.current_inning
        return inning.number if inning else 0

    @property
    def half(self) -> Optional[Half]:
        inning = self.current_inning
        return inning.half if inning else None

    @property
    def outs(self) -> int:
        inning = self.current_inning
        return inning.outs if inning else 0

    @property
    def bases(self) -> BaserunnerState:
        inning = self.current_inning
        return inning.bases if inning else EMPTY_BASES

    @property
    def batting_side(self) -> Optional[TeamSide]:
        half = self.half
        return half.batting_side if half else None

    @property
    def current_batter(self) -> Optional[str]:
        """Our lineup player due up next, whichever side is batting now."""
        if self.lineup is None:
            return None
        return self.lineup.player_at(self.due_up)

    @property
    def is_over(self) -> bool:
        return self.status is GameStatus.COMPLETED

    def situation_display(self) -> str:
        inning = self.current_inning
        if inning is None:
            return f"{self.status.value}, Away {self.score.away} - Home {self.score.home}"
        return (f"{inning.display_text()}, {inning.outs} out, {inning.bases}, "
                f"Away {self.score.away} - Home {self.score.home}")

    # -- lifecycle -----------------------------------------------------------

    def _illegal(self, action: str) -> Result[Game]:
        return Result.failure(
            ErrorCode.ILLEGAL_TRANSITION,
            f"Cannot {action} a game that is {self.status.value}",
            game_id=self.id, status=self.status.value,
        )

    def attach_lineup(self, lineup: Lineup) -> Result[Game]:
        if self.status is not GameStatus.SETUP:
            return Result.failure(
                ErrorCode.LINEUP_LOCKED,
                f"Lineup can only be set while the game is in setup (status: {self.status.value})",
                game_id=self.id,
            )
        self.lineup = lineup
        logger.info("Lineup attached to game %s", self.id)
        return Result.success(self)

    def replace_lineup(self, lineup: Lineup) -> Result[Game]:
        """Swap in a lineup whose substitute pool changed.

        Allowed in every status except completed.  The starters themselves
        change only through setup.
        """
        if self.lineup is None:
            return Result.failure(
                ErrorCode.LINEUP_REQUIRED,
                "A lineup must be set up before its substitutes can change",
                game_id=self.id,
            )
        if self.status is GameStatus.COMPLETED:
            return Result.failure(
                ErrorCode.LINEUP_LOCKED,
                "Lineup cannot change once the game is completed",
                game_id=self.id,
            )
        if lineup.entries != self.lineup.entries:
            raise ValueError(f"Starting lineup of game {self.id} cannot change after setup")
        self.lineup = lineup
        logger.info("Game %s substitutes now %s", self.id, ", ".join(lineup.substitutes) or "none")
        return Result.success(self)

    def start(self) -> Result[Game]:
        if self.status is not GameStatus.SETUP:
            return self._illegal("start")
        if self.lineup is None:
            return Result.failure(
                ErrorCode.LINEUP_REQUIRED,
                "A validated lineup is required before the game can start",
                game_id=self.id,
            )
        self.status = GameStatus.IN_PROGRESS
        self._open_half(1, Half.TOP)
        logger.info("Game %s started", self.id)
        return Result.success(self)

    def suspend(self) -> Result[Game]:
        if self.status is not GameStatus.IN_PROGRESS:
            return self._illegal("suspend")
        self.status = GameStatus.SUSPENDED
        logger.info("Game %s suspended at %s", self.id, self.situation_display())
        return Result.success(self)

    def complete(self, reason: str = "called") -> Result[Game]:
        if self.status is not GameStatus.IN_PROGRESS:
            return self._illegal("complete")
        self._finish(reason)
        return Result.success(self)

    # -- progression ---------------------------------------------------------

    def _event(self, kind: str, description: str) -> GameEvent:
        event = GameEvent(
            kind=kind,
            inning=self.inning_number,
            half=self.half or Half.TOP,
            description=description,
            score_home=self.score.home,
            score_away=self.score.away,
        )
        self.play_log.append(event)
        return event

    def _open_half(self, number: int, half: Half) -> GameEvent:
        self.innings.append(Inning(game_id=self.id, number=number, half=half))
        logger.info("Game %s: %s", self.id, self.current_inning.display_text())
        return self._event(
            "inning_change",
            f"--- {'Top' if half is Half.TOP else 'Bottom'} of the {ordinal(number)} ---",
        )

    def _finish(self, reason: str) -> GameEvent:
        self.status = GameStatus.COMPLETED
        self.winner = self.score.leader()
        self.end_reason = reason
        if self.winner is None:
            text = f"Game over ({reason}), tied {self.score.away}-{self.score.home}"
        else:
            text = (f"Game over ({reason})! {self.winner.value.capitalize()} wins "
                    f"{max(self.score.home, self.score.away)}-{min(self.score.home, self.score.away)}")
        logger.info("Game %s completed: %s", self.id, text)
        return self._event("game_end", text)

    def _mercy_reached(self, trailing: TeamSide) -> bool:
        """True when ``trailing`` is behind by the mercy margin late enough."""
        rules = self.rules
        if not rules.mercy_rule_enabled or self.inning_number < rules.mercy_min_inning:
            return False
        leader = self.score.leader()
        return (leader is not None and leader is not trailing
                and self.score.differential >= rules.mercy_run_differential)

    def _advance_batter(self, batting_position: int) -> None:
        slots = len(self.lineup.entries)
        self.due_up = batting_position % slots + 1

    def apply_play(self, at_bat_id: str, runs: int, outs: int,
                   bases_after: BaserunnerState, description: str = "",
                   batting_position: Optional[int] = None) -> list[GameEvent]:
        """Fold one validated at-bat into the current half-inning.

        The caller has already validated the play; this only records it and
        runs the progression checks.  When our side bats, ``batting_position``
        moves the due-up slot along the order, wrapping from 9 back to 1.
        Returns the events generated.
        """
        inning = self.current_inning
        if (batting_position is not None and self.lineup is not None
                and inning.batting_side is self.our_side):
            self._advance_batter(batting_position)
        inning.add_at_bat(at_bat_id)
        inning.runs += runs
        inning.outs += outs
        inning.bases = bases_after
        self.score.add_runs(inning.half, inning.number, runs)

        events = [self._event("at_bat", description or f"At-bat {at_bat_id}")]
        regulation = self.rules.regulation_innings

        if inning.half is Half.BOTTOM and runs and self.score.home > self.score.away:
            if inning.number >= regulation:
                inning.is_complete = True
                events.append(self._finish("walk-off"))
                return events
            if self._mercy_reached(TeamSide.AWAY):
                inning.is_complete = True
                events.append(self._finish("mercy rule"))
                return events

        if inning.outs >= MAX_OUTS:
            events.extend(self._end_half_inning())
        return events

    def _end_half_inning(self) -> list[GameEvent]:
        """Close the current half and open the next one, or end the game."""
        inning = self.current_inning
        inning.is_complete = True
        regulation = self.rules.regulation_innings

        if inning.half is Half.TOP:
            if inning.number >= regulation and self.score.home > self.score.away:
                return [self._finish("home team ahead")]
            if self._mercy_reached(TeamSide.AWAY):
                return [self._finish("mercy rule")]
            return [self._open_half(inning.number, Half.BOTTOM)]

        if inning.number >= regulation and self.score.leader() is not None:
            return [self._finish("regulation")]
        if self._mercy_reached(TeamSide.HOME):
            return [self._finish("mercy rule")]
        return [self._open_half(inning.number + 1, Half.TOP)]

    # -- views ---------------------------------------------------------------

    def snapshot(self) -> Game:
        """An independent copy for readers; mutating it never touches this game."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "our_side": self.our_side.value,
            "status": self.status.value,
            "inning": self.inning_number,
            "half": self.half.value if self.half else None,
            "outs": self.outs,
            "bases": self.bases.to_dict(),
            "score": self.score.to_dict(),
            "winner": self.winner.value if self.winner else None,
            "end_reason": self.end_reason,
            "due_up": self.due_up,
            "current_batter": self.current_batter,
            "innings": [i.to_dict() for i in self.innings],
        }
