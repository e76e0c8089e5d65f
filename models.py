# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Data models for the softball scorekeeping engine.

Enums shared across the engine and the pydantic models for inbound commands.
Command models check types only.  Range and consistency checks (empty batter
id, negative RBIs, lineup size, ...) belong to the recorder and lineup
validators, which report each one with its own error code.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rules.bases import EMPTY_BASES, BaserunnerState
from rules.outcomes import BattingResult


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Half(str, Enum):
    TOP = "TOP"
    BOTTOM = "BOTTOM"

    @property
    def batting_side(self) -> TeamSide:
        return TeamSide.AWAY if self is Half.TOP else TeamSide.HOME

    def flipped(self) -> Half:
        return Half.BOTTOM if self is Half.TOP else Half.TOP


class TeamSide(str, Enum):
    HOME = "HOME"
    AWAY = "AWAY"


class GameStatus(str, Enum):
    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SUSPENDED = "suspended"


class Position(str, Enum):
    P = "P"
    C = "C"
    FIRST_BASE = "1B"
    SECOND_BASE = "2B"
    THIRD_BASE = "3B"
    SS = "SS"
    LF = "LF"
    CF = "CF"
    RF = "RF"
    SHORT_FIELDER = "SF"  # slow-pitch tenth fielder
    EXTRA_PLAYER = "EP"   # bats but does not field


REQUIRED_POSITIONS: frozenset[Position] = frozenset({
    Position.P, Position.C, Position.FIRST_BASE, Position.SECOND_BASE,
    Position.THIRD_BASE, Position.SS, Position.LF, Position.CF, Position.RF,
})


class Aggressiveness(str, Enum):
    CONSERVATIVE = "conservative"
    STANDARD = "standard"
    AGGRESSIVE = "aggressive"


# ---------------------------------------------------------------------------
# Situational parameters
# ---------------------------------------------------------------------------

class SituationalParameters(BaseModel):
    """External facts about a play that the hit type alone does not determine."""
    model_config = ConfigDict(frozen=True)

    aggressiveness: Aggressiveness = Field(
        default=Aggressiveness.STANDARD,
        description="How far runners pushed beyond the batter's own advance.",
    )
    error_occurred: bool = Field(default=False, description="A fielding error extended the play.")
    running_error_occurred: bool = Field(
        default=False, description="A runner was put out by their own baserunning mistake.",
    )

    def describe(self) -> str:
        parts = []
        if self.aggressiveness is not Aggressiveness.STANDARD:
            parts.append(self.aggressiveness.value.capitalize())
        if self.error_occurred:
            parts.append("Fielding Error")
        if self.running_error_occurred:
            parts.append("Running Error")
        return " + ".join(parts) if parts else "Standard"


STANDARD_PARAMETERS = SituationalParameters()


# ---------------------------------------------------------------------------
# Players and lineups
# ---------------------------------------------------------------------------

class Player(BaseModel):
    """A rostered player.  The engine only needs the id to exist."""
    player_id: str
    name: str = ""
    jersey_number: Optional[int] = Field(default=None, ge=0, le=99)
    positions: list[Position] = Field(default_factory=list)


class LineupEntry(BaseModel):
    """One batting-order slot."""
    model_config = ConfigDict(frozen=True)

    batting_order: int = Field(description="Slot in the batting order (1-9).")
    player_id: str = Field(description="The player batting in this slot.")
    position: Position = Field(description="Defensive position for this player.")


class SetupLineupCommand(BaseModel):
    """Proposed starting lineup and substitute pool for a game in setup."""
    game_id: str
    lineup: list[LineupEntry] = Field(default_factory=list)
    substitutes: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# At-bat command
# ---------------------------------------------------------------------------

class RecordAtBatCommand(BaseModel):
    """One plate appearance as reported by the scorer."""
    game_id: str
    batter_id: str
    inning: int = Field(description="Inning number the at-bat belongs to.")
    is_top_inning: bool = Field(description="True when the away side is batting.")
    result: BattingResult
    description: str = Field(default="", description="Free-text play description (max 500 chars).")
    rbis: int = Field(default=0, description="Runs batted in credited to the batter.")
    baserunners_before: BaserunnerState = Field(default=EMPTY_BASES)
    baserunners_after: BaserunnerState = Field(default=EMPTY_BASES)
    runs_scored: list[str] = Field(
        default_factory=list, description="Players who crossed the plate on the play, in order.",
    )
    parameters: SituationalParameters = Field(default=STANDARD_PARAMETERS)
    batting_position: Optional[int] = Field(
        default=None, description="Batting-order slot for batters outside the stored lineup.",
    )

    @field_validator("result", mode="before")
    @classmethod
    def parse_result(cls, v: Any) -> Any:
        if isinstance(v, str):
            return BattingResult.parse(v)
        return v

    @field_validator("baserunners_before", "baserunners_after", mode="before")
    @classmethod
    def parse_bases(cls, v: Any) -> Any:
        if v is None or isinstance(v, dict):
            return BaserunnerState.from_mapping(v)
        return v

    @property
    def half(self) -> Half:
        return Half.TOP if self.is_top_inning else Half.BOTTOM


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------

def format_validation_error(exc: ValidationError) -> str:
    """One readable line naming the first failing parameter."""
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "command"
    return f"Parameter '{location}': {first.get('msg', 'invalid value')}"
