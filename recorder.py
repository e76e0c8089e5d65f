# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""At-bat recording.

``record_at_bat`` validates one plate appearance, builds the immutable
``AtBat`` record and folds it into the game.  Validation stops at the first
failure, in this order:

1. The game exists and is in progress
2. Batter id present; inning is a positive number
3. RBIs not negative; description within 500 characters
4. Strikeouts and groundouts carry no RBI
5. RBIs equal the distinct runs scored (lower allowed on no-RBI plays)
6. At most 4 RBIs
7. Nobody scores twice on one play
   - the at-bat belongs to the game's current half-inning and bases
8. The rule engine accepts the base transition
9. A home run clears the bases
10. The batting position is known (from the lineup for our side)
11. When our side bats, the batter fills the due-up slot of the order

Nothing on the game, inning or store changes unless every check passes.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from config import DEFAULT_RULES, MAX_DESCRIPTION_LENGTH, MAX_RBIS_PER_AT_BAT, RuleConfiguration
from data.store import GameStore
from game import Game, ordinal
from models import (
    STANDARD_PARAMETERS,
    GameStatus,
    Half,
    RecordAtBatCommand,
    SituationalParameters,
    format_validation_error,
)
from rules.bases import BaserunnerState
from rules.outcomes import BattingResult
from rules.response import EngineError, ErrorCode, Result
from rules.validation import Transition, count_outs, validate_transition

logger = logging.getLogger(__name__)

_NO_RBI_RESULTS = (BattingResult.STRIKEOUT, BattingResult.GROUNDOUT)


@dataclass(frozen=True)
class AtBat:
    """Immutable record of one plate appearance."""
    game_id: str
    inning_id: str
    inning: int
    half: Half
    batter_id: str
    batting_position: int
    result: BattingResult
    rbis: int
    runs_scored: tuple[str, ...]
    baserunners_before: BaserunnerState
    baserunners_after: BaserunnerState
    outs: int
    description: str = ""
    parameters: SituationalParameters = STANDARD_PARAMETERS
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def runs(self) -> int:
        return len(set(self.runs_scored))

    def summary(self) -> str:
        text = self.result.label.capitalize()
        if self.rbis:
            text += f", {self.rbis} RBI"
        if self.runs > self.rbis:
            unearned = self.runs - self.rbis
            text += f", {unearned} run{'s' if unearned > 1 else ''} without RBI"
        return text

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "game_id": self.game_id,
            "inning_id": self.inning_id,
            "inning": self.inning,
            "half": self.half.value,
            "batter_id": self.batter_id,
            "batting_position": self.batting_position,
            "result": self.result.value,
            "rbis": self.rbis,
            "runs_scored": list(self.runs_scored),
            "baserunners_before": self.baserunners_before.to_dict(),
            "baserunners_after": self.baserunners_after.to_dict(),
            "outs": self.outs,
            "description": self.description,
            "parameters": self.parameters.model_dump(mode="json"),
            "timestamp": self.timestamp.isoformat(),
        }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def parse_at_bat_command(command: RecordAtBatCommand | dict[str, Any]) -> Result[RecordAtBatCommand]:
    if isinstance(command, RecordAtBatCommand):
        return Result.success(command)
    try:
        return Result.success(RecordAtBatCommand.model_validate(command))
    except ValidationError as exc:
        return Result.failure(ErrorCode.MALFORMED_COMMAND, format_validation_error(exc))


def _check_command(cmd: RecordAtBatCommand, config: RuleConfiguration) -> Optional[EngineError]:
    """Steps 2-7: checks on the command alone."""
    if not cmd.batter_id or not cmd.batter_id.strip():
        return EngineError(ErrorCode.MISSING_BATTER, "Batter ID is required")
    if cmd.inning < 1:
        return EngineError(ErrorCode.INVALID_INNING, "Inning must be a positive number",
                           {"inning": cmd.inning})

    if cmd.rbis < 0:
        return EngineError(ErrorCode.NEGATIVE_RBI, "RBI cannot be negative", {"rbis": cmd.rbis})
    if len(cmd.description) > MAX_DESCRIPTION_LENGTH:
        return EngineError(ErrorCode.DESCRIPTION_TOO_LONG,
                           f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters",
                           {"length": len(cmd.description)})

    if cmd.result in _NO_RBI_RESULTS and cmd.rbis > 0:
        return EngineError(ErrorCode.RBI_ON_OUT, "Strikeouts and groundouts cannot have RBIs",
                           {"result": cmd.result.value, "rbis": cmd.rbis})

    distinct = len(set(cmd.runs_scored))
    if config.is_rbi_exempt(cmd.result, cmd.parameters.error_occurred):
        if cmd.rbis > distinct:
            return EngineError(ErrorCode.RBI_MISMATCH,
                               "RBI count cannot exceed the number of runs scored",
                               {"rbis": cmd.rbis, "runs": distinct})
    elif cmd.rbis != distinct:
        return EngineError(ErrorCode.RBI_MISMATCH, "RBI count must match the number of runs scored",
                           {"rbis": cmd.rbis, "runs": distinct})

    if cmd.rbis > MAX_RBIS_PER_AT_BAT:
        return EngineError(ErrorCode.RBI_LIMIT, f"Maximum RBI per at-bat is {MAX_RBIS_PER_AT_BAT}",
                           {"rbis": cmd.rbis})

    if len(cmd.runs_scored) != distinct:
        repeated = sorted({p for p in cmd.runs_scored if cmd.runs_scored.count(p) > 1})
        return EngineError(ErrorCode.DUPLICATE_SCORER,
                           "A player cannot score multiple times in the same at-bat",
                           {"player_ids": repeated})
    return None


def _check_situation(cmd: RecordAtBatCommand, game: Game) -> Optional[EngineError]:
    """The at-bat must belong to the half-inning the game is actually in."""
    if cmd.inning != game.inning_number or cmd.half is not game.half:
        half = "Top" if cmd.is_top_inning else "Bottom"
        return EngineError(
            ErrorCode.INNING_MISMATCH,
            f"At-bat is for {half} {cmd.inning} but the game is in {game.current_inning.display_text()}",
            {"inning": game.inning_number, "half": game.half.value},
        )
    if cmd.baserunners_before != game.bases:
        return EngineError(
            ErrorCode.BASES_MISMATCH,
            f"Baserunners before ({cmd.baserunners_before}) do not match the game ({game.bases})",
            {"expected": game.bases.to_dict()},
        )
    return None


def _batting_position(cmd: RecordAtBatCommand, game: Game) -> Optional[int]:
    if game.lineup is not None and game.batting_side is game.our_side:
        position = game.lineup.batting_order_of(cmd.batter_id)
        if position is not None:
            return position
    return cmd.batting_position


def validate_at_bat(
    command: RecordAtBatCommand,
    game: Optional[Game],
    config: RuleConfiguration = DEFAULT_RULES,
) -> Result[Transition]:
    """Run the full validation sequence without touching the game.

    Returns the accepted ``Transition`` so the caller can apply it.  The same
    input always produces the same decision.
    """
    if game is None:
        return Result.failure(ErrorCode.GAME_NOT_FOUND, "Game not found", game_id=command.game_id)
    if game.status is not GameStatus.IN_PROGRESS:
        return Result.failure(
            ErrorCode.GAME_NOT_IN_PROGRESS,
            f"Cannot record an at-bat for a game that is {game.status.value}",
            game_id=game.id, status=game.status.value,
        )

    error = _check_command(command, config) or _check_situation(command, game)
    if error:
        return Result.from_error(error)

    transition = Transition(
        before=command.baserunners_before,
        after=command.baserunners_after,
        result=command.result,
        runs_scored=tuple(command.runs_scored),
        rbis=command.rbis,
        batter_id=command.batter_id,
        outs_before=game.outs,
        params=command.parameters,
    )
    verdict = validate_transition(transition, config)
    if not verdict.is_valid:
        return Result.from_error(verdict.first().to_error())

    if command.result is BattingResult.HOME_RUN and not command.baserunners_after.is_empty:
        return Result.failure(ErrorCode.HOME_RUN_BASES, "A home run must clear all bases",
                              bases_after=command.baserunners_after.to_dict())

    position = _batting_position(command, game)
    if position is None:
        return Result.failure(
            ErrorCode.BATTING_POSITION_REQUIRED,
            f"Batting position is required for {command.batter_id}, who is not in the lineup",
        )
    if (game.lineup is not None and game.batting_side is game.our_side
            and position != game.due_up):
        return Result.failure(
            ErrorCode.BATTING_OUT_OF_ORDER,
            f"{command.batter_id} bats {ordinal(position)} but the {ordinal(game.due_up)} "
            f"spot ({game.current_batter}) is due up",
            batting_position=position, due_up=game.due_up,
        )
    return Result.success(transition)


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------

def record_at_bat(
    command: RecordAtBatCommand | dict[str, Any],
    store: GameStore,
    config: RuleConfiguration = DEFAULT_RULES,
) -> Result[AtBat]:
    """Validate and record one plate appearance."""
    parsed = parse_at_bat_command(command)
    if not parsed.ok:
        return Result.from_error(parsed.error)
    cmd = parsed.value

    game = store.get_game(cmd.game_id)
    checked = validate_at_bat(cmd, game, config)
    if not checked.ok:
        logger.debug("At-bat for %s rejected: %s", cmd.batter_id, checked.error)
        return Result.from_error(checked.error)
    transition = checked.value

    inning = game.current_inning
    at_bat = AtBat(
        game_id=game.id,
        inning_id=inning.id,
        inning=inning.number,
        half=inning.half,
        batter_id=cmd.batter_id,
        batting_position=_batting_position(cmd, game),
        result=cmd.result,
        rbis=cmd.rbis,
        runs_scored=tuple(cmd.runs_scored),
        baserunners_before=cmd.baserunners_before,
        baserunners_after=cmd.baserunners_after,
        outs=count_outs(transition).total,
        description=cmd.description,
        parameters=cmd.parameters,
    )
    game.apply_play(
        at_bat.id,
        runs=at_bat.runs,
        outs=at_bat.outs,
        bases_after=at_bat.baserunners_after,
        description=f"{at_bat.batter_id}: {cmd.description or at_bat.summary()}",
        batting_position=at_bat.batting_position,
    )
    store.save_at_bat(at_bat)
    store.save_game(game)
    logger.info("Recorded %s for %s in game %s (%s)", cmd.result.label, cmd.batter_id,
                game.id, game.situation_display())
    return Result.success(at_bat)
