# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Centralized configuration for rule toggles, game rules and environment variables.

``RuleConfiguration`` and ``GameRules`` are immutable values.  Callers pass
them explicitly into engine calls; nothing in the engine reads ambient
settings.  The ``load_*`` helpers build them from environment variables for
the CLI and other hosts.
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from rules.outcomes import BattingResult

REGULATION_INNINGS_ENV = "SCOREKEEPER_REGULATION_INNINGS"
MERCY_RUNS_ENV = "SCOREKEEPER_MERCY_RUNS"
MERCY_INNING_ENV = "SCOREKEEPER_MERCY_INNING"
MERCY_ENABLED_ENV = "SCOREKEEPER_MERCY_RULE"
ERROR_ATTRIBUTION_ENV = "SCOREKEEPER_ERROR_ATTRIBUTION"
RUNNING_ERRORS_ENV = "SCOREKEEPER_RUNNING_ERRORS"
OUTCOME_MATRIX_ENV = "SCOREKEEPER_OUTCOME_MATRIX"

MAX_DESCRIPTION_LENGTH = 500
MAX_RBIS_PER_AT_BAT = 4
MAX_OUTS = 3

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


# ---------------------------------------------------------------------------
# Rule configuration
# ---------------------------------------------------------------------------

class RbiException(BaseModel):
    """A play on which runs may score without the batter being credited.

    ``None`` in either field matches any value.
    """
    model_config = ConfigDict(frozen=True)

    result: Optional[BattingResult] = None
    error_occurred: Optional[bool] = None

    def matches(self, result: BattingResult, error_occurred: bool) -> bool:
        if self.result is not None and self.result is not result:
            return False
        if self.error_occurred is not None and self.error_occurred != error_occurred:
            return False
        return True


# Reached-on-error is not listed here: the error-attribution toggle governs it.
DEFAULT_NO_RBI_EXCEPTIONS: frozenset[RbiException] = frozenset({
    RbiException(result=BattingResult.DOUBLE_PLAY),
    RbiException(result=BattingResult.GROUNDOUT),
    RbiException(error_occurred=True),
})

# rule id -> RuleConfiguration field
CONFIGURABLE_RULE_FLAGS: dict[str, str] = {
    "error-attribution": "error_attribution",
    "running-error": "running_errors",
    "outcome-matrix": "outcome_matrix",
}


class RuleConfiguration(BaseModel):
    """Which configurable rules are active.  Non-negotiable rules always run."""
    model_config = ConfigDict(frozen=True)

    error_attribution: bool = Field(
        default=True, description="A batter who reaches on an error is credited with no RBI.",
    )
    running_errors: bool = Field(
        default=True, description="Runners put out on the bases require a reported running error.",
    )
    outcome_matrix: bool = Field(
        default=False, description="Proposals must match an enumerated valid outcome.",
    )
    no_rbi_exceptions: frozenset[RbiException] = Field(
        default_factory=lambda: DEFAULT_NO_RBI_EXCEPTIONS,
        description="Plays on which runs may score without RBI credit.",
    )

    def is_enabled(self, rule_id: str) -> bool:
        try:
            return getattr(self, CONFIGURABLE_RULE_FLAGS[rule_id])
        except KeyError:
            raise ValueError(f"'{rule_id}' is not a configurable rule") from None

    def with_rule(self, rule_id: str, enabled: bool) -> RuleConfiguration:
        if rule_id not in CONFIGURABLE_RULE_FLAGS:
            raise ValueError(f"'{rule_id}' is not a configurable rule")
        return self.model_copy(update={CONFIGURABLE_RULE_FLAGS[rule_id]: enabled})

    def is_rbi_exempt(self, result: BattingResult, error_occurred: bool) -> bool:
        """True when runs on this play may score without RBI credit."""
        if result is BattingResult.ERROR and self.error_attribution:
            return True
        return any(exc.matches(result, error_occurred) for exc in self.no_rbi_exceptions)


DEFAULT_RULES = RuleConfiguration()


# ---------------------------------------------------------------------------
# Game rules
# ---------------------------------------------------------------------------

class GameRules(BaseModel):
    """Game-length and mercy-rule settings.  Defaults follow softball."""
    model_config = ConfigDict(frozen=True)

    regulation_innings: int = Field(default=7, ge=1, le=15)
    mercy_rule_enabled: bool = True
    mercy_run_differential: int = Field(default=10, ge=1)
    mercy_min_inning: int = Field(default=5, ge=1)


DEFAULT_GAME_RULES = GameRules()


# ---------------------------------------------------------------------------
# Environment loaders
# ---------------------------------------------------------------------------

def _env_bool(name: str) -> Optional[bool]:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return None
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"{name} must be one of {sorted(_TRUE | _FALSE)}, got {raw!r}")


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _collect(env: dict[str, str], reader, overrides: dict) -> dict:
    values = {}
    for field_name, env_name in env.items():
        value = reader(env_name)
        if value is not None:
            values[field_name] = value
    values.update({k: v for k, v in overrides.items() if v is not None})
    return values


def load_rule_configuration(**overrides) -> RuleConfiguration:
    """Build a RuleConfiguration from the environment, then apply overrides."""
    values = _collect({
        "error_attribution": ERROR_ATTRIBUTION_ENV,
        "running_errors": RUNNING_ERRORS_ENV,
        "outcome_matrix": OUTCOME_MATRIX_ENV,
    }, _env_bool, overrides)
    return RuleConfiguration(**values)


def load_game_rules(**overrides) -> GameRules:
    """Build GameRules from the environment, then apply overrides."""
    values = _collect({
        "regulation_innings": REGULATION_INNINGS_ENV,
        "mercy_run_differential": MERCY_RUNS_ENV,
        "mercy_min_inning": MERCY_INNING_ENV,
    }, _env_int, {})
    mercy = _env_bool(MERCY_ENABLED_ENV)
    if mercy is not None:
        values["mercy_rule_enabled"] = mercy
    values.update({k: v for k, v in overrides.items() if v is not None})
    return GameRules(**values)
