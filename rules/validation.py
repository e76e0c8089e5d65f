# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Rule validation for a proposed baserunner transition.

Two families of rules check a ``Transition`` (the before/after bases, the
result, who scored, the RBI count and the outs already in the inning):

Non-negotiable rules always run, first, and cannot be switched off:
- runner-accounting: every scorer and every runner on base afterwards was
  on base before or is the batter; nobody both scores and stays on base;
  nobody moves backward; the result's own outs are present
- no-runner-passing: a trailing runner never finishes ahead of a lead
  runner unless the lead runner scored or was put out
- rbi-bound: 0 <= rbis <= 4, equal to the distinct scorers except on
  no-RBI exception plays where it may be lower
- max-outs: a play records at most 3 outs, and no more than remain; no
  run scores on a play where the batter makes the third out

Configurable rules run only when the ``RuleConfiguration`` enables them:
- error-attribution: a batter who reached on an error gets no RBI
- running-error: runners put out beyond the result's own outs need a
  reported running error (when disabled, such outs are accepted as they
  stand, and enumeration lists them without the flag)
- outcome-matrix: the proposal must be one of the enumerated valid outcomes

Validation never raises and never corrects the proposal.  Every breach is
returned as a ``RuleViolation`` in a ``ValidationResult``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from config import DEFAULT_RULES, MAX_OUTS, MAX_RBIS_PER_AT_BAT, RuleConfiguration
from models import STANDARD_PARAMETERS, SituationalParameters
from rules.advancement import (
    DEFAULT_BATTER_ID,
    AdvancementOutcome,
    find_outcome,
    valid_outcomes,
)
from rules.bases import Base, BaserunnerState
from rules.outcomes import BattingResult
from rules.response import EngineError, ErrorCode

logger = logging.getLogger(__name__)


class RuleCategory(str, Enum):
    NON_NEGOTIABLE = "non_negotiable"
    CONFIGURABLE = "configurable"


# ---------------------------------------------------------------------------
# Inputs and results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Transition:
    """A caller-proposed plate appearance outcome."""
    before: BaserunnerState
    after: BaserunnerState
    result: BattingResult
    runs_scored: tuple[str, ...] = ()
    rbis: int = 0
    batter_id: str = DEFAULT_BATTER_ID
    outs_before: int = 0
    params: SituationalParameters = STANDARD_PARAMETERS

    @classmethod
    def from_outcome(cls, outcome: AdvancementOutcome, result: BattingResult, *,
                     batter_id: str = DEFAULT_BATTER_ID, outs_before: int = 0,
                     params: Optional[SituationalParameters] = None) -> Transition:
        return cls(
            before=outcome.before,
            after=outcome.after,
            result=result,
            runs_scored=outcome.runs_scored,
            rbis=outcome.rbis,
            batter_id=batter_id,
            outs_before=outs_before,
            params=params or outcome.required,
        )


@dataclass(frozen=True)
class PlayOuts:
    batter_out: bool
    runner_outs: int
    extra: int  # outs beyond what the result itself accounts for

    @property
    def total(self) -> int:
        return int(self.batter_out) + self.runner_outs


def count_outs(t: Transition) -> PlayOuts:
    scored = set(t.runs_scored)
    batter_out = t.batter_id not in scored and not t.after.has_runner(t.batter_id)
    runner_outs = sum(
        1 for _, p in t.before.runners()
        if p not in scored and not t.after.has_runner(p)
    )
    inherent_runner_outs = 1 if t.result.requires_runner else 0
    extra = max(0, int(batter_out) - int(t.result.is_out))
    extra += max(0, runner_outs - inherent_runner_outs)
    return PlayOuts(batter_out=batter_out, runner_outs=runner_outs, extra=extra)


@dataclass(frozen=True)
class RuleViolation:
    rule_id: str
    code: ErrorCode
    message: str
    category: RuleCategory = RuleCategory.NON_NEGOTIABLE
    suggestions: tuple[AdvancementOutcome, ...] = ()

    def to_error(self) -> EngineError:
        details = {"rule": self.rule_id}
        if self.suggestions:
            details["suggestions"] = [o.to_dict() for o in self.suggestions]
        return EngineError(self.code, self.message, details)


@dataclass(frozen=True)
class ValidationResult:
    violations: tuple[RuleViolation, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def first(self) -> Optional[RuleViolation]:
        return self.violations[0] if self.violations else None

    def merge(self, other: ValidationResult) -> ValidationResult:
        return ValidationResult(self.violations + other.violations)

    def codes(self) -> list[ErrorCode]:
        return [v.code for v in self.violations]


# ---------------------------------------------------------------------------
# Non-negotiable rules
# ---------------------------------------------------------------------------

def _start_label(start: int) -> str:
    return "the plate" if start == 0 else Base(start).label


def _check_runner_accounting(t: Transition, config: RuleConfiguration) -> list[str]:
    problems = []
    on_before = {p: int(b) for b, p in t.before.runners()}
    scored = set(t.runs_scored)

    if t.batter_id in on_before:
        problems.append(f"Batter {t.batter_id} is already on base")
    for p in t.runs_scored:
        if p not in on_before and p != t.batter_id:
            problems.append(f"{p} scored but was not on base or batting")
    for base, p in t.after.runners():
        if p not in on_before and p != t.batter_id:
            problems.append(f"{p} is on {base.label} but was not on base or batting")
        if p in scored:
            problems.append(f"{p} cannot both score and remain on {base.label}")
        if p in on_before and int(base) < on_before[p]:
            problems.append(
                f"{p} cannot move backward from {Base(on_before[p]).label} to {base.label}"
            )

    if t.result.is_out and (t.batter_id in scored or t.after.has_runner(t.batter_id)):
        problems.append(f"Batter {t.batter_id} was retired on a {t.result.label} but is shown reaching base")
    if t.result.requires_runner and count_outs(t).runner_outs == 0:
        problems.append(f"A {t.result.label} must put out a runner already on base")
    if t.result.requires_runner_on_third:
        tagging = t.before.occupant(Base.THIRD)
        if tagging is None or tagging not in scored:
            problems.append("A sacrifice fly must score the runner from third")
    return problems


def _check_no_passing(t: Transition, config: RuleConfiguration) -> list[str]:
    starts = {p: int(b) for b, p in t.before.runners()}
    starts.setdefault(t.batter_id, 0)
    ends = {p: int(b) for b, p in t.after.runners()}
    for p in t.runs_scored:
        ends[p] = int(Base.HOME)

    problems = []
    alive = [p for p in starts if p in ends]
    for trail in alive:
        for lead in alive:
            if starts[trail] >= starts[lead]:
                continue
            if ends[trail] > ends[lead]:
                problems.append(
                    f"{trail} (from {_start_label(starts[trail])}) cannot pass "
                    f"{lead} (from {_start_label(starts[lead])})"
                )
    return problems


def _check_rbi_bound(t: Transition, config: RuleConfiguration) -> list[tuple[ErrorCode, str]]:
    if t.rbis < 0 or t.rbis > MAX_RBIS_PER_AT_BAT:
        return [(ErrorCode.RBI_LIMIT, f"RBI must be between 0 and {MAX_RBIS_PER_AT_BAT}, got {t.rbis}")]
    distinct = len(set(t.runs_scored))
    if config.is_rbi_exempt(t.result, t.params.error_occurred):
        if t.rbis > distinct:
            return [(ErrorCode.RBI_MISMATCH,
                     f"RBI count ({t.rbis}) cannot exceed the number of runs scored ({distinct})")]
    elif t.rbis != distinct:
        return [(ErrorCode.RBI_MISMATCH, "RBI count must match the number of runs scored")]
    return []


def _check_max_outs(t: Transition, config: RuleConfiguration) -> list:
    play = count_outs(t)
    outs = play.total
    remaining = MAX_OUTS - t.outs_before
    if outs > MAX_OUTS:
        return [f"A single play cannot record {outs} outs"]
    if outs > remaining:
        return [f"Play records {outs} out(s) but only {max(remaining, 0)} remain in the inning"]
    if play.batter_out and outs == remaining and t.runs_scored:
        return [(ErrorCode.RUN_ON_THIRD_OUT,
                 f"No run can score when the batter makes the third out ({len(t.runs_scored)} reported)")]
    return []


# ---------------------------------------------------------------------------
# Configurable rules
# ---------------------------------------------------------------------------

def _check_error_attribution(t: Transition, config: RuleConfiguration) -> list[str]:
    if t.result is BattingResult.ERROR and t.rbis > 0:
        return ["A batter who reaches on an error is not credited with an RBI"]
    return []


def _check_running_errors(t: Transition, config: RuleConfiguration) -> list[str]:
    extra = count_outs(t).extra
    if extra and not t.params.running_error_occurred:
        return [
            f"{extra} runner(s) put out beyond what a {t.result.label} records; "
            "report a running error to allow it"
        ]
    return []


def _check_outcome_matrix(t: Transition, config: RuleConfiguration) -> list[RuleViolation]:
    permitted = valid_outcomes(t.before, t.result, t.params, config=config,
                               batter_id=t.batter_id, outs_before=t.outs_before)
    if find_outcome(permitted, t.after, t.runs_scored, t.rbis) is not None:
        return []
    return [RuleViolation(
        rule_id="outcome-matrix",
        code=ErrorCode.OUTCOME_NOT_PERMITTED,
        message=(
            f"No permitted {t.result.label} outcome matches the proposed play "
            f"({t.params.describe()}); {len(permitted)} valid option(s)"
        ),
        category=RuleCategory.CONFIGURABLE,
        suggestions=permitted,
    )]


# ---------------------------------------------------------------------------
# Rule registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rule:
    rule_id: str
    description: str
    category: RuleCategory
    code: ErrorCode
    check: Callable[[Transition, RuleConfiguration], list] = field(repr=False)

    def evaluate(self, t: Transition, config: RuleConfiguration) -> list[RuleViolation]:
        violations = []
        for item in self.check(t, config):
            if isinstance(item, RuleViolation):
                violations.append(item)
            elif isinstance(item, tuple):
                code, message = item
                violations.append(RuleViolation(self.rule_id, code, message, self.category))
            else:
                violations.append(RuleViolation(self.rule_id, self.code, item, self.category))
        return violations


RULES: tuple[Rule, ...] = (
    Rule("runner-accounting", "Runners and scorers must come from the bases or the batter",
         RuleCategory.NON_NEGOTIABLE, ErrorCode.RUNNER_ACCOUNTING, _check_runner_accounting),
    Rule("no-runner-passing", "Trailing runners cannot pass lead runners",
         RuleCategory.NON_NEGOTIABLE, ErrorCode.RUNNER_PASSING, _check_no_passing),
    Rule("rbi-bound", "RBIs must match the runs scored and stay within 0-4",
         RuleCategory.NON_NEGOTIABLE, ErrorCode.RBI_MISMATCH, _check_rbi_bound),
    Rule("max-outs", "A play records at most the outs remaining in the inning",
         RuleCategory.NON_NEGOTIABLE, ErrorCode.EXCESSIVE_OUTS, _check_max_outs),
    Rule("error-attribution", "No RBI for a batter who reaches on an error",
         RuleCategory.CONFIGURABLE, ErrorCode.ERROR_RBI, _check_error_attribution),
    Rule("running-error", "Extra outs on the bases require a reported running error",
         RuleCategory.CONFIGURABLE, ErrorCode.RUNNING_ERROR_OUTS, _check_running_errors),
    Rule("outcome-matrix", "The play must match an enumerated valid outcome",
         RuleCategory.CONFIGURABLE, ErrorCode.OUTCOME_NOT_PERMITTED, _check_outcome_matrix),
)


class RuleEngine:
    """Runs the registered rules against a transition.

    Non-negotiable rules run first.  If any of them fails, the configurable
    rules are skipped, since they assume a coherent play.
    """

    def __init__(self, rules: tuple[Rule, ...] = RULES):
        self._rules = rules

    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def rule(self, rule_id: str) -> Optional[Rule]:
        for r in self._rules:
            if r.rule_id == rule_id:
                return r
        return None

    def by_category(self, category: RuleCategory) -> list[Rule]:
        return [r for r in self._rules if r.category is category]

    def is_active(self, rule_id: str, config: RuleConfiguration = DEFAULT_RULES) -> bool:
        r = self.rule(rule_id)
        if r is None:
            return False
        if r.category is RuleCategory.NON_NEGOTIABLE:
            return True
        return config.is_enabled(rule_id)

    def validate(self, t: Transition, config: RuleConfiguration = DEFAULT_RULES) -> ValidationResult:
        violations = []
        for r in self.by_category(RuleCategory.NON_NEGOTIABLE):
            violations.extend(r.evaluate(t, config))
        if not violations:
            for r in self.by_category(RuleCategory.CONFIGURABLE):
                if config.is_enabled(r.rule_id):
                    violations.extend(r.evaluate(t, config))
        if violations:
            logger.debug("Transition rejected (%s): %s", t.result.label,
                         "; ".join(v.message for v in violations))
        return ValidationResult(tuple(violations))


DEFAULT_ENGINE = RuleEngine()


def validate_transition(t: Transition, config: RuleConfiguration = DEFAULT_RULES) -> ValidationResult:
    """Check a proposed transition against every active rule."""
    return DEFAULT_ENGINE.validate(t, config)
