# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Baserunner advancement: the valid-outcome set for a plate appearance.

A hit type alone does not determine where runners end up.  How hard they ran,
whether a fielder erred, and whether a runner was put out by their own
mistake are facts the scorer reports, so the engine enumerates every
after-state the rules allow for a ``(bases, result, parameters)`` triple and
lets the caller pick one.

Each enumerated ``AdvancementOutcome`` records the situational parameters it
needs (``required``).  ``valid_outcomes`` keeps the outcomes the given
parameters permit; ``all_valid_outcomes`` unions every parameter
combination; ``standard_advancement`` returns the canonical outcome.

Enumeration works on *moves*: a mapping of every participant (runners and
the batter) to an end position, where 1-3 are bases, 4 is home and 0 means
the participant was put out.  Participants start on their base, the batter
at 0.  A move set is legal when the participants still alive keep their
starting order, with any number of them allowed to share home.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import product
from typing import Iterable, Iterator, Optional, Sequence

from config import DEFAULT_RULES, MAX_OUTS, RuleConfiguration
from models import Aggressiveness, STANDARD_PARAMETERS, SituationalParameters
from rules.bases import Base, BaserunnerState, BaseShape
from rules.outcomes import BattingResult

logger = logging.getLogger(__name__)

OUT = 0
HOME = int(Base.HOME)

DEFAULT_BATTER_ID = "batter"

_CONSERVATIVE = SituationalParameters(aggressiveness=Aggressiveness.CONSERVATIVE)
_AGGRESSIVE = SituationalParameters(aggressiveness=Aggressiveness.AGGRESSIVE)
_FIELDING_ERROR = SituationalParameters(error_occurred=True)

_ERROR_EXTENDABLE = (
    BattingResult.SINGLE, BattingResult.DOUBLE, BattingResult.TRIPLE, BattingResult.ERROR,
)


# ---------------------------------------------------------------------------
# Outcome value
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AdvancementOutcome:
    """One legal result of a plate appearance."""
    before: BaserunnerState
    after: BaserunnerState
    runs_scored: tuple[str, ...]
    rbi_runs: tuple[str, ...]
    outs: int
    description: str
    required: SituationalParameters = STANDARD_PARAMETERS
    batter_out: bool = False

    @property
    def rbis(self) -> int:
        return len(self.rbi_runs)

    @property
    def key(self) -> tuple:
        """Identity of the outcome regardless of how it was reached."""
        return (self.after, frozenset(self.runs_scored), self.rbis, self.outs)

    def permitted_by(self, params: SituationalParameters) -> bool:
        req = self.required
        if (req.aggressiveness is not Aggressiveness.STANDARD
                and req.aggressiveness is not params.aggressiveness):
            return False
        if req.error_occurred and not params.error_occurred:
            return False
        if req.running_error_occurred and not params.running_error_occurred:
            return False
        return True

    def matches(self, after: BaserunnerState, runs_scored: Iterable[str], rbis: int) -> bool:
        runs = list(runs_scored)
        return (
            self.after == after
            and len(runs) == len(self.runs_scored)
            and set(runs) == set(self.runs_scored)
            and self.rbis == rbis
        )

    def to_dict(self) -> dict:
        return {
            "after": self.after.to_dict(),
            "runs_scored": list(self.runs_scored),
            "rbis": self.rbis,
            "outs": self.outs,
            "description": self.description,
            "requires": self.required.describe(),
        }


# ---------------------------------------------------------------------------
# Move helpers
# ---------------------------------------------------------------------------

def _starts(before: BaserunnerState, batter_id: str) -> dict[str, int]:
    if before.has_runner(batter_id):
        raise ValueError(f"Batter {batter_id!r} is already on base: {before}")
    starts = {p: int(b) for b, p in before.runners()}
    starts[batter_id] = 0
    return starts


def _is_ordered(moves: dict[str, int], starts: dict[str, int]) -> bool:
    """Alive participants finish in starting order; only home may be shared."""
    alive = sorted((p for p in moves if moves[p] != OUT), key=lambda p: -starts[p])
    for lead, trail in zip(alive, alive[1:]):
        if moves[trail] > moves[lead]:
            return False
        if moves[trail] == moves[lead] and moves[lead] != HOME:
            return False
    return True


def _spread(fixed: dict[str, int], ranges: dict[str, Sequence[int]],
            starts: dict[str, int]) -> Iterator[dict[str, int]]:
    """Every ordered move set taking each ranged participant through its range."""
    players = list(ranges)
    for ends in product(*(ranges[p] for p in players)):
        moves = dict(fixed)
        moves.update(zip(players, ends))
        if _is_ordered(moves, starts):
            yield moves


def _span(lo: int, hi: int) -> range:
    return range(lo, min(hi, HOME) + 1)


def _describe(result: BattingResult, required: SituationalParameters,
              moves: dict[str, int], starts: dict[str, int]) -> str:
    parts = []
    for p in sorted(moves, key=lambda p: -starts[p]):
        end = moves[p]
        if end == OUT:
            parts.append(f"{p} out")
        elif end == HOME:
            parts.append(f"{p} scores")
        elif end != starts[p]:
            parts.append(f"{p} to {Base(end).label}")
    text = f"{required.describe()} {result.label}"
    if parts:
        text += ": " + ", ".join(parts)
    return text


def _build(before: BaserunnerState, result: BattingResult, starts: dict[str, int],
           moves: dict[str, int], required: SituationalParameters, *,
           credited: bool, unearned: Iterable[str] = ()) -> AdvancementOutcome:
    unearned = set(unearned)
    order = sorted(starts, key=lambda p: (starts[p] == 0, starts[p]))
    runs = tuple(p for p in order if moves[p] == HOME)
    rbi_runs = tuple(p for p in runs if credited and p not in unearned)
    after = BaserunnerState.from_placements(
        {Base(moves[p]): p for p in order if OUT < moves[p] < HOME}
    )
    outs = sum(1 for p in order if moves[p] == OUT)
    return AdvancementOutcome(
        before=before,
        after=after,
        runs_scored=runs,
        rbi_runs=rbi_runs,
        outs=outs,
        description=_describe(result, required, moves, starts),
        required=required,
        batter_out=any(moves[p] == OUT for p in starts if starts[p] == 0),
    )


# ---------------------------------------------------------------------------
# Per-result enumeration
# ---------------------------------------------------------------------------

def _hit_outcomes(before, result, starts, batter_id, config) -> list[AdvancementOutcome]:
    """Hits and reached-on-error: standard, conservative, aggressive, fielding error."""
    gained = result.batter_bases
    credited = not config.is_rbi_exempt(result, False)
    runners = [p for p in starts if p != batter_id]
    standard = {p: min(starts[p] + gained, HOME) for p in runners}
    standard[batter_id] = gained

    outcomes = [_build(before, result, starts, standard, STANDARD_PARAMETERS, credited=credited)]

    held = {p: _span(starts[p], standard[p]) for p in runners}
    for moves in _spread({batter_id: gained}, held, starts):
        if moves != standard:
            outcomes.append(_build(before, result, starts, moves, _CONSERVATIVE, credited=credited))

    pushed = {p: _span(standard[p], standard[p] + 1) for p in runners}
    for moves in _spread({batter_id: gained}, pushed, starts):
        if moves != standard:
            outcomes.append(_build(before, result, starts, moves, _AGGRESSIVE, credited=credited))

    if result in _ERROR_EXTENDABLE:
        credit_extra = credited and not config.is_rbi_exempt(result, True)
        extended = dict(pushed)
        extended[batter_id] = _span(gained, gained + 1)
        for moves in _spread({}, extended, starts):
            if moves == standard:
                continue
            unearned = [] if credit_extra else [
                p for p in moves if moves[p] == HOME and standard[p] != HOME
            ]
            outcomes.append(_build(before, result, starts, moves, _FIELDING_ERROR,
                                   credited=credited, unearned=unearned))
    return outcomes


def _walk_outcome(before, result, starts, batter_id, config) -> list[AdvancementOutcome]:
    forced = {int(b) for b in before.shape.forced_bases}
    moves = {p: s + 1 if s in forced else s for p, s in starts.items() if p != batter_id}
    moves[batter_id] = 1
    credited = not config.is_rbi_exempt(result, False)
    return [_build(before, result, starts, moves, STANDARD_PARAMETERS, credited=credited)]


def _home_run_outcome(before, result, starts, batter_id, config) -> list[AdvancementOutcome]:
    moves = {p: HOME for p in starts}
    return [_build(before, result, starts, moves, STANDARD_PARAMETERS, credited=True)]


def _batter_out_outcomes(before, result, starts, batter_id, config) -> list[AdvancementOutcome]:
    """Strikeouts, groundouts, flyouts and sacrifice flies."""
    credited = not config.is_rbi_exempt(result, False)
    runners = [p for p in starts if p != batter_id]
    standard = {p: starts[p] for p in runners}
    standard[batter_id] = OUT

    if result is BattingResult.SACRIFICE_FLY:
        tagging = before.occupant(Base.THIRD)
        if tagging is None:
            return []
        standard[tagging] = HOME

    outcomes = [_build(before, result, starts, standard, STANDARD_PARAMETERS, credited=credited)]
    if result is BattingResult.STRIKEOUT:
        return outcomes

    pushed = {}
    for p in runners:
        if result is BattingResult.FLYOUT and starts[p] == int(Base.THIRD):
            # a run scoring on a caught fly ball is a sacrifice fly
            pushed[p] = (starts[p],)
        else:
            pushed[p] = _span(standard[p], standard[p] + 1)
    for moves in _spread({batter_id: OUT}, pushed, starts):
        if moves != standard:
            outcomes.append(_build(before, result, starts, moves, _AGGRESSIVE, credited=credited))
    return outcomes


def _double_play_outcomes(before, result, starts, batter_id, config) -> list[AdvancementOutcome]:
    credited = not config.is_rbi_exempt(result, False)
    runners = sorted((p for p in starts if p != batter_id), key=lambda p: starts[p])
    outcomes = []
    for retired in runners:
        others = [p for p in runners if p != retired]
        standard = {p: starts[p] for p in others}
        standard.update({batter_id: OUT, retired: OUT})
        outcomes.append(_build(before, result, starts, standard, STANDARD_PARAMETERS, credited=credited))
        pushed = {p: _span(starts[p], starts[p] + 1) for p in others}
        for moves in _spread({batter_id: OUT, retired: OUT}, pushed, starts):
            if moves != standard:
                outcomes.append(_build(before, result, starts, moves, _AGGRESSIVE, credited=credited))
    return outcomes


def _fielders_choice_outcomes(before, result, starts, batter_id, config) -> list[AdvancementOutcome]:
    credited = not config.is_rbi_exempt(result, False)
    forced = {int(b) for b in before.shape.forced_bases}
    runners = sorted((p for p in starts if p != batter_id), key=lambda p: starts[p])
    outcomes = []
    for retired in runners:
        others = [p for p in runners if p != retired]
        standard = {p: starts[p] + 1 if starts[p] in forced else starts[p] for p in others}
        standard.update({batter_id: 1, retired: OUT})
        if not _is_ordered(standard, starts):
            continue
        outcomes.append(_build(before, result, starts, standard, STANDARD_PARAMETERS, credited=credited))
        pushed = {p: _span(standard[p], standard[p] + 1) for p in others}
        for moves in _spread({batter_id: 1, retired: OUT}, pushed, starts):
            if moves != standard:
                outcomes.append(_build(before, result, starts, moves, _AGGRESSIVE, credited=credited))
    return outcomes


def _running_error_variants(outcome: AdvancementOutcome, result: BattingResult,
                            starts: dict[str, int], flagged: bool) -> list[AdvancementOutcome]:
    """The same play with one more participant thrown out on the bases.

    With ``flagged`` the variants require a reported running error;
    otherwise they are permitted under the outcome's own parameters.
    """
    moves = {p: OUT for p in starts}
    for base, p in outcome.after.runners():
        moves[p] = int(base)
    for p in outcome.runs_scored:
        moves[p] = HOME
    required = outcome.required
    if flagged:
        required = required.model_copy(update={"running_error_occurred": True})
    tagging = outcome.before.occupant(Base.THIRD) if result.requires_runner_on_third else None
    variants = []
    for p, end in moves.items():
        if end == OUT or p == tagging:
            continue
        changed = dict(moves)
        changed[p] = OUT
        rbi_runs = tuple(r for r in outcome.rbi_runs if r != p)
        after = BaserunnerState.from_placements(
            {Base(e): q for q, e in changed.items() if OUT < e < HOME}
        )
        variants.append(AdvancementOutcome(
            before=outcome.before,
            after=after,
            runs_scored=tuple(r for r in outcome.runs_scored if r != p),
            rbi_runs=rbi_runs,
            outs=outcome.outs + 1,
            description=_describe(result, required, changed, starts),
            required=required,
            batter_out=any(changed[q] == OUT for q in starts if starts[q] == 0),
        ))
    return variants


def _enumerate(before: BaserunnerState, result: BattingResult, config: RuleConfiguration,
               batter_id: str) -> list[AdvancementOutcome]:
    starts = _starts(before, batter_id)
    shape = before.shape

    match result:
        case BattingResult.HOME_RUN:
            outcomes = _home_run_outcome(before, result, starts, batter_id, config)
        case BattingResult.WALK | BattingResult.INTENTIONAL_WALK:
            outcomes = _walk_outcome(before, result, starts, batter_id, config)
        case BattingResult.SINGLE | BattingResult.DOUBLE | BattingResult.TRIPLE | BattingResult.ERROR:
            outcomes = _hit_outcomes(before, result, starts, batter_id, config)
        case (BattingResult.STRIKEOUT | BattingResult.GROUNDOUT
              | BattingResult.FLYOUT | BattingResult.SACRIFICE_FLY):
            outcomes = _batter_out_outcomes(before, result, starts, batter_id, config)
        case BattingResult.DOUBLE_PLAY if shape is not BaseShape.EMPTY:
            outcomes = _double_play_outcomes(before, result, starts, batter_id, config)
        case BattingResult.FIELDERS_CHOICE if shape is not BaseShape.EMPTY:
            outcomes = _fielders_choice_outcomes(before, result, starts, batter_id, config)
        case BattingResult.DOUBLE_PLAY | BattingResult.FIELDERS_CHOICE:
            outcomes = []

    return outcomes + [
        variant
        for outcome in outcomes
        for variant in _running_error_variants(outcome, result, starts, config.running_errors)
    ]


def _unique(outcomes: Iterable[AdvancementOutcome], outs_before: int) -> tuple[AdvancementOutcome, ...]:
    remaining = MAX_OUTS - outs_before
    seen = set()
    kept = []
    for outcome in outcomes:
        if outcome.outs > remaining or outcome.key in seen:
            continue
        # no run counts when the batter makes the third out
        if outcome.batter_out and outcome.runs_scored and outcome.outs == remaining:
            continue
        seen.add(outcome.key)
        kept.append(outcome)
    return tuple(kept)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def valid_outcomes(
    before: BaserunnerState,
    result: BattingResult,
    params: SituationalParameters = STANDARD_PARAMETERS,
    *,
    config: RuleConfiguration = DEFAULT_RULES,
    batter_id: str = DEFAULT_BATTER_ID,
    outs_before: int = 0,
) -> tuple[AdvancementOutcome, ...]:
    """Every outcome the rules permit for this play under ``params``.

    The set is empty when the result is impossible for the base state
    (a double play or fielder's choice with the bases empty, a sacrifice fly
    with nobody on third) or when every candidate would exceed three outs.
    A play on which the batter makes the third out scores no runs, so its
    scoring variants are left out.
    """
    outcomes = _unique(
        (o for o in _enumerate(before, result, config, batter_id) if o.permitted_by(params)),
        outs_before,
    )
    logger.debug("%s with %s under %s: %d valid outcome(s)",
                 result.label, before, params.describe(), len(outcomes))
    return outcomes


def all_valid_outcomes(
    before: BaserunnerState,
    result: BattingResult,
    *,
    config: RuleConfiguration = DEFAULT_RULES,
    batter_id: str = DEFAULT_BATTER_ID,
    outs_before: int = 0,
) -> tuple[AdvancementOutcome, ...]:
    """Union of the valid outcomes over every parameter combination."""
    combined = []
    for aggressiveness, error, running in product(Aggressiveness, (False, True), (False, True)):
        params = SituationalParameters(
            aggressiveness=aggressiveness, error_occurred=error, running_error_occurred=running,
        )
        combined.extend(valid_outcomes(before, result, params, config=config,
                                       batter_id=batter_id, outs_before=outs_before))
    return _unique(combined, outs_before)


def standard_advancement(
    before: BaserunnerState,
    result: BattingResult,
    *,
    config: RuleConfiguration = DEFAULT_RULES,
    batter_id: str = DEFAULT_BATTER_ID,
) -> Optional[AdvancementOutcome]:
    """The canonical outcome, or None when the result is impossible here."""
    for outcome in _enumerate(before, result, config, batter_id):
        if outcome.required == STANDARD_PARAMETERS:
            return outcome
    return None


def find_outcome(
    outcomes: Iterable[AdvancementOutcome],
    after: BaserunnerState,
    runs_scored: Iterable[str],
    rbis: int,
) -> Optional[AdvancementOutcome]:
    runs = list(runs_scored)
    for outcome in outcomes:
        if outcome.matches(after, runs, rbis):
            return outcome
    return None
