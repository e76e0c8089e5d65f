# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0", "pytest>=7.0"]
# ///
"""Tests for the rule engine.

Verifies:
1. Runner accounting: scorers and runners come from the bases or the batter
2. No runner passing, unless the lead runner scored or was put out
3. RBI bounds and the no-RBI exception plays
4. At most three outs, no more than remain, and no run on the batter's third out
5. Error attribution can be switched on and off; off credits RBIs on E like a hit
6. Extra outs need a reported running error
7. Outcome-matrix mode rejects unlisted plays and suggests valid ones
8. Registry: categories, activity and evaluation order
"""

import sys
from pathlib import Path

import pytest

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import DEFAULT_RULES, RbiException, RuleConfiguration
from models import SituationalParameters
from rules.bases import BaserunnerState
from rules.outcomes import BattingResult
from rules.response import ErrorCode, ErrorKind
from rules.validation import (
    DEFAULT_ENGINE,
    RULES,
    RuleCategory,
    RuleEngine,
    Transition,
    count_outs,
    validate_transition,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_transition(result="1B", before=None, after=None, runs=(), rbis=0, **overrides) -> Transition:
    return Transition(
        before=BaserunnerState(**(before or {})),
        after=BaserunnerState(**(after or {})),
        result=BattingResult.parse(result),
        runs_scored=tuple(runs),
        rbis=rbis,
        **overrides,
    )


def codes(t: Transition, config: RuleConfiguration = DEFAULT_RULES) -> list[ErrorCode]:
    return validate_transition(t, config).codes()


# ===========================================================================
# Step 1: Runner accounting
# ===========================================================================

class TestRunnerAccounting:
    def test_valid_single(self):
        t = make_transition("1B", {"first": "a"}, {"first": "batter", "second": "a"})
        assert validate_transition(t).is_valid

    def test_unknown_scorer(self):
        t = make_transition("1B", {}, {"first": "batter"}, runs=["ghost"], rbis=1)
        assert codes(t)[0] is ErrorCode.RUNNER_ACCOUNTING

    def test_unknown_runner_after(self):
        t = make_transition("1B", {}, {"first": "batter", "third": "ghost"})
        verdict = validate_transition(t)
        assert verdict.first().code is ErrorCode.RUNNER_ACCOUNTING
        assert "ghost" in verdict.first().message

    def test_scored_and_still_on_base(self):
        t = make_transition("1B", {"third": "c"}, {"first": "batter", "third": "c"}, runs=["c"], rbis=1)
        assert ErrorCode.RUNNER_ACCOUNTING in codes(t)

    def test_backward_move(self):
        t = make_transition("1B", {"second": "b"}, {"first": "b", "second": "batter"})
        assert ErrorCode.RUNNER_ACCOUNTING in codes(t)

    def test_batter_already_on_base(self):
        t = make_transition("1B", {"first": "batter"}, {"first": "batter"})
        assert ErrorCode.RUNNER_ACCOUNTING in codes(t)

    def test_retired_batter_cannot_reach(self):
        t = make_transition("SO", {}, {"first": "batter"})
        assert ErrorCode.RUNNER_ACCOUNTING in codes(t)

    def test_fielders_choice_needs_a_runner_out(self):
        t = make_transition("FC", {"first": "a"}, {"first": "batter", "second": "a"})
        assert ErrorCode.RUNNER_ACCOUNTING in codes(t)

    def test_sacrifice_fly_must_score_runner_from_third(self):
        t = make_transition("SF", {"third": "c"}, {"third": "c"})
        verdict = validate_transition(t)
        assert verdict.first().code is ErrorCode.RUNNER_ACCOUNTING
        assert "sacrifice fly" in verdict.first().message


# ===========================================================================
# Step 2: No runner passing
# ===========================================================================

class TestNoPassing:
    def test_trailing_runner_passes_lead(self):
        t = make_transition("2B", {"first": "a", "second": "b"},
                            {"second": "batter", "third": "a"}, runs=[], rbis=0,
                            params=SituationalParameters(running_error_occurred=True))
        # b vanished (out) so a may pass b's base
        assert ErrorCode.RUNNER_PASSING not in codes(t)

    def test_pass_rejected(self):
        t = make_transition("1B", {"first": "a", "second": "b"},
                            {"first": "batter", "second": "b", "third": "a"})
        verdict = validate_transition(t)
        assert verdict.first().code is ErrorCode.RUNNER_PASSING
        assert "cannot pass" in verdict.first().message

    def test_batter_cannot_pass_runner(self):
        t = make_transition("2B", {"first": "a"}, {"first": "a", "second": "batter"})
        assert ErrorCode.RUNNER_PASSING in codes(t)

    def test_lead_runner_scoring_does_not_block(self):
        t = make_transition("2B", {"first": "a", "third": "c"},
                            {"second": "batter", "third": "a"}, runs=["c"], rbis=1)
        assert validate_transition(t).is_valid


# ===========================================================================
# Step 3: RBI bounds
# ===========================================================================

class TestRbiBound:
    def test_rbi_must_match_runs(self):
        t = make_transition("1B", {"third": "c"}, {"first": "batter"}, runs=["c"], rbis=0)
        verdict = validate_transition(t)
        assert verdict.first().code is ErrorCode.RBI_MISMATCH

    def test_rbi_above_four(self):
        t = make_transition("HR", {"first": "a", "second": "b", "third": "c"}, {},
                            runs=["a", "b", "c", "batter"], rbis=5)
        assert codes(t) == [ErrorCode.RBI_LIMIT]

    def test_negative_rbi(self):
        t = make_transition("1B", {}, {"first": "batter"}, rbis=-1)
        assert codes(t) == [ErrorCode.RBI_LIMIT]

    def test_double_play_run_without_rbi(self):
        t = make_transition("DP", {"first": "a", "third": "c"}, {}, runs=["c"], rbis=0)
        assert validate_transition(t).is_valid

    def test_double_play_rbi_may_not_exceed_runs(self):
        t = make_transition("DP", {"first": "a", "third": "c"}, {}, runs=["c"], rbis=2)
        assert codes(t) == [ErrorCode.RBI_MISMATCH]

    def test_error_flag_exempts_play(self):
        t = make_transition("1B", {"second": "b"}, {"second": "batter"}, runs=["b"], rbis=0,
                            params=SituationalParameters(error_occurred=True))
        assert validate_transition(t).is_valid

    def test_custom_exception_list(self):
        config = RuleConfiguration(no_rbi_exceptions=frozenset())
        t = make_transition("GO", {"third": "c"}, {}, runs=["c"], rbis=0)
        assert validate_transition(t).is_valid
        assert codes(t, config) == [ErrorCode.RBI_MISMATCH]

    def test_rbi_limit_kind(self):
        t = make_transition("1B", {}, {"first": "batter"}, rbis=9)
        error = validate_transition(t).first().to_error()
        assert error.kind is ErrorKind.RULE_VIOLATION
        assert error.details["rule"] == "rbi-bound"


# ===========================================================================
# Step 4: Max outs
# ===========================================================================

class TestMaxOuts:
    def test_double_play_with_two_out(self):
        t = make_transition("DP", {"first": "a"}, {}, outs_before=2)
        verdict = validate_transition(t)
        assert verdict.codes() == [ErrorCode.EXCESSIVE_OUTS]
        assert "only 1 remain" in verdict.first().message

    def test_four_outs_on_one_play(self):
        t = make_transition("DP", {"first": "a", "second": "b", "third": "c"}, {},
                            params=SituationalParameters(running_error_occurred=True))
        assert ErrorCode.EXCESSIVE_OUTS in codes(t)

    def test_triple_play(self):
        t = make_transition("DP", {"first": "a", "second": "b"}, {},
                            params=SituationalParameters(running_error_occurred=True))
        assert validate_transition(t).is_valid

    def test_run_on_batters_third_out(self):
        t = make_transition("GO", {"third": "c"}, {}, runs=["c"], rbis=0, outs_before=2)
        verdict = validate_transition(t)
        assert verdict.codes() == [ErrorCode.RUN_ON_THIRD_OUT]
        assert verdict.first().code.kind is ErrorKind.RULE_VIOLATION
        assert "third out" in verdict.first().message

    def test_sacrifice_fly_with_two_out(self):
        t = make_transition("SF", {"third": "c"}, {}, runs=["c"], rbis=1, outs_before=2)
        assert codes(t) == [ErrorCode.RUN_ON_THIRD_OUT]

    def test_run_counts_when_runner_makes_third_out(self):
        t = make_transition("1B", {"first": "a", "third": "c"}, {"first": "batter"},
                            runs=["c"], rbis=1, outs_before=2,
                            params=SituationalParameters(running_error_occurred=True))
        assert validate_transition(t).is_valid


# ===========================================================================
# Step 5: Error attribution
# ===========================================================================

class TestErrorAttribution:
    def test_rbi_on_reached_on_error(self):
        config = DEFAULT_RULES.model_copy(update={"no_rbi_exceptions": frozenset()})
        t = make_transition("E", {"third": "c"}, {"first": "batter"}, runs=["c"], rbis=1)
        verdict = validate_transition(t, config)
        assert verdict.codes() == [ErrorCode.ERROR_RBI]
        assert verdict.first().category is RuleCategory.CONFIGURABLE

    def test_disabled(self):
        config = RuleConfiguration(error_attribution=False, no_rbi_exceptions=frozenset())
        t = make_transition("E", {"third": "c"}, {"first": "batter"}, runs=["c"], rbis=1)
        assert validate_transition(t, config).is_valid

    def test_no_rbi_is_fine(self):
        t = make_transition("E", {"third": "c"}, {"first": "batter"}, runs=["c"], rbis=0)
        assert validate_transition(t).is_valid

    def test_disabled_credits_rbi_like_a_hit(self):
        config = DEFAULT_RULES.with_rule("error-attribution", False).with_rule("outcome-matrix", True)
        credited = make_transition("E", {"third": "c"}, {"first": "batter"}, runs=["c"], rbis=1)
        assert validate_transition(credited, config).is_valid
        withheld = make_transition("E", {"third": "c"}, {"first": "batter"}, runs=["c"], rbis=0)
        assert codes(withheld, config) == [ErrorCode.RBI_MISMATCH]


# ===========================================================================
# Step 6: Running errors
# ===========================================================================

class TestRunningErrors:
    def test_runner_out_on_single_needs_flag(self):
        t = make_transition("1B", {"first": "a"}, {"first": "batter"})
        assert codes(t) == [ErrorCode.RUNNING_ERROR_OUTS]

    def test_flag_allows_it(self):
        t = make_transition("1B", {"first": "a"}, {"first": "batter"},
                            params=SituationalParameters(running_error_occurred=True))
        assert validate_transition(t).is_valid

    def test_rule_disabled(self):
        config = DEFAULT_RULES.with_rule("running-error", False)
        t = make_transition("1B", {"first": "a"}, {"first": "batter"})
        assert validate_transition(t, config).is_valid

    def test_result_outs_are_not_extra(self):
        t = make_transition("FC", {"first": "a"}, {"first": "batter"})
        assert validate_transition(t).is_valid
        assert count_outs(t).extra == 0


# ===========================================================================
# Step 7: Outcome matrix
# ===========================================================================

class TestOutcomeMatrix:
    def test_off_by_default(self):
        assert not DEFAULT_ENGINE.is_active("outcome-matrix")

    def test_unlisted_play_rejected_with_suggestions(self):
        config = DEFAULT_RULES.with_rule("outcome-matrix", True)
        # runner from first scores on a double without the aggressive flag
        t = make_transition("2B", {"first": "a"}, {"second": "batter"}, runs=["a"], rbis=1)
        verdict = validate_transition(t, config)
        assert verdict.codes() == [ErrorCode.OUTCOME_NOT_PERMITTED]
        violation = verdict.first()
        assert len(violation.suggestions) == 1
        assert violation.suggestions[0].after == BaserunnerState(second="batter", third="a")
        assert violation.to_error().details["suggestions"][0]["rbis"] == 0

    def test_same_play_with_flag_accepted(self):
        config = DEFAULT_RULES.with_rule("outcome-matrix", True)
        t = make_transition("2B", {"first": "a"}, {"second": "batter"}, runs=["a"], rbis=1,
                            params=SituationalParameters(aggressiveness="aggressive"))
        assert validate_transition(t, config).is_valid

    def test_without_matrix_accepted(self):
        t = make_transition("2B", {"first": "a"}, {"second": "batter"}, runs=["a"], rbis=1)
        assert validate_transition(t).is_valid


# ===========================================================================
# Step 8: Registry
# ===========================================================================

class TestRegistry:
    def test_categories(self):
        assert len(DEFAULT_ENGINE.by_category(RuleCategory.NON_NEGOTIABLE)) == 4
        assert len(DEFAULT_ENGINE.by_category(RuleCategory.CONFIGURABLE)) == 3
        assert len(RULES) == 7

    def test_non_negotiable_always_active(self):
        config = RuleConfiguration(error_attribution=False, running_errors=False)
        for rule in DEFAULT_ENGINE.by_category(RuleCategory.NON_NEGOTIABLE):
            assert DEFAULT_ENGINE.is_active(rule.rule_id, config)
        assert not DEFAULT_ENGINE.is_active("running-error", config)
        assert not DEFAULT_ENGINE.is_active("no-such-rule")

    def test_non_negotiable_cannot_be_toggled(self):
        with pytest.raises(ValueError, match="not a configurable rule"):
            DEFAULT_RULES.with_rule("rbi-bound", False)

    def test_configurable_skipped_when_non_negotiable_fails(self):
        config = DEFAULT_RULES.model_copy(update={"no_rbi_exceptions": frozenset()})
        # reached on error with a phantom scorer: accounting fails, error-attribution never runs
        t = make_transition("E", {}, {"first": "batter"}, runs=["ghost"], rbis=1)
        verdict = validate_transition(t, config)
        assert ErrorCode.RUNNER_ACCOUNTING in verdict.codes()
        assert ErrorCode.ERROR_RBI not in verdict.codes()

    def test_custom_engine_subset(self):
        engine = RuleEngine(RULES[:1])
        t = make_transition("1B", {"first": "a", "second": "b"},
                            {"first": "batter", "second": "b", "third": "a"})
        assert engine.validate(t).is_valid
        assert engine.rule("no-runner-passing") is None

    def test_validation_is_repeatable(self):
        t = make_transition("1B", {"first": "a"}, {"first": "batter"})
        assert validate_transition(t) == validate_transition(t)

    def test_merge(self):
        bad = validate_transition(make_transition("1B", {"first": "a"}, {"first": "batter"}))
        good = validate_transition(make_transition("SO", {}, {}))
        assert good.is_valid
        assert good.merge(bad).codes() == bad.codes()


def test_count_outs():
    t = make_transition("DP", {"first": "a", "second": "b"}, {"third": "b"})
    outs = count_outs(t)
    assert outs.batter_out
    assert outs.runner_outs == 1
    assert outs.total == 2
    assert outs.extra == 0


def test_rbi_exception_matching():
    assert RbiException(result=BattingResult.GROUNDOUT).matches(BattingResult.GROUNDOUT, False)
    assert not RbiException(result=BattingResult.GROUNDOUT).matches(BattingResult.FLYOUT, False)
    assert RbiException(error_occurred=True).matches(BattingResult.DOUBLE, True)
