# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0", "pytest>=7.0"]
# ///
"""Tests for the base-state value type and the outcome catalogue.

Verifies:
1. The empty state is a canonical constant with the expected predicates
2. Accessors report occupants by base
3. A player can occupy at most one base
4. Every state maps to exactly one of the 8 occupancy shapes
5. Forced bases follow the occupancy shape
6. Transitions produce new values and leave the original untouched
7. Mapping round trip and display text
8. Batting results expose their fixed metadata
"""

import sys
from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from rules.bases import EMPTY_BASES, Base, BaserunnerState, BaseShape
from rules.outcomes import HIT_RESULTS, BattingResult


# ===========================================================================
# Step 1: Empty state
# ===========================================================================

def test_empty_is_canonical():
    assert BaserunnerState.empty() is EMPTY_BASES
    assert BaserunnerState() == EMPTY_BASES
    assert EMPTY_BASES.is_empty
    assert not EMPTY_BASES.is_loaded
    assert EMPTY_BASES.runner_count == 0
    assert EMPTY_BASES.shape is BaseShape.EMPTY


# ===========================================================================
# Step 2: Accessors
# ===========================================================================

class TestAccessors:
    def test_occupant_by_base(self):
        state = BaserunnerState(first="p1", third="p3")
        assert state.occupant(Base.FIRST) == "p1"
        assert state.occupant(2) is None
        assert state.occupant(Base.THIRD) == "p3"

    def test_is_occupied(self):
        state = BaserunnerState(second="p2")
        assert state.is_occupied(Base.SECOND)
        assert not state.is_occupied(Base.FIRST)
        assert not state.is_occupied(Base.HOME)

    def test_runners_ordered_first_to_third(self):
        state = BaserunnerState(first="a", second="b", third="c")
        assert state.runners() == [(Base.FIRST, "a"), (Base.SECOND, "b"), (Base.THIRD, "c")]
        assert list(state) == ["a", "b", "c"]
        assert state.is_loaded

    def test_base_of(self):
        state = BaserunnerState(first="a", third="c")
        assert state.base_of("c") is Base.THIRD
        assert state.base_of("zz") is None
        assert state.has_runner("a")


# ===========================================================================
# Step 3: One base per player
# ===========================================================================

def test_player_on_two_bases_rejected():
    with pytest.raises(ValueError, match="multiple bases"):
        BaserunnerState(first="p1", second="p1")


def test_state_is_immutable():
    state = BaserunnerState(first="p1")
    with pytest.raises(FrozenInstanceError):
        state.first = "p2"


# ===========================================================================
# Step 4: Shapes
# ===========================================================================

@pytest.mark.parametrize("kwargs,shape", [
    ({}, BaseShape.EMPTY),
    ({"first": "a"}, BaseShape.FIRST),
    ({"second": "b"}, BaseShape.SECOND),
    ({"third": "c"}, BaseShape.THIRD),
    ({"first": "a", "second": "b"}, BaseShape.FIRST_SECOND),
    ({"first": "a", "third": "c"}, BaseShape.FIRST_THIRD),
    ({"second": "b", "third": "c"}, BaseShape.SECOND_THIRD),
    ({"first": "a", "second": "b", "third": "c"}, BaseShape.LOADED),
])
def test_shape_of_state(kwargs, shape):
    state = BaserunnerState(**kwargs)
    assert state.shape is shape
    assert BaseShape.of(state) is shape
    assert len(shape.occupied) == state.runner_count


def test_eight_shapes_with_stable_keys():
    assert len(BaseShape) == 8
    assert BaseShape.FIRST_SECOND.key == "first_second"
    assert BaseShape.LOADED.key == "loaded"


# ===========================================================================
# Step 5: Forced bases
# ===========================================================================

@pytest.mark.parametrize("shape,forced", [
    (BaseShape.EMPTY, ()),
    (BaseShape.FIRST, (Base.FIRST,)),
    (BaseShape.SECOND, ()),
    (BaseShape.THIRD, ()),
    (BaseShape.FIRST_SECOND, (Base.FIRST, Base.SECOND)),
    (BaseShape.FIRST_THIRD, (Base.FIRST,)),
    (BaseShape.SECOND_THIRD, ()),
    (BaseShape.LOADED, (Base.FIRST, Base.SECOND, Base.THIRD)),
])
def test_forced_bases(shape, forced):
    assert shape.forced_bases == forced


# ===========================================================================
# Step 6: Transitions
# ===========================================================================

class TestTransitions:
    def test_with_runner_returns_new_state(self):
        state = BaserunnerState(first="p1")
        moved = state.with_runner(Base.SECOND, "p1")
        assert moved == BaserunnerState(second="p1")
        assert state == BaserunnerState(first="p1")

    def test_with_runner_adds_new_player(self):
        state = BaserunnerState(second="p2").with_runner(Base.FIRST, "p1")
        assert state == BaserunnerState(first="p1", second="p2")

    def test_with_runner_home_rejected(self):
        with pytest.raises(ValueError):
            EMPTY_BASES.with_runner(Base.HOME, "p1")

    def test_without(self):
        state = BaserunnerState(first="p1", third="p3")
        assert state.without(Base.THIRD) == BaserunnerState(first="p1")


# ===========================================================================
# Step 7: Mapping and display
# ===========================================================================

class TestMappingAndDisplay:
    def test_from_mapping(self):
        state = BaserunnerState.from_mapping({"first": "p2", "third": "p4"})
        assert state == BaserunnerState(first="p2", third="p4")
        assert BaserunnerState.from_mapping(None) is EMPTY_BASES
        assert BaserunnerState.from_mapping({"second": ""}) == EMPTY_BASES

    def test_from_mapping_unknown_base(self):
        with pytest.raises(ValueError, match="Unknown base"):
            BaserunnerState.from_mapping({"fourth": "p9"})

    def test_to_dict(self):
        assert BaserunnerState(second="x").to_dict() == {"first": None, "second": "x", "third": None}

    def test_display(self):
        assert str(EMPTY_BASES) == "Bases empty"
        assert str(BaserunnerState(first="p1", third="p3")) == "1B: p1, 3B: p3"


# ===========================================================================
# Step 8: Result metadata
# ===========================================================================

class TestBattingResult:
    def test_hits(self):
        assert set(HIT_RESULTS) == {
            BattingResult.SINGLE, BattingResult.DOUBLE, BattingResult.TRIPLE, BattingResult.HOME_RUN,
        }
        assert [r.batter_bases for r in HIT_RESULTS] == [1, 2, 3, 4]
        assert all(not r.is_out and r.outs_recorded == 0 for r in HIT_RESULTS)

    def test_outs(self):
        for r in (BattingResult.STRIKEOUT, BattingResult.GROUNDOUT,
                  BattingResult.FLYOUT, BattingResult.SACRIFICE_FLY):
            assert r.is_out
            assert r.outs_recorded == 1
            assert r.batter_bases == 0
            assert not r.reaches_base
        assert BattingResult.DOUBLE_PLAY.outs_recorded == 2

    def test_reach_base_without_hit(self):
        for r in (BattingResult.WALK, BattingResult.INTENTIONAL_WALK,
                  BattingResult.ERROR, BattingResult.FIELDERS_CHOICE):
            assert not r.is_hit
            assert r.reaches_base
            assert r.batter_bases == 1
        assert BattingResult.FIELDERS_CHOICE.outs_recorded == 1

    def test_flags(self):
        assert BattingResult.WALK.is_walk and BattingResult.INTENTIONAL_WALK.is_walk
        assert BattingResult.SACRIFICE_FLY.is_sacrifice
        assert BattingResult.SACRIFICE_FLY.requires_runner_on_third
        assert BattingResult.DOUBLE_PLAY.requires_runner
        assert BattingResult.FIELDERS_CHOICE.requires_runner
        assert not BattingResult.SINGLE.requires_runner

    def test_outs_recorded_range(self):
        assert all(0 <= r.outs_recorded <= 2 for r in BattingResult)
        assert all(0 <= r.batter_bases <= 4 for r in BattingResult)

    @pytest.mark.parametrize("text,expected", [
        ("2B", BattingResult.DOUBLE),
        ("hr", BattingResult.HOME_RUN),
        ("double", BattingResult.DOUBLE),
        ("home run", BattingResult.HOME_RUN),
        ("fielder's choice", BattingResult.FIELDERS_CHOICE),
        (BattingResult.WALK, BattingResult.WALK),
    ])
    def test_parse(self, text, expected):
        assert BattingResult.parse(text) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown batting result"):
            BattingResult.parse("XYZ")
