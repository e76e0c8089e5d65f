# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0", "pytest>=7.0"]
# ///
"""Tests for the single-writer game session.

Verifies:
1. A session creates its game in setup and drives it through the lifecycle
2. Dict commands get the session's game id
3. Snapshots are detached from the live game
4. Valid outcomes are computed from the live bases and outs
5. Concurrent writers are serialized
6. Operations on a missing game report GAME_NOT_FOUND
7. The due-up batter and the substitute pool are kept by the session
"""

import sys
import threading
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import DEFAULT_RULES, GameRules
from data.store import InMemoryStore
from models import GameStatus, Half, SituationalParameters, TeamSide
from rules.bases import BaserunnerState
from rules.outcomes import BattingResult
from rules.response import ErrorCode
from session import GameSession


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

POSITIONS = ["P", "C", "1B", "2B", "3B", "SS", "LF", "CF", "RF"]


def make_session(**rules) -> GameSession:
    store = InMemoryStore()
    for i in range(1, 10):
        store.add_player(f"p{i}")
    return GameSession.create(store, name="Session test", our_side=TeamSide.HOME,
                              rules=GameRules(**rules))


def lineup_command() -> dict:
    return {"lineup": [
        {"batting_order": i, "player_id": f"p{i}", "position": pos}
        for i, pos in enumerate(POSITIONS, start=1)
    ]}


def started_session(**rules) -> GameSession:
    session = make_session(**rules)
    session.setup_lineup(lineup_command()).unwrap()
    session.start().unwrap()
    return session


def strikeout(batter: str) -> dict:
    return {"batter_id": batter, "inning": 1, "is_top_inning": True, "result": "SO",
            "batting_position": 1}


# ===========================================================================
# Step 1: Lifecycle through the session
# ===========================================================================

def test_create_puts_game_in_setup():
    session = make_session()
    game = session.snapshot()
    assert game.id == session.game_id
    assert game.status is GameStatus.SETUP
    assert game.name == "Session test"


def test_full_lifecycle():
    session = started_session()
    assert session.snapshot().status is GameStatus.IN_PROGRESS
    assert session.record_at_bat(strikeout("a1")).ok
    session.complete("rain").unwrap()
    game = session.snapshot()
    assert game.status is GameStatus.COMPLETED
    assert game.end_reason == "rain"
    assert session.record_at_bat(strikeout("a2")).code is ErrorCode.GAME_NOT_IN_PROGRESS


def test_suspend_blocks_recording():
    session = started_session()
    session.suspend().unwrap()
    assert session.record_at_bat(strikeout("a1")).code is ErrorCode.GAME_NOT_IN_PROGRESS
    assert session.start().code is ErrorCode.ILLEGAL_TRANSITION


def test_start_without_lineup():
    session = make_session()
    assert session.start().code is ErrorCode.LINEUP_REQUIRED


# ===========================================================================
# Step 2-3: Commands and snapshots
# ===========================================================================

def test_dict_command_gets_game_id():
    session = started_session()
    ab = session.record_at_bat(strikeout("a1")).unwrap()
    assert ab.game_id == session.game_id


def test_snapshot_is_detached():
    session = started_session()
    snap = session.snapshot()
    snap.status = GameStatus.SUSPENDED
    assert session.snapshot().status is GameStatus.IN_PROGRESS


# ===========================================================================
# Step 4: Valid outcomes from the live game
# ===========================================================================

def test_valid_outcomes_use_live_bases():
    session = started_session()
    session.record_at_bat({
        "batter_id": "a1", "inning": 1, "is_top_inning": True, "result": "1B",
        "batting_position": 1, "baserunners_after": {"first": "a1"},
    }).unwrap()
    outcomes = session.valid_outcomes(BattingResult.DOUBLE, "a2")
    assert [o.after for o in outcomes] == [BaserunnerState(second="a2", third="a1")]

    aggressive = session.valid_outcomes(
        BattingResult.DOUBLE, "a2", SituationalParameters(aggressiveness="aggressive"),
    )
    assert len(aggressive) == 2


def test_valid_outcomes_respect_outs():
    session = started_session()
    session.record_at_bat(strikeout("a1")).unwrap()
    session.record_at_bat(strikeout("a2")).unwrap()
    session.record_at_bat({
        "batter_id": "a3", "inning": 1, "is_top_inning": True, "result": "1B",
        "batting_position": 3, "baserunners_after": {"first": "a3"},
    }).unwrap()
    assert session.valid_outcomes(BattingResult.DOUBLE_PLAY, "a4") == ()
    assert len(session.valid_outcomes(BattingResult.FIELDERS_CHOICE, "a4")) == 1


# ===========================================================================
# Step 5: Serialized writers
# ===========================================================================

def test_concurrent_strikeouts_flip_half():
    session = started_session()
    results = []

    def worker(batter):
        results.append(session.record_at_bat(strikeout(batter)))

    threads = [threading.Thread(target=worker, args=(f"a{i}",)) for i in range(1, 4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert all(r.ok for r in results)
    game = session.snapshot()
    assert game.half is Half.BOTTOM
    assert game.outs == 0
    assert len(game.innings[0].at_bat_ids) == 3


# ===========================================================================
# Step 6: Missing game
# ===========================================================================

def test_missing_game():
    store = InMemoryStore()
    session = GameSession(store, "no-such-game", DEFAULT_RULES)
    assert session.snapshot() is None
    assert session.start().code is ErrorCode.GAME_NOT_FOUND
    assert session.suspend().code is ErrorCode.GAME_NOT_FOUND
    assert session.complete().code is ErrorCode.GAME_NOT_FOUND
    assert session.record_at_bat(strikeout("a1")).code is ErrorCode.GAME_NOT_FOUND
    assert session.valid_outcomes(BattingResult.SINGLE, "a1") == ()
    assert session.current_batter() is None
    assert session.add_substitute("s1").code is ErrorCode.GAME_NOT_FOUND


# ===========================================================================
# Step 7: Batting order and substitutes
# ===========================================================================

def test_current_batter_follows_our_at_bats():
    session = started_session()
    assert session.current_batter() == "p1"
    for batter in ("a1", "a2", "a3"):
        session.record_at_bat(strikeout(batter)).unwrap()
    assert session.current_batter() == "p1"
    session.record_at_bat({"batter_id": "p1", "inning": 1, "is_top_inning": False, "result": "SO"}).unwrap()
    assert session.current_batter() == "p2"
    assert session.snapshot().to_dict()["current_batter"] == "p2"

    skipped = session.record_at_bat({"batter_id": "p4", "inning": 1, "is_top_inning": False, "result": "SO"})
    assert skipped.code is ErrorCode.BATTING_OUT_OF_ORDER


def test_substitutes_change_mid_game():
    session = started_session()
    session.store.add_player("s1")
    lineup = session.add_substitute("s1").unwrap()
    assert lineup.substitutes == ("s1",)
    assert session.snapshot().lineup.substitutes == ("s1",)
    assert session.add_substitute("s1").code is ErrorCode.DUPLICATE_SUBSTITUTE
    assert session.remove_substitute("s1").ok
    assert session.snapshot().lineup.substitutes == ()

    session.complete().unwrap()
    assert session.add_substitute("s1").code is ErrorCode.LINEUP_LOCKED
