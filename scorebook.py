# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Replay a JSON scorebook through the scoring engine, or list valid outcomes.

Usage:
    uv run scorebook.py replay data/sample_game.json
    uv run scorebook.py replay data/sample_game.json --strict --json
    uv run scorebook.py outcomes 1B --first p2 --aggressive
    uv run scorebook.py outcomes DP --first p1 --third p3 --outs 1
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from config import load_game_rules, load_rule_configuration
from data.store import InMemoryStore
from models import Aggressiveness, Player, SituationalParameters, TeamSide
from rules.advancement import valid_outcomes
from rules.bases import BaserunnerState
from rules.outcomes import BattingResult
from rules.response import Result
from session import GameSession

logger = logging.getLogger(__name__)


def _emit(result: Result, operation: str, as_json: bool, text: str) -> None:
    if as_json:
        print(json.dumps(result.to_dict(operation), default=str))
    elif result.ok:
        print(text)
    else:
        print(f"Error {result.error}", file=sys.stderr)


def load_scorebook(path: Path) -> dict[str, Any]:
    with open(path) as f:
        data = json.load(f)
    for key in ("lineup", "at_bats"):
        if key not in data:
            raise ValueError(f"Scorebook {path} is missing '{key}'")
    return data


def replay(data: dict[str, Any], *, strict: bool = False, as_json: bool = False) -> int:
    """Replay a scorebook.  Returns a process exit code."""
    store = InMemoryStore()
    for entry in data.get("players", []):
        store.add_player(entry if isinstance(entry, str) else Player.model_validate(entry))

    game_info = data.get("game", {})
    rules = load_game_rules(**data.get("rules", {}))
    config = load_rule_configuration(outcome_matrix=True if strict else None)
    session = GameSession.create(
        store,
        name=game_info.get("name", ""),
        our_side=TeamSide(game_info.get("our_side", TeamSide.HOME.value)),
        rules=rules,
        config=config,
    )

    lineup = session.setup_lineup(data["lineup"])
    _emit(lineup, "setup_lineup", as_json, "Lineup accepted")
    if not lineup.ok:
        return 1

    started = session.start()
    _emit(started, "start", as_json, f"Game started: {game_info.get('name', session.game_id)}")
    if not started.ok:
        return 1

    for n, at_bat in enumerate(data["at_bats"], start=1):
        recorded = session.record_at_bat(at_bat)
        text = ""
        if recorded.ok:
            ab = recorded.value
            side = "Top" if at_bat.get("is_top_inning") else "Bot"
            text = f"{side} {ab.inning:>2} | {ab.batter_id:<8} {ab.summary()}"
        _emit(recorded, "record_at_bat", as_json, text)
        if not recorded.ok:
            print(f"At-bat #{n} rejected; replay stopped.", file=sys.stderr)
            return 1

    game = session.snapshot()
    if not as_json:
        print()
        print(game.score.line_score())
        status = game.status.value
        if game.end_reason:
            status += f" ({game.end_reason})"
        print(f"\nStatus: {status}")
        if game.winner:
            print(f"Winner: {game.winner.value}")
    else:
        print(json.dumps({"status": "ok", "operation": "final", "data": game.to_dict()}))
    return 0


def list_outcomes(args: argparse.Namespace) -> int:
    try:
        result = BattingResult.parse(args.result)
        before = BaserunnerState(first=args.first, second=args.second, third=args.third)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    aggressiveness = Aggressiveness.STANDARD
    if args.aggressive:
        aggressiveness = Aggressiveness.AGGRESSIVE
    elif args.conservative:
        aggressiveness = Aggressiveness.CONSERVATIVE
    params = SituationalParameters(
        aggressiveness=aggressiveness,
        error_occurred=args.error,
        running_error_occurred=args.running_error,
    )
    outcomes = valid_outcomes(before, result, params, config=load_rule_configuration(),
                              batter_id=args.batter, outs_before=args.outs)

    print(f"{result.label.capitalize()} with {before} ({params.describe()}, {args.outs} out)")
    if not outcomes:
        print("  no valid outcomes")
    for i, o in enumerate(outcomes, start=1):
        runs = ", ".join(o.runs_scored) or "none"
        print(f"  {i:>2}. {o.after} | runs: {runs} | RBI {o.rbis} | outs {o.outs} | {o.description}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Softball scorekeeping engine: replay scorebooks and explore outcomes."
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log engine decisions at DEBUG level.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    rp = sub.add_parser("replay", help="Replay a JSON scorebook through the engine.")
    rp.add_argument("path", type=Path, help="Scorebook JSON file.")
    rp.add_argument("--strict", action="store_true",
                    help="Require every play to match an enumerated valid outcome.")
    rp.add_argument("--json", action="store_true", help="Emit structured JSON results.")

    op = sub.add_parser("outcomes", help="List the valid outcomes for a play.")
    op.add_argument("result", help="Result code (1B, 2B, HR, FC, DP, ...) or name.")
    op.add_argument("--first", default=None, help="Runner on first.")
    op.add_argument("--second", default=None, help="Runner on second.")
    op.add_argument("--third", default=None, help="Runner on third.")
    op.add_argument("--batter", default="batter", help="Batter id (default: batter).")
    level = op.add_mutually_exclusive_group()
    level.add_argument("--aggressive", action="store_true", help="Runners pushed for extra bases.")
    level.add_argument("--conservative", action="store_true", help="Runners held up.")
    op.add_argument("--error", action="store_true", help="A fielding error extended the play.")
    op.add_argument("--running-error", action="store_true", help="A runner was put out by a baserunning mistake.")
    op.add_argument("--outs", type=int, default=0, choices=(0, 1, 2), help="Outs before the play.")
    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    if args.command == "outcomes":
        return list_outcomes(args)

    try:
        data = load_scorebook(args.path)
        return replay(data, strict=args.strict, as_json=args.json)
    except (OSError, json.JSONDecodeError, ValidationError, ValueError) as e:
        print(f"Error loading scorebook {args.path}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
