# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""Catalogue of plate-appearance results and their fixed rule metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ResultInfo:
    label: str
    is_hit: bool
    is_out: bool          # the batter is retired
    outs_recorded: int    # outs the result itself accounts for
    batter_bases: int     # 0 = batter out, 4 = batter scores


class BattingResult(str, Enum):
    SINGLE = "1B"
    DOUBLE = "2B"
    TRIPLE = "3B"
    HOME_RUN = "HR"
    WALK = "BB"
    INTENTIONAL_WALK = "IBB"
    STRIKEOUT = "SO"
    GROUNDOUT = "GO"
    FLYOUT = "AO"
    SACRIFICE_FLY = "SF"
    FIELDERS_CHOICE = "FC"
    ERROR = "E"
    DOUBLE_PLAY = "DP"

    @classmethod
    def parse(cls, value: str | BattingResult) -> BattingResult:
        """Accept a scorebook code (``"2B"``) or a member name (``"double"``)."""
        if isinstance(value, BattingResult):
            return value
        text = str(value).strip()
        try:
            return cls(text.upper())
        except ValueError:
            pass
        try:
            return cls[text.upper().replace(" ", "_").replace("'", "")]
        except KeyError:
            raise ValueError(f"Unknown batting result: {value!r}") from None

    @property
    def info(self) -> ResultInfo:
        return RESULT_INFO[self]

    @property
    def label(self) -> str:
        return self.info.label

    @property
    def is_hit(self) -> bool:
        return self.info.is_hit

    @property
    def is_out(self) -> bool:
        return self.info.is_out

    @property
    def outs_recorded(self) -> int:
        return self.info.outs_recorded

    @property
    def batter_bases(self) -> int:
        return self.info.batter_bases

    @property
    def reaches_base(self) -> bool:
        return self.info.batter_bases > 0

    @property
    def is_walk(self) -> bool:
        return self in (BattingResult.WALK, BattingResult.INTENTIONAL_WALK)

    @property
    def is_sacrifice(self) -> bool:
        return self is BattingResult.SACRIFICE_FLY

    @property
    def requires_runner(self) -> bool:
        """A runner must be on base for this result to be possible."""
        return self in (BattingResult.FIELDERS_CHOICE, BattingResult.DOUBLE_PLAY)

    @property
    def requires_runner_on_third(self) -> bool:
        return self is BattingResult.SACRIFICE_FLY


RESULT_INFO: dict[BattingResult, ResultInfo] = {
    BattingResult.SINGLE: ResultInfo("single", True, False, 0, 1),
    BattingResult.DOUBLE: ResultInfo("double", True, False, 0, 2),
    BattingResult.TRIPLE: ResultInfo("triple", True, False, 0, 3),
    BattingResult.HOME_RUN: ResultInfo("home run", True, False, 0, 4),
    BattingResult.WALK: ResultInfo("walk", False, False, 0, 1),
    BattingResult.INTENTIONAL_WALK: ResultInfo("intentional walk", False, False, 0, 1),
    BattingResult.STRIKEOUT: ResultInfo("strikeout", False, True, 1, 0),
    BattingResult.GROUNDOUT: ResultInfo("groundout", False, True, 1, 0),
    BattingResult.FLYOUT: ResultInfo("flyout", False, True, 1, 0),
    BattingResult.SACRIFICE_FLY: ResultInfo("sacrifice fly", False, True, 1, 0),
    BattingResult.FIELDERS_CHOICE: ResultInfo("fielder's choice", False, False, 1, 1),
    BattingResult.ERROR: ResultInfo("reached on error", False, False, 0, 1),
    BattingResult.DOUBLE_PLAY: ResultInfo("double play", False, True, 2, 0),
}

HIT_RESULTS = tuple(r for r in BattingResult if r.is_hit)
