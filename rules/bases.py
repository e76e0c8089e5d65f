# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""Base-occupancy value types.

``BaserunnerState`` is an immutable snapshot of who stands on first, second
and third.  Every transition produces a new value; the canonical empty state
is ``EMPTY_BASES``.

``BaseShape`` is the occupancy pattern of a state independent of which
players are on base.  There are exactly eight shapes, and the advancement
engine dispatches on them with ``match`` so every shape is handled
explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Iterator, Optional


class Base(IntEnum):
    FIRST = 1
    SECOND = 2
    THIRD = 3
    HOME = 4  # scoring position, never an occupied slot

    @property
    def label(self) -> str:
        return {1: "1B", 2: "2B", 3: "3B", 4: "home"}[self.value]


OCCUPIABLE_BASES: tuple[Base, ...] = (Base.FIRST, Base.SECOND, Base.THIRD)

_SLOT_NAMES = {Base.FIRST: "first", Base.SECOND: "second", Base.THIRD: "third"}


# ---------------------------------------------------------------------------
# Base-occupancy shape
# ---------------------------------------------------------------------------

class BaseShape(Enum):
    EMPTY = (False, False, False)
    FIRST = (True, False, False)
    SECOND = (False, True, False)
    THIRD = (False, False, True)
    FIRST_SECOND = (True, True, False)
    FIRST_THIRD = (True, False, True)
    SECOND_THIRD = (False, True, True)
    LOADED = (True, True, True)

    @classmethod
    def of(cls, state: BaserunnerState) -> BaseShape:
        return cls((state.first is not None,
                    state.second is not None,
                    state.third is not None))

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def occupied(self) -> tuple[Base, ...]:
        return tuple(b for b, on in zip(OCCUPIABLE_BASES, self.value) if on)

    @property
    def forced_bases(self) -> tuple[Base, ...]:
        """Bases whose runner must advance when the batter takes first."""
        match self:
            case BaseShape.FIRST | BaseShape.FIRST_THIRD:
                return (Base.FIRST,)
            case BaseShape.FIRST_SECOND:
                return (Base.FIRST, Base.SECOND)
            case BaseShape.LOADED:
                return (Base.FIRST, Base.SECOND, Base.THIRD)
            case BaseShape.EMPTY | BaseShape.SECOND | BaseShape.THIRD | BaseShape.SECOND_THIRD:
                return ()


# ---------------------------------------------------------------------------
# Baserunner state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BaserunnerState:
    """Who occupies first, second and third.  ``None`` means the base is empty."""
    first: Optional[str] = None
    second: Optional[str] = None
    third: Optional[str] = None

    def __post_init__(self) -> None:
        occupants = [p for p in (self.first, self.second, self.third) if p is not None]
        if len(occupants) != len(set(occupants)):
            raise ValueError(f"A player cannot be on multiple bases at the same time: {occupants}")

    @classmethod
    def empty(cls) -> BaserunnerState:
        return EMPTY_BASES

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> BaserunnerState:
        """Build a state from ``{"first": "p1", "third": "p3"}``-style data."""
        if not data:
            return EMPTY_BASES
        unknown = set(data) - set(_SLOT_NAMES.values())
        if unknown:
            raise ValueError(f"Unknown base name(s): {sorted(unknown)}")
        return cls(
            first=data.get("first") or None,
            second=data.get("second") or None,
            third=data.get("third") or None,
        )

    @classmethod
    def from_placements(cls, placements: dict[Base, str]) -> BaserunnerState:
        return cls(
            first=placements.get(Base.FIRST),
            second=placements.get(Base.SECOND),
            third=placements.get(Base.THIRD),
        )

    # -- accessors -----------------------------------------------------------

    def occupant(self, base: Base | int) -> Optional[str]:
        base = Base(base)
        if base is Base.HOME:
            return None
        return getattr(self, _SLOT_NAMES[base])

    def is_occupied(self, base: Base | int) -> bool:
        return self.occupant(base) is not None

    def runners(self) -> list[tuple[Base, str]]:
        """Occupied bases in order from first to third."""
        return [(b, p) for b in OCCUPIABLE_BASES if (p := self.occupant(b)) is not None]

    def __iter__(self) -> Iterator[str]:
        return (p for _, p in self.runners())

    def base_of(self, player_id: str) -> Optional[Base]:
        for base, occupant in self.runners():
            if occupant == player_id:
                return base
        return None

    def has_runner(self, player_id: str) -> bool:
        return self.base_of(player_id) is not None

    @property
    def runner_count(self) -> int:
        return len(self.runners())

    @property
    def is_empty(self) -> bool:
        return self.runner_count == 0

    @property
    def is_loaded(self) -> bool:
        return self.runner_count == 3

    @property
    def shape(self) -> BaseShape:
        return BaseShape.of(self)

    # -- transitions ---------------------------------------------------------

    def with_runner(self, base: Base | int, player_id: str) -> BaserunnerState:
        base = Base(base)
        if base is Base.HOME:
            raise ValueError("Home is not an occupiable base")
        placements = {b: p for b, p in self.runners() if p != player_id}
        placements[base] = player_id
        return BaserunnerState.from_placements(placements)

    def without(self, base: Base | int) -> BaserunnerState:
        base = Base(base)
        return BaserunnerState.from_placements({b: p for b, p in self.runners() if b != base})

    # -- serialization -------------------------------------------------------

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"first": self.first, "second": self.second, "third": self.third}

    def __str__(self) -> str:
        if self.is_empty:
            return "Bases empty"
        return ", ".join(f"{b.label}: {p}" for b, p in self.runners())


EMPTY_BASES = BaserunnerState()
