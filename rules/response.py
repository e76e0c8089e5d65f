# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""Structured results for every engine operation.

Operations never raise for expected failures.  They return a ``Result``
whose ``error`` carries a stable ``ErrorCode`` so callers can branch on it
without matching message text.  ``Result.to_dict()`` gives the JSON-ready
shape used by the CLI:

  Success:
    {
      "status": "ok",
      "operation": "<operation>",
      "data": { ... }
    }

  Error:
    {
      "status": "error",
      "operation": "<operation>",
      "error_code": "<ERROR_CODE>",
      "kind": "<error kind>",
      "message": "Human-readable error description"
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    STRUCTURAL = "structural"
    RULE_VIOLATION = "rule_violation"
    CONFIGURABLE_RULE = "configurable_rule"
    STATE_TRANSITION = "state_transition"


class ErrorCode(str, Enum):
    # not found
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    # structural
    MALFORMED_COMMAND = "MALFORMED_COMMAND"
    MISSING_BATTER = "MISSING_BATTER"
    INVALID_INNING = "INVALID_INNING"
    NEGATIVE_RBI = "NEGATIVE_RBI"
    DESCRIPTION_TOO_LONG = "DESCRIPTION_TOO_LONG"
    RBI_ON_OUT = "RBI_ON_OUT"
    DUPLICATE_SCORER = "DUPLICATE_SCORER"
    HOME_RUN_BASES = "HOME_RUN_BASES"
    BASES_MISMATCH = "BASES_MISMATCH"
    BATTING_POSITION_REQUIRED = "BATTING_POSITION_REQUIRED"
    LINEUP_SIZE = "LINEUP_SIZE"
    BATTING_ORDER = "BATTING_ORDER"
    DUPLICATE_PLAYER = "DUPLICATE_PLAYER"
    DUPLICATE_POSITION = "DUPLICATE_POSITION"
    MISSING_POSITION = "MISSING_POSITION"
    SUBSTITUTE_IN_LINEUP = "SUBSTITUTE_IN_LINEUP"
    DUPLICATE_SUBSTITUTE = "DUPLICATE_SUBSTITUTE"
    SUBSTITUTE_NOT_LISTED = "SUBSTITUTE_NOT_LISTED"
    # non-negotiable rules
    RUNNER_ACCOUNTING = "RUNNER_ACCOUNTING"
    RUNNER_PASSING = "RUNNER_PASSING"
    RBI_MISMATCH = "RBI_MISMATCH"
    RBI_LIMIT = "RBI_LIMIT"
    EXCESSIVE_OUTS = "EXCESSIVE_OUTS"
    RUN_ON_THIRD_OUT = "RUN_ON_THIRD_OUT"
    # configurable rules
    ERROR_RBI = "ERROR_RBI"
    RUNNING_ERROR_OUTS = "RUNNING_ERROR_OUTS"
    OUTCOME_NOT_PERMITTED = "OUTCOME_NOT_PERMITTED"
    # state machine
    GAME_NOT_IN_PROGRESS = "GAME_NOT_IN_PROGRESS"
    ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"
    LINEUP_REQUIRED = "LINEUP_REQUIRED"
    LINEUP_LOCKED = "LINEUP_LOCKED"
    INNING_MISMATCH = "INNING_MISMATCH"
    BATTING_OUT_OF_ORDER = "BATTING_OUT_OF_ORDER"

    @property
    def kind(self) -> ErrorKind:
        return _KIND_BY_CODE.get(self, ErrorKind.STRUCTURAL)


_KIND_BY_CODE: dict[ErrorCode, ErrorKind] = {
    ErrorCode.GAME_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.PLAYER_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.RUNNER_ACCOUNTING: ErrorKind.RULE_VIOLATION,
    ErrorCode.RUNNER_PASSING: ErrorKind.RULE_VIOLATION,
    ErrorCode.RBI_MISMATCH: ErrorKind.RULE_VIOLATION,
    ErrorCode.RBI_LIMIT: ErrorKind.RULE_VIOLATION,
    ErrorCode.EXCESSIVE_OUTS: ErrorKind.RULE_VIOLATION,
    ErrorCode.RUN_ON_THIRD_OUT: ErrorKind.RULE_VIOLATION,
    ErrorCode.ERROR_RBI: ErrorKind.CONFIGURABLE_RULE,
    ErrorCode.RUNNING_ERROR_OUTS: ErrorKind.CONFIGURABLE_RULE,
    ErrorCode.OUTCOME_NOT_PERMITTED: ErrorKind.CONFIGURABLE_RULE,
    ErrorCode.GAME_NOT_IN_PROGRESS: ErrorKind.STATE_TRANSITION,
    ErrorCode.ILLEGAL_TRANSITION: ErrorKind.STATE_TRANSITION,
    ErrorCode.LINEUP_REQUIRED: ErrorKind.STATE_TRANSITION,
    ErrorCode.LINEUP_LOCKED: ErrorKind.STATE_TRANSITION,
    ErrorCode.INNING_MISMATCH: ErrorKind.STATE_TRANSITION,
    ErrorCode.BATTING_OUT_OF_ORDER: ErrorKind.STATE_TRANSITION,
}


@dataclass(frozen=True)
class EngineError:
    """A typed failure: stable code, human-readable message, optional context."""
    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> ErrorKind:
        return self.code.kind

    def to_dict(self) -> dict[str, Any]:
        d = {
            "error_code": self.code.value,
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.details:
            d["details"] = self.details
        return d

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class ScoringError(Exception):
    """Raised by ``Result.unwrap()`` when the result is a failure."""

    def __init__(self, error: EngineError):
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[EngineError] = None

    @classmethod
    def success(cls, value: T = None) -> Result[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, code: ErrorCode, message: str, **details: Any) -> Result[T]:
        return cls(ok=False, error=EngineError(code, message, dict(details)))

    @classmethod
    def from_error(cls, error: EngineError) -> Result[T]:
        return cls(ok=False, error=error)

    @property
    def code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    def unwrap(self) -> T:
        if not self.ok:
            raise ScoringError(self.error)
        return self.value

    def value_or(self, default: T) -> T:
        return self.value if self.ok else default

    def map(self, fn: Callable[[T], U]) -> Result[U]:
        if not self.ok:
            return Result.from_error(self.error)
        return Result.success(fn(self.value))

    def then(self, fn: Callable[[T], Result[U]]) -> Result[U]:
        if not self.ok:
            return Result.from_error(self.error)
        return fn(self.value)

    def to_dict(self, operation: str) -> dict[str, Any]:
        if self.ok:
            value = self.value
            data = value.to_dict() if hasattr(value, "to_dict") else value
            return {"status": "ok", "operation": operation, "data": data}
        return {"status": "error", "operation": operation, **self.error.to_dict()}
