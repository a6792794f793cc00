"""Error codes and exception types for engine and tool failures.

Every failure that reaches a tool boundary is converted into one response
shape by :mod:`.response`. The exceptions here carry an :class:`ErrorCode`
for logging and programmatic handling.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .types import Diagnostic, JsonDict


class ErrorCode(StrEnum):
    """Standard error codes for engine and tool failures."""
    INVALID_PARAMS = "INVALID_PARAMS"
    PARSE_ERROR = "PARSE_ERROR"
    NOT_FOUND = "NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    ENGINE_LOAD_FAILED = "ENGINE_LOAD_FAILED"
    BUILD_FAILED = "BUILD_FAILED"
    UNKNOWN = "UNKNOWN"


# Flattened pattern -> code mapping, checked in insertion order
_PATTERN_CODES: dict[str, ErrorCode] = {
    "timeout": ErrorCode.TIMEOUT,
    "connect": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "http": ErrorCode.NETWORK_ERROR,
    "notfound": ErrorCode.NOT_FOUND,
    "no such file": ErrorCode.NOT_FOUND,
    "permission": ErrorCode.PERMISSION_DENIED,
    "json": ErrorCode.PARSE_ERROR,
    "decode": ErrorCode.PARSE_ERROR,
    "validation": ErrorCode.INVALID_PARAMS,
    "value": ErrorCode.INVALID_PARAMS,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES)


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map exception to error code: explicit code first, then name/message patterns."""
    if isinstance(exc, EsbuildError):
        return exc.code
    return _classify_cached(f"{type(exc).__name__} {exc}")


class EsbuildError(Exception):
    """Base exception for failures raised by this package."""

    default_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code

    @property
    def message(self) -> str:
        return str(self)


class PatternError(EsbuildError, ValueError):
    """A user-supplied pattern is not a valid regular expression."""

    default_code = ErrorCode.INVALID_PARAMS


class EngineLoadError(EsbuildError):
    """The engine module could not be located, fetched or compiled."""

    default_code = ErrorCode.ENGINE_LOAD_FAILED


class BuildFailure(EsbuildError):
    """Engine ran but reported errors.

    This is the tagged diagnostic failure: the error translator recognises it by
    type and serializes the full ``errors``/``warnings`` collections instead of
    collapsing them to one string.
    """

    default_code = ErrorCode.BUILD_FAILED

    def __init__(
        self,
        errors: Iterable[Diagnostic] = (),
        warnings: Iterable[Diagnostic] = (),
        message: str | None = None,
    ) -> None:
        self.errors = list(errors)
        self.warnings = list(warnings)
        if message is None:
            n = len(self.errors)
            first = f": {self.errors[0].text}" if self.errors else ""
            message = f"Build failed with {n} error{'' if n == 1 else 's'}{first}"
        super().__init__(message)

    def to_wire(self) -> JsonDict:
        return {
            "message": self.message,
            "errors": [d.to_wire() for d in self.errors],
            "warnings": [d.to_wire() for d in self.warnings],
        }
