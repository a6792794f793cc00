"""Compiled name-filter patterns.

Patterns arrive as plain strings on the wire. They are validated here, at the
boundary, so an invalid expression surfaces as a validation failure instead of
reaching the engine.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..foundation.errors import PatternError


@dataclass(frozen=True, slots=True)
class Pattern:
    """Validated regular expression used to select property/identifier names."""

    source: str
    regex: re.Pattern[str] = field(repr=False, compare=False)

    def search(self, name: str) -> bool:
        return self.regex.search(name) is not None

    def match(self, name: str) -> bool:
        return self.regex.match(name) is not None

    def __str__(self) -> str:
        return self.source


def compile_pattern(source: str) -> Pattern:
    """Compile ``source`` into a :class:`Pattern`, raising PatternError if invalid."""
    if not isinstance(source, str):
        raise PatternError(f"Pattern must be a string, got {type(source).__name__}")
    try:
        regex = re.compile(source)
    except re.error as e:
        raise PatternError(f"Invalid pattern {source!r}: {e}") from e
    return Pattern(source, regex)
