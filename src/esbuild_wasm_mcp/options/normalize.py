"""Map wire-safe request payloads onto the engine's option model.

Normalization is substitutive: pattern fields are compiled, the positional
``code`` field is extracted, everything else is passed through untouched.
Tool-specific defaults (``bundle``, ``write``, ``loader``) are layered on by
each tool afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NamedTuple

from .patterns import Pattern, compile_pattern

PATTERN_FIELDS: tuple[str, ...] = ("mangleProps", "reserveProps")
POSITIONAL_FIELD = "code"


class NormalizedOptions(NamedTuple):
    """Engine-facing options plus the extracted positional source text."""

    options: dict[str, Any]
    code: str | None = None


def normalize(request: Mapping[str, Any]) -> NormalizedOptions:
    """Normalize a raw request mapping. The input mapping is not modified.

    Raises:
        PatternError: a pattern field holds an invalid regular expression.
    """
    options = dict(request)
    code = options.pop(POSITIONAL_FIELD, None)

    for name in PATTERN_FIELDS:
        value = options.get(name)
        if value is None or value == "":
            options.pop(name, None)
        elif not isinstance(value, Pattern):
            options[name] = compile_pattern(value)

    return NormalizedOptions(options, code)
