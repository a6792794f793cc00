"""Request normalization: pattern compilation and option extraction."""

from .normalize import PATTERN_FIELDS, POSITIONAL_FIELD, NormalizedOptions, normalize
from .patterns import Pattern, compile_pattern

__all__ = [
    "Pattern", "compile_pattern",
    "NormalizedOptions", "normalize", "PATTERN_FIELDS", "POSITIONAL_FIELD",
]
