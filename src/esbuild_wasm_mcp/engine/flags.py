"""Translate engine option mappings into esbuild command-line flags."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

import orjson

from ..options import Pattern

# Lists passed as one flag per item: --external:react --external:vue
_REPEATED = frozenset({"external", "inject", "drop", "pure"})
# Mappings passed as --name:key=value
_KEYED = frozenset({"define", "loader", "banner", "footer", "alias", "outExtension", "supported", "logOverride"})
# Mappings passed as a JSON string
_JSON = frozenset({"tsconfigRaw"})

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def kebab(name: str) -> str:
    """``minifyWhitespace`` -> ``minify-whitespace``"""
    return _CAMEL.sub("-", name).lower()


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Pattern):
        return value.source
    return str(value)


def to_cli_flags(options: Mapping[str, Any]) -> list[str]:
    """Render ``options`` as esbuild CLI flags. ``None`` values are omitted."""
    flags: list[str] = []
    for key, value in options.items():
        if value is None:
            continue
        flag = f"--{kebab(key)}"
        if key in _JSON and not isinstance(value, str):
            flags.append(f"{flag}={orjson.dumps(value).decode()}")
        elif isinstance(value, Mapping):
            if key not in _KEYED:
                raise ValueError(f"Option '{key}' does not accept an object")
            flags.extend(f"{flag}:{k}={_scalar(v)}" for k, v in value.items())
        elif isinstance(value, (list, tuple)):
            if key in _REPEATED:
                flags.extend(f"{flag}:{_scalar(v)}" for v in value)
            elif value:
                flags.append(f"{flag}={','.join(_scalar(v) for v in value)}")
        elif value is True:
            flags.append(flag)
        else:
            flags.append(f"{flag}={_scalar(value)}")
    return flags


def entry_point_args(entry_points: Any) -> list[str]:
    """Positional arguments for ``entryPoints`` (list of paths or ``{out: in}`` mapping)."""
    if entry_points is None:
        return []
    if isinstance(entry_points, str):
        return [entry_points]
    if isinstance(entry_points, Mapping):
        return [f"{out}={src}" for out, src in entry_points.items()]
    args = []
    for ep in entry_points:
        if isinstance(ep, Mapping):
            args.append(f"{ep['out']}={ep['in']}")
        else:
            args.append(str(ep))
    return args
