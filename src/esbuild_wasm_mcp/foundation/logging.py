"""Structured logging with bound context.

All output goes to stderr: with the stdio transport, stdout carries the
protocol stream.

Quick Start:
    >>> from esbuild_wasm_mcp.foundation.logging import configure_logging, get_logger
    >>> configure_logging(format="console")  # or "json"
    >>> log = get_logger("engine")
    >>> log.info("engine ready", version="0.25.0")
    >>> log.bind(tool="esbuild_wasm_build").warning("slow build", duration_ms=812.4)
"""

from __future__ import annotations

import logging
import sys
import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

import orjson

if TYPE_CHECKING:
    from .config import LoggingSettings
    from .errors import JsonDict, JsonValue


@dataclass(slots=True)
class LogEntry:
    """Log entry with merged context."""

    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def ts_iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()

    @property
    def ts_human(self) -> str:
        """HH:MM:SS.mmm"""
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


_RESET, _DIM, _BOLD, _CYAN = "\033[0m", "\033[2m", "\033[1m", "\033[36m"
_LEVEL_COLORS = {
    "debug": "\033[34m", "info": "\033[32m", "warning": "\033[33m",
    "error": "\033[31m", "critical": "\033[41m",
}


@dataclass(slots=True)
class ConsoleRenderer:
    """Human-readable output. Format: timestamp [level] event key=value ..."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None = auto-detect

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = getattr(self.output, "isatty", lambda: False)()

    def render(self, entry: LogEntry) -> None:
        if self.colors:
            lc = _LEVEL_COLORS.get(entry.level, _DIM)
            parts = [f"{_DIM}{entry.ts_human}{_RESET}", f"{lc}[{entry.level}]{_RESET}", f"{_BOLD}{entry.event}{_RESET}"]
            parts += [f"{_CYAN}{k}{_RESET}={v!r}" if isinstance(v, str) and " " in v else f"{_CYAN}{k}{_RESET}={v}"
                      for k, v in sorted(entry.context.items()) if k != "exc_info"]
        else:
            parts = [entry.ts_human, f"[{entry.level}]", entry.event]
            parts += [f"{k}={v!r}" if isinstance(v, str) and " " in v else f"{k}={v}"
                      for k, v in sorted(entry.context.items()) if k != "exc_info"]
        print(" ".join(parts), file=self.output)
        if exc := entry.context.get("exc_info"):
            print(exc, file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines output for log aggregation."""

    output: TextIO = field(default_factory=lambda: sys.stderr)

    def render(self, entry: LogEntry) -> None:
        line = orjson.dumps(
            {"timestamp": entry.ts_iso, "level": entry.level, "event": entry.event, **entry.context},
            default=str, option=orjson.OPT_NON_STR_KEYS,
        )
        print(line.decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    """Silent renderer for testing."""

    def render(self, entry: LogEntry) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class BoundLogger:
    """Structured logger with bound context. bind() returns a new logger with merged context."""

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int | None = None  # None = follow configure_logging()

    def bind(self, **kw: JsonValue) -> BoundLogger:
        return BoundLogger(context={**self.context, **kw}, _renderer=self._renderer, _level=self._level)

    def _log(self, level: int, event: str, **kw: JsonValue) -> None:
        if level < (self._level if self._level is not None else _default_level.get()):
            return
        entry = LogEntry(time.time(), logging.getLevelName(level).lower(), event, {**self.context, **kw})
        (self._renderer or _get_renderer()).render(entry)

    def debug(self, event: str, **kw: JsonValue) -> None: self._log(logging.DEBUG, event, **kw)
    def info(self, event: str, **kw: JsonValue) -> None: self._log(logging.INFO, event, **kw)
    def warning(self, event: str, **kw: JsonValue) -> None: self._log(logging.WARNING, event, **kw)
    def error(self, event: str, **kw: JsonValue) -> None: self._log(logging.ERROR, event, **kw)


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────

_renderer: ContextVar[LogRenderer | None] = ContextVar("log_renderer", default=None)
_default_level: ContextVar[int] = ContextVar("log_level", default=logging.INFO)


def configure_logging(
    format: str = "console",  # noqa: A002
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Configure global structured logging. Format: "console", "json" or "none"."""
    _default_level.set(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))
    match format:
        case "console": renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
        case "json": renderer = JsonRenderer(output=output or sys.stderr)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")
    _renderer.set(renderer)
    return renderer


def configure_from_settings(settings: LoggingSettings) -> LogRenderer:
    return configure_logging(settings.format, settings.level)


def get_logger(name: str | None = None, **initial_context: JsonValue) -> BoundLogger:
    """Get a structured logger. Name is added to context as 'logger'."""
    return BoundLogger(context={**initial_context, **({"logger": name} if name else {})})


def _get_renderer() -> LogRenderer:
    if (renderer := _renderer.get()) is None:
        _renderer.set(renderer := ConsoleRenderer())
    return renderer
