"""Uniform tool response shapes and the error translator.

Every tool returns a :class:`ToolResponse`. Success carries the pretty-printed
JSON payload; failures carry ``isError: true`` plus either the serialized
diagnostic collection or a single message string.

Example:
    >>> to_error_response(ValueError("boom")).text
    'boom'
    >>> success_response({"ok": True}).text
    '{\\n  "ok": true\\n}'
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from typing import Literal

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import BuildFailure
from .types import DiagnosticReport, JsonDict


class TextContent(BaseModel):
    """Single text block of a tool response."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ToolResponse(BaseModel):
    """Response contract shared by all endpoints."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content: list[TextContent]
    is_error: bool | None = Field(default=None, alias="isError")

    @property
    def text(self) -> str:
        """Text of the first content block."""
        return self.content[0].text if self.content else ""

    @property
    def failed(self) -> bool:
        return bool(self.is_error)

    def to_wire(self) -> JsonDict:
        return self.model_dump(by_alias=True, exclude_none=True)


def _default(obj: object) -> object:
    """orjson fallback for values it cannot encode natively."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True)
    if isinstance(getattr(obj, "regex", None), re.Pattern):
        return obj.source  # compiled name patterns
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    return str(obj)


def dumps_pretty(payload: object) -> str:
    """Pretty-printed (2-space) JSON text."""
    options = orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS | orjson.OPT_PASSTHROUGH_DATACLASS
    return orjson.dumps(payload, default=_default, option=options).decode()


def success_response(payload: object) -> ToolResponse:
    """Wrap a tool's result; strings are passed through, everything else becomes JSON."""
    text = payload if isinstance(payload, str) else dumps_pretty(payload)
    return ToolResponse(content=[TextContent(text=text)])


def _error(text: str) -> ToolResponse:
    return ToolResponse(content=[TextContent(text=text)], is_error=True)


def _diagnostic_body(thrown: object) -> str | None:
    """Serialized body when ``thrown`` is a recognised diagnostic collection."""
    if isinstance(thrown, BuildFailure):
        return dumps_pretty(thrown.to_wire())
    if isinstance(thrown, Mapping):
        try:
            DiagnosticReport.model_validate(thrown)
        except ValidationError:
            return None
        return dumps_pretty(dict(thrown))
    return None


def _message(thrown: object) -> str:
    if isinstance(thrown, BaseException):
        return str(thrown) or type(thrown).__name__
    if isinstance(thrown, Mapping) and isinstance(msg := thrown.get("message"), str) and msg:
        return msg
    return str(thrown)


def to_error_response(thrown: object) -> ToolResponse:
    """Convert any raised or rejected value into the error response. Never raises."""
    try:
        body = _diagnostic_body(thrown)
        return _error(body if body is not None else _message(thrown))
    except Exception as e:  # str()/serialization of exotic values
        return _error(f"{type(thrown).__name__}: unrepresentable error ({type(e).__name__})")
