"""Type aliases and diagnostic models shared across the package.

Diagnostics are produced by the engine only. The core never interprets them,
it validates their shape and serializes them back out.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# JSON type aliases - using Any for recursive slots to avoid Pydantic resolution issues
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]


class Location(BaseModel):
    """Source position attached to a diagnostic."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    file: str = ""
    line: int = 0
    column: int = 0
    line_text: str = Field(default="", alias="lineText")


class Diagnostic(BaseModel):
    """One structured compiler message (error, warning or note)."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    text: str
    id: str = ""
    location: Location | None = None
    notes: list[Diagnostic] = Field(default_factory=list)

    def to_wire(self) -> JsonDict:
        return self.model_dump(mode="json", by_alias=True)


class DiagnosticReport(BaseModel):
    """Schema a mapping must satisfy to be treated as a diagnostic collection.

    Requires at least one of ``errors``/``warnings`` to be present; every item
    must validate as a Diagnostic.
    """

    model_config = ConfigDict(extra="allow")

    errors: list[Diagnostic] | None = None
    warnings: list[Diagnostic] | None = None

    @model_validator(mode="after")
    def _require_collection(self) -> DiagnosticReport:
        if self.errors is None and self.warnings is None:
            raise ValueError("errors or warnings required")
        return self
