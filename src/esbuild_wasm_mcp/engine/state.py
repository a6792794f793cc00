"""Engine lifecycle state and load configuration.

``EngineState`` is immutable; every transition builds a new value through one
of the factory classmethods, so fields that do not belong to a status can never
linger from a previous one.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from ..foundation.errors import JsonDict


class EngineStatus(StrEnum):
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class LoadOptions(BaseModel):
    """Where to get the engine module from and how to run it.

    At most one of ``remote_url``/``local_module_path`` is meaningful; with
    neither, the default module resource is used.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    remote_url: str | None = Field(default=None, alias="remoteURL", description="Fetch the module from this URL")
    local_module_path: str | None = Field(
        default=None, alias="localModulePath", description="Read and compile the module from this path",
    )
    use_worker: bool | None = Field(
        default=None, alias="useWorker", description="Run engine calls in an isolated worker process",
    )

    @classmethod
    def coerce(cls, value: LoadOptions | dict[str, Any] | None) -> LoadOptions:
        if value is None:
            return cls()
        return value if isinstance(value, cls) else cls.model_validate(value)

    def to_wire(self) -> JsonDict:
        return self.model_dump(by_alias=True, exclude_none=True)


class EngineState(BaseModel):
    """Snapshot of the engine lifecycle.

    Only fields valid for ``status`` may be set: ``version`` and ``loaded_at``
    when ready, ``error`` when failed. ``options`` survives every transition
    once a load has been attempted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: EngineStatus = EngineStatus.NOT_LOADED
    version: str | None = None
    options: LoadOptions | None = None
    error: str | None = None
    loaded_at: datetime | None = Field(default=None, alias="loadedAt")

    @model_validator(mode="after")
    def _fields_match_status(self) -> Self:
        ready, failed = self.status is EngineStatus.READY, self.status is EngineStatus.FAILED
        if ready != (self.version is not None) or ready != (self.loaded_at is not None):
            raise ValueError(f"version/loadedAt must be set exactly when ready (status={self.status})")
        if failed != (self.error is not None):
            raise ValueError(f"error must be set exactly when failed (status={self.status})")
        if self.status is not EngineStatus.NOT_LOADED and self.options is None:
            raise ValueError(f"options required once a load was attempted (status={self.status})")
        return self

    @field_serializer("loaded_at")
    def _iso(self, v: datetime | None) -> str | None:
        return v.isoformat() if v else None

    # Transitions

    @classmethod
    def not_loaded(cls) -> EngineState:
        return cls()

    @classmethod
    def loading(cls, options: LoadOptions) -> EngineState:
        return cls(status=EngineStatus.LOADING, options=options)

    @classmethod
    def ready(cls, options: LoadOptions, version: str, loaded_at: datetime | None = None) -> EngineState:
        return cls(status=EngineStatus.READY, options=options, version=version,
                   loaded_at=loaded_at or datetime.now(UTC))

    @classmethod
    def failed(cls, options: LoadOptions, error: str) -> EngineState:
        return cls(status=EngineStatus.FAILED, options=options, error=error)

    @property
    def is_ready(self) -> bool:
        return self.status is EngineStatus.READY

    def snapshot(self) -> EngineState:
        """Independent deep copy."""
        return self.model_copy(deep=True)

    def to_wire(self) -> JsonDict:
        """Wire shape: status, version, options, error, loadedAt (nulls kept)."""
        return {
            "status": self.status.value,
            "version": self.version,
            "options": self.options.to_wire() if self.options is not None else None,
            "error": self.error,
            "loadedAt": self._iso(self.loaded_at),
        }
