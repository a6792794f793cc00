"""Tool abstractions: BaseTool and ToolMetadata.

A tool declares its metadata and a Pydantic parameter schema and implements
``_async_run`` returning its result payload. ``arun`` wraps that in the uniform
response contract: success payloads are serialized, and any exception,
including an engine load failure, becomes the error response.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..foundation.errors import ToolResponse, classify_exception, success_response, to_error_response
from ..foundation.logging import get_logger

log = get_logger("esbuild_wasm_mcp.tools")


class ToolMetadata(BaseModel):
    """Metadata describing a tool for discovery and registration.

    Attributes:
        name: Unique identifier (snake_case, e.g., "esbuild_wasm_build")
        description: What the tool does (shown to the client)
        category: Grouping category
        enabled: Whether tool is currently active
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$")
    description: str = Field(..., min_length=10)
    category: str = Field(default="esbuild")
    enabled: bool = Field(default=True)


class EmptyParams(BaseModel):
    """Parameter schema for tools with no inputs."""

    model_config = ConfigDict(extra="ignore")


TParams = TypeVar("TParams", bound=BaseModel)


class BaseTool(ABC, Generic[TParams]):
    """Abstract base class for all tools.

    Subclasses must:
    - Define ``metadata`` with a ToolMetadata
    - Define ``params_schema`` with the Pydantic model type
    - Implement ``_async_run(params)`` returning the result payload
      (a string is sent as is, anything else as pretty JSON)

    Example:
        >>> class StatusTool(BaseTool[EmptyParams]):
        ...     metadata = ToolMetadata(name="esbuild_wasm_status", description="Report engine state")
        ...     params_schema = EmptyParams
        ...
        ...     async def _async_run(self, params: EmptyParams) -> object:
        ...         return get_state().to_wire()
    """

    metadata: ClassVar[ToolMetadata]
    params_schema: ClassVar[type[BaseModel]]

    @abstractmethod
    async def _async_run(self, params: TParams) -> object:
        ...

    async def arun(self, params: TParams) -> ToolResponse:
        """Execute the tool; never raises."""
        name = self.metadata.name
        start = time.perf_counter()
        log.debug("tool started", tool=name)
        try:
            payload = await self._async_run(params)
        except Exception as e:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            log.warning("tool failed", tool=name, error=str(e) or type(e).__name__,
                        code=classify_exception(e).value, duration_ms=duration_ms)
            return to_error_response(e)

        log.info("tool completed", tool=name, duration_ms=round((time.perf_counter() - start) * 1000, 2))
        return success_response(payload)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.metadata.name}>"
