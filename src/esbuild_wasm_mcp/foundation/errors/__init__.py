"""Unified error handling for esbuild-wasm-mcp.

- ErrorCode: Standard error codes for engine and tool failures
- EsbuildError and subclasses: PatternError, EngineLoadError, BuildFailure
- Diagnostic/Location/DiagnosticReport: engine message models
- ToolResponse, success_response, to_error_response: the response contract
"""

from .errors import (
    BuildFailure,
    EngineLoadError,
    ErrorCode,
    EsbuildError,
    PatternError,
    classify_exception,
)
from .response import TextContent, ToolResponse, dumps_pretty, success_response, to_error_response
from .types import Diagnostic, DiagnosticReport, JsonDict, JsonPrimitive, JsonValue, Location

__all__ = [
    # Core errors
    "ErrorCode", "EsbuildError", "PatternError", "EngineLoadError", "BuildFailure", "classify_exception",
    # Diagnostics
    "Diagnostic", "DiagnosticReport", "Location",
    # Responses
    "TextContent", "ToolResponse", "dumps_pretty", "success_response", "to_error_response",
    # JSON aliases
    "JsonDict", "JsonPrimitive", "JsonValue",
]
