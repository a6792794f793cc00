"""Foundation layer: configuration, errors and logging shared by every module."""

from .config import EsbuildSettings, clear_settings_cache, get_settings
from .errors import (
    BuildFailure,
    Diagnostic,
    EngineLoadError,
    ErrorCode,
    EsbuildError,
    PatternError,
    ToolResponse,
    success_response,
    to_error_response,
)
from .logging import BoundLogger, configure_logging, get_logger

__all__ = [
    "EsbuildSettings", "get_settings", "clear_settings_cache",
    "ErrorCode", "EsbuildError", "PatternError", "EngineLoadError", "BuildFailure", "Diagnostic",
    "ToolResponse", "success_response", "to_error_response",
    "BoundLogger", "configure_logging", "get_logger",
]
