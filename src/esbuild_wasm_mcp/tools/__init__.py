"""Tool endpoints: build, context, transform, analyze_metafile, format_messages,
initialize and status."""

from .analyze import AnalyzeMetafileTool, FormatMessagesTool, parse_metafile
from .base import BaseTool, EmptyParams, ToolMetadata
from .build import BuildTool, ContextTool, build_options, build_payload
from .lifecycle import InitializeTool, StatusTool
from .registry import ToolRegistry, default_registry
from .schemas import AnalyzeMetafileParams, BuildParams, CommonOptions, FormatMessagesParams, TransformParams
from .transform import TransformTool

__all__ = [
    # Framework
    "BaseTool", "ToolMetadata", "EmptyParams", "ToolRegistry", "default_registry",
    # Tools
    "BuildTool", "ContextTool", "TransformTool", "AnalyzeMetafileTool", "FormatMessagesTool",
    "InitializeTool", "StatusTool",
    # Schemas
    "CommonOptions", "BuildParams", "TransformParams", "AnalyzeMetafileParams", "FormatMessagesParams",
    # Helpers
    "build_options", "build_payload", "parse_metafile",
]
