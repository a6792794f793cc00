"""esbuild-wasm-mcp - an MCP server exposing the esbuild compiler and bundler.

esbuild's WebAssembly build runs under wasmtime, in a thread or an isolated worker
process. The engine is loaded once on first use (or explicitly through the
initialize tool) and shared by every tool call.

Quick Start:
    $ esbuild-wasm-mcp                       # stdio, for desktop/editor clients
    $ ESBUILD_WASM_SERVER_TRANSPORT=sse esbuild-wasm-mcp

Programmatic use:
    >>> from esbuild_wasm_mcp import ToolServer, default_registry
    >>> from esbuild_wasm_mcp.server import MCPServer
    >>> server = MCPServer("esbuild-wasm", default_registry())
    >>> response = await server.invoke("esbuild_wasm_transform", {"code": "let x: number = 1"})
    >>> response.text
    '{\\n  "code": "let x = 1;\\n", ...'
"""

__version__ = "0.1.0"

from .engine import EngineState, EngineStatus, LoadOptions, ModuleLifecycle, get_engine, get_lifecycle, get_state
from .foundation import ErrorCode, EsbuildError, ToolResponse, get_settings, to_error_response
from .options import normalize
from .server import MCPServer, ToolServer
from .tools import ToolRegistry, default_registry

__all__ = [
    "__version__",
    # Engine
    "ModuleLifecycle", "get_lifecycle", "get_engine", "get_state",
    "EngineState", "EngineStatus", "LoadOptions",
    # Tools and server
    "ToolRegistry", "default_registry", "ToolServer", "MCPServer",
    # Foundation
    "ErrorCode", "EsbuildError", "ToolResponse", "to_error_response", "get_settings", "normalize",
]
