"""``esbuild-wasm-mcp`` entry point."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from .foundation.config import get_settings
from .foundation.logging import configure_from_settings, configure_logging
from .server import MCPServer


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="esbuild-wasm-mcp", description="MCP server for esbuild-wasm")
    parser.add_argument("--transport", choices=("stdio", "sse", "streamable-http"), help="override the configured transport")
    parser.add_argument("--host", help="bind address for HTTP transports")
    parser.add_argument("--port", type=int, help="port for HTTP transports")
    parser.add_argument("--log-level", help="override the configured log level")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = _parser().parse_args(argv)
    settings = get_settings()

    if args.log_level:
        configure_logging(settings.logging.format, args.log_level)
    else:
        configure_from_settings(settings.logging)

    server = MCPServer(settings.server.name)
    server.run(
        args.transport or settings.server.transport,
        host=args.host or settings.server.host,
        port=args.port or settings.server.port,
    )


if __name__ == "__main__":
    main()
