"""CLI entry point for opsdash-server.

This module provides the command-line interface for starting the opsdash-server.
It can be invoked as `opsdash-server` (via the script entry point) or
`python -m opsdash_server`.
"""

import argparse
import logging
import sys

import uvicorn

from opsdash_server import __version__, create_app
from opsdash_server.config import OpsDashSettings


def main() -> None:
    """Main entry point for the opsdash-server CLI.

    Parses command-line arguments and starts the uvicorn server with the
    FastAPI application.
    """
    parser = argparse.ArgumentParser(
        prog="opsdash-server",
        description="Operations dashboard API with a tool-calling assistant",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"opsdash-server {__version__}",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the server to (default: 127.0.0.1, can be set via OPSDASH_HOST)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server to (default: 8000, can be set via OPSDASH_PORT)",
    )

    parser.add_argument(
        "--ai-provider",
        type=str,
        default=None,
        choices=["ollama", "openai"],
        help="Default AI provider (default: ollama, can be set via OPSDASH_AI_PROVIDER)",
    )

    parser.add_argument(
        "--ollama-host",
        type=str,
        default=None,
        help="Ollama server URL (default: http://localhost:11434, can be set via OPSDASH_OLLAMA_HOST)",
    )

    parser.add_argument(
        "--max-tool-rounds",
        type=int,
        default=None,
        help="Rounds in which the model may call tools (default: 1, can be set via OPSDASH_MAX_TOOL_ROUNDS)",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Base directory for the token file (default: ., can be set via OPSDASH_DATA_DIR)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO, can be set via OPSDASH_LOG_LEVEL)",
    )

    args = parser.parse_args()

    # Build settings, CLI args override environment variables
    settings_kwargs = {}
    if args.host is not None:
        settings_kwargs["host"] = args.host
    if args.port is not None:
        settings_kwargs["port"] = args.port
    if args.ai_provider is not None:
        settings_kwargs["ai_provider"] = args.ai_provider
    if args.ollama_host is not None:
        settings_kwargs["ollama_host"] = args.ollama_host
    if args.max_tool_rounds is not None:
        settings_kwargs["max_tool_rounds"] = args.max_tool_rounds
    if args.data_dir is not None:
        settings_kwargs["data_dir"] = args.data_dir
    if args.log_level is not None:
        settings_kwargs["log_level"] = args.log_level

    settings = OpsDashSettings(**settings_kwargs)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Create the FastAPI app
    app = create_app(settings=settings)

    # Start uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    sys.exit(main())
