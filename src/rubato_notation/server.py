#!/usr/bin/env python3
"""
Entry point for the Rubato Notation MCP Server.

This module provides the main entry point for the MCP server,
supporting multiple transport modes (stdio, http).
"""

import argparse
import asyncio
import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point with transport detection."""
    parser = argparse.ArgumentParser(description="Rubato Notation MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport mode (default: stdio)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="HTTP port (only for http transport)",
    )
    parser.add_argument(
        "--data-dir",
        help="Directory for stored exercises, scores and MIDI output (default: ./data)",
    )
    parser.add_argument(
        "--config",
        help="YAML configuration file (default: <data dir>/config.yaml)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    if args.data_dir:
        os.environ["RUBATO_DATA_DIR"] = args.data_dir
    if args.config:
        os.environ["RUBATO_CONFIG"] = args.config

    # The server module reads its paths on import
    from rubato_notation.async_server import library, mcp

    asyncio.run(library.initialize())

    if args.transport == "stdio":
        logger.info("Starting Rubato Notation MCP Server (stdio)")
        asyncio.run(mcp.run_stdio())
    else:
        logger.info(f"Starting Rubato Notation MCP Server (http:{args.port})")
        asyncio.run(mcp.run_http(port=args.port))


if __name__ == "__main__":
    main()
