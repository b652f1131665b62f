import asyncio
import logging
import sys

from monorail import main as run_server

logger = logging.getLogger(__name__)


def main():
    """Launch the Monorail MCP Server"""
    # stdout carries the MCP stream
    print("Starting Monorail MCP Server...", file=sys.stderr)
    try:
        asyncio.run(run_server())
    except Exception as e:
        logger.error(f"Fatal error running server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
