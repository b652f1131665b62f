#!/usr/bin/env python3
"""
Monorail MCP Server
Provides AI agents with tools to look up tokens and get swap quotes on Monad.
"""

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

import httpx
import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from monorail_api import ApiConfig, MonorailDataAPI, MonorailQuoteAPI, load_api_config
from monorail_tools import MonorailToolDispatcher

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

SERVER_NAME = "monorail-api-server"
SERVER_VERSION = "0.1.0"


class MonorailServer:
    def __init__(self, config: Optional[ApiConfig] = None, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config or load_api_config()
        self.server = Server(SERVER_NAME)

        # HTTP client shared by both APIs
        self.http_client = http_client or httpx.AsyncClient(timeout=self.config.timeout)

        self.data_api = MonorailDataAPI(self.config.data_api_url, self.http_client)
        self.quote_api = MonorailQuoteAPI(self.config.quote_api_url, self.http_client, self.data_api)
        self.dispatcher = MonorailToolDispatcher(self.data_api, self.quote_api)

        logger.info(f"Data API: {self.config.data_api_url}")
        logger.info(f"Quote API: {self.config.quote_api_url}")

        self._setup_handlers()

    def _setup_handlers(self):
        """Setup MCP server handlers"""

        @self.server.list_tools()
        async def handle_list_tools() -> List[types.Tool]:
            """List available tools"""
            return self.dispatcher.list_tools()

        # Arguments are validated by the dispatcher so errors name the tool
        @self.server.call_tool(validate_input=False)
        async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
            """Handle tool calls"""
            return await self.dispatcher.call_tool(name, arguments)

        self.handle_list_tools = handle_list_tools
        self.handle_call_tool = handle_call_tool

    def initialization_options(self) -> InitializationOptions:
        return InitializationOptions(
            server_name=SERVER_NAME,
            server_version=SERVER_VERSION,
            capabilities=self.server.get_capabilities(
                notification_options=NotificationOptions(),
                experimental_capabilities={},
            ),
        )

    async def run(self):
        """Serve MCP requests over stdio until the client disconnects."""
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await self.server.run(read_stream, write_stream, self.initialization_options())

    async def aclose(self):
        await self.http_client.aclose()
        logger.info("Monorail server shutdown complete")


async def main():
    """Main entry point"""
    server = MonorailServer()
    try:
        await server.run()
    finally:
        await server.aclose()


if __name__ == "__main__":
    asyncio.run(main())
