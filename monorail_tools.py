"""
Monorail MCP tools
Declares the tools exposed to agents and dispatches calls to the API clients.
"""

import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Type, Union

import mcp.types as types
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from monorail_api import (
    MonorailDataAPI,
    MonorailError,
    MonorailQuoteAPI,
    TokenCategory,
)

logger = logging.getLogger(__name__)


class InvalidArguments(MonorailError):
    """Tool arguments did not match the tool's input schema."""

    def __init__(self, tool_name: str, error: ValidationError):
        super().__init__(f"Invalid arguments for {tool_name}: {error}")
        self.tool_name = tool_name
        self.errors = error.errors()


class UnknownTool(MonorailError):
    """No tool is registered under the requested name."""

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


# Tool argument models

class ToolArgs(BaseModel):
    # no coercion, arguments must match the published schema exactly
    model_config = ConfigDict(strict=True)


class GetTokenArgs(ToolArgs):
    contractAddress: str = Field(description="Token contract address")


class GetTokensArgs(ToolArgs):
    find: Optional[str] = Field(None, description="The partial name or ticker of the token to find")
    offset: Optional[Union[str, int]] = Field(None, description="The offset to start the list from")
    limit: Optional[Union[str, int]] = Field(None, description="The maximum amount of tokens to return")


class GetTokensByCategoryArgs(ToolArgs):
    category: TokenCategory = Field(
        description=(
            "Category of tokens to fetch, verified and wallet must be preferred, "
            "ask for confirmation when using any other"
        )
    )
    address: Optional[str] = Field(
        None, description="Monad address to include token balances for (required for wallet category)"
    )
    offset: int = Field(0, description="Pagination offset")
    limit: int = Field(500, description="Maximum number of results to return")


class GetTokenCountArgs(ToolArgs):
    pass


class GetWalletBalancesArgs(ToolArgs):
    address: str = Field(description="The address to fetch balances for")


class GetQuoteArgs(ToolArgs):
    amount: Union[str, int, float] = Field(description="Human readable amount to swap")
    from_token: str = Field(
        alias="from",
        description=(
            "Token address to swap from, use the data API verified category "
            "to get the address from the name or symbol"
        ),
    )
    to_token: str = Field(
        alias="to",
        description=(
            "Token address to swap to, use the data API verified category "
            "to get the address from the name or symbol"
        ),
    )
    sender: Optional[str] = Field(None, description="Address of the wallet that will execute the transaction")
    slippage: Optional[int] = Field(None, description="Slippage tolerance in basis points (default: 50)")
    deadline: Optional[int] = Field(None, description="Deadline in seconds (default: 60)")
    max_hops: Optional[int] = Field(None, ge=1, le=5, description="Maximum number of hops (1-5, default: 3)")
    excluded: Optional[str] = Field(None, description="Comma separated list of protocols to exclude")
    source: Optional[str] = Field(None, description="Source of the request (for fee sharing)")


@dataclass(frozen=True)
class ToolDefinition:
    """A tool as advertised to the agent"""
    name: str
    description: str
    args_model: Type[BaseModel]
    handler: str  # dispatcher method serving this tool

    def input_schema(self) -> Dict[str, Any]:
        return self.args_model.model_json_schema(by_alias=True)

    def to_tool(self) -> types.Tool:
        return types.Tool(name=self.name, description=self.description, inputSchema=self.input_schema())


TOOL_DEFINITIONS = (
    ToolDefinition(
        name="get_token",
        description=(
            "Get a token based on the contract address, you must provide a contract address for a token. "
            "The contract address must be on Monad and come from this API"
        ),
        args_model=GetTokenArgs,
        handler="_get_token",
    ),
    ToolDefinition(
        name="get_tokens",
        description=(
            "Get a list of all available tokens with optional filtering and pagination. "
            "Use this to find tokens by name or ticker."
        ),
        args_model=GetTokensArgs,
        handler="_get_tokens",
    ),
    ToolDefinition(
        name="get_tokens_by_category",
        description=(
            "Get a list of tokens in a specific category. "
            "Categories include wallet, verified, stable, lst, bridged, and meme. "
            "When using the 'wallet' category, an address parameter is required. "
            "Verified and wallet must be preferred, ask for confirmation when using any other"
        ),
        args_model=GetTokensByCategoryArgs,
        handler="_get_tokens_by_category",
    ),
    ToolDefinition(
        name="get_token_count",
        description="Get the total count of available tokens",
        args_model=GetTokenCountArgs,
        handler="_get_token_count",
    ),
    ToolDefinition(
        name="get_wallet_balances",
        description="Get the balances of all tokens for an address",
        args_model=GetWalletBalancesArgs,
        handler="_get_wallet_balances",
    ),
    ToolDefinition(
        name="get_quote",
        description=(
            "Get a quote for a token swap from the Monorail API. "
            "Retrieve the best available price and transaction details for swapping one token to another. "
            "You must provide an address to get transaction information. "
            "You should resolve the token name or symbol to address using the data API, "
            "Verified and wallet must be preferred, ask for confirmation when using any other. "
            "Once resolved, use the information to get a quote using this quote call. "
            "You must alert the user if the price impact is higher than 20%. "
            "It is advised to check the user wallet balance for the input token and alert them "
            "if the balance is too low to complete the swap"
        ),
        args_model=GetQuoteArgs,
        handler="_get_quote",
    ),
)

TOOLS_BY_NAME: Mapping[str, ToolDefinition] = MappingProxyType(
    {definition.name: definition for definition in TOOL_DEFINITIONS}
)


def _text_result(text: str, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=is_error,
    )


class MonorailToolDispatcher:
    """Validates tool calls and routes them to the Monorail API clients."""

    def __init__(self, data_api: MonorailDataAPI, quote_api: MonorailQuoteAPI):
        self.data_api = data_api
        self.quote_api = quote_api

    def list_tools(self) -> List[types.Tool]:
        """List available tools"""
        return [definition.to_tool() for definition in TOOL_DEFINITIONS]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        """Handle a tool call.

        Failures never escape: they come back as an error result so the
        agent sees them as ordinary tool output.
        """
        try:
            result = await self._dispatch(name, arguments or {})
            logger.debug(f"Tool {name} succeeded")
            return _text_result(json.dumps(result, indent=2))
        except Exception as e:
            logger.error(f"Error calling tool {name}: {e}")
            return _text_result(f"Error: {e}", is_error=True)

    async def _dispatch(self, name: str, arguments: Dict[str, Any]) -> Any:
        definition = TOOLS_BY_NAME.get(name)
        if definition is None:
            raise UnknownTool(name)
        handler = getattr(self, definition.handler)

        try:
            args = definition.args_model.model_validate(arguments)
        except ValidationError as e:
            raise InvalidArguments(name, e) from e

        return await handler(args)

    async def _get_token(self, args: GetTokenArgs) -> Any:
        return await self.data_api.get_token(args.contractAddress)

    async def _get_tokens(self, args: GetTokensArgs) -> Any:
        return await self.data_api.get_tokens(find=args.find, offset=args.offset, limit=args.limit)

    async def _get_tokens_by_category(self, args: GetTokensByCategoryArgs) -> Any:
        return await self.data_api.get_tokens_by_category(
            args.category,
            address=args.address,
            offset=args.offset,
            limit=args.limit,
        )

    async def _get_token_count(self, args: GetTokenCountArgs) -> Any:
        return await self.data_api.get_token_count()

    async def _get_wallet_balances(self, args: GetWalletBalancesArgs) -> Any:
        return await self.data_api.get_wallet_balances(args.address)

    async def _get_quote(self, args: GetQuoteArgs) -> Any:
        return await self.quote_api.get_quote(
            amount=args.amount,
            from_token=args.from_token,
            to_token=args.to_token,
            sender=args.sender,
            slippage=args.slippage,
            deadline=args.deadline,
            max_hops=args.max_hops,
            excluded=args.excluded,
            source=args.source,
        )
