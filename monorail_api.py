"""
Monorail API clients
Thin async wrappers over the Monorail Data API and the Pathfinder quote API.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, TypedDict, Union

import httpx
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATA_API = "https://testnet-api.monorail.xyz"
DEFAULT_QUOTE_API = "https://testnet-pathfinder-v2.monorail.xyz"
DEFAULT_TIMEOUT = 30.0

# Native MON is quoted against the zero address
NATIVE_TOKEN_SYMBOL = "mon"
NATIVE_TOKEN_ADDRESS = "0x0000000000000000000000000000000000000000"

# Provenance tag attached to every quote request
QUOTE_SOURCE = "monorail-mcp"

TokenCategory = Literal["wallet", "verified", "stable", "lst", "bridged", "meme"]


class TokenDetails(TypedDict):
    address: str
    categories: List[str]
    decimals: int
    name: str
    symbol: str


class TokenBalance(TypedDict):
    address: str
    balance: str
    categories: List[str]
    decimals: int
    id: str
    name: str
    symbol: str


class TokenResult(TypedDict):
    address: str
    balance: str
    categories: List[str]
    decimals: str  # the API returns this as a string
    id: str
    name: str
    symbol: str


@dataclass
class ApiConfig:
    """Endpoints and HTTP settings for the Monorail APIs"""
    data_api_url: str
    quote_api_url: str
    timeout: float = DEFAULT_TIMEOUT


def load_api_config() -> ApiConfig:
    """Read API configuration from the environment."""
    return ApiConfig(
        data_api_url=os.getenv("MONORAIL_DATA_API", DEFAULT_DATA_API).rstrip("/"),
        quote_api_url=os.getenv("MONORAIL_QUOTE_API", DEFAULT_QUOTE_API).rstrip("/"),
        timeout=float(os.getenv("MONORAIL_HTTP_TIMEOUT", DEFAULT_TIMEOUT)),
    )


class MonorailError(Exception):
    """Base class for errors raised while serving a tool call."""


class UpstreamError(MonorailError):
    """The Data API answered with a failure status or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportFailure(MonorailError):
    """The request never got a response (connection error, timeout, ...)."""


class TokenNotFoundError(MonorailError):
    """No token matched a symbol during address resolution."""

    def __init__(self, identifier: str):
        super().__init__(f"Token not found: {identifier}")
        self.identifier = identifier


class QuoteApiError(MonorailError):
    """The quote API rejected the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    """Pick the upstream `message` field if the error body has one."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"{response.status_code} {response.reason_phrase}"


def _drop_none(params: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}


class MonorailDataAPI:
    """Monorail Data API client"""

    def __init__(self, base_url: str, http_client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self.http_client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Error: {e}")
            raise TransportFailure(f"Request to {url} failed: {e}") from e

        if not response.is_success:
            message = _error_message(response)
            logger.error(f"API Error: {message}")
            raise UpstreamError(f"API Error: {message}", status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"API Error: invalid JSON from {url}")
            raise UpstreamError(
                f"API Error: invalid JSON from {path}", status_code=response.status_code
            ) from e

    @staticmethod
    def _expect(data: Any, kind: type, path: str) -> Any:
        # bool is an int subclass but never a valid count
        if not isinstance(data, kind) or isinstance(data, bool):
            raise UpstreamError(
                f"API Error: unexpected response from {path}: expected "
                f"{kind.__name__}, got {type(data).__name__}"
            )
        return data

    async def get_token(self, contract_address: str) -> TokenDetails:
        """Get a token by contract address."""
        path = f"/v1/token/{contract_address}"
        return self._expect(await self._get(path), dict, path)

    async def get_tokens(
        self,
        find: Optional[str] = None,
        offset: Optional[Union[str, int]] = None,
        limit: Optional[Union[str, int]] = None,
    ) -> List[TokenResult]:
        """Get a list of all available tokens.

        Args:
            find: Partial name or ticker to search for
            offset: Offset to start the list from
            limit: Maximum amount of tokens to return
        """
        path = "/v1/tokens"
        params = _drop_none({"find": find, "offset": offset, "limit": limit})
        return self._expect(await self._get(path, params), list, path)

    async def get_tokens_by_category(
        self,
        category: TokenCategory,
        address: Optional[str] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[TokenResult]:
        """Get tokens in a category.

        The `wallet` category only returns something useful when an
        address is given; that is left to the caller.
        """
        path = f"/v1/tokens/category/{category}"
        params = _drop_none({"address": address, "offset": offset, "limit": limit})
        return self._expect(await self._get(path, params), list, path)

    async def get_token_count(self) -> int:
        """Get a count of all available tokens."""
        path = "/v1/tokens/count"
        return self._expect(await self._get(path), int, path)

    async def get_wallet_balances(self, address: str) -> List[TokenBalance]:
        """Get wallet balances for an address."""
        path = f"/v1/wallet/{address}/balances"
        return self._expect(await self._get(path), list, path)


class MonorailQuoteAPI:
    """Monorail Pathfinder quote API client"""

    def __init__(self, base_url: str, http_client: httpx.AsyncClient, data_api: MonorailDataAPI):
        self.base_url = base_url.rstrip("/") + "/v1/quote"
        self.http_client = http_client
        self.data_api = data_api

    async def resolve_token_address(self, identifier: str) -> str:
        """Resolve a token symbol (or address) to an address.

        Addresses are returned as given and `mon` maps to the zero address.
        Anything else is looked up among verified tokens first, then through
        a free-text search where an exact symbol match beats the first hit.
        """
        if identifier.startswith("0x") and len(identifier) >= 40:
            return identifier

        if identifier.lower() == NATIVE_TOKEN_SYMBOL:
            return NATIVE_TOKEN_ADDRESS

        wanted = identifier.lower()
        try:
            verified = await self.data_api.get_tokens_by_category("verified")
            verified = [token for token in verified if token.get("address")]
            for token in verified:
                if str(token.get("symbol", "")).lower() == wanted:
                    return token["address"]

            # entries without an address can never be a match
            results = await self.data_api.get_tokens(find=identifier)
            results = [token for token in results if token.get("address")]
            if results:
                for token in results:
                    if str(token.get("symbol", "")).lower() == wanted:
                        return token["address"]
                return results[0]["address"]
        except MonorailError as e:
            logger.error(f"Error resolving token: {e}")
            raise TokenNotFoundError(identifier) from e

        raise TokenNotFoundError(identifier)

    async def get_quote(
        self,
        amount: Union[str, int, float],
        from_token: str,
        to_token: str,
        sender: Optional[str] = None,
        slippage: Optional[int] = None,
        deadline: Optional[int] = None,
        max_hops: Optional[int] = None,
        excluded: Optional[str] = None,
        source: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Get a quote for a token swap.

        Args:
            amount: Human readable amount of `from_token` to swap
            from_token: Address or symbol of the token to sell
            to_token: Address or symbol of the token to buy
            sender: Wallet that will execute the transaction
            slippage: Slippage tolerance in basis points
            deadline: Deadline in seconds
            max_hops: Maximum number of hops (1-5)
            excluded: Comma separated list of protocols to exclude
            source: Ignored, requests are always tagged with QUOTE_SOURCE

        Returns:
            The quote exactly as returned by the API.
        """
        from_address = await self.resolve_token_address(from_token)
        to_address = await self.resolve_token_address(to_token)

        params: Dict[str, str] = {
            "amount": str(amount),
            "from": from_address,
            "to": to_address,
        }
        if sender:
            params["sender"] = sender
        if slippage is not None:
            params["slippage"] = str(slippage)
        if deadline is not None:
            params["deadline"] = str(deadline)
        if max_hops is not None:
            params["max_hops"] = str(max_hops)
        if excluded:
            params["excluded"] = excluded
        if source and source != QUOTE_SOURCE:
            logger.debug(f"Overriding quote source {source!r} with {QUOTE_SOURCE!r}")
        params["source"] = QUOTE_SOURCE

        try:
            response = await self.http_client.get(self.base_url, params=params)
        except httpx.HTTPError as e:
            raise TransportFailure(f"Failed to get quote: {e}") from e

        if response.status_code != 200:
            raise QuoteApiError(
                f"Quote API Error: {_error_message(response)}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise QuoteApiError("Quote API Error: invalid JSON in quote response") from e
