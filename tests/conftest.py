from typing import Callable, Dict, List, Union

import httpx
import pytest

from monorail_api import MonorailDataAPI, MonorailQuoteAPI

DATA_URL = "https://data.monorail.test"
QUOTE_URL = "https://quote.monorail.test"

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeMonorail:
    """MockTransport handler that serves canned responses by path and records requests."""

    def __init__(self, routes: Dict[str, Route]) -> None:
        self.routes = routes
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": f"no route for {request.url.path}"})
        if callable(route):
            return route(request)
        return route

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]

    def last(self, path: str) -> httpx.Request:
        matching = [request for request in self.requests if request.url.path == path]
        assert matching, f"no request to {path}"
        return matching[-1]


@pytest.fixture
def monorail():
    """Build API clients wired to a FakeMonorail serving ``routes``."""

    def factory(routes: Dict[str, Route] | None = None):
        fake = FakeMonorail(routes or {})
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
        data_api = MonorailDataAPI(DATA_URL, http_client)
        quote_api = MonorailQuoteAPI(QUOTE_URL, http_client, data_api)
        return fake, data_api, quote_api

    return factory


_USDC = {
    "address": "0xf817257fed379853cDe0fa4F97AB987181B1E5Ea",
    "balance": "0",
    "categories": ["verified", "stable"],
    "decimals": "6",
    "id": "usdc",
    "name": "USD Coin",
    "symbol": "USDC",
}

_WMON = {
    "address": "0x760AfE86e5de5fa0Ee542fc7B7B713e1c5425701",
    "balance": "0",
    "categories": ["verified"],
    "decimals": "18",
    "id": "wmon",
    "name": "Wrapped Monad",
    "symbol": "WMON",
}


@pytest.fixture
def usdc():
    return dict(_USDC)


@pytest.fixture
def wmon():
    return dict(_WMON)
