"""``httpx.MockTransport`` helpers for source and monitor tests."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Union

import httpx

TELEMETRY_URL = "https://feeds.example.test/channels/1/feeds.json"
PREDICTION_URL = "https://predict.example.test/api/predict"

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response], Exception]


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


def _fresh(response: httpx.Response) -> httpx.Response:
    # Responses are single-use once a client has consumed them.
    return httpx.Response(
        response.status_code, headers=response.headers, content=response.content
    )


class RecordingHandler:
    """Dispatch requests by URL path and remember what was asked for.

    Each route may be a response, a callable returning one, an exception to
    raise, or a list consumed one entry per request (the last entry repeats).
    """

    def __init__(self, routes: Dict[str, Any]) -> None:
        self.routes = dict(routes)
        self.requests: List[httpx.Request] = []

    def count(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path == path)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        return _fresh(route)


class SlowHandler:
    """Async handler that blocks until ``release`` is set."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.release = asyncio.Event()
        self.calls = 0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        await self.release.wait()
        return _fresh(self.response)


def make_client(handler: Callable[..., Any]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
