"""In-memory Chef server used as an `httpx.MockTransport` handler."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

import httpx

Reply = httpx.Response | Callable[[httpx.Request], httpx.Response]


class StubChefServer:
    """Answer requests from a route table keyed by ``(method, path)``.

    Every request is recorded in ``calls`` so tests can count round trips.
    Unknown routes answer 404.
    """

    def __init__(self, *, delay: float = 0.0) -> None:
        self.routes: dict[tuple[str, str], Reply] = {}
        self.calls: list[httpx.Request] = []
        self.delay = delay

    def add(self, method: str, path: str, reply: Reply | Any, status: int = 200) -> None:
        if isinstance(reply, httpx.Response) or callable(reply):
            self.routes[(method, path)] = reply
        else:
            self.routes[(method, path)] = httpx.Response(status, text=json.dumps(reply))

    def get(self, path: str, reply: Reply | Any, status: int = 200) -> None:
        self.add("GET", path, reply, status)

    def count(self, method: str | None = None, path: str | None = None) -> int:
        return sum(
            1
            for request in self.calls
            if (method is None or request.method == method) and (path is None or request.url.path == path)
        )

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, text=json.dumps({"error": ["not found"]}))
        if isinstance(reply, httpx.Response):
            return httpx.Response(reply.status_code, content=reply.content, headers=reply.headers)
        return reply(request)
