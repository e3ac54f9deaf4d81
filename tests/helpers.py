"""Shared test helpers (allowed origin and a recording upstream stub)."""

from __future__ import annotations

import httpx

ALLOWED_ORIGIN = "https://niura-adhd.vercel.app"


class FakeUpstream:
    """Routes upstream requests to canned responses and records every call."""

    def __init__(self):
        self.routes: dict[tuple[str, str], list] = {}
        self.calls: list[httpx.Request] = []

    def add(self, method: str, url: str, *responses) -> None:
        self.routes.setdefault((method, url), []).extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        key = (request.method, str(request.url).split("?")[0])
        queue = self.routes.get(key)
        if not queue:
            return httpx.Response(404, json={"error": f"no route for {key}"})
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        # Fresh copy so a repeated route never hands out a consumed response
        return httpx.Response(response.status_code, content=response.content, headers=response.headers)
