"""Cross-origin policy applied to every relay request."""

from __future__ import annotations

import logging
from typing import Iterable

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

ALLOWED_METHODS = "GET,POST,OPTIONS"
ALLOWED_HEADERS = "Content-Type"


class CorsPolicy:
    """Decide CORS response headers for a request origin.

    Origins are matched exactly against the allow-list. ``allow_any_origin``
    answers with ``*`` and must only be used for endpoints that carry no
    cookies or credentials.
    """

    def __init__(self, allowed_origins: Iterable[str], allow_any_origin: bool = False):
        self.allowed_origins = frozenset(allowed_origins)
        self.allow_any_origin = allow_any_origin

    def headers_for(self, origin: str | None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.allow_any_origin:
            headers["Access-Control-Allow-Origin"] = "*"
        elif origin and origin in self.allowed_origins:
            headers["Access-Control-Allow-Origin"] = origin
            headers["Vary"] = "Origin"
        headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
        headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
        return headers


class CrossOriginGate(BaseHTTPMiddleware):
    """Attach CORS headers to every response and answer preflight requests.

    ``open_prefixes`` lists path prefixes served with the wildcard policy.
    """

    def __init__(self, app, policy: CorsPolicy, open_prefixes: Iterable[str] = ()):
        super().__init__(app)
        self.policy = policy
        self.open_policy = CorsPolicy(policy.allowed_origins, allow_any_origin=True)
        self.open_prefixes = tuple(open_prefixes)

    def policy_for(self, path: str) -> CorsPolicy:
        if any(path.startswith(prefix) for prefix in self.open_prefixes):
            return self.open_policy
        return self.policy

    async def dispatch(self, request: Request, call_next):
        headers = self.policy_for(request.url.path).headers_for(request.headers.get("origin"))

        # Preflight never reaches a handler
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}: {e}")
            response = JSONResponse(status_code=500, content={"error": "Internal server error"})
        for name, value in headers.items():
            response.headers[name] = value
        return response
