"""Request dependencies resolved from the application state."""

from __future__ import annotations

import httpx
from fastapi import Request

from ..config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared upstream client opened by the application lifespan."""
    return request.app.state.http_client
