"""OpenAI Assistants (v2) provider: threads, messages and runs."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..config import Settings
from ..errors import ConfigurationError, UpstreamError
from ..schemas import PollResult, RunHandle

logger = logging.getLogger(__name__)


def _get_headers(settings: Settings) -> dict[str, str]:
    """Get headers for OpenAI Assistants API requests."""
    if not settings.openai_api_key:
        raise ConfigurationError("Missing OpenAI API key")
    return {
        "Authorization": f"Bearer {settings.openai_api_key}",
        "Content-Type": "application/json",
        "OpenAI-Beta": "assistants=v2",
    }


def _require_assistant_id(settings: Settings) -> str:
    if not settings.assistant_id:
        raise ConfigurationError("Missing OpenAI API key or Assistant ID")
    return settings.assistant_id


def _thread_path(thread_id: str, resource: str) -> str:
    # One encoded segment: "/", "?" and ".." in an id cannot reach another endpoint
    return f"/threads/{quote(thread_id, safe='')}/{resource}"


async def _request(
    client: httpx.AsyncClient,
    settings: Settings,
    method: str,
    path: str,
    payload: dict[str, Any] | None = None,
) -> dict[str, Any]:
    try:
        response = await client.request(
            method,
            f"{settings.openai_api_base_url}{path}",
            headers=_get_headers(settings),
            json=payload,
        )
    except httpx.HTTPError as e:
        raise UpstreamError(f"{method} {path} failed: {e}", cause=e) from e

    if not response.is_success:
        raise UpstreamError(
            f"{method} {path} failed ({response.status_code}): {response.text}",
            upstream_status=response.status_code,
        )

    try:
        body = response.json()
    except ValueError as e:
        raise UpstreamError(f"{method} {path} returned invalid JSON", cause=e) from e

    if not isinstance(body, dict):
        raise UpstreamError(f"{method} {path} returned an unexpected {type(body).__name__}")
    return body


async def create_thread(client: httpx.AsyncClient, settings: Settings) -> dict[str, Any]:
    return await _request(client, settings, "POST", "/threads")


async def add_user_message(
    client: httpx.AsyncClient, settings: Settings, thread_id: str, text: str
) -> dict[str, Any]:
    return await _request(
        client, settings, "POST", _thread_path(thread_id, "messages"),
        {"role": "user", "content": text},
    )


async def create_run(client: httpx.AsyncClient, settings: Settings, thread_id: str) -> dict[str, Any]:
    return await _request(
        client, settings, "POST", _thread_path(thread_id, "runs"),
        {"assistant_id": _require_assistant_id(settings)},
    )


async def list_messages(client: httpx.AsyncClient, settings: Settings, thread_id: str) -> list[dict[str, Any]]:
    """List a thread's messages, newest first (the upstream default order)."""
    body = await _request(client, settings, "GET", _thread_path(thread_id, "messages"))
    data = body.get("data")
    if not isinstance(data, list):
        return []
    return [message for message in data if isinstance(message, dict)]


async def start_assistant_run(client: httpx.AsyncClient, settings: Settings, text: str) -> RunHandle:
    """
    Create a thread, post the user's message into it and start a run.

    The three calls are issued strictly in order, each awaited before the
    next one starts.

    Raises:
        ConfigurationError: API key or assistant id missing
        UpstreamError: any call failed, or no thread id came back
    """
    # Fail before the first call rather than half-way through
    _get_headers(settings)
    _require_assistant_id(settings)

    thread = await create_thread(client, settings)
    thread_id = thread.get("id")
    if not thread_id or not isinstance(thread_id, str):
        logger.error("Thread creation returned no id")
        raise UpstreamError("Assistant failed to start")

    message = await add_user_message(client, settings, thread_id, text)
    run = await create_run(client, settings, thread_id)

    run_id = run.get("id")
    if not run_id:
        logger.warning(f"Run creation for thread {thread_id} returned no id")

    logger.info(f"Started assistant run {run_id} on thread {thread_id}")
    return RunHandle(
        thread_id=thread_id,
        run_id=run_id,
        debug={"thread": thread, "message": message, "run": run},
    )


def extract_answer(messages: list[dict[str, Any]]) -> str | None:
    """Return the text of the first assistant-authored message, if any."""
    message = next((m for m in messages if m.get("role") == "assistant"), None)
    if message is None:
        return None

    content = message.get("content")
    if not isinstance(content, list) or not content or not isinstance(content[0], dict):
        return None
    text = content[0].get("text")
    value = text.get("value") if isinstance(text, dict) else None
    return value if isinstance(value, str) and value else None


async def poll_assistant_run(client: httpx.AsyncClient, settings: Settings, thread_id: str) -> PollResult:
    """
    Check a thread for an assistant answer.

    Polling only reads the thread, so repeated polls of a completed thread
    return the same answer.
    """
    messages = await list_messages(client, settings, thread_id)
    answer = extract_answer(messages)
    if answer is None:
        return PollResult(status="pending")
    return PollResult(status="completed", answer=answer)
