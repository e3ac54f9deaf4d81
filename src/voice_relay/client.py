"""Client for the voice relay: assistant run/poll driver plus voice calls."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

import httpx

from .errors import (
    AssistantCancelledError,
    AssistantPollError,
    AssistantStartError,
    AssistantTimeoutError,
    RelayClientError,
)
from .schemas import AssistantReply, PollResult, Voice

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.5
DEFAULT_MAX_ATTEMPTS = 40
NO_RESPONSE_ANSWER = "[No response]"


class VoiceRelayClient:
    """Talks to one relay host.

    Construct one per host and pass it to whatever needs it. Polling for a
    thread is strictly sequential: each poll completes before the next is
    scheduled.

    Args:
        host: Base URL of the relay, e.g. ``https://relay.example.com/api``
        poll_interval: Seconds to wait after a pending poll
        max_attempts: Polls allowed per message before giving up
        deadline: Optional wall-clock budget in seconds per message
        http_client: Client to use; created (and closed) here if omitted
        sleep: Awaitable sleep, replaceable in tests
    """

    def __init__(
        self,
        host: str,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int | None = DEFAULT_MAX_ATTEMPTS,
        deadline: float | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.host = host.rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.deadline = deadline
        self._sleep = sleep
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "VoiceRelayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def start_run(self, text: str) -> str:
        """Create an assistant run and return its thread id."""
        try:
            response = await self._client.post(f"{self.host}/chatgpt/messages", json={"text": text})
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise AssistantStartError("Assistant failed to start", cause=e) from e

        thread_id = data.get("thread_id") if isinstance(data, dict) else None
        if not thread_id or not isinstance(thread_id, str):
            error = data.get("error") if isinstance(data, dict) else None
            logger.warning(f"Assistant failed to start ({response.status_code}): {error}")
            raise AssistantStartError("Assistant failed to start")
        return thread_id

    async def poll(self, thread_id: str) -> PollResult:
        """Ask the relay once whether the thread has an answer."""
        try:
            response = await self._client.get(
                f"{self.host}/chatgpt/response", params={"thread_id": thread_id}
            )
        except httpx.HTTPError as e:
            raise AssistantPollError(f"Polling failed: {e}", thread_id=thread_id, cause=e) from e

        try:
            data = response.json()
        except ValueError as e:
            raise AssistantPollError(
                f"Polling returned invalid JSON ({response.status_code})", thread_id=thread_id, cause=e
            ) from e

        status = data.get("status") if isinstance(data, dict) else None
        if status == "pending":
            return PollResult(status="pending")
        if response.is_success and status == "completed":
            answer = data.get("answer")
            return PollResult(status="completed", answer=answer if isinstance(answer, str) else None)

        error = data.get("error") if isinstance(data, dict) else None
        raise AssistantPollError(
            f"Polling failed ({response.status_code}): {error or data}", thread_id=thread_id
        )

    async def wait_for_answer(
        self,
        thread_id: str,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """
        Poll until the assistant answers.

        Raises:
            AssistantTimeoutError: ``max_attempts`` or ``deadline`` exceeded
            AssistantPollError: a poll failed
            AssistantCancelledError: ``cancel_event`` was set before the next poll
        """
        started = time.monotonic()
        attempts = 0

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise AssistantCancelledError(f"Polling cancelled for thread {thread_id}", thread_id=thread_id)

            attempts += 1
            result = await self.poll(thread_id)
            if not result.is_pending:
                return result.answer or NO_RESPONSE_ANSWER

            if self.max_attempts is not None and attempts >= self.max_attempts:
                raise AssistantTimeoutError(
                    f"No answer after {attempts} polls", thread_id=thread_id
                )
            if self.deadline is not None and time.monotonic() - started + self.poll_interval > self.deadline:
                raise AssistantTimeoutError(
                    f"No answer within {self.deadline:g}s", thread_id=thread_id
                )

            logger.debug(f"Thread {thread_id} pending after {attempts} polls")
            await self._sleep(self.poll_interval)

    async def send_message(
        self,
        text: str,
        cancel_event: asyncio.Event | None = None,
    ) -> AssistantReply:
        """Send an utterance to the assistant and wait for its answer."""
        thread_id = await self.start_run(text)
        answer = await self.wait_for_answer(thread_id, cancel_event=cancel_event)
        return AssistantReply(answer=answer, thread_id=thread_id)

    async def list_voices(self) -> list[Voice]:
        """Fetch the voice catalog as ``voice_id``/``name`` pairs."""
        try:
            response = await self._client.get(f"{self.host}/voices")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RelayClientError(f"Failed to fetch voices: {e}", cause=e) from e

        voices = data.get("voices", []) if isinstance(data, dict) else None
        if not isinstance(voices, list):
            raise RelayClientError(f"Unexpected voice catalog: {type(data).__name__}")
        return [
            Voice(voice_id=v["voice_id"], name=v["name"] if isinstance(v.get("name"), str) and v["name"] else v["voice_id"])
            for v in voices
            if isinstance(v, dict) and isinstance(v.get("voice_id"), str) and v["voice_id"]
        ]

    async def synthesize(self, text: str, voice_id: str, model_id: str | None = None) -> bytes:
        """Synthesize ``text`` and return the MP3 bytes."""
        payload: dict[str, Any] = {"text": text, "voiceId": voice_id}
        if model_id:
            payload["modelId"] = model_id

        try:
            response = await self._client.post(f"{self.host}/tts", json=payload)
        except httpx.HTTPError as e:
            raise RelayClientError(f"Speech synthesis failed: {e}", cause=e) from e

        if not response.is_success:
            raise RelayClientError(f"Speech synthesis failed ({response.status_code}): {response.text}")
        return response.content
