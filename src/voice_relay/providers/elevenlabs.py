"""ElevenLabs API provider for the voice catalog and text-to-speech."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from ..config import Settings
from ..errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


def _get_headers(settings: Settings) -> dict[str, str]:
    """Get headers for ElevenLabs API requests."""
    if not settings.elevenlabs_api_key:
        raise ConfigurationError("ELEVENLABS_API_KEY is not configured in the environment")
    return {"xi-api-key": settings.elevenlabs_api_key}


async def list_voices(client: httpx.AsyncClient, settings: Settings) -> httpx.Response:
    """
    Fetch the voice catalog.

    The upstream response is returned as-is so the caller can pass its
    status and body through unchanged.
    """
    headers = {**_get_headers(settings), "Cache-Control": "no-store"}

    try:
        return await client.get(f"{settings.elevenlabs_api_base_url}/voices", headers=headers)
    except httpx.HTTPError as e:
        logger.warning(f"Voice catalog request failed: {e}")
        raise UpstreamError(str(e) or type(e).__name__, cause=e) from e


async def open_speech_stream(
    client: httpx.AsyncClient,
    settings: Settings,
    text: str,
    voice_id: str,
    model_id: str | None = None,
) -> httpx.Response:
    """
    Start a text-to-speech request and return the streamed response.

    Args:
        client: Shared HTTP client
        settings: Runtime settings holding the API key
        text: Text to speak
        voice_id: ElevenLabs voice identifier
        model_id: Synthesis model, defaults to ``settings.default_tts_model_id``

    Returns:
        An open streaming response. The caller owns it and must ``aclose()`` it.
    """
    headers = {
        **_get_headers(settings),
        "Content-Type": "application/json",
        "Accept": "audio/mpeg",
    }
    request = client.build_request(
        "POST",
        f"{settings.elevenlabs_api_base_url}/text-to-speech/{quote(voice_id, safe='')}",
        headers=headers,
        json={"text": text, "model_id": model_id or settings.default_tts_model_id},
    )

    try:
        response = await client.send(request, stream=True)
    except httpx.HTTPError as e:
        logger.warning(f"Text-to-speech request failed for voice {voice_id}: {e}")
        raise UpstreamError(str(e) or type(e).__name__, cause=e) from e

    if not response.is_success:
        logger.warning(f"Text-to-speech upstream answered {response.status_code} for voice {voice_id}")
    return response
