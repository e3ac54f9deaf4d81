"""API routes for the voice catalog and text-to-speech."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from ...config import Settings
from ...providers.elevenlabs import list_voices, open_speech_stream
from ...schemas import SpeechRequest
from ..dependencies import get_app_settings, get_http_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/voices")
async def get_voices(
    settings: Settings = Depends(get_app_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Pass the upstream voice catalog through unchanged."""
    upstream = await list_voices(client, settings)
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type="application/json",
    )


@router.post("/tts")
async def text_to_speech(
    request: SpeechRequest,
    settings: Settings = Depends(get_app_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Stream synthesized speech back as it arrives, keeping the upstream status."""
    upstream = await open_speech_stream(
        client,
        settings,
        text=request.text,
        voice_id=request.voice_id,
        model_id=request.model_id,
    )
    return StreamingResponse(
        upstream.aiter_bytes(),
        status_code=upstream.status_code,
        media_type="audio/mpeg",
        background=BackgroundTask(upstream.aclose),
    )
