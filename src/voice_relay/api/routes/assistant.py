"""API routes for assistant runs."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ...config import Settings
from ...errors import UpstreamError
from ...providers.openai_assistants import poll_assistant_run, start_assistant_run
from ...schemas import UPSTREAM_ID_PATTERN, CreateRunRequest, CreateRunResponse, PollResponse
from ..dependencies import get_app_settings, get_http_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/messages", response_model=CreateRunResponse, response_model_exclude_none=True)
async def create_assistant_run(
    request: CreateRunRequest,
    settings: Settings = Depends(get_app_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Start an assistant run for the user's utterance."""
    handle = await start_assistant_run(client, settings, request.text)

    return CreateRunResponse(
        thread_id=handle.thread_id,
        run_id=handle.run_id,
        debug=handle.debug if settings.debug else None,
    )


@router.get("/response", response_model=PollResponse, response_model_exclude_none=True)
async def get_assistant_response(
    thread_id: str = Query(..., min_length=1, pattern=UPSTREAM_ID_PATTERN),
    settings: Settings = Depends(get_app_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Poll a thread for the assistant's answer.

    Pending is answered with 202 and ``{"status": "pending"}``; a completed
    answer with 200.
    """
    try:
        result = await poll_assistant_run(client, settings, thread_id)
    except UpstreamError as e:
        logger.error(f"Polling thread {thread_id} failed: {e}")
        raise UpstreamError(f"Polling failed: {e.message}", cause=e) from e

    if result.is_pending:
        return JSONResponse(status_code=202, content={"status": "pending"})
    return PollResponse(status="completed", answer=result.answer)
