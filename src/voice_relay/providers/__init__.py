"""Upstream API providers module."""

from .elevenlabs import list_voices, open_speech_stream
from .openai_assistants import (
    extract_answer,
    poll_assistant_run,
    start_assistant_run,
)

__all__ = [
    "list_voices",
    "open_speech_stream",
    "extract_answer",
    "poll_assistant_run",
    "start_assistant_run",
]
