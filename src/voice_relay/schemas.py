from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field

# Upstream voice and thread ids; anything else could escape its URL path segment
UPSTREAM_ID_PATTERN = r"^[A-Za-z0-9_-]+$"


class SpeechRequest(BaseModel):
    """Request body for text-to-speech."""

    text: str = Field(..., min_length=1)
    voice_id: str = Field(..., alias="voiceId", min_length=1, pattern=UPSTREAM_ID_PATTERN)
    model_id: str | None = Field(default=None, alias="modelId")

    model_config = {"populate_by_name": True}


class CreateRunRequest(BaseModel):
    """Request body for starting an assistant run."""

    text: str = Field(..., min_length=1)


class CreateRunResponse(BaseModel):
    thread_id: str
    run_id: str | None = None
    debug: dict[str, Any] | None = None


class PollResponse(BaseModel):
    status: Literal["pending", "completed"]
    answer: str | None = None


class Voice(BaseModel):
    """Summary of one entry in the voice catalog."""

    voice_id: str
    name: str


@dataclass(frozen=True)
class RunHandle:
    """Identifiers of one started assistant run; the thread id keys every poll."""

    thread_id: str
    run_id: str | None
    debug: dict[str, Any] | None = None


@dataclass(frozen=True)
class PollResult:
    status: Literal["pending", "completed"]
    answer: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"


@dataclass(frozen=True)
class AssistantReply:
    answer: str
    thread_id: str
