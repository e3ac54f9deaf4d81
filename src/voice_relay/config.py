"""Runtime configuration for the voice relay service."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_ALLOWED_ORIGINS = ["https://niura-adhd.vercel.app"]


class Settings(BaseSettings):
    """Runtime configuration for the voice relay service."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # ElevenLabs (voice catalog + text-to-speech)
    elevenlabs_api_key: str | None = Field(default=None, alias="ELEVENLABS_API_KEY")
    elevenlabs_api_base_url: str = Field(
        default="https://api.elevenlabs.io/v1", alias="ELEVENLABS_API_BASE_URL"
    )
    default_tts_model_id: str = Field(default="eleven_turbo_v2", alias="DEFAULT_TTS_MODEL_ID")

    # OpenAI Assistants
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    assistant_id: str | None = Field(default=None, alias="ASSISTANT_ID")
    openai_api_base_url: str = Field(default="https://api.openai.com/v1", alias="OPENAI_API_BASE_URL")

    # Exact-match origins allowed to read credentialed responses
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS), alias="ALLOWED_ORIGINS"
    )

    upstream_timeout: float = Field(default=30.0, alias="UPSTREAM_TIMEOUT")

    # FastAPI
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8080, alias="APP_PORT")
    debug: bool = Field(default=False, alias="DEBUG")

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
