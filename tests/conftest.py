"""Shared test fixtures and configuration."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from voice_relay.api.app import create_app
from voice_relay.config import Settings
from tests.helpers import ALLOWED_ORIGIN, FakeUpstream


@pytest.fixture
def settings():
    """Settings with every secret configured."""
    return Settings(
        ELEVENLABS_API_KEY="xi-test-key",
        OPENAI_API_KEY="sk-test-key",
        ASSISTANT_ID="asst_test",
        ALLOWED_ORIGINS=ALLOWED_ORIGIN,
    )


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def make_client(upstream):
    """Build a TestClient for the relay with the given settings."""

    def _make(settings: Settings) -> TestClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
        return TestClient(create_app(settings, http_client=http_client))

    return _make


@pytest.fixture
def client(make_client, settings):
    return make_client(settings)
