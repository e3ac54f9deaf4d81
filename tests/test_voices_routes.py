"""Tests for the voice catalog and text-to-speech relays."""

from __future__ import annotations

import json

import httpx
import pytest

from voice_relay.config import Settings
from voice_relay.providers.elevenlabs import open_speech_stream
from tests.helpers import ALLOWED_ORIGIN

VOICES_URL = "https://api.elevenlabs.io/v1/voices"
TTS_URL = "https://api.elevenlabs.io/v1/text-to-speech/voice-1"


class TestListVoices:
    """Tests for GET /api/voices."""

    def test_passes_catalog_through(self, client, upstream):
        """Should pass upstream status and body through as JSON."""
        catalog = {"voices": [{"voice_id": "voice-1", "name": "Rachel"}]}
        upstream.add("GET", VOICES_URL, httpx.Response(200, json=catalog))

        response = client.get("/api/voices", headers={"Origin": ALLOWED_ORIGIN})

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == catalog
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN

    def test_injects_server_key(self, client, upstream):
        """The API key comes from server settings, never from the client."""
        upstream.add("GET", VOICES_URL, httpx.Response(200, json={"voices": []}))

        client.get("/api/voices", headers={"xi-api-key": "client-supplied"})

        assert upstream.calls[0].headers["xi-api-key"] == "xi-test-key"

    def test_passes_upstream_error_status(self, client, upstream):
        """Non-2xx upstream answers keep their status."""
        upstream.add("GET", VOICES_URL, httpx.Response(401, json={"detail": "invalid key"}))

        response = client.get("/api/voices")

        assert response.status_code == 401
        assert response.json() == {"detail": "invalid key"}

    def test_network_failure_is_500(self, client, upstream):
        """Transport errors become a 500 with an error message."""
        upstream.add("GET", VOICES_URL, httpx.ConnectError("connection refused"))

        response = client.get("/api/voices", headers={"Origin": ALLOWED_ORIGIN})

        assert response.status_code == 500
        assert "connection refused" in response.json()["error"]
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN

    def test_missing_key_fails_closed(self, make_client, upstream):
        """Without a key the handler returns 500 and never calls upstream."""
        client = make_client(Settings(ELEVENLABS_API_KEY=None))

        response = client.get("/api/voices")

        assert response.status_code == 500
        assert "ELEVENLABS_API_KEY" in response.json()["error"]
        assert "xi-" not in response.text
        assert upstream.calls == []

    def test_rejects_wrong_method(self, client, upstream):
        """POST is not allowed on the catalog."""
        response = client.post("/api/voices", headers={"Origin": ALLOWED_ORIGIN})

        assert response.status_code == 405
        assert "error" in response.json()
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert upstream.calls == []


class TestTextToSpeech:
    """Tests for POST /api/tts."""

    def test_streams_audio(self, client, upstream):
        """Should stream upstream audio back as audio/mpeg."""
        upstream.add("POST", TTS_URL, httpx.Response(200, content=b"ID3-fake-mp3"))

        response = client.post("/api/tts", json={"text": "Hello", "voiceId": "voice-1"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/mpeg"
        assert response.content == b"ID3-fake-mp3"

    def test_forwards_text_and_default_model(self, client, upstream):
        """Should forward text and the default model id with the server key."""
        upstream.add("POST", TTS_URL, httpx.Response(200, content=b"mp3"))

        client.post("/api/tts", json={"text": "Hello", "voiceId": "voice-1"})

        call = upstream.calls[0]
        assert json.loads(call.content) == {"text": "Hello", "model_id": "eleven_turbo_v2"}
        assert call.headers["xi-api-key"] == "xi-test-key"
        assert call.headers["accept"] == "audio/mpeg"

    def test_forwards_explicit_model(self, client, upstream):
        upstream.add("POST", TTS_URL, httpx.Response(200, content=b"mp3"))

        client.post("/api/tts", json={"text": "Hi", "voiceId": "voice-1", "modelId": "eleven_multilingual_v2"})

        assert json.loads(upstream.calls[0].content)["model_id"] == "eleven_multilingual_v2"

    def test_preserves_upstream_status(self, client, upstream):
        """Upstream status is kept even when it is not a success."""
        upstream.add("POST", TTS_URL, httpx.Response(429, content=b"rate limited"))

        response = client.post("/api/tts", json={"text": "Hello", "voiceId": "voice-1"})

        assert response.status_code == 429
        assert response.headers["content-type"] == "audio/mpeg"

    def test_missing_voice_id(self, client, upstream):
        """Missing voiceId is a 400 with no upstream call."""
        response = client.post("/api/tts", json={"text": "Hello"})

        assert response.status_code == 400
        assert "error" in response.json()
        assert "voiceId" in response.json()["error"]
        assert len(upstream.calls) == 0

    def test_missing_text(self, client, upstream):
        response = client.post("/api/tts", json={"voiceId": "voice-1", "text": ""})

        assert response.status_code == 400
        assert "text" in response.json()["error"]
        assert upstream.calls == []

    def test_invalid_json(self, client, upstream):
        """An unparsable body is a 400."""
        response = client.post(
            "/api/tts", content="{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON body"}
        assert upstream.calls == []

    def test_network_failure_is_500(self, client, upstream):
        upstream.add("POST", TTS_URL, httpx.ReadTimeout("timed out"))

        response = client.post("/api/tts", json={"text": "Hello", "voiceId": "voice-1"})

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        assert "timed out" in response.json()["error"]

    def test_rejects_get(self, client, upstream):
        response = client.get("/api/tts")

        assert response.status_code == 405
        assert upstream.calls == []

    def test_rejects_voice_id_outside_one_path_segment(self, client, upstream):
        """Ids that could leave their path segment never reach upstream."""
        for voice_id in ("../voices/add", "voice-1?x=1", "..", "a/b", "voice 1"):
            response = client.post("/api/tts", json={"text": "Hello", "voiceId": voice_id})

            assert response.status_code == 400
            assert "voiceId" in response.json()["error"]
        assert upstream.calls == []

    def test_missing_key_fails_closed(self, make_client, upstream):
        """Without a key the handler returns 500 and never calls upstream."""
        client = make_client(Settings(ELEVENLABS_API_KEY=None))

        response = client.post("/api/tts", json={"text": "Hello", "voiceId": "voice-1"})

        assert response.status_code == 500
        assert "ELEVENLABS_API_KEY" in response.json()["error"]
        assert upstream.calls == []


class TestOpenSpeechStream:
    """Tests for the provider call behind /api/tts."""

    @pytest.mark.asyncio
    async def test_voice_id_is_one_encoded_segment(self, settings, upstream):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))

        response = await open_speech_stream(http_client, settings, "Hello", "../voices/add?x=1")
        await response.aclose()
        await http_client.aclose()

        assert upstream.calls[0].url.raw_path == b"/v1/text-to-speech/..%2Fvoices%2Fadd%3Fx%3D1"
