"""Tests for HostedWhisperSTT against an httpx.MockTransport.

Checks the multipart upload, verbose_json parsing, and error mapping
without touching the network.
"""

import httpx
import pytest

from src.core.config import Settings
from src.core.exceptions import TranscriptionError
from src.services.transcription import create_stt
from src.services.transcription.hosted import HostedWhisperSTT
from src.services.transcription.whisper import WhisperSTT

VERBOSE_BODY = {
    "text": "Return to base",
    "language": "english",
    "duration": 1.5,
    "segments": [
        {"text": " Return to base", "start": 0.0, "end": 1.5, "avg_logprob": -0.2, "no_speech_prob": 0.01}
    ],
}


def _stt(handler, api_key="sk-test") -> HostedWhisperSTT:
    return HostedWhisperSTT(
        api_key=api_key,
        base_url="https://stt.test/v1",
        model="whisper-1",
        settings=Settings(),
        transport=httpx.MockTransport(handler),
    )


class TestHostedTranscribe:
    """Verify request construction and response parsing."""

    async def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = request.content
            return httpx.Response(200, json=VERBOSE_BODY)

        await _stt(handler).transcribe(
            b"clip-bytes", filename="recording.ogg", content_type="audio/ogg", language="en"
        )

        assert seen["url"] == "https://stt.test/v1/audio/transcriptions"
        assert seen["auth"] == "Bearer sk-test"
        body = seen["body"]
        assert b'name="model"' in body and b"whisper-1" in body
        assert b"verbose_json" in body
        assert b'name="language"' in body
        assert b'filename="recording.ogg"' in body
        assert b"clip-bytes" in body

    async def test_parses_verbose_json(self):
        result = await _stt(lambda r: httpx.Response(200, json=VERBOSE_BODY)).transcribe(b"clip")
        assert result.text == "Return to base"
        assert result.duration == 1.5
        assert result.segments[0].text == "Return to base"

    async def test_minimal_body(self):
        result = await _stt(lambda r: httpx.Response(200, json={"text": "hi"})).transcribe(b"clip")
        assert result.text == "hi"
        assert result.segments == []

    async def test_http_error_mapped(self):
        stt = _stt(lambda r: httpx.Response(401, json={"error": {"message": "bad key"}}))
        with pytest.raises(TranscriptionError) as exc_info:
            await stt.transcribe(b"clip")
        assert exc_info.value.detail == "Transcription API error (HTTP 401)"

    async def test_network_error_mapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TranscriptionError):
            await _stt(handler).transcribe(b"clip")

    async def test_non_json_body_mapped(self):
        stt = _stt(lambda r: httpx.Response(200, content=b"<html>oops</html>"))
        with pytest.raises(TranscriptionError):
            await stt.transcribe(b"clip")

    async def test_missing_api_key(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(TranscriptionError) as exc_info:
            await _stt(handler, api_key="").transcribe(b"clip")
        assert "API key" in exc_info.value.detail


class TestCreateStt:
    """Verify provider selection."""

    @pytest.mark.parametrize("provider", ["hosted", "openai"])
    def test_hosted_providers(self, provider):
        assert isinstance(create_stt(provider, settings=Settings()), HostedWhisperSTT)

    @pytest.mark.parametrize("provider", ["local", "whisper"])
    def test_local_providers(self, provider):
        assert isinstance(create_stt(provider, settings=Settings()), WhisperSTT)

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            create_stt("carrier-pigeon")
