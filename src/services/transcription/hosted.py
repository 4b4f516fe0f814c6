"""Hosted Whisper STT via an OpenAI-compatible ``/audio/transcriptions`` API."""

import logging

import httpx

from src.core.config import get_settings
from src.core.exceptions import TranscriptionError
from src.core.models import TranscriptionResult, TranscriptionSegment
from src.services.transcription.base import BaseSTT

logger = logging.getLogger(__name__)


class HostedWhisperSTT(BaseSTT):
    """Speech-to-text through a hosted Whisper endpoint.

    Sends one multipart request per clip; no retries.

    Args:
        api_key: Bearer token for the API (defaults to settings).
        base_url: API root, e.g. ``https://api.openai.com/v1``.
        model: Hosted model name (default ``whisper-1``).
        settings: Optional Settings instance (defaults to get_settings()).
        transport: Optional httpx transport (used in tests).
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        settings=None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._api_key = api_key if api_key is not None else self._settings.openai_api_key
        self._base_url = (base_url or self._settings.openai_base_url).rstrip("/")
        self._model = model or self._settings.transcription_model
        self._transport = transport

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "audio.ogg",
        **kwargs,
    ) -> TranscriptionResult:
        """Upload a clip and return the hosted model's transcript.

        Args:
            audio: Encoded clip bytes.
            filename: File name sent with the upload.
            **kwargs: Optional keys: language, content_type.
        """
        if not self._api_key:
            raise TranscriptionError(detail="Transcription API key is not configured")

        data = {"model": self._model, "response_format": "verbose_json"}
        language = kwargs.get("language")
        if language:
            data["language"] = language
        content_type = kwargs.get("content_type") or "application/octet-stream"

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=120.0,
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    "/audio/transcriptions",
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    data=data,
                    files={"file": (filename, audio, content_type)},
                )
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Hosted transcription returned HTTP %s: %s",
                exc.response.status_code,
                exc.response.text[:200],
            )
            raise TranscriptionError(
                detail=f"Transcription API error (HTTP {exc.response.status_code})"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise TranscriptionError(detail=f"Transcription API request failed: {exc}") from exc

        segments = [
            TranscriptionSegment(
                text=str(seg.get("text", "")).strip(),
                start=float(seg.get("start", 0.0)),
                end=float(seg.get("end", 0.0)),
                avg_logprob=float(seg.get("avg_logprob", 0.0)),
                no_speech_prob=float(seg.get("no_speech_prob", 0.0)),
            )
            for seg in body.get("segments") or []
        ]
        return TranscriptionResult(
            text=body.get("text") or "",
            language=body.get("language") or "unknown",
            duration=float(body.get("duration") or 0.0),
            segments=segments,
        )
