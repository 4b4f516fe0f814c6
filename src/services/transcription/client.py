"""Client side of the transcription collaborator.

The voice recorder submits each finished clip here. One request, no retry,
no streaming: the response is either ``{"text", "segments"}`` or
``{"error"}``.
"""

import logging

import httpx
from pydantic import ValidationError

from src.core.config import get_settings
from src.core.exceptions import TranscriptionError
from src.core.models import TranscriptionResult

logger = logging.getLogger(__name__)

_DEFAULT_ERROR = "Failed to transcribe audio"


class TranscriptionClient:
    """Posts encoded clips to the ``/api/transcribe`` endpoint.

    Args:
        url: Endpoint URL (defaults to ``settings.transcribe_url``).
        timeout: Request timeout in seconds; None disables it.
        settings: Optional Settings instance (defaults to get_settings()).
        transport: Optional httpx transport (used in tests).
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        settings=None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._url = url or self._settings.transcribe_url
        self._timeout = timeout if timeout is not None else self._settings.transcription_timeout
        self._transport = transport

    async def transcribe_clip(
        self,
        clip: bytes,
        filename: str = "recording.ogg",
        content_type: str = "audio/ogg",
    ) -> TranscriptionResult:
        """Submit one clip and return its transcript.

        Raises:
            TranscriptionError: On network failure, a non-success status,
                or an ``error`` field in the response body.
        """
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    self._url,
                    files={"audio": (filename, clip, content_type)},
                )
        except httpx.HTTPError as exc:
            logger.warning("Transcription request to %s failed: %s", self._url, exc)
            raise TranscriptionError(detail="Could not reach the transcription service") from exc

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if resp.is_error or body.get("error"):
            logger.warning(
                "Transcription service returned HTTP %s: %s", resp.status_code, body.get("error")
            )
            raise TranscriptionError(detail=str(body.get("error") or _DEFAULT_ERROR))

        try:
            return TranscriptionResult(
                text=body.get("text") or "",
                segments=body.get("segments") or [],
            )
        except ValidationError as exc:
            raise TranscriptionError(detail="Malformed transcription response") from exc
