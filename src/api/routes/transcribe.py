"""
Transcription endpoint.

Accepts one uploaded audio clip as multipart field ``audio`` and returns
``{"text", "segments"}``. Failures use the ``{"error": ...}`` body the
recorder's client expects, not the dashboard error envelope.
"""

import logging

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse

from src.core.config import get_settings
from src.core.models import TranscribeResponse
from src.services.transcription import create_stt

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transcription"])


@router.post("/transcribe", response_model=TranscribeResponse)
async def transcribe(audio: UploadFile | None = File(None)):
    """Transcribe an uploaded clip with the configured provider."""
    if audio is None:
        return JSONResponse(status_code=400, content={"error": "No audio file provided"})

    settings = get_settings()
    try:
        data = await audio.read()
        stt = create_stt(settings.transcription_provider, settings=settings)
        result = await stt.transcribe(
            data,
            filename=audio.filename or "audio.ogg",
            content_type=audio.content_type or "application/octet-stream",
            language=settings.transcription_language,
        )
    except Exception:
        logger.exception("Transcription of %r failed", audio.filename)
        return JSONResponse(status_code=500, content={"error": "Failed to transcribe audio"})

    logger.info("Transcribed %r: %d chars", audio.filename, len(result.text))
    return TranscribeResponse(text=result.text, segments=result.segments)
