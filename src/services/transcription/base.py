"""
Abstract base class for Speech-to-Text providers.

All STT implementations (hosted API, local Whisper) must implement this
interface so the ``/api/transcribe`` endpoint stays provider-agnostic.
"""

from abc import ABC, abstractmethod

from src.core.models import TranscriptionResult


class BaseSTT(ABC):
    """Interface that every STT provider must implement."""

    @abstractmethod
    async def transcribe(
        self,
        audio: bytes,
        filename: str = "audio.ogg",
        **kwargs,
    ) -> TranscriptionResult:
        """Transcribe one encoded audio clip to text.

        Args:
            audio: Encoded clip bytes (Ogg, WAV, WebM, ...).
            filename: Original file name; providers use it to infer the container.
            **kwargs: Provider-specific options (language, content_type, etc.).

        Returns:
            TranscriptionResult with ``text`` and optional ``segments``.

        Raises:
            TranscriptionError: If the provider fails.
        """
