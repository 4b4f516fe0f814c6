"""
Transcription module - Speech-to-text abstraction layer.

Factory function for creating STT instances based on provider configuration,
plus the HTTP client the voice recorder uses to submit clips.
"""

from .base import BaseSTT
from .client import TranscriptionClient

__all__ = ["BaseSTT", "TranscriptionClient", "create_stt"]


def create_stt(provider: str, **kwargs) -> BaseSTT:
    """
    Factory function to create STT instance based on provider.

    Args:
        provider: STT provider name ("hosted"/"openai" or "local"/"whisper")
        **kwargs: Provider-specific configuration

    Returns:
        BaseSTT implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "hosted" or provider == "openai":
        from .hosted import HostedWhisperSTT
        return HostedWhisperSTT(**kwargs)
    elif provider == "whisper" or provider == "local":
        from .whisper import WhisperSTT
        return WhisperSTT(**kwargs)
    else:
        raise ValueError(f"Unknown STT provider: {provider}")
