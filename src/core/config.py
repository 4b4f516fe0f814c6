"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """UAS Ops dashboard settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        transcription_provider: STT backend behind ``/api/transcribe``
            ("hosted" for an OpenAI-compatible API, "local" for faster-whisper).
        transcribe_url: Endpoint the voice recorder posts finished clips to.
        database_url: Async SQLAlchemy connection string for the document store.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Transcription ---
    # Provider used by the /api/transcribe endpoint
    transcription_provider: str = "hosted"
    transcription_language: str = "en"

    # Hosted (OpenAI-compatible) speech-to-text
    openai_api_key: str = ""  # Required when transcription_provider="hosted"
    openai_base_url: str = "https://api.openai.com/v1"
    transcription_model: str = "whisper-1"

    # Local faster-whisper
    whisper_model: str = "base"  # Model size: tiny, base, small, medium, large-v3
    whisper_device: str = "cpu"
    whisper_compute_type: str = "int8"

    # Client side: where the voice recorder submits clips
    transcribe_url: str = "http://localhost:8000/api/transcribe"
    transcription_timeout: float | None = None  # None = no client-side timeout

    # --- Voice recorder / audio pipeline ---
    fft_size: int = Field(default=1024, gt=0)  # Analyser transform window (samples)
    analyser_min_decibels: float = -90.0
    analyser_max_decibels: float = -10.0
    bar_count: int = Field(default=60, gt=0)  # Visualisation bands
    speech_min_hz: float = 85.0
    speech_max_hz: float = 4000.0
    bar_gain: float = 1.5
    frame_rate: float = Field(default=60.0, gt=0)  # Visualisation redraws per second
    chunk_interval: float = Field(default=0.25, gt=0)  # Encoder timeslice in seconds
    clip_format: str = "OGG"  # soundfile container
    clip_subtype: str = "VORBIS"
    echo_cancellation: bool = True
    noise_suppression: bool = True

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level
    cors_origins: list[str] = [
        "http://localhost:8501",  # Streamlit
        "http://localhost:3000",
    ]

    # --- Storage ---
    database_url: str = "sqlite+aiosqlite:///data/uas_ops.db"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
