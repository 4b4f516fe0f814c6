"""Tests for Settings validation of the audio pipeline knobs."""

import pytest
from pydantic import ValidationError

from src.core.config import Settings


class TestAudioSettings:
    """Verify that non-positive pipeline sizes are rejected at load time."""

    @pytest.mark.parametrize("field", ["bar_count", "fft_size", "frame_rate", "chunk_interval"])
    def test_zero_rejected(self, field):
        with pytest.raises(ValidationError):
            Settings(**{field: 0})

    def test_negative_frame_rate_rejected(self):
        with pytest.raises(ValidationError):
            Settings(frame_rate=-30.0)

    def test_env_override_validated(self, monkeypatch):
        monkeypatch.setenv("BAR_COUNT", "0")
        with pytest.raises(ValidationError):
            Settings()

    def test_defaults(self):
        s = Settings()
        assert s.bar_count == 60
        assert s.fft_size == 1024
        assert s.chunk_interval == 0.25
