"""Tests for WhisperSTT (mocked WhisperModel, no GPU needed).

Validates in-memory clip transcription, segment conversion, error mapping,
and lazy model loading with caching, all without a real Whisper model.
"""

import io
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

import src.services.transcription.whisper as whisper_module
from src.core.exceptions import TranscriptionError
from src.services.transcription.whisper import WhisperSTT


def _make_segment(text="Hello world", start=0.0, end=1.0, avg_logprob=-0.3, no_speech_prob=0.1):
    """Create a mock faster-whisper segment object."""
    return SimpleNamespace(
        text=text,
        start=start,
        end=end,
        avg_logprob=avg_logprob,
        no_speech_prob=no_speech_prob,
    )


def _make_info(language="en", duration=1.0):
    """Create a mock faster-whisper transcription info object."""
    return SimpleNamespace(language=language, duration=duration)


@pytest.fixture(autouse=True)
def _clear_model_cache():
    """Ensure module-level model cache is cleared before each test."""
    original = whisper_module._model_cache
    whisper_module._model_cache = None
    yield
    whisper_module._model_cache = original


@pytest.fixture
def mock_whisper_model():
    """Create a mock WhisperModel that returns one 'Hello world' segment."""
    model = MagicMock()
    model.transcribe.return_value = (iter([_make_segment()]), _make_info())
    return model


@pytest.fixture
def stt(mock_whisper_model):
    """Create a WhisperSTT instance with a mocked model (no real loading)."""
    instance = WhisperSTT(model_size="base", device="cpu")
    instance._get_model = MagicMock(return_value=mock_whisper_model)
    return instance


class TestTranscribe:
    """Verify clip transcription returns a well-formed TranscriptionResult."""

    async def test_text_and_language(self, stt):
        result = await stt.transcribe(b"OggS...")
        assert result.text == "Hello world"
        assert result.language == "en"
        assert result.duration == 1.0

    async def test_clip_passed_as_file_object(self, stt, mock_whisper_model):
        """The encoded bytes reach faster-whisper as an in-memory file."""
        await stt.transcribe(b"clip-bytes", language="en")
        args, kwargs = mock_whisper_model.transcribe.call_args
        assert isinstance(args[0], io.BytesIO)
        assert args[0].getvalue() == b"clip-bytes"
        assert kwargs["language"] == "en"
        assert kwargs["vad_filter"] is True

    async def test_segments_joined_and_blank_ones_dropped(self, stt, mock_whisper_model):
        mock_whisper_model.transcribe.return_value = (
            iter([_make_segment(" Take off "), _make_segment("   "), _make_segment("now")]),
            _make_info(),
        )
        result = await stt.transcribe(b"clip")
        assert result.text == "Take off now"
        assert [s.text for s in result.segments] == ["Take off", "now"]

    async def test_model_failure_raises_transcription_error(self, stt, mock_whisper_model):
        mock_whisper_model.transcribe.side_effect = RuntimeError("Invalid data found")
        with pytest.raises(TranscriptionError) as exc_info:
            await stt.transcribe(b"not audio")
        assert "Invalid data found" in exc_info.value.detail


class TestGetModel:
    """Verify lazy model loading and module-level caching."""

    def test_lazy_loading(self):
        """Model is loaded on first _get_model() call and cached for subsequent calls."""
        with patch("src.services.transcription.whisper.WhisperModel") as MockModel:
            mock_instance = MagicMock()
            MockModel.return_value = mock_instance

            stt = WhisperSTT(model_size="tiny", device="cpu")
            assert stt._get_model() is mock_instance
            assert stt._get_model() is mock_instance
            MockModel.assert_called_once()
