"""Tests for the clip spectrum shown under the voice command widget."""

import io

import numpy as np
import soundfile as sf

from src.ui.components.voice_panel import clip_band_peaks


def _wav(samples: np.ndarray, sample_rate: int = 16000) -> bytes:
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


def test_tone_lights_up_bands(sine):
    peaks = clip_band_peaks(_wav(sine(440.0, sample_rate=16000, duration=0.5)))
    assert len(peaks) == 60
    assert max(peaks) > 0.5
    assert all(0.0 <= p <= 1.0 for p in peaks)


def test_silence_is_flat():
    assert clip_band_peaks(_wav(np.zeros(8000, dtype=np.float32))) == [0.0] * 60


def test_stereo_clip_is_downmixed(sine):
    tone = sine(440.0, sample_rate=16000, duration=0.5)
    peaks = clip_band_peaks(_wav(np.stack([tone, tone], axis=1)))
    assert max(peaks) > 0.5
