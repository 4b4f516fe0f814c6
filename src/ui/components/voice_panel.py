"""
Voice command widget: capture a clip in the browser, show its speech-band
spectrum, and transcribe it through the backend.

States: idle -> transcribing -> result | failed
"""

import io
import logging

import numpy as np
import soundfile as sf
import streamlit as st

from src.core.config import get_settings
from src.core.state import VoiceCommandState
from src.services.audio.analyser import (
    FrequencyAnalyser,
    bands_from_frequency_data,
    speech_bin_range,
)
from src.services.audio.recorder import NO_SPEECH_PLACEHOLDER, TRANSCRIPTION_FAILED_MESSAGE
from src.ui.api_client import APIError, get_api_client

logger = logging.getLogger(__name__)


def clip_band_peaks(audio_bytes: bytes) -> list[float]:
    """Peak level per speech band over a whole clip, each in [0, 1].

    Runs the same analyser the live recorder uses, one transform window
    per hop, and keeps the loudest value seen in every band.
    """
    s = get_settings()
    data, sample_rate = sf.read(io.BytesIO(audio_bytes), dtype="float32")
    if data.ndim > 1:
        data = data.mean(axis=1)

    analyser = FrequencyAnalyser(
        sample_rate,
        fft_size=s.fft_size,
        min_decibels=s.analyser_min_decibels,
        max_decibels=s.analyser_max_decibels,
    )
    min_bin, max_bin = speech_bin_range(sample_rate, s.fft_size, s.speech_min_hz, s.speech_max_hz)
    peaks = np.zeros(s.bar_count)
    freq_data = np.zeros(analyser.frequency_bin_count, dtype=np.uint8)
    for offset in range(0, len(data), s.fft_size):
        analyser.process(data[offset : offset + s.fft_size])
        analyser.get_byte_frequency_data(freq_data)
        bars = bands_from_frequency_data(freq_data, min_bin, max_bin, s.bar_count, s.bar_gain)
        np.maximum(peaks, bars, out=peaks)
    return peaks.tolist()


def _transcribe(audio_bytes: bytes) -> None:
    client = get_api_client(st.session_state.api_base_url)
    st.session_state.voice_status = "transcribing"
    try:
        with st.spinner("Transcribing..."):
            result = client.transcribe(audio_bytes)
    except APIError as exc:
        logger.warning("Transcription failed: %s", exc.message)
        st.session_state.voice_status = "failed"
        st.session_state.voice_error = exc.message or TRANSCRIPTION_FAILED_MESSAGE
        st.session_state.voice_transcript = None
        return
    text = (result.get("text") or "").strip()
    st.session_state.voice_status = "result"
    st.session_state.voice_transcript = text or NO_SPEECH_PLACEHOLDER
    st.session_state.voice_error = None


def render_voice_command() -> None:
    """Render the recorder widget and the last transcription outcome."""
    voice_command: VoiceCommandState = st.session_state.voice_command
    if voice_command.should_auto_record:
        # Browsers need a click to open the mic; consume the intent and prompt
        voice_command.clear_auto_record()
        st.info("Ready: press the microphone to start your command.")

    audio = st.audio_input("Voice command", key="voice_clip")
    if audio is not None:
        audio_bytes = audio.getvalue()
        digest = hash(audio_bytes)
        if st.session_state.get("_voice_clip_digest") != digest:
            st.session_state._voice_clip_digest = digest
            try:
                st.session_state.voice_bands = clip_band_peaks(audio_bytes)
            except (RuntimeError, ValueError) as exc:
                logger.warning("Could not analyse clip: %s", exc)
                st.session_state.voice_bands = None
            _transcribe(audio_bytes)

    if st.session_state.get("voice_bands"):
        st.bar_chart(st.session_state.voice_bands, height=120)

    status = st.session_state.voice_status
    if status == "result":
        st.success(st.session_state.voice_transcript)
    elif status == "failed":
        st.error(st.session_state.voice_error)
