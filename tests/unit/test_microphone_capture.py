"""Tests for microphone acquisition (PortAudio replaced by a fake module).

Covers device negotiation, denial handling, thread-to-loop block
delivery, and idempotent release.
"""

import asyncio
import sys
from types import SimpleNamespace
from unittest.mock import MagicMock

import numpy as np
import pytest

from src.core.exceptions import DeviceUnavailableError
from src.services.audio.capture import MicrophoneConstraints, MicrophoneStream, open_microphone


class _PortAudioError(Exception):
    pass


@pytest.fixture
def fake_sounddevice(monkeypatch):
    """Install a minimal ``sounddevice`` stand-in for the duration of a test."""
    stream = MagicMock()
    module = SimpleNamespace(
        PortAudioError=_PortAudioError,
        query_devices=MagicMock(
            return_value={"name": "Test Mic", "default_samplerate": 44100.0, "max_input_channels": 4}
        ),
        InputStream=MagicMock(return_value=stream),
        stream=stream,
    )
    monkeypatch.setitem(sys.modules, "sounddevice", module)
    return module


class TestOpenMicrophone:
    """Verify negotiation and failure mapping."""

    async def test_uses_device_defaults(self, fake_sounddevice):
        mic = await open_microphone()
        assert mic.sample_rate == 44100
        assert mic.channels == 2
        kwargs = fake_sounddevice.InputStream.call_args.kwargs
        assert kwargs["dtype"] == "float32"
        assert kwargs["samplerate"] == 44100
        fake_sounddevice.stream.start.assert_called_once()
        mic.stop()

    async def test_explicit_constraints_win(self, fake_sounddevice):
        mic = await open_microphone(MicrophoneConstraints(sample_rate=16000, channels=1))
        assert (mic.sample_rate, mic.channels) == (16000, 1)
        mic.stop()

    async def test_mono_device(self, fake_sounddevice):
        fake_sounddevice.query_devices.return_value = {
            "name": "Mono",
            "default_samplerate": 48000.0,
            "max_input_channels": 1,
        }
        mic = await open_microphone()
        assert mic.channels == 1
        mic.stop()

    async def test_no_input_device(self, fake_sounddevice):
        fake_sounddevice.query_devices.side_effect = ValueError("No input device matching")
        with pytest.raises(DeviceUnavailableError):
            await open_microphone()

    async def test_open_refused(self, fake_sounddevice):
        fake_sounddevice.InputStream.side_effect = _PortAudioError("permission denied")
        with pytest.raises(DeviceUnavailableError) as exc_info:
            await open_microphone()
        assert "permission denied" in exc_info.value.detail

    async def test_start_failure_closes_stream(self, fake_sounddevice):
        fake_sounddevice.stream.start.side_effect = _PortAudioError("device busy")
        with pytest.raises(DeviceUnavailableError):
            await open_microphone()
        fake_sounddevice.stream.close.assert_called_once()


class TestMicrophoneStream:
    """Verify block delivery and release."""

    async def test_callback_delivers_on_loop(self):
        mic = MicrophoneStream(48000, 1, asyncio.get_running_loop())
        received = []
        mic.add_listener(received.append)
        block = np.ones((256, 1), dtype=np.float32)

        await asyncio.to_thread(mic._callback, block, 256, None, None)
        await asyncio.sleep(0)

        assert len(received) == 1
        np.testing.assert_array_equal(received[0], block)
        assert received[0] is not block

    async def test_no_delivery_after_stop(self):
        mic = MicrophoneStream(48000, 1, asyncio.get_running_loop())
        received = []
        mic.add_listener(received.append)
        mic.stop()
        mic._callback(np.ones((8, 1), dtype=np.float32), 8, None, None)
        await asyncio.sleep(0)
        assert received == []
        assert not mic.active

    async def test_stop_is_idempotent(self):
        mic = MicrophoneStream(48000, 1, asyncio.get_running_loop())
        stream = MagicMock()
        mic._attach(stream)
        mic.stop()
        mic.stop()
        stream.stop.assert_called_once()
        stream.close.assert_called_once()

    async def test_remove_unknown_listener_is_safe(self):
        mic = MicrophoneStream(48000, 1, asyncio.get_running_loop())
        mic.remove_listener(lambda block: None)
