"""Microphone acquisition via sounddevice (PortAudio).

PortAudio invokes the stream callback on its own thread. Blocks are handed
over to the asyncio loop with ``call_soon_threadsafe`` so every consumer
(analyser, encoder) only ever runs on the event loop.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from src.core.exceptions import DeviceUnavailableError

if TYPE_CHECKING:
    import sounddevice as sd

logger = logging.getLogger(__name__)

BlockListener = Callable[[np.ndarray], None]


@dataclass(frozen=True)
class MicrophoneConstraints:
    """Requested capture settings.

    ``None`` for sample rate / channels means "device default" (the
    device's default rate, stereo when available otherwise mono).
    Echo cancellation and noise suppression are requested from the host
    audio stack; PortAudio itself does not process the signal.
    """

    echo_cancellation: bool = True
    noise_suppression: bool = True
    sample_rate: int | None = None
    channels: int | None = None
    device: int | str | None = None


class MicrophoneStream:
    """A live microphone stream delivering float32 blocks on the event loop.

    Args:
        sample_rate: Capture rate in Hz.
        channels: Number of interleaved input channels.
        loop: Event loop that listeners run on.
    """

    def __init__(self, sample_rate: int, channels: int, loop: asyncio.AbstractEventLoop) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self._loop = loop
        self._stream: "sd.InputStream | None" = None
        self._listeners: list[BlockListener] = []
        self._stopped = False

    @property
    def active(self) -> bool:
        return not self._stopped

    def add_listener(self, listener: BlockListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: BlockListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _attach(self, stream: "sd.InputStream") -> None:
        self._stream = stream

    def _callback(self, indata, frames, time_info, status) -> None:  # noqa: ARG002
        # Runs on the PortAudio thread.
        if status:
            logger.debug("Input stream status: %s", status)
        if self._stopped:
            return
        try:
            self._loop.call_soon_threadsafe(self._dispatch, indata.copy())
        except RuntimeError:
            pass  # event loop already closed

    def _dispatch(self, block: np.ndarray) -> None:
        if self._stopped:
            return
        for listener in list(self._listeners):
            listener(block)

    def stop(self) -> None:
        """Stop capturing and release the device. Safe to call twice."""
        if self._stopped:
            return
        self._stopped = True
        self._listeners.clear()
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()
        logger.debug("Microphone released")


def _open_blocking(
    constraints: MicrophoneConstraints, loop: asyncio.AbstractEventLoop
) -> MicrophoneStream:
    """Query the input device and start a stream (blocking PortAudio calls)."""
    try:
        import sounddevice as sd
    except OSError as exc:
        # Raised when the PortAudio shared library is missing
        raise DeviceUnavailableError(detail=f"Audio backend unavailable: {exc}") from exc

    try:
        info = sd.query_devices(constraints.device, kind="input")
        sample_rate = constraints.sample_rate or int(info["default_samplerate"])
        channels = constraints.channels or max(1, min(2, int(info["max_input_channels"])))
    except (sd.PortAudioError, ValueError, KeyError) as exc:
        raise DeviceUnavailableError(detail=f"No usable input device: {exc}") from exc

    mic = MicrophoneStream(sample_rate, channels, loop)
    logger.debug(
        "Opening microphone %s (%d Hz, %d ch, echo_cancellation=%s, noise_suppression=%s)",
        info.get("name", constraints.device),
        sample_rate,
        channels,
        constraints.echo_cancellation,
        constraints.noise_suppression,
    )
    try:
        stream = sd.InputStream(
            device=constraints.device,
            samplerate=sample_rate,
            channels=channels,
            dtype="float32",
            callback=mic._callback,
        )
    except (sd.PortAudioError, ValueError, OSError) as exc:
        raise DeviceUnavailableError(detail=f"Microphone access failed: {exc}") from exc

    try:
        stream.start()
    except (sd.PortAudioError, OSError) as exc:
        stream.close()
        raise DeviceUnavailableError(detail=f"Microphone access failed: {exc}") from exc

    mic._attach(stream)
    return mic


async def open_microphone(constraints: MicrophoneConstraints | None = None) -> MicrophoneStream:
    """Acquire the default (or requested) microphone.

    Device negotiation blocks inside PortAudio, so it runs in a worker
    thread; the caller's coroutine suspends until access is granted.

    Raises:
        DeviceUnavailableError: No input device, or access was refused.
    """
    loop = asyncio.get_running_loop()
    return await asyncio.to_thread(_open_blocking, constraints or MicrophoneConstraints(), loop)
