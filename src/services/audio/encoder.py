"""Chunked clip recording.

``ChunkedEncoder`` listens to a microphone stream and cuts the incoming
audio into data chunks on a fixed wall-clock timeslice. Stopping flushes
the last partial chunk and encodes everything into one compressed clip.
"""

import asyncio
import contextlib
import io
import logging

import numpy as np
import soundfile as sf

from src.services.audio.capture import MicrophoneStream

logger = logging.getLogger(__name__)

# soundfile format -> (MIME type, file extension)
_CONTAINERS = {
    "OGG": ("audio/ogg", ".ogg"),
    "FLAC": ("audio/flac", ".flac"),
    "WAV": ("audio/wav", ".wav"),
}


def clip_content_type(fmt: str) -> tuple[str, str]:
    """Return ``(mime_type, extension)`` for a soundfile container name."""
    return _CONTAINERS.get(fmt.upper(), ("application/octet-stream", ".bin"))


class ChunkedEncoder:
    """Records a stream into timesliced chunks and encodes a single clip.

    Args:
        sample_rate: Rate of the recorded stream in Hz.
        channels: Channel count of the recorded stream.
        format: soundfile container ("OGG", "FLAC", "WAV").
        subtype: soundfile codec subtype ("VORBIS", "PCM_16", ...).
        timeslice: Seconds of wall time between emitted chunks.
    """

    def __init__(
        self,
        sample_rate: int,
        channels: int,
        format: str = "OGG",
        subtype: str | None = "VORBIS",
        timeslice: float = 0.25,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.format = format
        self.subtype = subtype
        self.timeslice = timeslice
        self.recording = False

        self._stream: MicrophoneStream | None = None
        self._pending: list[np.ndarray] = []
        self._chunks: list[np.ndarray] = []
        self._timer: asyncio.Task | None = None

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    @property
    def content_type(self) -> str:
        return clip_content_type(self.format)[0]

    def start(self, stream: MicrophoneStream) -> None:
        """Begin recording ``stream``; must be called on the running loop."""
        if self.recording:
            raise RuntimeError("ChunkedEncoder is already recording")
        self.recording = True
        self._stream = stream
        stream.add_listener(self._on_block)
        self._timer = asyncio.create_task(self._emit_loop())

    def _on_block(self, block: np.ndarray) -> None:
        if self.recording:
            self._pending.append(block)

    def request_data(self) -> None:
        """Close the current chunk (no-op when nothing was buffered)."""
        if not self._pending:
            return
        self._chunks.append(np.concatenate(self._pending, axis=0))
        self._pending.clear()

    async def _emit_loop(self) -> None:
        while True:
            await asyncio.sleep(self.timeslice)
            self.request_data()

    async def stop(self) -> bytes:
        """Flush buffered chunks and return the encoded clip.

        Returns:
            The encoded clip, or ``b""`` if no audio was captured.
        """
        if not self.recording:
            return b""
        self.recording = False

        if self._stream is not None:
            self._stream.remove_listener(self._on_block)
            self._stream = None

        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer

        self.request_data()
        if not self._chunks:
            return b""

        audio = np.concatenate(self._chunks, axis=0)
        chunk_count = len(self._chunks)
        self._chunks.clear()
        clip = await asyncio.to_thread(self._encode, audio)
        logger.debug(
            "Encoded %d chunk(s), %.2fs of audio into %d bytes (%s)",
            chunk_count,
            len(audio) / self.sample_rate,
            len(clip),
            self.format,
        )
        return clip

    def _encode(self, audio: np.ndarray) -> bytes:
        buffer = io.BytesIO()
        sf.write(buffer, audio, self.sample_rate, format=self.format, subtype=self.subtype)
        return buffer.getvalue()
