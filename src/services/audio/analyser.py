"""Real-time frequency analysis for the voice command level meter.

``AudioProcessingContext`` wires a microphone stream into one or more
``FrequencyAnalyser`` nodes. The analyser keeps the most recent transform
window of samples and reports byte-scaled (0-255) magnitudes per bin, the
same scale browsers use for ``getByteFrequencyData``.
"""

import logging
import math

import numpy as np

from src.services.audio.capture import MicrophoneStream

logger = logging.getLogger(__name__)


def _blackman_window(size: int) -> np.ndarray:
    n = np.arange(size)
    return (
        0.42
        - 0.5 * np.cos(2 * np.pi * n / size)
        + 0.08 * np.cos(4 * np.pi * n / size)
    ).astype(np.float32)


class FrequencyAnalyser:
    """Windowed FFT over the latest ``fft_size`` mono samples.

    Args:
        sample_rate: Rate of the incoming samples in Hz.
        fft_size: Transform window, a power of two in [32, 32768].
        smoothing_time_constant: Blend with the previous frame in [0, 1);
            0 gives an instantaneous snapshot.
        min_decibels: Level mapped to byte value 0.
        max_decibels: Level mapped to byte value 255.
    """

    def __init__(
        self,
        sample_rate: int,
        fft_size: int = 1024,
        smoothing_time_constant: float = 0.0,
        min_decibels: float = -90.0,
        max_decibels: float = -10.0,
    ) -> None:
        if fft_size < 32 or fft_size > 32768 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two in [32, 32768], got {fft_size}")
        if not 0.0 <= smoothing_time_constant < 1.0:
            raise ValueError("smoothing_time_constant must be in [0, 1)")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be lower than max_decibels")

        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.smoothing_time_constant = smoothing_time_constant
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels

        self._time_data = np.zeros(fft_size, dtype=np.float32)
        self._window = _blackman_window(fft_size)
        self._previous = np.zeros(self.frequency_bin_count, dtype=np.float64)

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    def process(self, samples: np.ndarray) -> None:
        """Append mono samples, keeping only the latest transform window."""
        samples = np.asarray(samples, dtype=np.float32).ravel()
        count = len(samples)
        if count == 0:
            return
        if count >= self.fft_size:
            self._time_data[:] = samples[-self.fft_size :]
        else:
            self._time_data = np.roll(self._time_data, -count)
            self._time_data[-count:] = samples

    def get_byte_frequency_data(self, out: np.ndarray | None = None) -> np.ndarray:
        """Compute current bin magnitudes scaled to 0-255.

        Args:
            out: Optional uint8 array of ``frequency_bin_count`` to fill in place.

        Returns:
            The filled uint8 array.
        """
        spectrum = np.fft.rfft(self._time_data * self._window)[: self.frequency_bin_count]
        magnitude = np.abs(spectrum) / self.fft_size

        tau = self.smoothing_time_constant
        smoothed = tau * self._previous + (1.0 - tau) * magnitude
        self._previous = smoothed

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(smoothed)
        scaled = 255.0 * (decibels - self.min_decibels) / (self.max_decibels - self.min_decibels)
        values = np.clip(np.nan_to_num(scaled, nan=0.0, neginf=0.0), 0.0, 255.0).astype(np.uint8)

        if out is None:
            return values
        out[:] = values
        return out


def speech_bin_range(
    sample_rate: float,
    fft_size: int,
    min_hz: float = 85.0,
    max_hz: float = 4000.0,
) -> tuple[int, int]:
    """Return the inclusive ``(min_bin, max_bin)`` covering the speech band.

    Bin 0 (DC) is never included and ``max_bin`` is clamped to the last bin.
    """
    hz_per_bin = sample_rate / fft_size
    bin_count = fft_size // 2
    min_bin = max(1, math.floor(min_hz / hz_per_bin))
    max_bin = min(bin_count - 1, math.ceil(max_hz / hz_per_bin))
    return min_bin, max_bin


def bands_from_frequency_data(
    freq_data: np.ndarray,
    min_bin: int,
    max_bin: int,
    bar_count: int = 60,
    gain: float = 1.5,
) -> list[float]:
    """Map byte frequency data onto ``bar_count`` bands in [0, 1].

    Each band samples one bin, spread evenly across ``[min_bin, max_bin]``;
    there is no averaging or interpolation between frames.
    """
    speech_bins = max_bin - min_bin + 1
    indices = min_bin + np.floor(np.arange(bar_count) / bar_count * speech_bins).astype(int)
    values = np.minimum(1.0, freq_data[indices].astype(np.float64) / 255.0 * gain)
    return values.tolist()


class MediaStreamSource:
    """Feeds a microphone stream, down-mixed to mono, into analysers."""

    def __init__(self, stream: MicrophoneStream) -> None:
        self._stream = stream
        self._nodes: list[FrequencyAnalyser] = []

    def connect(self, node: FrequencyAnalyser) -> None:
        if not self._nodes:
            self._stream.add_listener(self._forward)
        if node not in self._nodes:
            self._nodes.append(node)

    def disconnect(self) -> None:
        self._stream.remove_listener(self._forward)
        self._nodes.clear()

    def _forward(self, block: np.ndarray) -> None:
        mono = block.mean(axis=1) if block.ndim > 1 else block
        for node in self._nodes:
            node.process(mono)


class AudioProcessingContext:
    """Owns the analysis graph for one recording session."""

    def __init__(self, sample_rate: int) -> None:
        self.sample_rate = sample_rate
        self._sources: list[MediaStreamSource] = []
        self.closed = False

    def create_media_stream_source(self, stream: MicrophoneStream) -> MediaStreamSource:
        if self.closed:
            raise RuntimeError("AudioProcessingContext is closed")
        source = MediaStreamSource(stream)
        self._sources.append(source)
        return source

    def create_analyser(self, **kwargs) -> FrequencyAnalyser:
        if self.closed:
            raise RuntimeError("AudioProcessingContext is closed")
        return FrequencyAnalyser(self.sample_rate, **kwargs)

    def close(self) -> None:
        """Disconnect every source; further node creation is refused."""
        if self.closed:
            return
        self.closed = True
        for source in self._sources:
            source.disconnect()
        self._sources.clear()
        logger.debug("Audio processing context closed")
