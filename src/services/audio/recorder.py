"""Voice command recorder.

Drives one recording at a time through::

    idle -> recording -> stopping -> transcribing -> result | failed

While recording, a frame task publishes a 60-band level meter at display
rate and a ``ChunkedEncoder`` captures the clip. Stopping releases the
microphone, encodes the clip and hands it to the transcription client.

Every failure is recovered here: a refused microphone leaves the recorder
idle (logged only), a failed transcription lands in ``failed`` with a short
message. Nothing propagates to the host application.

Usage::

    recorder = VoiceRecorder(TranscriptionClient(), on_change=render)
    await recorder.start()
    ...
    await recorder.stop()
    await recorder.wait_for_transcription()
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

import numpy as np

from src.core.config import Settings, get_settings
from src.core.exceptions import DeviceUnavailableError, TranscriptionError
from src.core.state import VoiceCommandState
from src.services.audio.analyser import (
    AudioProcessingContext,
    FrequencyAnalyser,
    MediaStreamSource,
    bands_from_frequency_data,
    speech_bin_range,
)
from src.services.audio.capture import MicrophoneConstraints, MicrophoneStream, open_microphone
from src.services.audio.encoder import ChunkedEncoder, clip_content_type
from src.services.transcription.client import TranscriptionClient

logger = logging.getLogger(__name__)

NO_SPEECH_PLACEHOLDER = "(no speech detected)"
TRANSCRIPTION_FAILED_MESSAGE = "Transcription failed. Please try again."

MicrophoneOpener = Callable[[MicrophoneConstraints], Awaitable[MicrophoneStream]]


class RecorderState(StrEnum):
    """Lifecycle of a voice command recording."""

    idle = "idle"
    recording = "recording"
    stopping = "stopping"
    transcribing = "transcribing"
    result = "result"
    failed = "failed"


@dataclass
class RecordingSession:
    """Observable state of the recorder, republished on every change."""

    bar_count: int = 60
    state: RecorderState = RecorderState.idle
    audio_level: float = 0.0
    bar_heights: list[float] = field(default_factory=list)
    transcription: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if not self.bar_heights:
            self.reset_levels()

    @property
    def is_recording(self) -> bool:
        return self.state == RecorderState.recording

    @property
    def is_transcribing(self) -> bool:
        return self.state == RecorderState.transcribing

    def reset_levels(self) -> None:
        self.bar_heights = [0.0] * self.bar_count
        self.audio_level = 0.0


class _CancelToken:
    """Session-scoped flag checked after every suspension point."""

    __slots__ = ("cancelled",)

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VoiceRecorder:
    """Microphone → level meter + clip → transcript, one session at a time.

    Args:
        transcriber: Client that turns an encoded clip into text.
        settings: Optional Settings instance (defaults to get_settings()).
        open_mic: Coroutine acquiring the microphone (injectable for tests).
        on_change: Called with the session after each published mutation.
    """

    def __init__(
        self,
        transcriber: TranscriptionClient,
        settings: Settings | None = None,
        open_mic: MicrophoneOpener = open_microphone,
        on_change: Callable[[RecordingSession], None] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transcriber = transcriber
        self._open_mic = open_mic
        self._on_change = on_change
        self.session = RecordingSession(bar_count=self._settings.bar_count)

        self._token: _CancelToken | None = None
        self._starting = False
        self._closed = False
        self._auto_record_observed = False

        self._stream: MicrophoneStream | None = None
        self._context: AudioProcessingContext | None = None
        self._source: MediaStreamSource | None = None
        self._analyser: FrequencyAnalyser | None = None
        self._encoder: ChunkedEncoder | None = None
        self._frame_task: asyncio.Task | None = None
        self._transcription_task: asyncio.Task | None = None

    @property
    def state(self) -> RecorderState:
        return self.session.state

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """Acquire the microphone and begin recording.

        Returns:
            True if recording started; False if the request was ignored,
            cancelled, or the microphone was unavailable.
        """
        if self._closed:
            logger.warning("Ignoring start(): recorder is closed")
            return False
        if self._starting or self.session.state in (
            RecorderState.recording,
            RecorderState.stopping,
            RecorderState.transcribing,
        ):
            logger.warning("Ignoring start(): recorder is %s", self.session.state)
            return False

        self._starting = True
        token = _CancelToken()
        self._token = token
        self.session.state = RecorderState.idle
        self.session.transcription = None
        self.session.error = None
        self._publish()

        constraints = MicrophoneConstraints(
            echo_cancellation=self._settings.echo_cancellation,
            noise_suppression=self._settings.noise_suppression,
        )
        try:
            stream = await self._open_mic(constraints)
        except DeviceUnavailableError as exc:
            # Silent fallback: the UI stays idle, the reason is only logged.
            logger.warning("Microphone access denied or unavailable: %s", exc.detail)
            return False
        except Exception:
            logger.exception("Unexpected error while opening the microphone")
            return False
        finally:
            self._starting = False

        if token.cancelled:
            logger.info("Recording cancelled while waiting for the microphone; releasing it")
            stream.stop()
            return False

        try:
            self._build_pipeline(stream)
        except Exception:
            logger.exception("Failed to initialise the audio pipeline")
            self._release_devices()
            if self._encoder is not None:
                encoder, self._encoder = self._encoder, None
                await encoder.stop()
            return False

        self.session.state = RecorderState.recording
        self._frame_task = asyncio.create_task(self._frame_loop(token))
        self._publish()
        logger.info("Recording started (%d Hz, %d ch)", stream.sample_rate, stream.channels)
        return True

    async def stop(self) -> None:
        """Stop recording, release the microphone and dispatch transcription.

        From a start still waiting on the microphone, the pending start is
        cancelled instead. Any other state is left untouched.
        """
        if self.session.state != RecorderState.recording:
            if self._starting and self._token is not None:
                self._token.cancel()
            return

        self.session.state = RecorderState.stopping
        clip = await self._teardown()

        if self._closed:
            # Closed while the encoder was flushing; the clip is discarded
            self.session.state = RecorderState.idle
            return

        if not clip:
            logger.info("Recording stopped with no audio captured")
            self.session.state = RecorderState.idle
            self._publish()
            return

        self.session.state = RecorderState.transcribing
        self._publish()
        logger.info("Recording stopped; submitting %d bytes for transcription", len(clip))
        self._transcription_task = asyncio.create_task(self._transcribe(clip))

    async def wait_for_transcription(self) -> None:
        """Wait until the in-flight transcription (if any) has settled."""
        task = self._transcription_task
        if task is not None:
            await task

    async def close(self) -> None:
        """Release everything the recorder holds (component unmount).

        An active recording goes through the same teardown as ``stop()``;
        its clip is discarded. Pending starts and in-flight transcriptions
        are cancelled, and no state is published afterwards.
        """
        if self._closed:
            return
        if self._token is not None:
            self._token.cancel()
        if self.session.state == RecorderState.recording:
            self.session.state = RecorderState.stopping
            await self._teardown()
            self.session.state = RecorderState.idle
        self._closed = True

        task, self._transcription_task = self._transcription_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.debug("Voice recorder closed")

    async def observe_auto_record(self, voice_command: VoiceCommandState) -> bool:
        """Consume a pending auto-record intent, at most once per recorder.

        Returns:
            True if this call started a recording.
        """
        if self._auto_record_observed or not voice_command.should_auto_record:
            return False
        self._auto_record_observed = True
        voice_command.clear_auto_record()
        logger.info("Auto-record intent received; starting recording")
        return await self.start()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_pipeline(self, stream: MicrophoneStream) -> None:
        s = self._settings
        self._stream = stream
        self._context = AudioProcessingContext(stream.sample_rate)
        self._source = self._context.create_media_stream_source(stream)
        self._analyser = self._context.create_analyser(
            fft_size=s.fft_size,
            smoothing_time_constant=0.0,
            min_decibels=s.analyser_min_decibels,
            max_decibels=s.analyser_max_decibels,
        )
        self._source.connect(self._analyser)

        self._encoder = ChunkedEncoder(
            stream.sample_rate,
            stream.channels,
            format=s.clip_format,
            subtype=s.clip_subtype,
            timeslice=s.chunk_interval,
        )
        self._encoder.start(stream)

    async def _frame_loop(self, token: _CancelToken) -> None:
        """Publish one band snapshot per display frame until cancelled."""
        s = self._settings
        analyser = self._analyser
        min_bin, max_bin = speech_bin_range(
            analyser.sample_rate, analyser.fft_size, s.speech_min_hz, s.speech_max_hz
        )
        freq_data = np.zeros(analyser.frequency_bin_count, dtype=np.uint8)
        interval = 1.0 / s.frame_rate

        while not token.cancelled:
            analyser.get_byte_frequency_data(freq_data)
            bars = bands_from_frequency_data(freq_data, min_bin, max_bin, s.bar_count, s.bar_gain)
            self.session.bar_heights = bars
            self.session.audio_level = sum(bars) / len(bars)
            self._publish()
            await asyncio.sleep(interval)

    async def _teardown(self) -> bytes:
        """Stop analysis, release devices, then flush the encoder."""
        if self._token is not None:
            self._token.cancel()

        task, self._frame_task = self._frame_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Level meter loop failed; continuing teardown")

        self._release_devices()
        self.session.reset_levels()
        self._publish()

        encoder, self._encoder = self._encoder, None
        if encoder is None:
            return b""
        try:
            return await encoder.stop()
        except Exception:
            logger.exception("Failed to encode the recorded clip")
            return b""

    def _release_devices(self) -> None:
        """Disconnect analysis, close the context, stop the microphone.

        Every step runs even if an earlier one fails.
        """
        source, context, stream = self._source, self._context, self._stream
        self._source = self._context = self._stream = self._analyser = None

        steps = []
        if source is not None:
            steps.append(("disconnect the analyser", source.disconnect))
        if context is not None:
            steps.append(("close the audio context", context.close))
        if stream is not None:
            steps.append(("stop the microphone", stream.stop))

        for label, step in steps:
            try:
                step()
            except Exception:
                logger.exception("Failed to %s during teardown", label)

    async def _transcribe(self, clip: bytes) -> None:
        content_type, extension = clip_content_type(self._settings.clip_format)
        try:
            result = await self._transcriber.transcribe_clip(
                clip, filename=f"recording{extension}", content_type=content_type
            )
        except TranscriptionError as exc:
            logger.warning("Transcription failed: %s", exc.detail)
            self._settle_transcription(error=exc.detail or TRANSCRIPTION_FAILED_MESSAGE)
        except Exception:
            logger.exception("Unexpected transcription failure")
            self._settle_transcription(error=TRANSCRIPTION_FAILED_MESSAGE)
        else:
            self._settle_transcription(text=result.text)

    def _settle_transcription(self, text: str | None = None, error: str | None = None) -> None:
        if self._closed:
            return
        if error is None:
            text = (text or "").strip()
            self.session.transcription = text or NO_SPEECH_PLACEHOLDER
            self.session.error = None
            self.session.state = RecorderState.result
        else:
            self.session.transcription = None
            self.session.error = error
            self.session.state = RecorderState.failed
        self._publish()

    def _publish(self) -> None:
        if self._closed or self._on_change is None:
            return
        try:
            self._on_change(self.session)
        except Exception:
            logger.warning("on_change callback failed (non-fatal)", exc_info=True)
