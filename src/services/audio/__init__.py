"""
Audio module - Microphone capture, level analysis, clip encoding and the
voice command recorder.
"""

from .analyser import AudioProcessingContext, FrequencyAnalyser
from .capture import MicrophoneConstraints, MicrophoneStream, open_microphone
from .encoder import ChunkedEncoder
from .recorder import RecorderState, RecordingSession, VoiceRecorder

__all__ = [
    "AudioProcessingContext",
    "ChunkedEncoder",
    "FrequencyAnalyser",
    "MicrophoneConstraints",
    "MicrophoneStream",
    "RecorderState",
    "RecordingSession",
    "VoiceRecorder",
    "open_microphone",
]
