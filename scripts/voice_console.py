#!/usr/bin/env python3
"""
UAS Ops Voice Console

Records one voice command from the default microphone, draws the
speech-band meter in the terminal while recording, and prints the
transcript. Press Enter to stop.

The transcription endpoint must be running (``uvicorn src.api.app:app``).
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure project root is on sys.path for ``src`` imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.core.config import get_settings  # noqa: E402
from src.core.state import VoiceCommandState  # noqa: E402
from src.services.audio import RecorderState, RecordingSession, VoiceRecorder  # noqa: E402
from src.services.transcription import TranscriptionClient  # noqa: E402

_LEVELS = " ▁▂▃▄▅▆▇█"


def render_meter(session: RecordingSession) -> None:
    """Redraw the band meter on the current terminal line."""
    if session.state != RecorderState.recording:
        return
    top = len(_LEVELS) - 1
    bars = "".join(_LEVELS[min(top, int(h * top))] for h in session.bar_heights)
    sys.stdout.write(f"\r[{bars}] {session.audio_level:4.0%}")
    sys.stdout.flush()


async def run(url: str | None, auto_start: bool) -> int:
    """Record a single command and print the outcome.

    Returns:
        Exit code: 0 on a transcript, 1 on any failure.
    """
    recorder = VoiceRecorder(TranscriptionClient(url=url), on_change=render_meter)
    try:
        if auto_start:
            voice_command = VoiceCommandState()
            voice_command.trigger_auto_record()
            started = await recorder.observe_auto_record(voice_command)
        else:
            await asyncio.to_thread(input, "Press Enter to start recording...")
            started = await recorder.start()

        if not started:
            print("Microphone unavailable; see log for details.")
            return 1

        await asyncio.to_thread(input)
        await recorder.stop()
        print("\nTranscribing...")
        await recorder.wait_for_transcription()
    finally:
        await recorder.close()

    session = recorder.session
    if session.state == RecorderState.result:
        print(session.transcription)
        return 0
    if session.state == RecorderState.failed:
        print(f"Error: {session.error}")
    else:
        print("No audio captured.")
    return 1


def main() -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Record and transcribe one voice command.")
    parser.add_argument(
        "--url",
        default=None,
        help=f"Transcription endpoint (default: {get_settings().transcribe_url})",
    )
    parser.add_argument(
        "--auto-start",
        action="store_true",
        help="Start recording immediately instead of waiting for Enter",
    )
    args = parser.parse_args()

    print("UAS Ops Voice Console")
    print("Press Enter to stop recording.\n")
    return asyncio.run(run(args.url, args.auto_start))


if __name__ == "__main__":
    sys.exit(main())
