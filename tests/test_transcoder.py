"""Tests for the subprocess transcoder using stand-in codec processes."""

import io
import shutil
import subprocess
import sys
import time
import wave

import pytest

from vpi_recordings.domain import Transcoder
from vpi_recordings.domain.transcoder import build_ffmpeg_command
from vpi_recordings.exceptions import (
    EmptyAudioError,
    TranscodeProcessError,
    TranscodeTimeoutError,
)

STREAMING_COPY = (
    "import shutil, sys; shutil.copyfileobj(sys.stdin.buffer, sys.stdout.buffer)"
)
FAILING = (
    "import sys; sys.stdin.buffer.read(); sys.stderr.write('Invalid data'); sys.exit(3)"
)
NOISY_SUCCESS = (
    "import sys; data = sys.stdin.buffer.read(); "
    "sys.stderr.write('Guessed channel layout'); sys.stdout.buffer.write(data[::-1])"
)
HANGING = "import time; time.sleep(60)"


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


class RecordingTranscoder(Transcoder):
    """Keeps a handle on every process it spawns."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.processes: list[subprocess.Popen] = []

    def _spawn(self) -> subprocess.Popen:
        process = super()._spawn()
        self.processes.append(process)
        return process


def test_ffmpeg_command_uses_fixed_encoding_parameters() -> None:
    command = build_ffmpeg_command("/opt/ffmpeg/bin/ffmpeg")

    assert command[0] == "/opt/ffmpeg/bin/ffmpeg"
    assert command[command.index("-acodec") + 1] == "libmp3lame"
    assert command[command.index("-b:a") + 1] == "128k"
    assert command[command.index("-ac") + 1] == "1"
    assert command[command.index("-ar") + 1] == "44100"
    assert command[-3:] == ["-f", "mp3", "pipe:1"]


@pytest.mark.parametrize("payload", [b"", None])
def test_empty_input_is_rejected_without_spawning(payload) -> None:
    transcoder = RecordingTranscoder(command=_python(STREAMING_COPY))

    with pytest.raises(EmptyAudioError):
        transcoder.transcode(payload)

    assert transcoder.processes == []


def test_large_payload_streams_without_deadlock() -> None:
    """Output far larger than a pipe buffer needs concurrent reading."""
    payload = bytes(range(256)) * (8 * 1024 * 4)
    transcoder = Transcoder(command=_python(STREAMING_COPY), timeout_seconds=60)

    assert transcoder.transcode(payload) == payload


def test_non_zero_exit_raises_with_diagnostics() -> None:
    transcoder = RecordingTranscoder(command=_python(FAILING), timeout_seconds=30)

    with pytest.raises(TranscodeProcessError) as excinfo:
        transcoder.transcode(b"RIFF")

    assert excinfo.value.returncode == 3
    assert "Invalid data" in excinfo.value.stderr
    (process,) = transcoder.processes
    assert process.poll() is not None
    assert process.stdout.closed and process.stderr.closed


def test_diagnostics_on_success_are_not_an_error() -> None:
    transcoder = Transcoder(command=_python(NOISY_SUCCESS), timeout_seconds=30)

    assert transcoder.transcode(b"abc") == b"cba"


def test_hanging_process_times_out_and_is_killed() -> None:
    transcoder = RecordingTranscoder(command=_python(HANGING), timeout_seconds=0.5)

    started = time.monotonic()
    with pytest.raises(TranscodeTimeoutError) as excinfo:
        transcoder.transcode(b"RIFF")
    elapsed = time.monotonic() - started

    assert excinfo.value.timeout_seconds == 0.5
    assert elapsed < 10
    (process,) = transcoder.processes
    assert process.poll() is not None
    assert process.stdout.closed
    assert process.stderr.closed


def test_missing_executable_is_a_process_failure() -> None:
    transcoder = Transcoder(command=["/nonexistent/bin/ffmpeg-missing"])

    with pytest.raises(TranscodeProcessError) as excinfo:
        transcoder.transcode(b"RIFF")

    assert excinfo.value.returncode is None


def _silent_wav(seconds: float = 0.25, rate: int = 8000) -> bytes:
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(b"\x00\x00" * int(seconds * rate))
    return buffer.getvalue()


@pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg not installed")
def test_ffmpeg_round_trip_produces_mp3() -> None:
    transcoder = RecordingTranscoder(timeout_seconds=60)

    encoded = transcoder.transcode(_silent_wav())

    assert encoded
    assert transcoder.processes[0].returncode == 0
