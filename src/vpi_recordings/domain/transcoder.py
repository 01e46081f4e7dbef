"""WAV to MP3 transcoding through an external ffmpeg process."""

import subprocess
import threading
import time
from collections.abc import Sequence
from typing import BinaryIO

from vpi_recordings.exceptions import (
    EmptyAudioError,
    TranscodeProcessError,
    TranscodeTimeoutError,
)
from vpi_recordings.logging import setup_logging

logger = setup_logging()

TRANSCODE_TIMEOUT_SECONDS = 120.0

OUTPUT_FORMAT = "mp3"
AUDIO_CODEC = "libmp3lame"
AUDIO_BITRATE = "128k"
AUDIO_CHANNELS = 1
SAMPLE_RATE = 44100

_READ_CHUNK_SIZE = 64 * 1024
_KILL_GRACE_SECONDS = 1.0


def build_ffmpeg_command(ffmpeg_path: str = "ffmpeg") -> list[str]:
    """Returns the fixed ffmpeg invocation: WAV on stdin, MP3 on stdout."""
    return [
        ffmpeg_path,
        "-hide_banner",
        "-loglevel", "error",
        "-f", "wav",
        "-i", "pipe:0",
        "-vn",
        "-acodec", AUDIO_CODEC,
        "-b:a", AUDIO_BITRATE,
        "-ac", str(AUDIO_CHANNELS),
        "-ar", str(SAMPLE_RATE),
        "-f", OUTPUT_FORMAT,
        "pipe:1",
    ]


class Transcoder:
    """
    Pipes raw audio through a codec process and collects the encoded output.

    Each call owns its process. Writing stdin and draining stdout and stderr
    run on three threads at once so a full pipe buffer on either side cannot
    stall the other. All three share one wall-clock deadline; when it passes
    the process is killed and the partial output discarded.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        timeout_seconds: float = TRANSCODE_TIMEOUT_SECONDS,
        command: Sequence[str] | None = None,
    ):
        self._command = list(command) if command else build_ffmpeg_command(ffmpeg_path)
        self._timeout_seconds = timeout_seconds

    def transcode(self, raw: bytes) -> bytes:
        """
        Transcodes raw audio bytes.

        Args:
            raw: The source audio.

        Returns:
            The encoded audio.

        Raises:
            EmptyAudioError: If ``raw`` is empty or None.
            TranscodeTimeoutError: If the process does not finish in time.
            TranscodeProcessError: If the process cannot start or exits
                non-zero.
        """
        if not raw:
            raise EmptyAudioError()

        started = time.monotonic()
        process = self._spawn()
        try:
            output, diagnostics, failures = self._communicate(process, raw)
            returncode = process.wait()
        finally:
            if process.poll() is None:
                process.kill()
                process.wait()

        if returncode != 0:
            logger.error(
                "Transcoding process failed",
                extra={"returncode": returncode, "stderr": diagnostics},
            )
            raise TranscodeProcessError(returncode, diagnostics)

        if failures:
            # stdin closed early by the codec is reported but does not fail the call
            logger.warning(
                "Transcoding stream error",
                extra={"errors": [str(f) for f in failures]},
            )
            if any(not isinstance(f, BrokenPipeError) for f in failures):
                raise TranscodeProcessError(returncode, diagnostics, failures[0])

        if diagnostics.strip():
            logger.warning("Transcoder diagnostics", extra={"stderr": diagnostics})

        logger.info(
            "Audio transcoded",
            extra={
                "input_size": len(raw),
                "output_size": len(output),
                "elapsed_seconds": round(time.monotonic() - started, 3),
            },
        )
        return output

    def _spawn(self) -> subprocess.Popen:
        try:
            return subprocess.Popen(
                self._command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            logger.exception(
                "Transcoding process could not start",
                extra={"command": self._command[0]},
            )
            raise TranscodeProcessError(None, str(e), e) from e

    def _communicate(
        self, process: subprocess.Popen, raw: bytes
    ) -> tuple[bytes, str, list[Exception]]:
        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        failures: list[Exception] = []

        def write_input() -> None:
            try:
                process.stdin.write(raw)
            except OSError as e:
                failures.append(e)
            finally:
                try:
                    process.stdin.close()
                except OSError as e:
                    failures.append(e)

        def drain(stream: BinaryIO, sink: list[bytes]) -> None:
            try:
                for chunk in iter(lambda: stream.read(_READ_CHUNK_SIZE), b""):
                    sink.append(chunk)
            except (OSError, ValueError) as e:
                failures.append(e)

        threads = [
            threading.Thread(target=write_input, name="transcode-stdin", daemon=True),
            threading.Thread(
                target=drain,
                args=(process.stdout, stdout_chunks),
                name="transcode-stdout",
                daemon=True,
            ),
            threading.Thread(
                target=drain,
                args=(process.stderr, stderr_chunks),
                name="transcode-stderr",
                daemon=True,
            ),
        ]
        for thread in threads:
            thread.start()

        readers = ((threads[1], process.stdout), (threads[2], process.stderr))
        try:
            deadline = time.monotonic() + self._timeout_seconds
            for thread in threads:
                thread.join(max(0.0, deadline - time.monotonic()))

            if any(thread.is_alive() for thread in threads):
                process.kill()
                for thread in threads:
                    thread.join(_KILL_GRACE_SECONDS)
                logger.error(
                    "Transcoding timed out",
                    extra={"timeout_seconds": self._timeout_seconds, "pid": process.pid},
                )
                raise TranscodeTimeoutError(self._timeout_seconds)
        finally:
            # a reader still blocked after the kill holds the stream lock
            for thread, stream in readers:
                if not thread.is_alive():
                    stream.close()

        diagnostics = b"".join(stderr_chunks).decode("utf-8", errors="replace")
        return b"".join(stdout_chunks), diagnostics, failures
