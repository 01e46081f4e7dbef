"""Handler for single-recording delivery."""

from vpi_recordings.domain import (
    DeliveredRecording,
    RecordingLocator,
    RecordingRequest,
    ResolvedRecording,
    Transcoder,
)
from vpi_recordings.logging import setup_logging

logger = setup_logging()


class RecordingHandler:
    """Orchestrates lookup, download and transcoding of one recording."""

    def __init__(self, locator: RecordingLocator, transcoder: Transcoder):
        self._locator = locator
        self._transcoder = transcoder

    def fetch_mp3(self, request: RecordingRequest) -> DeliveredRecording:
        """
        Resolves a request and returns the recording as MP3.

        Raises:
            InvalidRequestError: If the request is incomplete or the tenant
                is unusable.
            RecordingNotFoundError: If no recording matches.
            MalformedMetadataError: If a metadata document is unparseable.
            StorageError: If the object store cannot be read.
            EmptyAudioError: If the stored recording is empty.
            TranscodeProcessError: If transcoding fails.
            TranscodeTimeoutError: If transcoding runs out of time.
        """
        resolved = self._locator.resolve(request)
        raw = self._locator.fetch_audio(resolved)
        encoded = self._transcoder.transcode(raw)

        logger.info(
            "Recording delivered",
            extra={
                "object_key": resolved.object_key,
                "file_name": resolved.delivery_name,
                "ambiguous": resolved.ambiguous,
            },
        )

        return DeliveredRecording(
            file_name=resolved.delivery_name,
            content=encoded,
            ambiguous=resolved.ambiguous,
        )

    def fetch_metadata(self, request: RecordingRequest) -> ResolvedRecording:
        """Resolves a request without downloading the audio."""
        return self._locator.resolve(request)
