"""Custom exceptions for the recording delivery service."""

from enum import StrEnum


class InvalidRequestError(Exception):
    """Raised when a recording request is incomplete or names an unusable tenant."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundReason(StrEnum):
    """Why a request could not be resolved to a recording."""

    NOT_MIGRATED = "not migrated"
    NO_ATTRIBUTE_MATCH = "metadata found, no attribute match"
    NO_METADATA = "no metadata"


class RecordingNotFoundError(Exception):
    """Raised when no eligible recording matches a request."""

    def __init__(self, reason: NotFoundReason, detail: str = ""):
        self.reason = reason
        self.detail = detail
        message = f"Recording not found: {reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class MalformedMetadataError(Exception):
    """Raised when a metadata document cannot be parsed."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class StorageError(Exception):
    """Base class for object store failures."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class StorageListError(StorageError):
    """Raised when listing objects under a prefix fails."""

    def __init__(self, prefix: str, cause: Exception | None = None):
        self.prefix = prefix
        super().__init__(f"Failed to list objects under '{prefix}'", cause)


class StorageDownloadError(StorageError):
    """Raised when downloading an object from storage fails."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        self.object_name = object_name
        super().__init__(f"Failed to download '{object_name}' from storage", cause)


class EmptyAudioError(Exception):
    """Raised when the transcoder is handed no audio."""

    def __init__(self):
        super().__init__("Audio payload is empty")


class TranscodeProcessError(Exception):
    """Raised when the codec process fails or exits non-zero."""

    def __init__(
        self,
        returncode: int | None,
        stderr: str = "",
        cause: Exception | None = None,
    ):
        self.returncode = returncode
        self.stderr = stderr
        self.cause = cause
        message = f"Audio transcoding failed (exit code {returncode})"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


class TranscodeTimeoutError(Exception):
    """Raised when the codec process exceeds its wall-clock budget."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Audio transcoding timed out after {timeout_seconds:g}s")


class EmptyBatchError(Exception):
    """Raised when a batch download is requested with no items."""

    def __init__(self):
        super().__init__("At least one recording request is required")


class ArchiveError(Exception):
    """Raised when the output archive cannot be assembled."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)
