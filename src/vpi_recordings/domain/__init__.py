"""Domain layer exports."""

from .batch_archiver import BatchArchiver
from .metadata_parser import MetadataParser
from .models import (
    BatchSummary,
    CandidateRecord,
    DeliveredRecording,
    ItemOutcome,
    ItemStatus,
    RecordingRequest,
    ResolvedRecording,
    Tenant,
)
from .recording_locator import RecordingLocator
from .transcoder import Transcoder

__all__ = [
    "BatchArchiver",
    "BatchSummary",
    "CandidateRecord",
    "DeliveredRecording",
    "ItemOutcome",
    "ItemStatus",
    "MetadataParser",
    "RecordingLocator",
    "RecordingRequest",
    "ResolvedRecording",
    "Tenant",
    "Transcoder",
]
