"""FastAPI dependency injection configuration."""

from minio import Minio

from vpi_recordings.config import load_config
from vpi_recordings.domain import (
    BatchArchiver,
    MetadataParser,
    RecordingLocator,
    Tenant,
    Transcoder,
)
from vpi_recordings.handlers import RecordingHandler
from vpi_recordings.infrastructure import MinioStorageClient
from vpi_recordings.infrastructure.interfaces import StorageClient
from vpi_recordings.logging import setup_logging

logger = setup_logging()

_config = load_config()

_minio_client = Minio(
    endpoint=_config.minio.endpoint,
    access_key=_config.minio.user,
    secret_key=_config.minio.password,
    secure=_config.minio.secure,
)


def _build_stores() -> dict[Tenant, StorageClient | None]:
    stores: dict[Tenant, StorageClient | None] = {}
    for tenant, tenant_config in _config.tenants.items():
        if tenant_config.enabled:
            stores[tenant] = MinioStorageClient(_minio_client, tenant_config.bucket_name)
        else:
            stores[tenant] = None
    logger.info(
        "Tenant stores configured",
        extra={"enabled": [t.value for t, s in stores.items() if s is not None]},
    )
    return stores


_locator = RecordingLocator(_build_stores(), MetadataParser())
_transcoder = Transcoder(
    ffmpeg_path=_config.transcoder.ffmpeg_path,
    timeout_seconds=_config.transcoder.timeout_seconds,
)


def get_locator() -> RecordingLocator:
    """Returns the recording locator."""
    return _locator


def get_transcoder() -> Transcoder:
    """Returns the transcoder."""
    return _transcoder


def get_handler() -> RecordingHandler:
    """Returns the single-recording handler."""
    return RecordingHandler(_locator, _transcoder)


def get_archiver() -> BatchArchiver:
    """Returns the batch archiver."""
    return BatchArchiver(_locator, _transcoder)
