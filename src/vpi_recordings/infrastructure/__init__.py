"""Infrastructure layer exports."""

from .minio_storage import MinioStorageClient

__all__ = ["MinioStorageClient"]
