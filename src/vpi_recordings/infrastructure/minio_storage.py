"""MinIO implementation of the StorageClient interface."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import BinaryIO

from minio import Minio

from vpi_recordings.exceptions import StorageDownloadError, StorageListError
from vpi_recordings.logging import setup_logging

from .interfaces import StorageClient

logger = setup_logging()


class MinioStorageClient(StorageClient):
    """Reads recordings and metadata from one MinIO bucket."""

    def __init__(self, client: Minio, bucket_name: str):
        self._client = client
        self._bucket_name = bucket_name

    def list_objects(self, prefix: str) -> list[str]:
        try:
            names = [
                obj.object_name
                for obj in self._client.list_objects(
                    self._bucket_name, prefix=prefix, recursive=True
                )
            ]
        except Exception as e:
            logger.exception(
                "MinIO listing failed",
                extra={"bucket_name": self._bucket_name, "prefix": prefix},
            )
            raise StorageListError(prefix, e) from e

        logger.info(
            "Objects listed from MinIO",
            extra={
                "bucket_name": self._bucket_name,
                "prefix": prefix,
                "count": len(names),
            },
        )
        return names

    def download(self, object_name: str) -> bytes:
        try:
            response = self._client.get_object(self._bucket_name, object_name)
            try:
                data = response.data
            finally:
                response.close()
                response.release_conn()
            logger.info(
                "File downloaded from MinIO",
                extra={
                    "bucket_name": self._bucket_name,
                    "object_name": object_name,
                    "size": len(data),
                },
            )
            return data
        except Exception as e:
            logger.exception(
                "MinIO download failed",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            raise StorageDownloadError(object_name, e) from e

    @contextmanager
    def open_stream(self, object_name: str) -> Iterator[BinaryIO]:
        try:
            response = self._client.get_object(self._bucket_name, object_name)
        except Exception as e:
            logger.exception(
                "MinIO stream open failed",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            raise StorageDownloadError(object_name, e) from e

        try:
            yield response
        finally:
            response.close()
            response.release_conn()
