"""Abstract interface for object store operations."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import BinaryIO


class StorageClient(ABC):
    """Abstract base class for recording object stores."""

    @abstractmethod
    def list_objects(self, prefix: str) -> list[str]:
        """
        Lists object keys under a prefix, recursively, in store order.

        Args:
            prefix: The key prefix to list under.

        Returns:
            The matching object keys.

        Raises:
            StorageListError: If the listing fails.
        """

    @abstractmethod
    def download(self, object_name: str) -> bytes:
        """
        Downloads an object's full content.

        Args:
            object_name: The object key.

        Returns:
            The object contents as bytes.

        Raises:
            StorageDownloadError: If the download fails.
        """

    @abstractmethod
    def open_stream(self, object_name: str) -> AbstractContextManager[BinaryIO]:
        """
        Opens a readable stream over an object.

        The stream is released when the returned context manager exits.

        Raises:
            StorageDownloadError: If the object cannot be opened.
        """
