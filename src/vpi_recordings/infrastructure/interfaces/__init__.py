from vpi_recordings.infrastructure.interfaces.storage import StorageClient

__all__ = ["StorageClient"]
