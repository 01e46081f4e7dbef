"""Shared fixtures for locator, archiver and API tests."""

import pytest
from _recording_helpers import (
    TOKEN,
    InMemoryStorage,
    media_element,
    media_file_name,
)

from vpi_recordings.domain import MetadataParser, RecordingLocator, Tenant


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def locator(storage: InMemoryStorage) -> RecordingLocator:
    return RecordingLocator(
        {Tenant.CMP: storage, Tenant.NYSEG: storage, Tenant.RGE: storage},
        MetadataParser(),
    )


@pytest.fixture
def add_media_recording(storage: InMemoryStorage):
    """Stores a NYSEG/RGE-style metadata document plus its audio blob."""

    def _add(
        username: str,
        tenant: str = "NYSEG",
        prefix_date: str = "2024/3/5",
        token: str = TOKEN,
        serial: str = "0001",
        audio: bytes | None = None,
        result: str = "Success",
        **fields: str,
    ) -> str:
        file_name = media_file_name(username, token, serial)
        prefix = f"{tenant}/{prefix_date}/"
        storage.put(
            f"{prefix}{file_name}.xml",
            media_element(file_name, result=result, **fields),
        )
        storage.put(f"{prefix}{file_name}", audio if audio is not None else b"RIFF" + file_name.encode())
        return prefix + file_name

    return _add
