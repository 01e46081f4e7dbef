"""Response models for the recording delivery API."""

from pydantic import BaseModel


class RecordingMetadataResponse(BaseModel):
    """Metadata of the recording a request resolved to."""

    object_key: str
    file_name: str
    ambiguous: bool
    media_type: str
    result: str
    fields: dict[str, str]
