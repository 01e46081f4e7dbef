"""Domain models for recording resolution and delivery."""

from enum import StrEnum

from pydantic import BaseModel, Field


class Tenant(StrEnum):
    """Operating companies that partition the recording store."""

    CMP = "CMP"
    NYSEG = "NYSEG"
    RGE = "RGE"


class RecordingRequest(BaseModel, frozen=True, populate_by_name=True):
    """
    A request for one recording, as received from a caller.

    Every field is optional here; completeness is enforced by the locator so
    that one bad item in a batch does not reject the whole batch.
    """

    opco: str | None = None
    date: str | None = None
    username: str | None = None
    ani_ali_digits: str | None = Field(default=None, alias="aniAliDigits")
    duration: int | str | None = None
    extension_num: str | None = Field(default=None, alias="extensionNum")
    channel_num: int | str | None = Field(default=None, alias="channelNum")
    object_id: str | None = Field(default=None, alias="objectId")


class CandidateRecord(BaseModel, frozen=True):
    """One Media element flattened out of a metadata document."""

    file_name: str = ""
    media_type: str = ""
    result: str = ""
    fields: dict[str, str] = Field(default_factory=dict)

    def field(self, name: str) -> str | None:
        """Returns a child element's text, or None if the element was absent."""
        return self.fields.get(name)


class ResolvedRecording(BaseModel, frozen=True):
    """
    The object key a request resolved to.

    ``ambiguous`` is set when more than one eligible candidate existed and
    the first one in listing order was kept.
    """

    tenant: Tenant
    object_key: str
    delivery_name: str
    ambiguous: bool = False
    record: CandidateRecord


class DeliveredRecording(BaseModel, frozen=True):
    """A transcoded recording ready to hand back to a caller."""

    file_name: str
    content: bytes
    ambiguous: bool = False
    content_type: str = "audio/mpeg"


class ItemStatus(StrEnum):
    """Per-item result of a batch download."""

    SUCCESS = "SUCCESS"
    NOT_FOUND = "NOT_FOUND"
    ERROR = "ERROR"


class ItemOutcome(BaseModel, frozen=True, populate_by_name=True):
    """What happened to one request in a batch."""

    username: str | None
    date: str | None
    file_name: str | None = Field(default=None, alias="fileName")
    status: ItemStatus
    reason: str | None = None


class BatchSummary(BaseModel, frozen=True, populate_by_name=True):
    """Manifest written as status.json into every batch archive."""

    total_requests: int = Field(alias="totalRequests")
    success: int
    failure: int
    records: list[ItemOutcome]
