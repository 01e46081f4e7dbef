"""Blob naming conventions shared by the locator and the archiver.

Metadata and audio blobs are named by the upstream recorder as::

    <5 chars><YYYY-MM-DD_HH-MM-SS><participant>.wav[.xml]

The timestamp sits at characters 5-23 and the participant name runs from
character 24 up to the ``.wav`` marker. The positions are fixed by the
recorder, so they are read by offset rather than by pattern.
"""

from datetime import datetime

from vpi_recordings.domain.models import Tenant
from vpi_recordings.exceptions import InvalidRequestError

METADATA_EXTENSION = ".xml"
AUDIO_EXTENSION_MARKER = ".wav"
DELIVERY_EXTENSION = ".mp3"

TIMESTAMP_START = 5
TIMESTAMP_END = 24
PARTICIPANT_START = 24

_REQUEST_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %I:%M:%S %p",
    "%m/%d/%Y %I:%M:%S %p",
)
_TOKEN_FORMAT = "%Y-%m-%d_%H-%M-%S"


def parse_request_date(value: str) -> datetime:
    """
    Parses a request date.

    Accepts a 24-hour ``YYYY-MM-DD HH:MM:SS`` form and two 12-hour forms
    with an AM/PM marker.

    Raises:
        InvalidRequestError: If the value matches none of the formats.
    """
    text = value.strip()
    for fmt in _REQUEST_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise InvalidRequestError(f"Invalid date format {value}")


def build_prefix(tenant: Tenant, when: datetime) -> str:
    """Returns the date prefix for a tenant, e.g. ``CMP/2024/3/5/``."""
    return f"{tenant.value}/{when.year}/{when.month}/{when.day}/"


def timestamp_token(when: datetime) -> str:
    """Returns the 24-hour ``YYYY-MM-DD_HH-MM-SS`` token used in blob names."""
    return when.strftime(_TOKEN_FORMAT)


def _basename(name: str) -> str:
    return name.rsplit("/", 1)[-1]


def filename_timestamp(name: str) -> str | None:
    """Returns the timestamp encoded in a blob name, or None if it is too short."""
    base = _basename(name)
    if len(base) < PARTICIPANT_START:
        return None
    return base[TIMESTAMP_START:TIMESTAMP_END]


def filename_participant(name: str) -> str | None:
    """Returns the trimmed participant encoded in a blob name, or None."""
    base = _basename(name)
    if len(base) < PARTICIPANT_START:
        return None
    marker = base.find(AUDIO_EXTENSION_MARKER, PARTICIPANT_START)
    if marker < 0:
        return None
    return base[PARTICIPANT_START:marker].strip()


def filename_matches(name: str, token: str, username: str) -> bool:
    """True when a blob name encodes the given timestamp token and participant."""
    participant = filename_participant(name)
    if participant is None or filename_timestamp(name) != token:
        return False
    return participant.casefold() == username.strip().casefold()


def archive_entry_name(token: str, username: str) -> str:
    """Returns the delivery file name for a recording."""
    return f"{token}_{username.strip()}{DELIVERY_EXTENSION}"
