"""Resolves recording requests to object keys through XML metadata."""

from collections.abc import Mapping
from datetime import datetime
from typing import NamedTuple

from vpi_recordings.domain.metadata_parser import MetadataParser
from vpi_recordings.domain.models import (
    CandidateRecord,
    RecordingRequest,
    ResolvedRecording,
    Tenant,
)
from vpi_recordings.domain.naming import (
    METADATA_EXTENSION,
    archive_entry_name,
    build_prefix,
    filename_matches,
    parse_request_date,
    timestamp_token,
)
from vpi_recordings.exceptions import (
    InvalidRequestError,
    NotFoundReason,
    RecordingNotFoundError,
    StorageDownloadError,
    StorageError,
)
from vpi_recordings.infrastructure.interfaces import StorageClient
from vpi_recordings.logging import setup_logging

logger = setup_logging()

SUCCESS_RESULT = "Success"
EXPORT_METADATA_FOLDER = "Metadata/"

# request attribute -> metadata child element
STRING_DISAMBIGUATORS = (
    ("ani_ali_digits", "ANIALIDigits"),
    ("extension_num", "ExtensionNum"),
    ("object_id", "ObjectID"),
)
NUMERIC_DISAMBIGUATORS = (
    ("duration", "Duration"),
    ("channel_num", "ChannelNum"),
)


class _Target(NamedTuple):
    tenant: Tenant
    when: datetime
    username: str
    store: StorageClient


def _string_matches(expected: str | None, actual: str | None) -> bool:
    if expected is None or not expected.strip():
        return True
    return actual == expected


def _request_number(value: int | str | None, tag: str) -> int | None:
    if value is None or isinstance(value, int):
        return value
    if not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        raise InvalidRequestError(f"{tag} must be an integer, got {value!r}") from None


def _numeric_matches(expected: int | None, actual: str | None) -> bool:
    if not expected:
        return True
    if actual is None:
        return False
    try:
        return int(actual.strip()) == expected
    except ValueError:
        return False


def matches_disambiguators(record: CandidateRecord, request: RecordingRequest) -> bool:
    """
    Checks a candidate against every disambiguator present on a request.

    Empty or absent request values are wildcards. String attributes compare
    exactly; numeric attributes compare as integers and an absent actual
    value never matches.
    """
    for attr, tag in STRING_DISAMBIGUATORS:
        if not _string_matches(getattr(request, attr), record.field(tag)):
            return False
    for attr, tag in NUMERIC_DISAMBIGUATORS:
        expected = _request_number(getattr(request, attr), tag)
        if not _numeric_matches(expected, record.field(tag)):
            return False
    return True


class RecordingLocator:
    """
    Finds the single recording blob that answers a request.

    Each tenant has its own optional store; a tenant mapped to None is
    disabled and its requests are rejected before any I/O.
    """

    def __init__(
        self,
        stores: Mapping[Tenant, StorageClient | None],
        parser: MetadataParser,
    ):
        self._stores = dict(stores)
        self._parser = parser

    def resolve(self, request: RecordingRequest) -> ResolvedRecording:
        """
        Resolves a request to exactly one object key.

        Args:
            request: The recording request.

        Returns:
            The resolved recording. ``ambiguous`` is True when several
            eligible candidates existed; the first in listing order wins.

        Raises:
            InvalidRequestError: If the request is incomplete, a numeric
                attribute is not an integer, the date is
                unparseable, or the tenant is unknown or disabled.
            RecordingNotFoundError: If no eligible candidate remains.
            MalformedMetadataError: If a metadata document cannot be parsed.
            StorageError: If the object store cannot be read.
        """
        target = self._validate(request)
        prefix = build_prefix(target.tenant, target.when)
        token = timestamp_token(target.when)

        logger.info(
            "Resolving recording",
            extra={
                "tenant": target.tenant.value,
                "prefix": prefix,
                "username": target.username,
            },
        )

        match target.tenant:
            case Tenant.CMP:
                documents = self._list_export_documents(target.store, prefix)
            case Tenant.NYSEG | Tenant.RGE:
                documents = self._list_media_documents(
                    target.store, prefix, token, target.username
                )

        eligible: list[CandidateRecord] = []
        not_migrated: list[CandidateRecord] = []

        for document in documents:
            records = self._read_records(target.store, document)
            # A single-record document is taken as-is, even for CMP where the
            # document name carries no participant. Only multi-record
            # exports are narrowed by file name.
            if len(records) > 1:
                records = [
                    r
                    for r in records
                    if filename_matches(r.file_name, token, target.username)
                ]
            for record in records:
                if not matches_disambiguators(record, request):
                    continue
                if record.result == SUCCESS_RESULT:
                    eligible.append(record)
                else:
                    not_migrated.append(record)

        if not eligible:
            raise self._not_found(prefix, documents, not_migrated)

        chosen = eligible[0]
        ambiguous = len(eligible) > 1
        object_key = prefix + chosen.file_name

        if ambiguous:
            logger.warning(
                "Multiple recordings matched, using the first",
                extra={
                    "prefix": prefix,
                    "candidates": [r.file_name for r in eligible],
                    "selected": chosen.file_name,
                },
            )

        logger.info(
            "Recording resolved",
            extra={"object_key": object_key, "ambiguous": ambiguous},
        )

        return ResolvedRecording(
            tenant=target.tenant,
            object_key=object_key,
            delivery_name=archive_entry_name(token, target.username),
            ambiguous=ambiguous,
            record=chosen,
        )

    def fetch_audio(self, recording: ResolvedRecording) -> bytes:
        """Downloads the raw audio of a resolved recording."""
        store = self._stores.get(recording.tenant)
        if store is None:
            raise InvalidRequestError(f"Tenant {recording.tenant} is not enabled")
        return store.download(recording.object_key)

    def _validate(self, request: RecordingRequest) -> _Target:
        if request is None:
            raise InvalidRequestError("Request cannot be null")
        if not request.username or not request.username.strip():
            raise InvalidRequestError("Username is required")
        if not request.opco or not request.opco.strip():
            raise InvalidRequestError("OPCO is required")
        if not request.date or not request.date.strip():
            raise InvalidRequestError("Date is required")

        try:
            tenant = Tenant(request.opco.strip())
        except ValueError:
            raise InvalidRequestError(f"Invalid Opco {request.opco}") from None

        for attr, tag in NUMERIC_DISAMBIGUATORS:
            _request_number(getattr(request, attr), tag)

        store = self._stores.get(tenant)
        if store is None:
            raise InvalidRequestError(f"Tenant {tenant} is not enabled")

        return _Target(
            tenant=tenant,
            when=parse_request_date(request.date),
            username=request.username.strip(),
            store=store,
        )

    def _list_export_documents(self, store: StorageClient, prefix: str) -> list[str]:
        return [
            name
            for name in store.list_objects(prefix + EXPORT_METADATA_FOLDER)
            if name.endswith(METADATA_EXTENSION)
        ]

    def _list_media_documents(
        self, store: StorageClient, prefix: str, token: str, username: str
    ) -> list[str]:
        return [
            name
            for name in store.list_objects(prefix)
            if name.endswith(METADATA_EXTENSION)
            and filename_matches(name, token, username)
        ]

    def _read_records(self, store: StorageClient, object_name: str) -> list[CandidateRecord]:
        try:
            with store.open_stream(object_name) as stream:
                data = stream.read()
        except StorageError:
            raise
        except Exception as e:
            logger.exception(
                "Metadata read failed", extra={"object_name": object_name}
            )
            raise StorageDownloadError(object_name, e) from e
        return self._parser.parse(data)

    def _not_found(
        self,
        prefix: str,
        documents: list[str],
        not_migrated: list[CandidateRecord],
    ) -> RecordingNotFoundError:
        if not_migrated:
            reason = NotFoundReason.NOT_MIGRATED
            detail = ", ".join(f"{r.file_name}={r.result}" for r in not_migrated)
        elif documents:
            reason = NotFoundReason.NO_ATTRIBUTE_MATCH
            detail = f"{len(documents)} metadata document(s) under {prefix}"
        else:
            reason = NotFoundReason.NO_METADATA
            detail = prefix

        logger.info(
            "Recording not found",
            extra={"prefix": prefix, "reason": reason.value, "detail": detail},
        )
        return RecordingNotFoundError(reason, detail)
