"""Bundles many recordings into one ZIP archive with a status manifest."""

import io
import zipfile
from collections.abc import Sequence

from vpi_recordings.domain.models import (
    BatchSummary,
    ItemOutcome,
    ItemStatus,
    RecordingRequest,
)
from vpi_recordings.domain.recording_locator import RecordingLocator
from vpi_recordings.domain.transcoder import Transcoder
from vpi_recordings.exceptions import (
    ArchiveError,
    EmptyBatchError,
    RecordingNotFoundError,
)
from vpi_recordings.logging import setup_logging

logger = setup_logging()

STATUS_ENTRY_NAME = "status.json"


class BatchArchiver:
    """
    Resolves, transcodes and archives a list of recording requests.

    Items are processed one after another. A failing item is recorded in the
    manifest and never stops the batch. Entry names are not deduplicated;
    two requests that produce the same name both get written and ZIP readers
    return the last one.
    """

    def __init__(self, locator: RecordingLocator, transcoder: Transcoder):
        self._locator = locator
        self._transcoder = transcoder

    def build(self, requests: Sequence[RecordingRequest]) -> bytes | None:
        """
        Builds the archive for a batch.

        Args:
            requests: The recording requests, in the order they should be
                reported.

        Returns:
            The ZIP bytes, or None when no item succeeded.

        Raises:
            EmptyBatchError: If ``requests`` is empty.
            ArchiveError: If the archive itself cannot be written.
        """
        if not requests:
            raise EmptyBatchError()

        logger.info("Building recordings archive", extra={"total": len(requests)})

        buffer = io.BytesIO()
        outcomes: list[ItemOutcome] = []
        try:
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for request in requests:
                    outcomes.append(self._add_item(archive, request))

                success = sum(1 for o in outcomes if o.status == ItemStatus.SUCCESS)
                if success == 0:
                    logger.warning(
                        "No recordings could be archived",
                        extra={"total": len(requests)},
                    )
                    return None

                summary = BatchSummary(
                    total_requests=len(requests),
                    success=success,
                    failure=len(outcomes) - success,
                    records=outcomes,
                )
                archive.writestr(
                    STATUS_ENTRY_NAME,
                    summary.model_dump_json(by_alias=True, indent=2),
                )
        except (OSError, zipfile.LargeZipFile) as e:
            logger.exception("Archive assembly failed")
            raise ArchiveError(f"Error building ZIP archive: {e}", e) from e

        logger.info(
            "Recordings archive built",
            extra={
                "total": summary.total_requests,
                "success": summary.success,
                "failure": summary.failure,
                "size": buffer.getbuffer().nbytes,
            },
        )
        return buffer.getvalue()

    def _add_item(
        self, archive: zipfile.ZipFile, request: RecordingRequest
    ) -> ItemOutcome:
        username = request.username
        date = request.date

        try:
            resolved = self._locator.resolve(request)
        except RecordingNotFoundError as e:
            return ItemOutcome(
                username=username, date=date, status=ItemStatus.NOT_FOUND, reason=str(e)
            )
        except Exception as e:
            logger.exception(
                "Recording resolution failed",
                extra={"username": username, "date": date},
            )
            return ItemOutcome(
                username=username, date=date, status=ItemStatus.ERROR, reason=str(e)
            )

        try:
            raw = self._locator.fetch_audio(resolved)
            encoded = self._transcoder.transcode(raw)
            archive.writestr(resolved.delivery_name, encoded)
        except Exception as e:
            logger.exception(
                "Recording could not be archived",
                extra={"object_key": resolved.object_key},
            )
            return ItemOutcome(
                username=username, date=date, status=ItemStatus.ERROR, reason=str(e)
            )

        return ItemOutcome(
            username=username,
            date=date,
            file_name=resolved.delivery_name,
            status=ItemStatus.SUCCESS,
        )
