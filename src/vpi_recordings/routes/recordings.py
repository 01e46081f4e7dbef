"""Recording delivery endpoints."""

from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response

from vpi_recordings.dependencies import get_archiver, get_handler
from vpi_recordings.domain import BatchArchiver, RecordingRequest
from vpi_recordings.exceptions import (
    ArchiveError,
    EmptyAudioError,
    EmptyBatchError,
    InvalidRequestError,
    MalformedMetadataError,
    RecordingNotFoundError,
    StorageError,
    TranscodeProcessError,
    TranscodeTimeoutError,
)
from vpi_recordings.handlers import RecordingHandler
from vpi_recordings.logging import setup_logging
from vpi_recordings.response_models import RecordingMetadataResponse

logger = setup_logging()

router = APIRouter(prefix="/api/v1", tags=["recordings"])

HandlerDep = Annotated[RecordingHandler, Depends(get_handler)]
ArchiverDep = Annotated[BatchArchiver, Depends(get_archiver)]

_STATUS_BY_ERROR: tuple[tuple[type[Exception], int], ...] = (
    (InvalidRequestError, 400),
    (EmptyBatchError, 400),
    (RecordingNotFoundError, 404),
    (TranscodeTimeoutError, 504),
    (EmptyAudioError, 500),
    (TranscodeProcessError, 500),
    (MalformedMetadataError, 500),
    (StorageError, 500),
    (ArchiveError, 500),
)
_KNOWN_ERRORS = tuple(error for error, _ in _STATUS_BY_ERROR)


def _http_error(error: Exception) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail="Internal server error")


def _content_disposition(disposition: str, file_name: str) -> str:
    """Builds a Content-Disposition value that survives Latin-1 header encoding."""
    fallback = "".join(
        c if " " <= c <= "~" and c not in '"\\' else "_" for c in file_name
    )
    quoted = quote(file_name, safe="")
    if quoted == file_name:
        return f'{disposition}; filename="{file_name}"'
    return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{quoted}"


@router.post("/recording")
def get_recording(request: RecordingRequest, handler: HandlerDep) -> Response:
    """Returns one recording as MP3."""
    logger.info(
        "Fetching recording",
        extra={"opco": request.opco, "date": request.date, "username": request.username},
    )
    try:
        delivered = handler.fetch_mp3(request)
    except _KNOWN_ERRORS as e:
        raise _http_error(e) from e
    except Exception as e:
        logger.exception(f"Error fetching recording: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return Response(
        content=delivered.content,
        media_type=delivered.content_type,
        headers={
            "Content-Disposition": _content_disposition("inline", delivered.file_name),
            "X-Recording-Ambiguous": str(delivered.ambiguous).lower(),
        },
    )


@router.post("/recording-metadata", response_model=RecordingMetadataResponse)
def get_recording_metadata(request: RecordingRequest, handler: HandlerDep):
    """Returns the metadata of the recording a request resolves to."""
    try:
        resolved = handler.fetch_metadata(request)
    except _KNOWN_ERRORS as e:
        raise _http_error(e) from e
    except Exception as e:
        logger.exception(f"Error fetching recording metadata: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return RecordingMetadataResponse(
        object_key=resolved.object_key,
        file_name=resolved.record.file_name,
        ambiguous=resolved.ambiguous,
        media_type=resolved.record.media_type,
        result=resolved.record.result,
        fields=resolved.record.fields,
    )


@router.post("/download-recordings")
def download_recordings(
    requests: list[RecordingRequest], archiver: ArchiverDep
) -> Response:
    """
    Returns a ZIP of the requested recordings plus a status.json manifest.

    Responds 204 when none of the recordings could be delivered.
    """
    logger.info("Downloading recordings", extra={"count": len(requests)})
    try:
        archive = archiver.build(requests)
    except _KNOWN_ERRORS as e:
        raise _http_error(e) from e
    except Exception as e:
        logger.exception(f"Error building recordings archive: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if archive is None:
        return Response(status_code=204)

    return Response(
        content=archive,
        media_type="application/zip",
        headers={
            "Content-Disposition": _content_disposition("attachment", "recordings.zip")
        },
    )
