"""API tests for the recording endpoints with in-memory collaborators."""

import io
import json
import zipfile

import pytest
from _recording_helpers import DATE, StubTranscoder
from fastapi import FastAPI
from fastapi.testclient import TestClient

from vpi_recordings.dependencies import get_archiver, get_handler
from vpi_recordings.domain import BatchArchiver
from vpi_recordings.exceptions import TranscodeTimeoutError
from vpi_recordings.handlers import RecordingHandler
from vpi_recordings.routes import recordings_router


class TimingOutTranscoder:
    def transcode(self, raw: bytes) -> bytes:
        raise TranscodeTimeoutError(120)


@pytest.fixture
def transcoder() -> StubTranscoder:
    return StubTranscoder()


@pytest.fixture
def client(locator, transcoder) -> TestClient:
    app = FastAPI()
    app.include_router(recordings_router)
    app.dependency_overrides[get_handler] = lambda: RecordingHandler(locator, transcoder)
    app.dependency_overrides[get_archiver] = lambda: BatchArchiver(locator, transcoder)
    return TestClient(app)


def _body(username: str = "jdoe", **overrides) -> dict:
    body = {"opco": "NYSEG", "date": DATE, "username": username}
    body.update(overrides)
    return body


def test_recording_returns_mp3(client: TestClient, add_media_recording) -> None:
    add_media_recording("jdoe", audio=b"wav-bytes", ExtensionNum="4411")

    response = client.post("/api/v1/recording", json=_body(extensionNum="4411"))

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/mpeg"
    assert "2024-03-05_14-30-15_jdoe.mp3" in response.headers["content-disposition"]
    assert response.headers["x-recording-ambiguous"] == "false"
    assert response.content == b"MP3:wav-bytes"


def test_recording_flags_ambiguous_match(client: TestClient, add_media_recording) -> None:
    add_media_recording("jdoe", serial="0001")
    add_media_recording("jdoe", serial="0002")

    response = client.post("/api/v1/recording", json=_body())

    assert response.status_code == 200
    assert response.headers["x-recording-ambiguous"] == "true"


def test_recording_not_found_is_404(client: TestClient) -> None:
    response = client.post("/api/v1/recording", json=_body())

    assert response.status_code == 404
    assert "no metadata" in response.json()["detail"]


def test_invalid_tenant_is_400(client: TestClient) -> None:
    response = client.post("/api/v1/recording", json=_body(opco="CONED"))

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid Opco CONED"


def test_transcode_timeout_is_504(locator, add_media_recording) -> None:
    add_media_recording("jdoe")
    app = FastAPI()
    app.include_router(recordings_router)
    app.dependency_overrides[get_handler] = lambda: RecordingHandler(
        locator, TimingOutTranscoder()
    )

    response = TestClient(app).post("/api/v1/recording", json=_body())

    assert response.status_code == 504


def test_recording_metadata_returns_resolved_fields(
    client: TestClient, add_media_recording
) -> None:
    key = add_media_recording("jdoe", ChannelNum="7")

    response = client.post("/api/v1/recording-metadata", json=_body(channelNum=7))

    assert response.status_code == 200
    payload = response.json()
    assert payload["object_key"] == key
    assert payload["ambiguous"] is False
    assert payload["fields"] == {"ChannelNum": "7"}


def test_download_recordings_returns_zip(client: TestClient, add_media_recording) -> None:
    add_media_recording("jdoe")

    response = client.post(
        "/api/v1/download-recordings", json=[_body(), _body("nobody")]
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert "recordings.zip" in response.headers["content-disposition"]
    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        assert "status.json" in zf.namelist()


def test_download_recordings_with_no_successes_is_204(client: TestClient) -> None:
    response = client.post("/api/v1/download-recordings", json=[_body("nobody")])

    assert response.status_code == 204
    assert response.content == b""


def test_download_recordings_empty_batch_is_400(client: TestClient) -> None:
    response = client.post("/api/v1/download-recordings", json=[])

    assert response.status_code == 400


def test_bad_numeric_field_fails_only_its_batch_item(
    client: TestClient, add_media_recording
) -> None:
    add_media_recording("jdoe")

    response = client.post(
        "/api/v1/download-recordings",
        json=[_body("jdoe", duration="n/a"), _body("jdoe", channelNum="0")],
    )

    assert response.status_code == 200
    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        manifest = json.loads(zf.read("status.json"))
    assert [r["status"] for r in manifest["records"]] == ["ERROR", "SUCCESS"]
    assert "Duration must be an integer" in manifest["records"][0]["reason"]


@pytest.mark.parametrize(
    ("username", "fallback", "encoded"),
    [
        ("Łukasz", "2024-03-05_14-30-15__ukasz.mp3", "2024-03-05_14-30-15_%C5%81ukasz.mp3"),
        ('jo"e', "2024-03-05_14-30-15_jo_e.mp3", "2024-03-05_14-30-15_jo%22e.mp3"),
    ],
)
def test_recording_file_name_is_encoded_in_disposition(
    client: TestClient, add_media_recording, username, fallback, encoded
) -> None:
    add_media_recording(username, audio=b"wav-bytes")

    response = client.post("/api/v1/recording", json=_body(username))

    assert response.status_code == 200
    assert response.headers["content-disposition"] == (
        f"inline; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"
    )
    assert response.content == b"MP3:wav-bytes"
