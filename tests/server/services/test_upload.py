import base64
from datetime import datetime, timezone
from pathlib import Path

import pytest
from freezegun import freeze_time

from localbox.server.exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
)
from localbox.server.services.upload import UploadService, parse_upload_metadata


def _b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


def _reader(*chunks: bytes):
    remaining = list(chunks)

    async def read() -> bytes:
        return remaining.pop(0) if remaining else b""

    return read


@pytest.fixture
def upload_service(tmp_path: Path) -> UploadService:
    return UploadService(tmp_path / "staging", max_size=100)


def test_parse_upload_metadata() -> None:
    header = f"filename {_b64('photo.jpg')},category {_b64('images')},is_confidential"

    assert parse_upload_metadata(header) == {
        "filename": "photo.jpg",
        "category": "images",
        "is_confidential": "",
    }
    assert parse_upload_metadata(None) == {}
    assert parse_upload_metadata("") == {}


def test_parse_upload_metadata_invalid() -> None:
    with pytest.raises(InvalidInputError):
        parse_upload_metadata("filename not-base64!")


@freeze_time("2024-05-01 12:00:00")
def test_create(upload_service: UploadService) -> None:
    info = upload_service.create(10, {"filename": "a.txt"})

    assert len(info.id) == 32
    assert info.size == 10
    assert info.filename == "a.txt"
    assert info.creation_date == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
    assert upload_service.offset(info.id) == 0
    assert upload_service.get(info.id) == info


def test_create_limits(upload_service: UploadService) -> None:
    with pytest.raises(PayloadTooLargeError):
        upload_service.create(101, {})
    with pytest.raises(InvalidInputError):
        upload_service.create(-1, {})


def test_unknown_upload(upload_service: UploadService) -> None:
    with pytest.raises(NotFoundError):
        upload_service.get("0" * 32)
    with pytest.raises(NotFoundError):
        upload_service.offset("../../etc/passwd")
    with pytest.raises(NotFoundError):
        upload_service.terminate("0" * 32)


async def test_append_resumes(upload_service: UploadService) -> None:
    info = upload_service.create(10, {"filename": "a.txt"})

    offset = await upload_service.append(info.id, 0, _reader(b"hello"))
    assert offset == 5
    offset = await upload_service.append(info.id, 5, _reader(b"wor", b"ld"))
    assert offset == 10

    staging = upload_service.staging_file(info)
    assert staging.path.read_bytes() == b"helloworld"
    assert staging.original_filename == "a.txt"
    assert staging.metadata_path is not None
    assert staging.metadata_path.exists()


async def test_append_offset_mismatch(upload_service: UploadService) -> None:
    info = upload_service.create(10, {})
    await upload_service.append(info.id, 0, _reader(b"abc"))

    with pytest.raises(ConflictError):
        await upload_service.append(info.id, 0, _reader(b"abc"))
    assert upload_service.offset(info.id) == 3


async def test_append_beyond_length(upload_service: UploadService) -> None:
    info = upload_service.create(4, {})

    with pytest.raises(PayloadTooLargeError):
        await upload_service.append(info.id, 0, _reader(b"abc", b"def"))
    assert upload_service.offset(info.id) == 3


@freeze_time("2024-05-01 12:00:00")
def test_staging_file_without_name(upload_service: UploadService) -> None:
    info = upload_service.create(0, {"filename": "null"})

    staging = upload_service.staging_file(info)

    assert staging.original_filename.startswith("upload_")


def test_terminate(upload_service: UploadService) -> None:
    info = upload_service.create(10, {})

    upload_service.terminate(info.id)

    with pytest.raises(NotFoundError):
        upload_service.get(info.id)
    assert list(upload_service.staging_dir.iterdir()) == []
