"""Storage for resumable (tus) uploads in the staging area.

Each upload is a data file ``<id>`` plus a JSON side-channel record
``<id>.json`` describing its declared length and metadata. The current
offset is the size of the data file.
"""

import asyncio
import base64
import binascii
import logging
import re
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path

import aiofiles

from localbox.models.upload import UploadInfo

from ..exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
)
from .placement import StagingFile

logger = logging.getLogger(__name__)

_UPLOAD_ID = re.compile(r"^[0-9a-f]{32}$")


def parse_upload_metadata(header: str | None) -> dict[str, str]:
    """Decode an Upload-Metadata header into a dict.

    The header is a comma separated list of ``key base64value`` pairs; the
    value may be omitted.
    """
    metadata: dict[str, str] = {}
    if not header:
        return metadata
    for pair in header.split(","):
        pair = pair.strip()
        if not pair:
            continue
        key, _, encoded = pair.partition(" ")
        try:
            value = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            raise InvalidInputError(f"Invalid Upload-Metadata value for {key}")
        metadata[key] = value
    return metadata


class UploadService:
    """Creates, appends to and discards in-flight uploads."""

    def __init__(self, staging_dir: Path, max_size: int | None = None) -> None:
        self.staging_dir = staging_dir
        self.max_size = max_size

    def _data_path(self, upload_id: str) -> Path:
        if not _UPLOAD_ID.match(upload_id):
            raise NotFoundError(f"Upload {upload_id} not found")
        return self.staging_dir / upload_id

    def _info_path(self, upload_id: str) -> Path:
        return self._data_path(upload_id).with_suffix(".json")

    def create(self, size: int, metadata: dict[str, str]) -> UploadInfo:
        """Register a new upload with an empty data file."""
        if size < 0:
            raise InvalidInputError("Upload-Length must not be negative")
        if self.max_size is not None and size > self.max_size:
            raise PayloadTooLargeError(
                f"Upload of {size} bytes exceeds the limit of {self.max_size}"
            )

        info = UploadInfo(
            id=uuid.uuid4().hex,
            size=size,
            metadata=metadata,
            creation_date=datetime.now(timezone.utc),
        )
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        self._data_path(info.id).touch(exist_ok=False)
        self._info_path(info.id).write_text(info.to_json())
        logger.info(f"Created upload {info.id} ({size} bytes) for {info.filename}")
        return info

    def get(self, upload_id: str) -> UploadInfo:
        info_path = self._info_path(upload_id)
        try:
            return UploadInfo.from_json(info_path.read_text())
        except FileNotFoundError:
            raise NotFoundError(f"Upload {upload_id} not found") from None

    def offset(self, upload_id: str) -> int:
        try:
            return self._data_path(upload_id).stat().st_size
        except FileNotFoundError:
            raise NotFoundError(f"Upload {upload_id} not found") from None

    async def append(
        self,
        upload_id: str,
        offset: int,
        chunk_reader: Callable[[], Awaitable[bytes]],
    ) -> int:
        """Append request data at the given offset. Returns the new offset."""
        info = await asyncio.to_thread(self.get, upload_id)
        current = await asyncio.to_thread(self.offset, upload_id)
        if offset != current:
            raise ConflictError(
                f"Upload-Offset {offset} does not match current offset {current}"
            )

        async with aiofiles.open(self._data_path(upload_id), "ab") as f:
            while True:
                chunk = await chunk_reader()
                if not chunk:
                    break
                if current + len(chunk) > info.size:
                    raise PayloadTooLargeError(
                        f"Upload {upload_id} exceeds its declared length {info.size}"
                    )
                await f.write(chunk)
                current += len(chunk)
        return current

    def staging_file(self, info: UploadInfo) -> StagingFile:
        """Hand a finished upload over to placement."""
        filename = info.filename or f"upload_{int(datetime.now().timestamp() * 1000)}"
        return StagingFile(
            path=self._data_path(info.id),
            original_filename=filename,
            metadata_path=self._info_path(info.id),
        )

    def terminate(self, upload_id: str) -> None:
        """Discard an upload and its metadata."""
        data_path = self._data_path(upload_id)
        info_path = self._info_path(upload_id)
        if not info_path.exists() and not data_path.exists():
            raise NotFoundError(f"Upload {upload_id} not found")
        data_path.unlink(missing_ok=True)
        info_path.unlink(missing_ok=True)
        logger.info(f"Terminated upload {upload_id}")
