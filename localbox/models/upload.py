"""Resumable upload data models."""

from dataclasses import dataclass, field
from datetime import datetime

from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.mixins.json import DataClassJSONMixin


@dataclass
class UploadInfo(DataClassJSONMixin):
    """Side-channel record stored next to an in-flight upload."""

    id: str
    size: int
    """Declared total length of the upload in bytes."""

    metadata: dict[str, str] = field(default_factory=dict)
    """Decoded Upload-Metadata pairs sent by the client."""

    creation_date: datetime | None = field(
        metadata=field_options(alias="creationDate"), default=None
    )

    class Config(BaseConfig):
        serialize_by_alias = True
        omit_none = True

    def _get(self, key: str) -> str | None:
        # Browser clients encode unset values as the literal string "null".
        value = self.metadata.get(key)
        if not value or value == "null":
            return None
        return value

    @property
    def filename(self) -> str | None:
        return self._get("filename") or self._get("name")

    @property
    def category(self) -> str | None:
        return self._get("category")

    @property
    def upload_path(self) -> str | None:
        return self._get("uploadPath")

    @property
    def relative_path(self) -> str | None:
        return self._get("relativePath")
