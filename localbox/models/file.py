"""File and folder API data models."""

from dataclasses import dataclass, field
from datetime import datetime

from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.mixins.json import DataClassJSONMixin

from .base import BaseEnum, BaseResponse


class Category(str, BaseEnum):
    """Top level storage bucket a file belongs to."""

    IMAGES = "images"
    DOCUMENTS = "documents"
    ARCHIVES = "archives"
    VIDEOS = "videos"
    AUDIO = "audio"
    OTHERS = "others"


ALL_CATEGORIES = "all"
"""Pseudo category selecting the flattened cross-category listing."""


class EntryType(str, BaseEnum):
    """Kind of a directory entry."""

    FILE = "file"
    FOLDER = "folder"


class SortOrder(str, BaseEnum):
    """Sort key for file listing."""

    NAME = "name"
    TIME = "time"
    SIZE = "size"


class SortSequence(str, BaseEnum):
    """Sort direction for file listing."""

    ASC = "asc"
    DESC = "desc"


@dataclass
class EntryVO(DataClassJSONMixin):
    """A file or folder inside a category."""

    name: str
    category: str
    path: str
    """Relative path of the entry (including its name) inside the category."""

    type: EntryType
    size: int = 0
    created_at: datetime | None = field(
        metadata=field_options(alias="createdAt"), default=None
    )
    modified_at: datetime | None = field(
        metadata=field_options(alias="modifiedAt"), default=None
    )

    class Config(BaseConfig):
        serialize_by_alias = True
        omit_none = True


@dataclass
class FileListVO(BaseResponse):
    """Response model for a directory listing."""

    files: list[EntryVO] = field(default_factory=list)
    total: int = 0
    current_path: str = field(metadata=field_options(alias="currentPath"), default="")
    parent_path: str | None = field(
        metadata=field_options(alias="parentPath"), default=None
    )

    class Config(BaseConfig):
        serialize_by_alias = True
        # parentPath is reported as null at the category root
        omit_none = False


@dataclass
class CategoriesVO(BaseResponse):
    """Response model listing the fixed category set."""

    categories: list[str] = field(default_factory=list)


@dataclass
class FolderVO(DataClassJSONMixin):
    """A folder reachable inside a category."""

    name: str
    path: str

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class FolderListVO(BaseResponse):
    """Response model for the recursive folder listing of a category."""

    category: str = ""
    folders: list[FolderVO] = field(default_factory=list)


@dataclass
class CreateFolderDTO(DataClassJSONMixin):
    """Request model for creating a folder."""

    category: str
    name: str
    path: str = ""

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class RenameDTO(DataClassJSONMixin):
    """Request model for renaming a file."""

    new_name: str = field(metadata=field_options(alias="newName"))

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class MoveDTO(DataClassJSONMixin):
    """Request model for moving a file or folder."""

    new_category: str = field(metadata=field_options(alias="newCategory"))
    target_path: str | None = field(
        metadata=field_options(alias="targetPath"), default=None
    )

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class EntryResponseVO(BaseResponse):
    """Response model carrying the entry produced by a mutation."""

    entry: EntryVO | None = None


@dataclass
class CategoryStatsVO(DataClassJSONMixin):
    """File count and byte size of one category."""

    count: int = 0
    size: int = 0


@dataclass
class TotalStatsVO(DataClassJSONMixin):
    """File count and byte size across all categories."""

    files: int = 0
    size: int = 0


@dataclass
class DiskVO(DataClassJSONMixin):
    """Host disk figures for the storage volume."""

    free: int = 0
    total: int = 0
    used: int = 0


@dataclass
class StatsVO(BaseResponse):
    """Response model for aggregate storage statistics."""

    categories: dict[str, CategoryStatsVO] = field(default_factory=dict)
    total: TotalStatsVO = field(default_factory=TotalStatsVO)
    disk: DiskVO = field(default_factory=DiskVO)
