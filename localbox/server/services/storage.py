"""Physical layout of the storage root.

The directory tree is the only source of truth: every category owns one
directory directly below the root and entries are addressed by
``(category, relative path)``.
"""

import logging
import os
import stat
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from localbox.models.file import Category, EntryType

from ..constants import STAGING_DIR_NAME
from ..exceptions import InvalidInputError, NotFoundError, StorageIOError
from ..utils.paths import join_relative, split_relative_path

logger = logging.getLogger(__name__)


__all__ = [
    "Entry",
    "StorageService",
    "stat_entry",
]


@dataclass
class Entry:
    """Domain object representing a file or folder in a category."""

    category: Category
    path: str
    """Relative path inside the category including the entry name."""

    is_folder: bool
    size: int
    create_time: datetime
    update_time: datetime

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent_path(self) -> str:
        """Relative path of the directory holding the entry."""
        head, _, _ = self.path.rpartition("/")
        return head

    @property
    def type(self) -> EntryType:
        return EntryType.FOLDER if self.is_folder else EntryType.FILE

    @property
    def sort_time(self) -> datetime:
        return self.create_time


def _created(st: os.stat_result) -> float:
    # Birth time is not reported everywhere, ctime is the closest fallback.
    return getattr(st, "st_birthtime", None) or st.st_ctime


def stat_entry(category: Category, rel_path: str, physical: Path) -> Entry:
    """Build an Entry from the stat of a physical path.

    Raises OSError if the path cannot be stat'ed.
    """
    st = physical.stat()
    is_folder = stat.S_ISDIR(st.st_mode)
    return Entry(
        category=category,
        path=rel_path,
        is_folder=is_folder,
        size=0 if is_folder else st.st_size,
        create_time=datetime.fromtimestamp(_created(st), tz=timezone.utc),
        update_time=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
    )


class StorageService:
    """Resolves logical addresses to paths below the storage root."""

    def __init__(self, storage_root: Path) -> None:
        self.root = storage_root
        self.staging_dir = storage_root / STAGING_DIR_NAME

    def ensure_layout(self) -> None:
        """Create the staging area and one directory per category."""
        try:
            self.staging_dir.mkdir(parents=True, exist_ok=True)
            for category in Category:
                self.category_dir(category).mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise StorageIOError(f"Failed to prepare storage root {self.root}: {err}")
        logger.info(f"Storage root ready at {self.root}")

    def category_dir(self, category: Category) -> Path:
        return self.root / category.value

    def resolve(self, category: Category, path: str | None = "") -> Path:
        """Resolve a relative path inside a category to a physical path.

        The path may not exist. Paths escaping the category directory,
        including through symlinks, are rejected.
        """
        base = self.category_dir(category)
        segments = split_relative_path(path)
        physical = base.joinpath(*segments)
        if segments and not physical.resolve().is_relative_to(base.resolve()):
            raise InvalidInputError(f"Invalid path: {path}")
        return physical

    def resolve_folder(self, category: Category, path: str | None) -> Path:
        """Resolve a folder path that may be created later.

        Every part of the path that already exists must be a directory.
        """
        physical = self.resolve(category, path)
        current = self.category_dir(category)
        for segment in split_relative_path(path):
            current = current / segment
            if not os.path.lexists(current):
                break
            if not current.is_dir():
                raise InvalidInputError(
                    f"Target path is not a folder: {join_relative(path)}"
                )
        return physical

    def locate(self, category: Category, path: str | None) -> Path:
        """Resolve a path that must refer to an existing entry."""
        physical = self.resolve(category, path)
        if not split_relative_path(path) or not os.path.lexists(physical):
            raise NotFoundError(f"Not found: {category.value}/{path or ''}")
        return physical

    def describe(self, category: Category, path: str | None) -> Entry:
        """Return the Entry for an existing path."""
        physical = self.locate(category, path)
        try:
            return stat_entry(category, join_relative(path), physical)
        except FileNotFoundError:
            raise NotFoundError(f"Not found: {category.value}/{path}") from None
        except OSError as err:
            raise StorageIOError(f"Failed to read {category.value}/{path}: {err}")
