import errno
import logging
import os
import uuid
from pathlib import Path

from ..constants import THUMBNAIL_EXTENSIONS
from ..exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    StorageIOError,
)
from ..utils.archive import build_zip
from ..utils.paths import (
    join_relative,
    normalize_relative_path,
    parent_path,
    sanitize_folder_name,
    split_relative_path,
    validate_entry_name,
)
from .classifier import get_extension, parse_category
from .placement import MoveStrategy, RenameMoveStrategy
from .storage import Entry, StorageService

logger = logging.getLogger(__name__)


__all__ = [
    "FileService",
]


def _require_entry_path(path: str | None, action: str) -> str:
    """Normalize a path that must point below the category root."""
    clean_path = normalize_relative_path(path)
    if not clean_path:
        raise InvalidInputError(f"Cannot {action} a category root")
    return clean_path


class FileService:
    """Rename, move, delete and create entries in category storage.

    Every mutation checks that the source exists and that the destination
    does not before touching the disk; existing entries are never
    overwritten or merged.
    """

    def __init__(
        self,
        storage: StorageService,
        move_strategy: MoveStrategy | None = None,
    ) -> None:
        """Initialize the file service."""
        self.storage = storage
        self.move_strategy = move_strategy or RenameMoveStrategy()

    def rename(self, category: str, path: str, new_name: str | None) -> Entry:
        """Rename an entry inside its current directory."""
        cat = parse_category(category)
        clean_path = _require_entry_path(path, "rename")
        name = validate_entry_name(new_name)
        source = self.storage.locate(cat, clean_path)

        destination = source.parent / name
        if os.path.lexists(destination):
            raise ConflictError("A file with this name already exists")

        try:
            os.rename(source, destination)
        except OSError as err:
            raise StorageIOError(f"Failed to rename {cat.value}/{clean_path}: {err}")

        new_path = join_relative(parent_path(clean_path), name)
        logger.info(f"Renamed {cat.value}/{clean_path} -> {new_path}")
        return self.storage.describe(cat, new_path)

    def move(
        self,
        category: str,
        path: str,
        new_category: str | None,
        target_path: str | None = None,
    ) -> Entry:
        """Move a file or folder to another category and/or folder."""
        src_cat = parse_category(category)
        dst_cat = parse_category(new_category)
        clean_path = _require_entry_path(path, "move")
        target_dir_path = normalize_relative_path(target_path)
        source = self.storage.locate(src_cat, clean_path)
        name = split_relative_path(clean_path)[-1]

        if src_cat == dst_cat and parent_path(clean_path) == target_dir_path:
            raise ConflictError("Item is already in this location")

        is_folder = source.is_dir() and not source.is_symlink()
        if (
            is_folder
            and src_cat == dst_cat
            and (
                target_dir_path == clean_path
                or target_dir_path.startswith(f"{clean_path}/")
            )
        ):
            raise InvalidInputError("Cannot move a folder into itself")

        dest_dir = self.storage.resolve_folder(dst_cat, target_dir_path)
        destination = dest_dir / name
        if os.path.lexists(destination):
            raise ConflictError(
                "A file with this name already exists in the target location"
            )

        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            self.move_strategy.move(source, destination)
        except OSError as err:
            raise StorageIOError(f"Failed to move {src_cat.value}/{clean_path}: {err}")

        new_path = join_relative(target_dir_path, name)
        logger.info(
            f"Moved {src_cat.value}/{clean_path} -> {dst_cat.value}/{new_path}"
        )
        return self.storage.describe(dst_cat, new_path)

    def delete_file(self, category: str, path: str) -> None:
        """Delete a single file."""
        cat = parse_category(category)
        clean_path = _require_entry_path(path, "delete")
        source = self.storage.locate(cat, clean_path)
        if source.is_dir() and not source.is_symlink():
            raise InvalidInputError(f"Not a file: {cat.value}/{clean_path}")
        try:
            source.unlink()
        except FileNotFoundError:
            raise NotFoundError(f"File not found: {cat.value}/{clean_path}") from None
        except OSError as err:
            raise StorageIOError(f"Failed to delete {cat.value}/{clean_path}: {err}")
        logger.info(f"Deleted {cat.value}/{clean_path}")

    def delete_folder(self, category: str, path: str) -> None:
        """Delete a folder, which must be empty."""
        cat = parse_category(category)
        clean_path = _require_entry_path(path, "delete")
        source = self.storage.locate(cat, clean_path)
        if not source.is_dir() or source.is_symlink():
            raise InvalidInputError(f"Not a folder: {cat.value}/{clean_path}")

        with os.scandir(source) as it:
            if any(True for _ in it):
                raise ConflictError("Folder is not empty")

        try:
            source.rmdir()
        except OSError as err:
            # Something was added between the check and the rmdir
            if err.errno in (errno.ENOTEMPTY, errno.EEXIST):
                raise ConflictError("Folder is not empty") from None
            raise StorageIOError(f"Failed to delete {cat.value}/{clean_path}: {err}")
        logger.info(f"Deleted folder {cat.value}/{clean_path}")

    def create_folder(self, category: str, path: str | None, name: str | None) -> Entry:
        """Create a folder, including any missing parent folders."""
        cat = parse_category(category)
        folder_name = sanitize_folder_name(name or "")
        if not folder_name:
            raise InvalidInputError("Folder name is required")

        parent_rel = normalize_relative_path(path)
        parent_dir = self.storage.resolve_folder(cat, parent_rel)

        target = parent_dir / folder_name
        if os.path.lexists(target):
            raise ConflictError("A folder with this name already exists")

        try:
            parent_dir.mkdir(parents=True, exist_ok=True)
            target.mkdir()
        except FileExistsError:
            raise ConflictError("A folder with this name already exists") from None
        except OSError as err:
            raise StorageIOError(f"Failed to create folder {folder_name}: {err}")

        new_path = join_relative(parent_rel, folder_name)
        logger.info(f"Created folder {cat.value}/{new_path}")
        return self.storage.describe(cat, new_path)

    def open_download(self, category: str, path: str) -> Path:
        """Resolve a file for download."""
        cat = parse_category(category)
        clean_path = _require_entry_path(path, "download")
        try:
            source = self.storage.locate(cat, clean_path)
        except NotFoundError:
            raise NotFoundError("File not found") from None
        if not source.is_file():
            raise NotFoundError("File not found")
        return source

    def open_thumbnail(self, category: str, path: str) -> Path:
        """Resolve an image file for thumbnail display."""
        if get_extension(path or "") not in THUMBNAIL_EXTENSIONS:
            raise InvalidInputError("Thumbnails are only available for images")
        return self.open_download(category, path)

    def create_archive(self, category: str, path: str | None) -> tuple[Path, str]:
        """Zip a folder subtree into the staging area.

        Returns the archive path and the file name to offer the client. The
        caller owns the archive and must remove it.
        """
        cat = parse_category(category)
        clean_path = normalize_relative_path(path)
        if clean_path:
            folder = self.storage.locate(cat, clean_path)
        else:
            folder = self.storage.category_dir(cat)
        if not folder.is_dir():
            raise InvalidInputError(f"Not a folder: {cat.value}/{clean_path}")

        archive_path = self.storage.staging_dir / f"archive_{uuid.uuid4().hex}.zip"
        try:
            archive_path.parent.mkdir(parents=True, exist_ok=True)
            count = build_zip(folder, archive_path)
        except OSError as err:
            archive_path.unlink(missing_ok=True)
            raise StorageIOError(f"Failed to archive {cat.value}/{clean_path}: {err}")
        logger.info(f"Archived {count} files from {cat.value}/{clean_path}")
        return archive_path, f"{folder.name}.zip"
