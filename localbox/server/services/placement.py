"""Placement of finished uploads into category storage."""

import errno
import logging
import os
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from localbox.models.file import Category

from ..exceptions import InvalidInputError, StorageIOError
from ..utils.paths import directory_part, join_relative, resolve_unique_path
from .classifier import classify, is_category
from .storage import Entry, StorageService, stat_entry

logger = logging.getLogger(__name__)


__all__ = [
    "ExplicitPlacement",
    "InferredPlacement",
    "MoveStrategy",
    "PlacementRequest",
    "PlacementService",
    "RenameMoveStrategy",
    "StagingFile",
    "placement_request",
]


@dataclass(frozen=True)
class StagingFile:
    """A completed upload waiting in the staging area."""

    path: Path
    original_filename: str
    metadata_path: Path | None = None
    """Side-channel record written by the upload transport, if any."""


@dataclass(frozen=True)
class InferredPlacement:
    """Classify the file by its name and place it at the category root."""


@dataclass(frozen=True)
class ExplicitPlacement:
    """Place the file in a caller chosen category and folder."""

    category: Category
    subpath: str = ""


PlacementRequest = InferredPlacement | ExplicitPlacement


def placement_request(
    category: str | None,
    upload_path: str | None = None,
    relative_path: str | None = None,
) -> PlacementRequest:
    """Resolve upload metadata into a placement request.

    An explicit category only counts when it names one of the fixed
    categories. The folder part of ``relative_path`` is appended to
    ``upload_path`` so folder uploads keep their structure.
    """
    if category is None or not is_category(category):
        return InferredPlacement()
    subpath = join_relative(upload_path, directory_part(relative_path))
    return ExplicitPlacement(Category.from_value(category), subpath)


class MoveStrategy(ABC):
    """Interface for relocating a file or directory on disk."""

    @abstractmethod
    def move(self, source: Path, destination: Path) -> None:
        """Move source to destination, which must not exist."""


class RenameMoveStrategy(MoveStrategy):
    """Atomic rename, falling back to copy then delete across devices.

    The fallback copy is not fsynced before the source is removed, so a
    crash in between can lose data. Any failure other than a cross-device
    rename is raised without attempting the fallback.
    """

    def move(self, source: Path, destination: Path) -> None:
        try:
            os.rename(source, destination)
            return
        except OSError as err:
            if err.errno != errno.EXDEV:
                raise
        logger.info(f"Cross-device move of {source}, copying to {destination}")
        if source.is_dir() and not source.is_symlink():
            shutil.copytree(source, destination, symlinks=True)
            shutil.rmtree(source)
        else:
            shutil.copy2(source, destination)
            source.unlink()


class PlacementService:
    """Decides where an upload lands and moves it there."""

    def __init__(
        self,
        storage: StorageService,
        move_strategy: MoveStrategy | None = None,
    ) -> None:
        self.storage = storage
        self.move_strategy = move_strategy or RenameMoveStrategy()

    def target(
        self, staging_file: StagingFile, request: PlacementRequest
    ) -> tuple[Category, str]:
        """Return the category and subpath a staging file should land in."""
        match request:
            case ExplicitPlacement(category=category, subpath=subpath):
                return category, join_relative(subpath)
            case _:
                return classify(staging_file.original_filename), ""

    def place(self, staging_file: StagingFile, request: PlacementRequest) -> Entry:
        """Move a staging file into storage and return its final address."""
        category, subpath = self.target(staging_file, request)
        target_dir = self.storage.resolve_folder(category, subpath)
        original_name = os.path.basename(staging_file.original_filename.strip())
        if not original_name:
            original_name = staging_file.path.name
        if original_name in (".", ".."):
            raise InvalidInputError(
                f"Invalid file name: {staging_file.original_filename}"
            )

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise StorageIOError(f"Failed to create {target_dir}: {err}")

        destination = resolve_unique_path(target_dir, original_name)
        try:
            self.move_strategy.move(staging_file.path, destination)
        except OSError as err:
            raise StorageIOError(
                f"Failed to move {staging_file.original_filename} into storage: {err}"
            )

        if staging_file.metadata_path is not None:
            try:
                staging_file.metadata_path.unlink(missing_ok=True)
            except OSError as err:
                logger.warning(
                    f"Failed to remove upload metadata {staging_file.metadata_path}: {err}"
                )

        rel_path = join_relative(subpath, destination.name)
        logger.info(
            f"Placed {staging_file.original_filename} -> {category.value}/{rel_path}"
        )
        try:
            return stat_entry(category, rel_path, destination)
        except OSError as err:
            raise StorageIOError(f"Placed file is no longer readable: {err}")
