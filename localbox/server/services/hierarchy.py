"""Read side of the storage tree: listings and folder pickers."""

import logging
import os
from dataclasses import dataclass, field

from localbox.models.file import ALL_CATEGORIES, Category, SortOrder, SortSequence

from ..utils.paths import join_relative, normalize_relative_path, parent_path
from .classifier import parse_category
from .storage import Entry, StorageService, stat_entry

logger = logging.getLogger(__name__)


@dataclass
class Listing:
    """Entries of one directory plus navigation context."""

    entries: list[Entry] = field(default_factory=list)
    current_path: str = ""
    parent_path: str | None = None


@dataclass
class Folder:
    """A folder somewhere below a category root."""

    name: str
    path: str


def sort_entries(
    entries: list[Entry],
    order: SortOrder = SortOrder.TIME,
    sequence: SortSequence = SortSequence.DESC,
) -> list[Entry]:
    """Sort entries with folders first, then by the requested key."""
    reverse = sequence == SortSequence.DESC
    if order == SortOrder.NAME:
        entries.sort(key=lambda x: x.name.lower(), reverse=reverse)
    elif order == SortOrder.SIZE:
        entries.sort(key=lambda x: x.size, reverse=reverse)
    else:  # time
        entries.sort(key=lambda x: x.sort_time, reverse=reverse)
    # Stable sort keeps the key order inside each group
    entries.sort(key=lambda x: not x.is_folder)
    return entries


class HierarchyService:
    """Lists entries straight from the directory tree."""

    def __init__(self, storage: StorageService) -> None:
        self.storage = storage

    def _scan(self, category: Category, rel_dir: str) -> list[Entry]:
        """Describe the immediate children of a directory.

        Missing directories yield nothing. Children that disappear or cannot
        be stat'ed while scanning are skipped.
        """
        directory = self.storage.resolve(category, rel_dir)
        try:
            names = os.listdir(directory)
        except (FileNotFoundError, NotADirectoryError):
            return []

        entries: list[Entry] = []
        for name in names:
            try:
                entries.append(
                    stat_entry(category, join_relative(rel_dir, name), directory / name)
                )
            except OSError as err:
                logger.debug(f"Skipping {category.value}/{rel_dir}/{name}: {err}")
        return entries

    def list_entries(
        self,
        category: str | None = None,
        path: str | None = None,
        order: SortOrder = SortOrder.TIME,
        sequence: SortSequence = SortSequence.DESC,
    ) -> Listing:
        """List a directory, or all category roots when no category is given.

        Without a category (or with ``all``) only the files directly inside
        each category root are returned, folders are left out.
        """
        if not category or category == ALL_CATEGORIES:
            files: list[Entry] = []
            for cat in Category:
                files.extend(e for e in self._scan(cat, "") if not e.is_folder)
            return Listing(entries=sort_entries(files, order, sequence))

        parsed = parse_category(category)
        current = normalize_relative_path(path)
        return Listing(
            entries=sort_entries(self._scan(parsed, current), order, sequence),
            current_path=current,
            parent_path=parent_path(current),
        )

    def list_folders(self, category: str) -> list[Folder]:
        """Collect every folder below a category root, depth first.

        Symlinked directories are neither reported nor followed.
        """
        parsed = parse_category(category)
        folders: list[Folder] = []

        def walk(rel_dir: str) -> None:
            directory = self.storage.resolve(parsed, rel_dir)
            try:
                children = sorted(os.scandir(directory), key=lambda e: e.name)
            except OSError as err:
                logger.debug(f"Cannot read {parsed.value}/{rel_dir}: {err}")
                return
            for child in children:
                try:
                    if not child.is_dir(follow_symlinks=False):
                        continue
                except OSError:
                    continue
                child_path = join_relative(rel_dir, child.name)
                folders.append(Folder(name=child.name, path=child_path))
                walk(child_path)

        walk("")
        return folders
