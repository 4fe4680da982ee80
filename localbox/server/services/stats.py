"""Aggregate file counts and sizes per category."""

import logging
import os
import stat
from dataclasses import dataclass, field

from localbox.models.file import Category

from .storage import StorageService

logger = logging.getLogger(__name__)


@dataclass
class CategoryStats:
    count: int = 0
    size: int = 0


@dataclass
class StorageStats:
    categories: dict[Category, CategoryStats] = field(default_factory=dict)
    total: CategoryStats = field(default_factory=CategoryStats)


class StatsService:
    """Computes storage statistics from the category roots.

    Only regular files directly inside each category root are counted; the
    contents of subfolders are not included, so totals can be lower than
    what is actually stored once folders are in use.
    """

    def __init__(self, storage: StorageService) -> None:
        self.storage = storage

    def compute(self) -> StorageStats:
        result = StorageStats()
        for category in Category:
            cat_stats = CategoryStats()
            directory = self.storage.category_dir(category)
            try:
                names = os.listdir(directory)
            except FileNotFoundError:
                names = []
            for name in names:
                try:
                    st = (directory / name).stat()
                except OSError as err:
                    # Removed or unreadable mid-scan
                    logger.debug(f"Skipping {category.value}/{name}: {err}")
                    continue
                if not stat.S_ISREG(st.st_mode):
                    continue
                cat_stats.count += 1
                cat_stats.size += st.st_size

            result.categories[category] = cat_stats
            result.total.count += cat_stats.count
            result.total.size += cat_stats.size
        return result
