"""Zip archives of folder subtrees."""

import logging
import os
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)


def build_zip(source_dir: Path, destination: Path) -> int:
    """Write a deflated zip of source_dir to destination.

    Archive member names are relative to the parent of source_dir, so the
    folder itself is the top level entry. Symlinks are not followed.
    Returns the number of files written.
    """
    base = source_dir.parent
    count = 0
    with zipfile.ZipFile(destination, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.write(source_dir, source_dir.name)
        for dirpath, dirnames, filenames in os.walk(source_dir):
            current = Path(dirpath)
            dirnames.sort()
            for dirname in dirnames:
                child = current / dirname
                if child.is_symlink():
                    continue
                zf.write(child, child.relative_to(base).as_posix())
            for filename in sorted(filenames):
                child = current / filename
                if child.is_symlink() or not child.is_file():
                    continue
                try:
                    zf.write(child, child.relative_to(base).as_posix())
                except FileNotFoundError:
                    logger.debug(f"Skipping {child}, removed while archiving")
                    continue
                count += 1
    return count
