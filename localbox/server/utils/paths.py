"""Naming rules shared by placement and every mutation.

Entry names are compared case-sensitively and exactly. Collisions are
resolved by appending ``_1``, ``_2``, ... to the stem; this is the only
disambiguation format used by the server.

The existence check and the write that follows are not atomic: two writers
targeting the same directory at the same moment can pick the same name. The
server assumes a single user with low concurrency and does not lock.
"""

import os
from pathlib import Path

from ..constants import UNSAFE_NAME_CHARS
from ..exceptions import InvalidInputError


def split_name(name: str) -> tuple[str, str]:
    """Split a file name into stem and extension (including the dot)."""
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return name, ""
    return stem, f".{ext}"


def _exists(path: Path) -> bool:
    # lexists so that a dangling symlink still counts as taken
    return os.path.lexists(path)


def resolve_unique_path(directory: Path, desired_name: str) -> Path:
    """Return a path in directory that does not exist yet.

    The desired name is kept when it is free, otherwise ``{stem}_{n}{ext}``
    is probed for n = 1, 2, 3, ...
    """
    candidate = directory / desired_name
    if not _exists(candidate):
        return candidate

    stem, ext = split_name(desired_name)
    counter = 1
    while True:
        candidate = directory / f"{stem}_{counter}{ext}"
        if not _exists(candidate):
            return candidate
        counter += 1


def sanitize_folder_name(name: str) -> str:
    """Strip filesystem-unsafe characters from a folder name.

    Slashes are removed rather than treated as separators, so ``Taxes/2024``
    becomes ``Taxes2024``.
    """
    cleaned = UNSAFE_NAME_CHARS.sub("", name).strip()
    if cleaned in (".", ".."):
        return ""
    return cleaned


def validate_entry_name(name: str | None) -> str:
    """Return the trimmed name, rejecting names that are not a single segment."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInputError("New name is required")
    if cleaned in (".", "..") or "/" in cleaned or "\\" in cleaned:
        raise InvalidInputError(f"Invalid name: {cleaned}")
    if "\x00" in cleaned:
        raise InvalidInputError("Invalid name")
    return cleaned


def split_relative_path(path: str | None) -> list[str]:
    """Split a slash separated relative path into its segments.

    Empty segments are dropped. Segments that would leave the category root
    are rejected.
    """
    if not path:
        return []
    segments = [segment for segment in path.split("/") if segment]
    for segment in segments:
        if segment in (".", "..") or "\x00" in segment:
            raise InvalidInputError(f"Invalid path: {path}")
    return segments


def normalize_relative_path(path: str | None) -> str:
    """Return the canonical form of a relative path (no leading or trailing slash)."""
    return "/".join(split_relative_path(path))


def join_relative(*parts: str | None) -> str:
    """Join relative path fragments, ignoring empty ones."""
    segments: list[str] = []
    for part in parts:
        segments.extend(split_relative_path(part))
    return "/".join(segments)


def parent_path(path: str | None) -> str | None:
    """Drop the last segment of a relative path; None at the root."""
    segments = split_relative_path(path)
    if not segments:
        return None
    return "/".join(segments[:-1])


def directory_part(relative_path: str | None) -> str:
    """Return the folder component of an uploaded file's relative path."""
    segments = split_relative_path(relative_path)
    return "/".join(segments[:-1])
