"""Constants shared by the LocalBox server."""

import re
from types import MappingProxyType

from localbox.models.file import Category

STAGING_DIR_NAME = "tmp"
"""Directory under the storage root holding in-flight uploads."""

EXTENSION_CATEGORIES: MappingProxyType[str, Category] = MappingProxyType(
    {
        **dict.fromkeys(
            ("jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "ico"),
            Category.IMAGES,
        ),
        **dict.fromkeys(
            (
                "pdf",
                "doc",
                "docx",
                "txt",
                "rtf",
                "xls",
                "xlsx",
                "ppt",
                "pptx",
                "odt",
                "ods",
                "odp",
                "csv",
                "md",
            ),
            Category.DOCUMENTS,
        ),
        **dict.fromkeys(
            ("zip", "rar", "7z", "tar", "gz", "bz2", "xz"),
            Category.ARCHIVES,
        ),
        **dict.fromkeys(
            ("mp4", "mkv", "avi", "mov", "webm", "wmv", "flv", "m4v"),
            Category.VIDEOS,
        ),
        **dict.fromkeys(
            ("mp3", "wav", "flac", "aac", "ogg", "wma", "m4a"),
            Category.AUDIO,
        ),
    }
)

THUMBNAIL_EXTENSIONS = frozenset(
    ("jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "ico")
)
THUMBNAIL_CACHE_CONTROL = "public, max-age=31536000, immutable"

UNSAFE_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

TUS_VERSION = "1.0.0"
TUS_EXTENSIONS = "creation,termination"
TUS_CONTENT_TYPE = "application/offset+octet-stream"

STREAM_CHUNK_SIZE = 64 * 1024
