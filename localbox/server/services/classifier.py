"""Map file names to storage categories."""

from localbox.models.file import Category

from ..constants import EXTENSION_CATEGORIES
from ..exceptions import InvalidInputError

__all__ = [
    "classify",
    "get_extension",
    "is_category",
    "parse_category",
]


def get_extension(filename: str) -> str:
    """Return the lower-cased text after the last dot, or "" if there is none.

    Dotfiles such as ``.bashrc`` have no extension.
    """
    stem, dot, ext = filename.rpartition(".")
    if not dot or not stem:
        return ""
    return ext.lower()


def classify(filename: str) -> Category:
    """Return the category for a file name, falling back to others."""
    return EXTENSION_CATEGORIES.get(get_extension(filename), Category.OTHERS)


def is_category(value: str | None) -> bool:
    """Return whether the value names one of the fixed categories."""
    return value in Category.values()


def parse_category(value: str | None) -> Category:
    """Convert a caller supplied string into a Category."""
    if not value:
        raise InvalidInputError("Category is required")
    try:
        return Category.from_value(value)
    except ValueError:
        raise InvalidInputError(f"Invalid category: {value}") from None
