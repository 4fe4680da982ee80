"""Root conftest for all tests."""

from pathlib import Path
from typing import Awaitable, Callable, Generator

import pytest
from aiohttp.test_utils import TestClient
from aiohttp.web import Application

# Type alias for the aiohttp_client fixture - shared across all tests
AiohttpClient = Callable[[Application], Awaitable[TestClient]]


@pytest.fixture
def mock_storage(tmp_path: Path) -> Generator[Path, None, None]:
    """Storage root laid out the way the server expects it."""
    storage_root = tmp_path / "storage"
    storage_root.mkdir(parents=True)
    for category in (
        "images",
        "documents",
        "archives",
        "videos",
        "audio",
        "others",
    ):
        (storage_root / category).mkdir()
    (storage_root / "tmp").mkdir()

    yield storage_root
