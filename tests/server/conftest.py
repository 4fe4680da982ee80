"""Shared pytest fixtures for server tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from localbox.server.config import ServerConfig
from localbox.server.services.file import FileService
from localbox.server.services.hierarchy import HierarchyService
from localbox.server.services.placement import PlacementService, StagingFile
from localbox.server.services.storage import StorageService


@pytest.fixture
def mock_trace_log() -> str | None:
    """Trace logging is off unless a module overrides this fixture."""
    return None


@pytest.fixture
def server_config(mock_trace_log: str | None, mock_storage: Path) -> ServerConfig:
    """Create a ServerConfig object for testing."""
    return ServerConfig(
        host="127.0.0.1",
        storage_dir=str(mock_storage),
        trace_log_file=mock_trace_log,
    )


@pytest.fixture(autouse=True)
def patch_server_config(server_config: ServerConfig) -> Generator[None, None, None]:
    """Automatically patch server config for all server tests."""
    with patch("localbox.server.config.ServerConfig.load", return_value=server_config):
        yield


@pytest.fixture
def storage_service(mock_storage: Path) -> StorageService:
    return StorageService(mock_storage)


@pytest.fixture
def placement_service(storage_service: StorageService) -> PlacementService:
    return PlacementService(storage_service)


@pytest.fixture
def hierarchy_service(storage_service: StorageService) -> HierarchyService:
    return HierarchyService(storage_service)


@pytest.fixture
def file_service(storage_service: StorageService) -> FileService:
    return FileService(storage_service)


@pytest.fixture
def make_staging_file(storage_service: StorageService):
    """Factory writing a file into the staging area."""
    counter = 0

    def _make(original_filename: str, content: bytes = b"data") -> StagingFile:
        nonlocal counter
        counter += 1
        path = storage_service.staging_dir / f"staged_{counter}"
        path.write_bytes(content)
        return StagingFile(path=path, original_filename=original_filename)

    return _make
