import errno
from pathlib import Path
from unittest.mock import patch

import pytest

from localbox.models.file import Category
from localbox.server.exceptions import InvalidInputError, StorageIOError
from localbox.server.services.placement import (
    ExplicitPlacement,
    InferredPlacement,
    PlacementService,
    RenameMoveStrategy,
    StagingFile,
    placement_request,
)
from localbox.server.services.storage import StorageService


def test_placement_request_inferred() -> None:
    assert placement_request(None) == InferredPlacement()
    assert placement_request("") == InferredPlacement()
    assert placement_request("music", "ignored") == InferredPlacement()


def test_placement_request_explicit() -> None:
    assert placement_request("documents") == ExplicitPlacement(Category.DOCUMENTS, "")
    assert placement_request("documents", "/work/") == ExplicitPlacement(
        Category.DOCUMENTS, "work"
    )
    assert placement_request(
        "images", "albums", "trip/day1/photo.jpg"
    ) == ExplicitPlacement(Category.IMAGES, "albums/trip/day1")


def test_place_inferred(
    placement_service: PlacementService, mock_storage: Path, make_staging_file
) -> None:
    staging = make_staging_file("photo.JPG", b"jpeg")

    entry = placement_service.place(staging, InferredPlacement())

    assert entry.category == Category.IMAGES
    assert entry.path == "photo.JPG"
    assert entry.size == 4
    assert not entry.is_folder
    assert (mock_storage / "images" / "photo.JPG").read_bytes() == b"jpeg"
    assert not staging.path.exists()


def test_place_explicit_creates_folders(
    placement_service: PlacementService, mock_storage: Path, make_staging_file
) -> None:
    staging = make_staging_file("song.mp3")

    entry = placement_service.place(
        staging, ExplicitPlacement(Category.DOCUMENTS, "work/2024")
    )

    assert entry.category == Category.DOCUMENTS
    assert entry.path == "work/2024/song.mp3"
    assert (mock_storage / "documents" / "work" / "2024" / "song.mp3").is_file()


def test_place_collisions(
    placement_service: PlacementService, mock_storage: Path, make_staging_file
) -> None:
    """Repeated placements of the same name all survive under distinct names."""
    names = []
    for i in range(5):
        staging = make_staging_file("photo.jpg", f"content {i}".encode())
        names.append(placement_service.place(staging, InferredPlacement()).name)

    assert names == [
        "photo.jpg",
        "photo_1.jpg",
        "photo_2.jpg",
        "photo_3.jpg",
        "photo_4.jpg",
    ]
    images = mock_storage / "images"
    assert (images / "photo.jpg").read_bytes() == b"content 0"
    assert (images / "photo_4.jpg").read_bytes() == b"content 4"


def test_place_strips_directories_from_filename(
    placement_service: PlacementService, mock_storage: Path, make_staging_file
) -> None:
    staging = make_staging_file("../../etc/passwd")

    entry = placement_service.place(staging, InferredPlacement())

    assert entry.path == "passwd"
    assert (mock_storage / "others" / "passwd").exists()


def test_place_removes_metadata(
    placement_service: PlacementService, storage_service: StorageService
) -> None:
    data = storage_service.staging_dir / "abc"
    data.write_bytes(b"x")
    metadata = storage_service.staging_dir / "abc.json"
    metadata.write_text("{}")

    placement_service.place(
        StagingFile(path=data, original_filename="a.txt", metadata_path=metadata),
        InferredPlacement(),
    )

    assert not metadata.exists()


def test_place_move_failure(
    placement_service: PlacementService, make_staging_file
) -> None:
    staging = make_staging_file("a.txt")

    with patch(
        "localbox.server.services.placement.os.rename",
        side_effect=PermissionError(errno.EACCES, "denied"),
    ):
        with pytest.raises(StorageIOError):
            placement_service.place(staging, InferredPlacement())

    assert staging.path.exists()


def test_rename_move_strategy_cross_device(tmp_path: Path) -> None:
    source = tmp_path / "source.bin"
    source.write_bytes(b"payload")
    destination = tmp_path / "dest.bin"

    with patch(
        "localbox.server.services.placement.os.rename",
        side_effect=OSError(errno.EXDEV, "Invalid cross-device link"),
    ):
        RenameMoveStrategy().move(source, destination)

    assert not source.exists()
    assert destination.read_bytes() == b"payload"


def test_rename_move_strategy_cross_device_folder(tmp_path: Path) -> None:
    source = tmp_path / "album"
    (source / "nested").mkdir(parents=True)
    (source / "nested" / "a.jpg").write_bytes(b"a")
    destination = tmp_path / "moved"

    with patch(
        "localbox.server.services.placement.os.rename",
        side_effect=OSError(errno.EXDEV, "Invalid cross-device link"),
    ):
        RenameMoveStrategy().move(source, destination)

    assert not source.exists()
    assert (destination / "nested" / "a.jpg").read_bytes() == b"a"


def test_rename_move_strategy_other_errors(tmp_path: Path) -> None:
    source = tmp_path / "source.bin"
    source.write_bytes(b"payload")

    with patch(
        "localbox.server.services.placement.os.rename",
        side_effect=OSError(errno.EACCES, "Permission denied"),
    ):
        with pytest.raises(OSError):
            RenameMoveStrategy().move(source, tmp_path / "dest.bin")

    assert source.exists()
    assert not (tmp_path / "dest.bin").exists()


def test_place_subpath_through_file(
    placement_service: PlacementService, mock_storage: Path, make_staging_file
) -> None:
    (mock_storage / "documents" / "notes.txt").write_bytes(b"n")
    staging = make_staging_file("a.txt")

    with pytest.raises(InvalidInputError, match="not a folder"):
        placement_service.place(
            staging, ExplicitPlacement(Category.DOCUMENTS, "notes.txt/inner")
        )

    assert staging.path.exists()
