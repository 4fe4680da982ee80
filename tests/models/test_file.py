from datetime import datetime, timezone

from localbox.models.file import (
    EntryType,
    EntryVO,
    FileListVO,
    MoveDTO,
    RenameDTO,
)


def test_entry_serialization() -> None:
    when = datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)
    entry = EntryVO(
        name="a.jpg",
        category="images",
        path="trip/a.jpg",
        type=EntryType.FILE,
        size=12,
        created_at=when,
        modified_at=when,
    )

    assert entry.to_dict() == {
        "name": "a.jpg",
        "category": "images",
        "path": "trip/a.jpg",
        "type": "file",
        "size": 12,
        "createdAt": "2024-03-01T08:30:00+00:00",
        "modifiedAt": "2024-03-01T08:30:00+00:00",
    }


def test_file_list_reports_null_parent() -> None:
    data = FileListVO(files=[], total=0, current_path="").to_dict()

    assert data["parentPath"] is None
    assert data["currentPath"] == ""
    assert data["success"] is True


def test_request_aliases() -> None:
    assert RenameDTO.from_dict({"newName": "b.txt"}).new_name == "b.txt"

    move = MoveDTO.from_dict({"newCategory": "archives", "targetPath": "old"})
    assert move.new_category == "archives"
    assert move.target_path == "old"
    assert MoveDTO.from_dict({"newCategory": "audio"}).target_path is None
