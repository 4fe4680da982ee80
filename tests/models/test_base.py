"""Tests for base models."""

import pytest

from localbox.models.base import BaseResponse, create_error_response
from localbox.models.file import Category, SortOrder


def test_create_error_response() -> None:
    """Test create_error_response."""
    error_response = create_error_response("test error")
    assert error_response.success is False
    assert error_response.error_msg == "test error"
    assert error_response.error_code is None
    assert error_response.to_dict() == {"success": False, "errorMsg": "test error"}


def test_success_response() -> None:
    assert BaseResponse().to_dict() == {"success": True}


def test_enum_helpers() -> None:
    assert Category.from_value("audio") == Category.AUDIO
    assert SortOrder.values() == ["name", "time", "size"]
    with pytest.raises(ValueError):
        Category.from_value("music")


def test_from_value_names_enum() -> None:
    with pytest.raises(ValueError, match="Unknown Category value: 'Images'"):
        Category.from_value("Images")


def test_error_envelope_with_code() -> None:
    response = create_error_response("Folder is not empty", "E409")
    assert response.to_dict() == {
        "success": False,
        "errorCode": "E409",
        "errorMsg": "Folder is not empty",
    }
