"""Response envelope and enum helpers shared by the LocalBox API."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Self

from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.mixins.json import DataClassJSONMixin


@dataclass
class BaseResponse(DataClassJSONMixin):
    """Envelope carried by every ``/api`` JSON response.

    Successful responses only set ``success``; payload models extend this
    class with their own fields. Failed responses set ``success`` to false
    and carry one of the error codes the server maps its failures to:

    - ``E400`` invalid input (bad name, unknown category, malformed body)
    - ``E404`` the file, folder or upload does not exist
    - ``E409`` the destination exists, the folder is not empty, or the
      move would not change anything
    - ``E413`` an upload exceeds the configured or declared size
    - ``E500`` the filesystem operation itself failed
    """

    success: bool = True

    error_code: str | None = field(
        metadata=field_options(alias="errorCode"), default=None
    )

    error_msg: str | None = field(
        metadata=field_options(alias="errorMsg"), default=None
    )
    """Human readable reason, shown as is by the front end."""

    class Config(BaseConfig):
        serialize_by_alias = True
        omit_none = True


def create_error_response(
    error_msg: str, error_code: str | None = None
) -> BaseResponse:
    """Build a failed envelope; the HTTP status is chosen by the caller."""
    return BaseResponse(success=False, error_code=error_code, error_msg=error_msg)


class BaseEnum(Enum):
    """Enum whose members are looked up by their wire value."""

    @classmethod
    def from_value(cls, value: str) -> Self:
        """Return the member for a wire value, case-sensitively.

        Raises ValueError for unknown values so callers can map it to their
        own error type.
        """
        for member in cls:
            if member.value == value:
                return member
        raise ValueError(f"Unknown {cls.__name__} value: {value!r}")

    @classmethod
    def values(cls) -> list[str]:
        """Wire values in declaration order, e.g. for pickers in the UI."""
        return [member.value for member in cls]
