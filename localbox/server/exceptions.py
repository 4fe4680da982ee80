"""Errors raised by LocalBox services and rendered by the routes."""

from aiohttp import web

from localbox.models.base import create_error_response


class LocalboxError(Exception):
    """Base error carrying the HTTP status it is reported with."""

    status: int = 500
    error_code: str = "E500"

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code

    def to_response(self) -> web.Response:
        """Render the error as a JSON error envelope."""
        return web.json_response(
            create_error_response(str(self), self.error_code).to_dict(),
            status=self.status,
        )

    @classmethod
    def uncaught(cls, err: Exception) -> "LocalboxError":
        """Wrap an unexpected exception as an internal error."""
        return cls(f"Internal error: {err}")


class NotFoundError(LocalboxError):
    """The referenced file, folder or path does not exist."""

    status = 404
    error_code = "E404"


class ConflictError(LocalboxError):
    """The destination exists, the folder is not empty, or the move is a no-op."""

    status = 409
    error_code = "E409"


class InvalidInputError(LocalboxError):
    """A name, category or required field is invalid."""

    status = 400
    error_code = "E400"


class StorageIOError(LocalboxError):
    """A filesystem operation failed (permissions, disk full, ...)."""

    status = 500
    error_code = "E500"


class PayloadTooLargeError(LocalboxError):
    """An upload is larger than allowed or than its declared length."""

    status = 413
    error_code = "E413"
