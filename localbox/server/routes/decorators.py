"""Decorators for route handlers."""

import dataclasses
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from aiohttp import web
from mashumaro.exceptions import InvalidFieldValue, MissingField
from mashumaro.mixins.json import DataClassJSONMixin

from ..exceptions import InvalidInputError, LocalboxError

logger = logging.getLogger(__name__)

_T = TypeVar("_T", bound=DataClassJSONMixin)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def handle_errors(handler: Handler) -> Handler:
    """Render service errors as JSON error responses.

    Known errors keep their status; anything else is logged and reported as
    an internal error.
    """

    @functools.wraps(handler)
    async def wrapper(request: web.Request) -> web.StreamResponse:
        try:
            return await handler(request)
        except LocalboxError as err:
            if err.status >= 500:
                logger.error(f"{request.method} {request.path} failed: {err}")
            return err.to_response()
        except web.HTTPException:
            raise
        except Exception as err:
            logger.exception(f"Unhandled error in {request.method} {request.path}")
            return LocalboxError.uncaught(err).to_response()

    return wrapper


def _check_string_fields(dto_cls: type, data: dict) -> None:
    # mashumaro would coerce numbers and booleans into str
    for f in dataclasses.fields(dto_cls):
        if f.type not in (str, str | None):
            continue
        key = f.metadata.get("alias") or f.name
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise InvalidInputError(f"Field {key} must be a string")


async def read_dto(request: web.Request, dto_cls: type[_T]) -> _T:
    """Parse the JSON body of a request into a request model."""
    try:
        data = await request.json()
    except ValueError:
        raise InvalidInputError("Invalid JSON body") from None
    if not isinstance(data, dict):
        raise InvalidInputError("Request body must be a JSON object")
    _check_string_fields(dto_cls, data)
    try:
        return dto_cls.from_dict(data)
    except (MissingField, InvalidFieldValue) as err:
        raise InvalidInputError(f"Invalid request: {err}") from None
