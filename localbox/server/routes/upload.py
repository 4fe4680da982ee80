"""Handlers for the resumable upload transport (tus 1.0.0).

Supports the core protocol plus the creation and termination extensions.
When the last byte of an upload arrives the file is handed to the
placement engine.
"""

import asyncio
import logging

from aiohttp import web

from localbox.models.upload import UploadInfo

from ..constants import STREAM_CHUNK_SIZE, TUS_CONTENT_TYPE, TUS_EXTENSIONS, TUS_VERSION
from ..exceptions import InvalidInputError
from ..services.placement import PlacementService, placement_request
from ..services.upload import UploadService, parse_upload_metadata
from .decorators import handle_errors

logger = logging.getLogger(__name__)
routes = web.RouteTableDef()


def _tus_headers(extra: dict[str, str] | None = None) -> dict[str, str]:
    return {"Tus-Resumable": TUS_VERSION, **(extra or {})}


async def _place_completed(
    upload_service: UploadService,
    placement_service: PlacementService,
    info: UploadInfo,
) -> None:
    staging_file = upload_service.staging_file(info)
    entry = await asyncio.to_thread(
        placement_service.place,
        staging_file,
        placement_request(info.category, info.upload_path, info.relative_path),
    )
    logger.info(
        f"Upload complete: {entry.category.value}/{entry.path} ({entry.size} bytes)"
    )


def _int_header(request: web.Request, name: str) -> int:
    value = request.headers.get(name)
    if value is None:
        raise InvalidInputError(f"Missing {name} header")
    try:
        number = int(value)
    except ValueError:
        raise InvalidInputError(f"Invalid {name} header") from None
    if number < 0:
        raise InvalidInputError(f"Invalid {name} header")
    return number


@routes.options("/files")
@routes.options("/files/{upload_id}")
async def handle_tus_options(request: web.Request) -> web.Response:
    # Endpoint: OPTIONS /files
    # Purpose: Advertise tus capabilities.
    upload_service: UploadService = request.app["upload_service"]
    headers = _tus_headers(
        {"Tus-Version": TUS_VERSION, "Tus-Extension": TUS_EXTENSIONS}
    )
    if upload_service.max_size is not None:
        headers["Tus-Max-Size"] = str(upload_service.max_size)
    return web.Response(status=204, headers=headers)


@routes.post("/files")
@handle_errors
async def handle_tus_create(request: web.Request) -> web.Response:
    # Endpoint: POST /files
    # Purpose: Create an upload (creation extension).
    upload_service: UploadService = request.app["upload_service"]

    size = _int_header(request, "Upload-Length")
    metadata = parse_upload_metadata(request.headers.get("Upload-Metadata"))
    info = await asyncio.to_thread(upload_service.create, size, metadata)
    if size == 0:
        # Nothing will be PATCHed, so an empty upload is complete on creation
        await _place_completed(
            upload_service, request.app["placement_service"], info
        )

    location = request.url.with_path(f"/files/{info.id}").with_query(None)
    return web.Response(
        status=201,
        headers=_tus_headers({"Location": str(location), "Upload-Offset": "0"}),
    )


@routes.head("/files/{upload_id}")
@handle_errors
async def handle_tus_head(request: web.Request) -> web.Response:
    # Endpoint: HEAD /files/{upload_id}
    # Purpose: Report how much of an upload has been received.
    upload_id = request.match_info["upload_id"]
    upload_service: UploadService = request.app["upload_service"]

    info = await asyncio.to_thread(upload_service.get, upload_id)
    offset = await asyncio.to_thread(upload_service.offset, upload_id)
    return web.Response(
        status=200,
        headers=_tus_headers(
            {
                "Upload-Offset": str(offset),
                "Upload-Length": str(info.size),
                "Cache-Control": "no-store",
            }
        ),
    )


@routes.patch("/files/{upload_id}")
@handle_errors
async def handle_tus_patch(request: web.Request) -> web.Response:
    # Endpoint: PATCH /files/{upload_id}
    # Purpose: Append bytes; place the file once complete.
    upload_id = request.match_info["upload_id"]
    upload_service: UploadService = request.app["upload_service"]
    placement_service: PlacementService = request.app["placement_service"]

    if request.content_type != TUS_CONTENT_TYPE:
        return web.Response(
            status=415, text=f"Content-Type must be {TUS_CONTENT_TYPE}"
        )
    offset = _int_header(request, "Upload-Offset")

    new_offset = await upload_service.append(
        upload_id, offset, lambda: request.content.read(STREAM_CHUNK_SIZE)
    )
    headers = _tus_headers({"Upload-Offset": str(new_offset)})

    info = await asyncio.to_thread(upload_service.get, upload_id)
    if new_offset == info.size:
        await _place_completed(upload_service, placement_service, info)

    return web.Response(status=204, headers=headers)


@routes.delete("/files/{upload_id}")
@handle_errors
async def handle_tus_delete(request: web.Request) -> web.Response:
    # Endpoint: DELETE /files/{upload_id}
    # Purpose: Discard an unfinished upload (termination extension).
    upload_id = request.match_info["upload_id"]
    upload_service: UploadService = request.app["upload_service"]

    await asyncio.to_thread(upload_service.terminate, upload_id)
    return web.Response(status=204, headers=_tus_headers())
