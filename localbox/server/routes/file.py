"""Handlers for browsing and changing stored files."""

import asyncio
import logging
import shutil
import urllib.parse

import aiofiles
from aiohttp import web

from localbox.models.base import BaseResponse
from localbox.models.file import (
    CategoriesVO,
    Category,
    CategoryStatsVO,
    CreateFolderDTO,
    DiskVO,
    EntryResponseVO,
    EntryVO,
    FileListVO,
    FolderListVO,
    FolderVO,
    MoveDTO,
    RenameDTO,
    SortOrder,
    SortSequence,
    StatsVO,
    TotalStatsVO,
)

from ..constants import STREAM_CHUNK_SIZE, THUMBNAIL_CACHE_CONTROL
from ..exceptions import InvalidInputError
from ..services.file import FileService
from ..services.hierarchy import HierarchyService
from ..services.stats import StatsService
from ..services.storage import Entry, StorageService
from .decorators import handle_errors, read_dto

logger = logging.getLogger(__name__)
routes = web.RouteTableDef()


def _to_entry_vo(entry: Entry) -> EntryVO:
    return EntryVO(
        name=entry.name,
        category=entry.category.value,
        path=entry.path,
        type=entry.type,
        size=entry.size,
        created_at=entry.create_time,
        modified_at=entry.update_time,
    )


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the exact UTF-8 name."""
    fallback = filename.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace("\\", "_").replace('"', "_")
    fallback = "".join(c if c.isprintable() else "_" for c in fallback)
    quoted = urllib.parse.quote(filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quoted}"


def _sort_params(request: web.Request) -> tuple[SortOrder, SortSequence]:
    try:
        order = SortOrder.from_value(request.query.get("sort", SortOrder.TIME.value))
        sequence = SortSequence.from_value(
            request.query.get("order", SortSequence.DESC.value)
        )
    except ValueError as err:
        raise InvalidInputError(str(err)) from None
    return order, sequence


@routes.get("/api/files")
@handle_errors
async def handle_list_files(request: web.Request) -> web.Response:
    # Endpoint: GET /api/files?category=&path=&sort=&order=
    # Purpose: List a directory, or root files of every category.
    # Response: FileListVO
    hierarchy_service: HierarchyService = request.app["hierarchy_service"]
    order, sequence = _sort_params(request)

    listing = await asyncio.to_thread(
        hierarchy_service.list_entries,
        request.query.get("category"),
        request.query.get("path"),
        order,
        sequence,
    )
    files = [_to_entry_vo(entry) for entry in listing.entries]
    return web.json_response(
        FileListVO(
            files=files,
            total=len(files),
            current_path=listing.current_path,
            parent_path=listing.parent_path,
        ).to_dict()
    )


@routes.get("/api/categories")
async def handle_categories(request: web.Request) -> web.Response:
    # Endpoint: GET /api/categories
    # Purpose: Fixed category set, used by move and upload pickers.
    return web.json_response(CategoriesVO(categories=Category.values()).to_dict())


@routes.get("/api/folders/{category}")
@handle_errors
async def handle_list_folders(request: web.Request) -> web.Response:
    # Endpoint: GET /api/folders/{category}
    # Purpose: Every folder of a category, depth first.
    # Response: FolderListVO
    category = request.match_info["category"]
    hierarchy_service: HierarchyService = request.app["hierarchy_service"]

    folders = await asyncio.to_thread(hierarchy_service.list_folders, category)
    return web.json_response(
        FolderListVO(
            category=category,
            folders=[FolderVO(name=f.name, path=f.path) for f in folders],
        ).to_dict()
    )


@routes.post("/api/folders")
@handle_errors
async def handle_create_folder(request: web.Request) -> web.Response:
    # Endpoint: POST /api/folders
    # Purpose: Create a folder.
    # Response: EntryResponseVO
    req_data = await read_dto(request, CreateFolderDTO)
    file_service: FileService = request.app["file_service"]

    entry = await asyncio.to_thread(
        file_service.create_folder, req_data.category, req_data.path, req_data.name
    )
    return web.json_response(
        EntryResponseVO(entry=_to_entry_vo(entry)).to_dict(), status=201
    )


@routes.delete("/api/folders/{category}/{path:.+}")
@handle_errors
async def handle_delete_folder(request: web.Request) -> web.Response:
    # Endpoint: DELETE /api/folders/{category}/{path}
    # Purpose: Delete an empty folder.
    file_service: FileService = request.app["file_service"]

    await asyncio.to_thread(
        file_service.delete_folder,
        request.match_info["category"],
        request.match_info["path"],
    )
    return web.json_response(BaseResponse().to_dict())


@routes.patch("/api/folders/{category}/{path:.+}/move")
@routes.patch("/api/files/{category}/{path:.+}/move")
@handle_errors
async def handle_move(request: web.Request) -> web.Response:
    # Endpoint: PATCH /api/files/{category}/{path}/move
    # Endpoint: PATCH /api/folders/{category}/{path}/move
    # Purpose: Move a file or folder to another category and/or folder.
    # Response: EntryResponseVO
    req_data = await read_dto(request, MoveDTO)
    file_service: FileService = request.app["file_service"]

    entry = await asyncio.to_thread(
        file_service.move,
        request.match_info["category"],
        request.match_info["path"],
        req_data.new_category,
        req_data.target_path,
    )
    return web.json_response(EntryResponseVO(entry=_to_entry_vo(entry)).to_dict())


@routes.put("/api/files/{category}/{path:.+}")
@handle_errors
async def handle_rename(request: web.Request) -> web.Response:
    # Endpoint: PUT /api/files/{category}/{path}
    # Purpose: Rename a file within its folder.
    # Response: EntryResponseVO
    req_data = await read_dto(request, RenameDTO)
    file_service: FileService = request.app["file_service"]

    entry = await asyncio.to_thread(
        file_service.rename,
        request.match_info["category"],
        request.match_info["path"],
        req_data.new_name,
    )
    return web.json_response(EntryResponseVO(entry=_to_entry_vo(entry)).to_dict())


@routes.delete("/api/files/{category}/{path:.+}")
@handle_errors
async def handle_delete_file(request: web.Request) -> web.Response:
    # Endpoint: DELETE /api/files/{category}/{path}
    # Purpose: Delete a file.
    file_service: FileService = request.app["file_service"]

    await asyncio.to_thread(
        file_service.delete_file,
        request.match_info["category"],
        request.match_info["path"],
    )
    return web.json_response(BaseResponse().to_dict())


@routes.get("/api/download/{category}/{path:.+}")
@handle_errors
async def handle_download(request: web.Request) -> web.StreamResponse:
    # Endpoint: GET /api/download/{category}/{path}
    # Purpose: Raw file bytes as an attachment (Range requests supported).
    file_service: FileService = request.app["file_service"]

    file_path = await asyncio.to_thread(
        file_service.open_download,
        request.match_info["category"],
        request.match_info["path"],
    )
    return web.FileResponse(
        file_path,
        headers={"Content-Disposition": _content_disposition(file_path.name)},
    )


@routes.get("/api/thumbnail/{category}/{path:.+}")
@handle_errors
async def handle_thumbnail(request: web.Request) -> web.StreamResponse:
    # Endpoint: GET /api/thumbnail/{category}/{path}
    # Purpose: Inline image bytes with long lived caching.
    file_service: FileService = request.app["file_service"]

    file_path = await asyncio.to_thread(
        file_service.open_thumbnail,
        request.match_info["category"],
        request.match_info["path"],
    )
    return web.FileResponse(
        file_path, headers={"Cache-Control": THUMBNAIL_CACHE_CONTROL}
    )


@routes.get("/api/download-folder/{category}")
@routes.get("/api/download-folder/{category}/{path:.+}")
@handle_errors
async def handle_download_folder(request: web.Request) -> web.StreamResponse:
    # Endpoint: GET /api/download-folder/{category}/{path}
    # Purpose: Zip of a folder subtree.
    file_service: FileService = request.app["file_service"]

    archive_path, download_name = await asyncio.to_thread(
        file_service.create_archive,
        request.match_info["category"],
        request.match_info.get("path", ""),
    )
    try:
        size = (await asyncio.to_thread(archive_path.stat)).st_size
        response = web.StreamResponse(
            headers={
                "Content-Type": "application/zip",
                "Content-Disposition": _content_disposition(download_name),
                "Content-Length": str(size),
            }
        )
        await response.prepare(request)
        async with aiofiles.open(archive_path, "rb") as f:
            while chunk := await f.read(STREAM_CHUNK_SIZE):
                await response.write(chunk)
        await response.write_eof()
        return response
    finally:
        await asyncio.to_thread(archive_path.unlink, missing_ok=True)


@routes.get("/api/stats")
@handle_errors
async def handle_stats(request: web.Request) -> web.Response:
    # Endpoint: GET /api/stats
    # Purpose: Per-category and total counts and sizes plus disk usage.
    # Response: StatsVO
    stats_service: StatsService = request.app["stats_service"]
    storage_service: StorageService = request.app["storage_service"]

    stats = await asyncio.to_thread(stats_service.compute)

    disk = DiskVO()
    try:
        usage = await asyncio.to_thread(shutil.disk_usage, storage_service.root)
        disk = DiskVO(free=usage.free, total=usage.total, used=usage.total - usage.free)
    except OSError as err:
        logger.error(f"Error fetching disk space: {err}")

    return web.json_response(
        StatsVO(
            categories={
                category.value: CategoryStatsVO(count=s.count, size=s.size)
                for category, s in stats.categories.items()
            },
            total=TotalStatsVO(files=stats.total.count, size=stats.total.size),
            disk=disk,
        ).to_dict()
    )
