import json
import logging
import time
from pathlib import Path
from typing import Awaitable, Callable

from aiohttp import web

from .config import ServerConfig
from .routes import file, upload
from .services.file import FileService
from .services.hierarchy import HierarchyService
from .services.placement import PlacementService
from .services.stats import StatsService
from .services.storage import StorageService
from .services.upload import UploadService

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

TUS_PREFIX = "/files"
MAX_TRACE_BODY = 1024
CORS_ALLOW_METHODS = "GET, POST, PUT, PATCH, DELETE, HEAD, OPTIONS"
CORS_ALLOW_HEADERS = ", ".join(
    [
        "Content-Type",
        "Upload-Length",
        "Upload-Offset",
        "Upload-Metadata",
        "Tus-Resumable",
        "X-HTTP-Method-Override",
        "X-Requested-With",
    ]
)
CORS_EXPOSE_HEADERS = ", ".join(
    [
        "Location",
        "Upload-Offset",
        "Upload-Length",
        "Tus-Resumable",
        "Tus-Version",
        "Tus-Extension",
        "Tus-Max-Size",
        "Content-Disposition",
    ]
)


def _is_upload_path(path: str) -> bool:
    return path == TUS_PREFIX or path.startswith(TUS_PREFIX + "/")


def _trace(
    request: web.Request, body_str: str | None, status: int, start: float
) -> None:
    elapsed_ms = (time.monotonic() - start) * 1000
    logger.info(f"{request.method} {request.path} -> {status} ({elapsed_ms:.1f} ms)")

    trace_log_file = request.app["config"].trace_log_file
    if not trace_log_file:
        return
    log_entry = {
        "timestamp": time.time(),
        "method": request.method,
        "url": str(request.url),
        "headers": dict(request.headers),
        "body": body_str,
        "status": status,
    }
    try:
        with open(trace_log_file, "a") as f:
            f.write(json.dumps(log_entry) + "\n")
    except OSError as e:
        logger.error(f"Failed to write to trace log: {e}")


@web.middleware
async def trace_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    # Upload bodies are streamed by the handler and must not be consumed here.
    body_str = None
    if request.can_read_body and not _is_upload_path(request.path):
        body_bytes = await request.read()
        body_str = body_bytes.decode("utf-8", errors="replace")
        if len(body_str) > MAX_TRACE_BODY:
            body_str = body_str[:MAX_TRACE_BODY] + "... (truncated)"

    start = time.monotonic()
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        _trace(request, body_str, exc.status, start)
        raise
    _trace(request, body_str, response.status, start)
    return response


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    # Browser preflight requests are answered without reaching the routes.
    if request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers:
        return web.Response(status=204)
    return await handler(request)


async def _add_cors_headers(
    request: web.Request, response: web.StreamResponse
) -> None:
    # Runs on prepare so that streamed responses get the headers too.
    origin = request.app["config"].cors_origin
    if not origin:
        return
    response.headers["Access-Control-Allow-Origin"] = origin
    response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
    response.headers["Access-Control-Expose-Headers"] = CORS_EXPOSE_HEADERS


def _add_static_routes(app: web.Application, static_dir: Path) -> None:
    index_file = static_dir / "index.html"

    async def handle_index(request: web.Request) -> web.StreamResponse:
        if not index_file.exists():
            raise web.HTTPNotFound()
        return web.FileResponse(index_file)

    app.router.add_get("/", handle_index)
    app.router.add_static("/", static_dir)
    logger.info(f"Serving front end from {static_dir}")


def create_app(config: ServerConfig | None = None) -> web.Application:
    if config is None:
        config = ServerConfig.load()

    app = web.Application(
        middlewares=[cors_middleware, trace_middleware],
        client_max_size=1024**2 * 10,
    )
    app["config"] = config

    # Initialize services
    storage_service = StorageService(config.storage_path)
    storage_service.ensure_layout()
    app["storage_service"] = storage_service
    app["placement_service"] = PlacementService(storage_service)
    app["hierarchy_service"] = HierarchyService(storage_service)
    app["file_service"] = FileService(storage_service)
    app["stats_service"] = StatsService(storage_service)
    app["upload_service"] = UploadService(
        storage_service.staging_dir, max_size=config.max_upload_size
    )

    app.on_response_prepare.append(_add_cors_headers)

    # Register routes
    app.add_routes(file.routes)
    app.add_routes(upload.routes)

    if config.static_dir:
        static_dir = Path(config.static_dir)
        if static_dir.is_dir():
            _add_static_routes(app, static_dir)
        else:
            logger.warning(f"Static directory {static_dir} does not exist, skipping")

    logger.info(f"Storage root: {storage_service.root.absolute()}")
    return app


def run(config: ServerConfig) -> None:
    app = create_app(config)
    web.run_app(app, host=config.host, port=config.port)
