from pathlib import Path
import sys
import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles
from loguru import logger

from imghost.config import Settings, ensure_storage_path
from imghost.routes.images import router as images_router

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {extra[request_id]} | {name}:{line} | {message}"


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.configure(extra={"request_id": "-"})
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)


async def log_requests(request: Request, call_next) -> Response:
    request_id = request.headers.get("x-request-id") or uuid4().hex
    started = time.perf_counter()
    with logger.contextualize(request_id=request_id):
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("{} {} raised", request.method, request.url.path)
            raise
        logger.info(
            "{} {} -> {} in {:.1f}ms",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
    response.headers["X-Request-ID"] = request_id
    return response


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the ASGI app around one immutable settings instance.

    The storage directory is created here so a bad ``storage_dir`` fails
    before the server starts listening.
    """
    app_settings = app_settings or Settings()
    _configure_logging(app_settings.log_level)
    ensure_storage_path(app_settings.storage_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Serving {} storage_dir={} scheme={} max_upload_bytes={}",
            app_settings.app_name,
            app_settings.storage_dir,
            app_settings.scheme,
            app_settings.max_upload_bytes,
        )
        yield
        logger.info("Stopped {}", app_settings.app_name)

    app = FastAPI(title=app_settings.app_name, debug=app_settings.debug, lifespan=lifespan)
    app.state.settings = app_settings
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET", "POST"], allow_headers=["*"])
    app.middleware("http")(log_requests)
    app.include_router(images_router)

    static_dir = Path(app_settings.static_dir)
    if static_dir.exists():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    return app
