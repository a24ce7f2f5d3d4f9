from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .compression import create_compression_router
from .fs import ArchiveEngine, FileServiceError, PathResolver, RangeNotSatisfiableError
from .serve import create_serve_router
from .settings.models import ServiceSettings
from .settings.store import SettingsStore

logger = logging.getLogger(__name__)


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _error_response(status_code: int, message: str, headers: Optional[dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FileServiceError)
    async def file_service_error_handler(request: Request, exc: FileServiceError) -> JSONResponse:
        headers = None
        if isinstance(exc, RangeNotSatisfiableError):
            headers = {"Content-Range": f"bytes */{exc.file_size}"}
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
            return _error_response(exc.http_status, "Error processing file request")
        return _error_response(exc.http_status, exc.message, headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(500, "Internal server error")


def create_app(settings: Optional[ServiceSettings] = None) -> FastAPI:
    repo_root = _repo_root()

    store = SettingsStore(path=repo_root / "data" / "config.json")
    if settings is None:
        settings = store.load()

    upload_dir = Path(settings.upload_dir)
    if not upload_dir.is_absolute():
        upload_dir = repo_root / upload_dir

    resolver = PathResolver(upload_dir)
    engine = ArchiveEngine(resolver.root)

    app = FastAPI(title="media-file-service")
    register_error_handlers(app)
    app.include_router(
        create_compression_router(resolver=resolver, engine=engine, base_url=settings.base_url)
    )
    app.include_router(create_serve_router(resolver=resolver))

    app.state.settings_store = store
    app.state.settings = settings
    app.state.resolver = resolver
    app.state.archive_engine = engine
    return app


app = create_app()
