"""
API routes for serving stored files, with Range support for audio.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Header
from fastapi.responses import StreamingResponse

from src.backend.fs import PathResolver, size_of
from src.shared.content_type import classify

from .range_engine import iter_file_range, plan_response


def create_serve_router(*, resolver: PathResolver) -> APIRouter:
    """
    Create the file serving router.

    Args:
        resolver: Resolves client paths against the storage root.

    Returns:
        FastAPI router with the file download endpoint.
    """
    router = APIRouter(prefix="/api/files", tags=["files"])

    @router.get("/{sub_directory}/{file_name}")
    def serve_file(
        sub_directory: str,
        file_name: str,
        range_header: Optional[str] = Header(default=None, alias="Range"),
    ) -> StreamingResponse:
        """
        Stream a stored file.

        Audio files honor the first range of a Range header (206); everything
        else is sent whole (200).
        """
        path = resolver.resolve(sub_directory, file_name)
        file_size = size_of(path, f"{sub_directory}/{file_name}")

        plan = plan_response(range_header, file_size, classify(path.name), path.name)

        return StreamingResponse(
            iter_file_range(path, plan.start, plan.content_length),
            status_code=plan.status_code,
            headers=plan.headers(),
            media_type=plan.content_type,
        )

    return router
