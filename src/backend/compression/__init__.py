"""
On-demand compression of stored files.

Provides:
- Compression API router (api.py), built on src.backend.fs.archive_zip
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.backend.fs import ArchiveEngine, PathResolver
    from fastapi import APIRouter  # pragma: no cover


def create_compression_router(
    *,
    resolver: "PathResolver",
    engine: "ArchiveEngine",
    base_url: str,
) -> "APIRouter":
    """
    Lazily import FastAPI router to keep non-web imports lightweight.
    """
    from .api import create_compression_router as _create_compression_router

    return _create_compression_router(resolver=resolver, engine=engine, base_url=base_url)


__all__ = [
    "create_compression_router",
]
