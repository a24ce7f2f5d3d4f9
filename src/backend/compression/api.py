"""
API routes for on-demand zip compression of stored files.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from src.backend.fs import (
    ArchiveEngine,
    ArchiveSource,
    CompressionStats,
    InvalidRequestError,
    PathResolver,
)

FILES_ROUTE_PREFIX = "/api/files"


class CompressFilesIn(BaseModel):
    """Request body for compressing several files into one archive."""
    model_config = ConfigDict(populate_by_name=True)

    file_paths: Optional[list[str]] = Field(default=None, alias="filePaths")


class CompressFilesOut(BaseModel):
    """Response for a multi-file compression."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    zip_file_url: str = Field(alias="zipFileUrl")
    zip_file_path: str = Field(alias="zipFilePath")
    files_compressed: int = Field(alias="filesCompressed")
    original_size: int = Field(alias="originalSize")
    compressed_size: int = Field(alias="compressedSize")
    compression_ratio: str = Field(alias="compressionRatio")


class CompressSingleIn(BaseModel):
    """Request body for compressing one file."""
    model_config = ConfigDict(populate_by_name=True)

    file_path: Optional[str] = Field(default=None, alias="filePath")


class CompressSingleOut(BaseModel):
    url: str
    ratio: str


def build_file_url(base_url: str, relative_path: str) -> str:
    return f"{base_url.rstrip('/')}{FILES_ROUTE_PREFIX}/{quote(relative_path, safe='/')}"


def create_compression_router(
    *,
    resolver: PathResolver,
    engine: ArchiveEngine,
    base_url: str,
) -> APIRouter:
    """
    Create the compression API router.

    Args:
        resolver: Resolves client paths against the storage root.
        engine: Builds the archives.
        base_url: Public base URL used to build download links.

    Returns:
        FastAPI router with compression endpoints.
    """
    router = APIRouter(prefix=FILES_ROUTE_PREFIX, tags=["compression"])

    def _sources(paths: list[str]) -> list[ArchiveSource]:
        return [ArchiveSource(path=resolver.resolve(p), requested=p) for p in paths]

    @router.post(
        "/compress",
        response_model=CompressFilesOut,
        response_model_by_alias=True,
    )
    def compress_files(body: CompressFilesIn) -> CompressFilesOut:
        """
        Compress several stored files into a single archive.

        Every path is validated and measured before the archive is written,
        so a missing file fails the request without producing an archive.
        """
        if not body.file_paths:
            raise InvalidRequestError("At least one file must be provided for compression")

        sources = _sources(body.file_paths)
        original_size = engine.total_size(sources)

        zip_path = engine.compress_many(sources)
        relative_path = engine.relative_path(zip_path)
        stats = CompressionStats(
            original_size=original_size,
            compressed_size=engine.archive_size(zip_path),
        )

        return CompressFilesOut(
            message="Files compressed successfully",
            zip_file_url=build_file_url(base_url, relative_path),
            zip_file_path=relative_path,
            files_compressed=len(sources),
            original_size=stats.original_size,
            compressed_size=stats.compressed_size,
            compression_ratio=stats.ratio_text,
        )

    @router.post(
        "/compress/single",
        response_model=CompressSingleOut,
    )
    def compress_single(body: CompressSingleIn) -> CompressSingleOut:
        """Compress one stored file into its own archive."""
        if not body.file_path:
            raise InvalidRequestError("A file path must be provided")

        source = ArchiveSource(path=resolver.resolve(body.file_path), requested=body.file_path)
        original_size = engine.total_size([source])

        zip_path = engine.compress_one(source)
        stats = CompressionStats(
            original_size=original_size,
            compressed_size=engine.archive_size(zip_path),
        )

        return CompressSingleOut(
            url=build_file_url(base_url, engine.relative_path(zip_path)),
            ratio=stats.ratio_text,
        )

    return router
