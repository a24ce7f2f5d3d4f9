"""
File serving with HTTP Range support.

Provides:
- Range header parsing and response planning (range_engine.py)
- Chunked byte-window streaming (range_engine.iter_file_range)
- File serving API router (api.py)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .range_engine import (
    ByteRange,
    FullPlan,
    PartialPlan,
    ServePlan,
    iter_file_range,
    parse_range_header,
    plan_response,
)

if TYPE_CHECKING:
    from src.backend.fs import PathResolver
    from fastapi import APIRouter  # pragma: no cover


def create_serve_router(*, resolver: "PathResolver") -> "APIRouter":
    """
    Lazily import FastAPI router to keep non-web imports lightweight.
    """
    from .api import create_serve_router as _create_serve_router

    return _create_serve_router(resolver=resolver)


__all__ = [
    "ByteRange",
    "FullPlan",
    "PartialPlan",
    "ServePlan",
    "iter_file_range",
    "parse_range_header",
    "plan_response",
    "create_serve_router",
]
