"""
File system utilities for stored media.

Provides:
- Storage root path resolution with a traversal guard (paths.py)
- Error taxonomy shared with the API layer (errors.py)
- On-demand zip archive assembly (archive_zip.py)
"""

from .errors import (
    ArchiveError,
    DuplicateEntryError,
    FileServiceError,
    InvalidRequestError,
    NotFoundError,
    RangeNotSatisfiableError,
    RangeParseError,
    TraversalError,
)
from .paths import PathResolver, resolve
from .archive_zip import (
    ArchiveEngine,
    ArchiveSource,
    CompressionStats,
    compression_ratio,
    format_ratio,
    size_of,
)

__all__ = [
    "ArchiveError",
    "DuplicateEntryError",
    "FileServiceError",
    "InvalidRequestError",
    "NotFoundError",
    "RangeNotSatisfiableError",
    "RangeParseError",
    "TraversalError",
    "PathResolver",
    "resolve",
    "ArchiveEngine",
    "ArchiveSource",
    "CompressionStats",
    "compression_ratio",
    "format_ratio",
    "size_of",
]
