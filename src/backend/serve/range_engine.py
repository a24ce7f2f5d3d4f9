"""
HTTP Range request planning (RFC 7233, single range only).

The planner is pure: it turns a Range header and a file size into a
ServePlan describing the status and headers to send. Reading the bytes is
left to iter_file_range, which streams a window of the file in fixed-size
chunks.

Only the first range of a multi-range header is honored; no
multipart/byteranges responses are produced.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, NamedTuple, Optional, Union
from urllib.parse import quote

from src.backend.fs.errors import RangeNotSatisfiableError, RangeParseError
from src.shared.content_type import ContentType

logger = logging.getLogger(__name__)

# Size of each chunk read from disk while streaming
CHUNK_SIZE = 65536  # 64 KB

RANGE_UNIT = "bytes"

_RANGE_SPEC = re.compile(r"^(\d*)-(\d*)$")


class ByteRange(NamedTuple):
    """Inclusive byte offsets into a file."""
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


def parse_range_header(range_header: str, file_size: int) -> Optional[ByteRange]:
    """
    Parse the first range of a ``bytes=`` Range header.

    Args:
        range_header: Raw header value, e.g. ``bytes=0-1023``.
        file_size: Total size of the file in bytes.

    Returns:
        The clamped ByteRange, or None when the header lists no ranges.

    Raises:
        RangeParseError: If the header is syntactically invalid.
        RangeNotSatisfiableError: If the first range starts at or after EOF.
    """
    value = range_header.strip()
    unit, sep, spec = value.partition("=")
    if not sep or unit.strip().lower() != RANGE_UNIT:
        raise RangeParseError(f"Unsupported range unit in {range_header!r}")

    specs = [s.strip() for s in spec.split(",") if s.strip()]
    if not specs:
        return None

    match = _RANGE_SPEC.match(specs[0])
    if match is None:
        raise RangeParseError(f"Invalid range spec {specs[0]!r}")

    start_str, end_str = match.groups()
    if not start_str and not end_str:
        raise RangeParseError("Range spec has neither start nor end")

    if not start_str:
        # Suffix range: the last N bytes
        suffix_length = int(end_str)
        if suffix_length == 0 or file_size == 0:
            raise RangeNotSatisfiableError(file_size)
        return ByteRange(max(file_size - suffix_length, 0), file_size - 1)

    start = int(start_str)
    end = int(end_str) if end_str else file_size - 1
    if end_str and end < start:
        raise RangeParseError(f"Range end before start in {specs[0]!r}")
    if start >= file_size:
        raise RangeNotSatisfiableError(file_size)

    return ByteRange(start, min(end, file_size - 1))


def content_disposition(file_name: str) -> str:
    """Build an inline Content-Disposition value, adding filename* for non-ASCII names."""
    escaped = file_name.replace("\\", "\\\\").replace('"', '\\"')
    try:
        escaped.encode("ascii")
    except UnicodeEncodeError:
        fallback = escaped.encode("ascii", "replace").decode("ascii")
        return f"inline; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name)}"
    return f'inline; filename="{escaped}"'


@dataclass(frozen=True)
class FullPlan:
    """Send the whole file with 200 OK."""
    file_size: int
    content_type: str
    file_name: str

    status_code = 200

    @property
    def start(self) -> int:
        return 0

    @property
    def content_length(self) -> int:
        return self.file_size

    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": self.content_type,
            "Content-Length": str(self.file_size),
            "Accept-Ranges": RANGE_UNIT,
            "Content-Disposition": content_disposition(self.file_name),
        }


@dataclass(frozen=True)
class PartialPlan:
    """Send one byte window with 206 Partial Content."""
    byte_range: ByteRange
    file_size: int
    content_type: str
    file_name: str

    status_code = 206

    @property
    def start(self) -> int:
        return self.byte_range.start

    @property
    def content_length(self) -> int:
        return self.byte_range.length

    def headers(self) -> dict[str, str]:
        start, end = self.byte_range
        return {
            "Content-Type": self.content_type,
            "Content-Length": str(self.content_length),
            "Accept-Ranges": RANGE_UNIT,
            "Content-Range": f"{RANGE_UNIT} {start}-{end}/{self.file_size}",
            "Content-Disposition": content_disposition(self.file_name),
        }


ServePlan = Union[FullPlan, PartialPlan]


def plan_response(
    range_header: Optional[str],
    file_size: int,
    content_type: ContentType,
    file_name: str,
) -> ServePlan:
    """
    Decide between a full and a partial response.

    Args:
        range_header: Raw Range header value, if the client sent one.
        file_size: Total size of the file in bytes.
        content_type: Classification of the file.
        file_name: Name reported in Content-Disposition.

    Returns:
        FullPlan when there is no header, the file is not streamable audio,
        the header lists no ranges or cannot be parsed; otherwise PartialPlan.

    Raises:
        RangeNotSatisfiableError: If the requested range lies beyond EOF.
    """
    full = FullPlan(file_size=file_size, content_type=content_type.mime_type, file_name=file_name)

    if range_header is None or not content_type.is_streamable_audio:
        return full

    try:
        byte_range = parse_range_header(range_header, file_size)
    except RangeParseError as exc:
        # A malformed header is ignored (RFC 7233 section 3.1): serve the whole
        # file with 200 rather than a mislabeled partial response.
        logger.warning("Ignoring malformed Range header for %s: %s", file_name, exc)
        return full

    if byte_range is None:
        return full

    return PartialPlan(
        byte_range=byte_range,
        file_size=file_size,
        content_type=content_type.mime_type,
        file_name=file_name,
    )


def iter_file_range(
    path: Path,
    start: int,
    length: int,
    chunk_size: int = CHUNK_SIZE,
) -> Iterator[bytes]:
    """
    Yield exactly ``length`` bytes of a file starting at ``start``.

    The file handle is closed when the generator finishes or is closed early
    (for example when the client disconnects mid-stream).

    Raises:
        OSError: If the file ends before ``length`` bytes were read.
    """
    with open(path, "rb") as f:
        f.seek(start)
        remaining = length
        while remaining > 0:
            chunk = f.read(min(chunk_size, remaining))
            if not chunk:
                raise OSError(f"Unexpected end of file after {length - remaining} of {length} bytes")
            remaining -= len(chunk)
            yield chunk
