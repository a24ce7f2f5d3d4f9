"""
Storage root path resolution with a path-traversal guard.

All file access goes through here: user input is joined to the storage root,
normalized lexically and then checked component-wise against the root.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import unquote

from .errors import TraversalError

logger = logging.getLogger(__name__)


def normalize_root(root: Path | str) -> Path:
    """Return the absolute, normalized form of a storage root."""
    return Path(os.path.normpath(os.path.abspath(os.fspath(root))))


def _fully_unquote(value: str) -> str:
    # Decode until stable so double-encoded separators are caught too.
    previous = None
    while value != previous:
        previous = value
        value = unquote(value)
    return value


def _has_encoded_traversal(segments: list[str]) -> bool:
    """True if decoding any single segment yields a separator, a dot segment or NUL."""
    for segment in segments:
        decoded = _fully_unquote(segment)
        if decoded == segment:
            continue
        if decoded in (".", "..") or any(c in decoded for c in ("/", "\\", "\x00")):
            return True
    return False


def resolve(root: Path | str, user_input: str) -> Path:
    """
    Resolve user input against the storage root.

    Percent-encoding is decoded only to look for disguised traversal. The
    path itself is resolved undecoded, so a file literally named
    ``mix%20final.mp3`` stays reachable.

    Args:
        root: The storage root directory.
        user_input: A relative path supplied by the client.

    Returns:
        An absolute path that is a strict descendant of the root.

    Raises:
        TraversalError: If the input is empty, names the root itself,
            hides separators or dot segments behind percent-encoding, or
            escapes the root after normalization.
    """
    base = normalize_root(root)
    cleaned = (user_input or "").replace("\\", "/")

    if "\x00" in cleaned or _has_encoded_traversal(cleaned.split("/")):
        logger.warning("Rejected encoded path: %r", user_input)
        raise TraversalError("Access denied: invalid path")

    # Absolute input is treated as relative to the root, never as a host path.
    joined = os.path.join(os.fspath(base), cleaned.lstrip("/"))
    candidate = Path(os.path.normpath(joined))

    base_parts = base.parts
    if len(candidate.parts) <= len(base_parts) or candidate.parts[: len(base_parts)] != base_parts:
        logger.warning("Rejected path outside storage root: %r", user_input)
        raise TraversalError("Access denied: file is outside the allowed directory")

    return candidate


class PathResolver:
    """Resolves client paths against a fixed storage root."""

    def __init__(self, root: Path | str) -> None:
        self._root = normalize_root(root)

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, *parts: str) -> Path:
        """
        Resolve one or more path segments, joined with '/', against the root.

        Leading segments are checked on their own as well, so
        ``("..", "uploads/a.mp3")`` is rejected even though the joined path
        lands back inside the root.
        """
        for part in parts[:-1]:
            resolve(self._root, part)
        return resolve(self._root, "/".join(parts))

    def relative(self, path: Path) -> str:
        """Return a resolved path relative to the root, in posix form."""
        return path.relative_to(self._root).as_posix()
