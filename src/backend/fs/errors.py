"""
Error taxonomy for file serving and archive assembly.

Each error carries the HTTP status the API layer answers with, so routers
never have to guess how a failure should surface.
"""

from __future__ import annotations


class FileServiceError(RuntimeError):
    """Base class for failures that are reported to the client by name."""

    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TraversalError(FileServiceError):
    """A user supplied path escapes the storage root."""

    http_status = 403


class NotFoundError(FileServiceError):
    """A referenced file does not exist."""

    http_status = 404

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


class InvalidRequestError(FileServiceError):
    http_status = 400


class RangeParseError(ValueError):
    """The Range header could not be parsed. Handled by degrading to a full response."""


class RangeNotSatisfiableError(FileServiceError):
    """The requested byte range lies outside the file."""

    http_status = 416

    def __init__(self, file_size: int) -> None:
        super().__init__("Requested range not satisfiable")
        self.file_size = file_size


class ArchiveError(FileServiceError):
    """Archive assembly failed."""


class DuplicateEntryError(ArchiveError):
    http_status = 400

    def __init__(self, entry_name: str) -> None:
        super().__init__(f"Duplicate archive entry: {entry_name}")
        self.entry_name = entry_name
