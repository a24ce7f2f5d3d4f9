"""
Archive utilities for packing stored files into zip archives on demand.

Archives are written under <storage_root>/compressed/ with generated names and
are served back through the regular file endpoint. Source bytes are streamed
into each entry through a fixed-size buffer, so large audio files are never
held in memory.
"""

from __future__ import annotations

import logging
import shutil
import uuid
import zipfile
from pathlib import Path
from typing import Callable, NamedTuple, Sequence

from .errors import ArchiveError, DuplicateEntryError, NotFoundError
from .paths import normalize_root

logger = logging.getLogger(__name__)

# Subdirectory of the storage root that receives generated archives
ARCHIVE_DIR_NAME = "compressed"

# Buffer size for streaming file bytes into an entry
BUFFER_SIZE = 65536  # 64 KB


class ArchiveSource(NamedTuple):
    """One file to pack."""
    path: Path         # resolved path inside the storage root
    requested: str     # path as the client sent it, used in error messages

    @property
    def entry_name(self) -> str:
        return self.path.name


class CompressionStats(NamedTuple):
    """Size statistics for a finished archive."""
    original_size: int
    compressed_size: int

    @property
    def ratio_percent(self) -> float:
        return compression_ratio(self.original_size, self.compressed_size)

    @property
    def ratio_text(self) -> str:
        return format_ratio(self.ratio_percent)


def compression_ratio(original_size: int, compressed_size: int) -> float:
    """
    Percentage of space saved by compression.

    Returns 0.0 for an empty original, where the ratio is undefined.
    """
    if original_size <= 0:
        return 0.0
    return (original_size - compressed_size) / original_size * 100


def format_ratio(ratio: float) -> str:
    return f"{ratio:.2f}%"


def generate_archive_name(stem: str | None = None) -> str:
    """
    Generate a collision-resistant archive filename.

    Format: {uuid4 hex}.zip, or {stem}_{uuid4 hex}.zip when a stem is given.
    """
    token = uuid.uuid4().hex
    if stem:
        return f"{stem}_{token}.zip"
    return f"{token}.zip"


def size_of(path: Path, requested: str | None = None) -> int:
    """
    Return the size of a stored file in bytes.

    Raises:
        NotFoundError: If the path is missing or not a regular file.
    """
    if not path.is_file():
        raise NotFoundError(requested if requested is not None else path.name)
    return path.stat().st_size


class ArchiveEngine:
    """
    Builds zip archives from files under a storage root.

    Holds no mutable state; concurrent calls are safe because every archive
    gets its own random name and is opened in exclusive-create mode.
    """

    def __init__(
        self,
        storage_root: Path | str,
        *,
        archive_dir_name: str = ARCHIVE_DIR_NAME,
        buffer_size: int = BUFFER_SIZE,
        name_factory: Callable[[str | None], str] = generate_archive_name,
    ) -> None:
        self._storage_root = normalize_root(storage_root)
        self._archive_dir = self._storage_root / archive_dir_name
        self._buffer_size = buffer_size
        self._name_factory = name_factory

    @property
    def archive_dir(self) -> Path:
        return self._archive_dir

    def relative_path(self, archive_path: Path) -> str:
        """Path of an archive relative to the storage root, e.g. ``compressed/<name>.zip``."""
        return archive_path.relative_to(self._storage_root).as_posix()

    def compress_many(self, sources: Sequence[ArchiveSource]) -> Path:
        """
        Pack several files into one new archive, in input order.

        Args:
            sources: Files to pack. Entry names are the files' base names.

        Returns:
            Path to the created archive.

        Raises:
            ArchiveError: If no sources are given.
            DuplicateEntryError: If two sources share a base name.
            NotFoundError: If any source is missing. The whole job is aborted.
            OSError: If reading or writing fails.
        """
        if not sources:
            raise ArchiveError("No files to compress")

        seen: set[str] = set()
        for source in sources:
            if source.entry_name in seen:
                raise DuplicateEntryError(source.entry_name)
            seen.add(source.entry_name)

        zip_path = self._archive_dir / self._name_factory(None)
        self._write_archive(zip_path, sources)
        logger.info("Created archive %s with %d files", zip_path.name, len(sources))
        return zip_path

    def compress_one(self, source: ArchiveSource) -> Path:
        """
        Pack a single file into its own archive.

        The archive is named after the file's stem plus a random suffix.

        Raises:
            NotFoundError: If the source is missing.
            OSError: If reading or writing fails.
        """
        if not source.path.is_file():
            raise NotFoundError(source.requested)

        zip_path = self._archive_dir / self._name_factory(source.path.stem)
        self._write_archive(zip_path, [source])
        logger.info("Created archive %s for %s", zip_path.name, source.requested)
        return zip_path

    def total_size(self, sources: Sequence[ArchiveSource]) -> int:
        """
        Sum of the source sizes.

        Raises:
            NotFoundError: Naming the first missing source.
        """
        return sum(size_of(s.path, s.requested) for s in sources)

    def archive_size(self, zip_path: Path) -> int:
        return size_of(zip_path, self.relative_path(zip_path))

    def _write_archive(self, zip_path: Path, sources: Sequence[ArchiveSource]) -> None:
        self._archive_dir.mkdir(parents=True, exist_ok=True)

        try:
            zf = zipfile.ZipFile(zip_path, "x", zipfile.ZIP_DEFLATED)
        except FileExistsError as exc:
            raise ArchiveError("Archive name collision, please retry") from exc

        try:
            with zf:
                for source in sources:
                    self._add_file(zf, source)
        except BaseException:
            zip_path.unlink(missing_ok=True)
            raise

    def _add_file(self, zf: zipfile.ZipFile, source: ArchiveSource) -> None:
        if not source.path.is_file():
            raise NotFoundError(source.requested)

        info = zipfile.ZipInfo.from_file(source.path, arcname=source.entry_name, strict_timestamps=False)
        info.compress_type = zipfile.ZIP_DEFLATED

        with open(source.path, "rb") as src, zf.open(info, "w") as dest:
            shutil.copyfileobj(src, dest, self._buffer_size)
