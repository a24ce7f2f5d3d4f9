"""
Content type classification by file extension (pure logic).

Only the audio formats listed in STREAMABLE_AUDIO_EXTENSIONS are served with
byte-range support; everything else is always sent whole.
"""

from __future__ import annotations

from typing import NamedTuple

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "flac": "audio/flac",
    "mid": "audio/midi",
    "midi": "audio/midi",
}

STREAMABLE_AUDIO_EXTENSIONS = frozenset({"mp3", "wav", "flac", "mid", "midi"})


class ContentType(NamedTuple):
    mime_type: str
    is_streamable_audio: bool


def file_extension(file_name: str) -> str:
    """Return the lowercase text after the last '.', or '' when there is none."""
    if not file_name or "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[-1].lower()


def classify(file_name: str) -> ContentType:
    ext = file_extension(file_name)
    return ContentType(
        mime_type=MIME_TYPES.get(ext, DEFAULT_MIME_TYPE),
        is_streamable_audio=ext in STREAMABLE_AUDIO_EXTENSIONS,
    )
