from __future__ import annotations

from dataclasses import dataclass
from typing import Any


DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_BASE_URL = "http://localhost:9005"


@dataclass
class ServiceSettings:
    upload_dir: str = DEFAULT_UPLOAD_DIR
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "ServiceSettings":
        upload_dir = str(data.get("upload_dir", DEFAULT_UPLOAD_DIR) or DEFAULT_UPLOAD_DIR).strip()
        base_url = str(data.get("base_url", DEFAULT_BASE_URL) or DEFAULT_BASE_URL).strip()

        if not base_url.startswith(("http://", "https://")):
            base_url = DEFAULT_BASE_URL

        return cls(
            upload_dir=upload_dir or DEFAULT_UPLOAD_DIR,
            base_url=base_url.rstrip("/"),
        )
