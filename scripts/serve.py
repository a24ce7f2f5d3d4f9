#!/usr/bin/env python3
"""
Run the media file service with uvicorn.

Settings source (priority):
1) CLI arguments: --upload-dir / --base-url
2) Settings file: data/config.json

Example:
  python3 scripts/serve.py --upload-dir /srv/uploads --port 9005
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from src.backend.app import create_app  # noqa: E402
from src.backend.settings.store import SettingsStore  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="serve",
        description="Serve stored media files and build zip archives on demand",
    )
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", type=int, default=9005)
    p.add_argument("--upload-dir", default=None, help="storage root (overrides data/config.json)")
    p.add_argument("--base-url", default=None, help="public base URL used in download links")
    p.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    return p


def main() -> int:
    args = build_parser().parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = SettingsStore(path=REPO_ROOT / "data" / "config.json").load()
    if args.upload_dir:
        settings.upload_dir = args.upload_dir
    if args.base_url:
        settings.base_url = args.base_url.rstrip("/")

    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_level=args.log_level)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
