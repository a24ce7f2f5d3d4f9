from __future__ import annotations

import json
import logging
from pathlib import Path

from .models import ServiceSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """
    Read-only view of data/config.json.

    Settings are read once at startup and handed to the engines; nothing in
    the service writes them back, so the store only loads.
    """

    def __init__(self, *, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ServiceSettings:
        """
        Load settings, falling back to defaults when the file is absent or unusable.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ServiceSettings()
        except OSError as exc:
            logger.warning("Cannot read settings file %s, using defaults: %s", self._path, exc)
            return ServiceSettings()

        try:
            raw = json.loads(text)
        except ValueError as exc:
            logger.warning("Invalid JSON in settings file %s, using defaults: %s", self._path, exc)
            return ServiceSettings()

        if not isinstance(raw, dict):
            logger.warning("Settings file %s is not a JSON object, using defaults", self._path)
            return ServiceSettings()

        return ServiceSettings.from_persist_dict(raw)
