"""
JSON persistence for Settings.

load() merges whatever is on disk over the defaults; save() writes to a
temporary file and renames it over the target so a crash mid-write leaves
the previous document intact.
"""

import json
import logging
import os
from pathlib import Path

from models.board import Settings

log = logging.getLogger(__name__)


class SettingsStore:
    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Settings:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            log.info("No settings at %s, starting from defaults", self._path)
            return Settings()
        except (OSError, ValueError):
            log.exception("Unreadable settings at %s, starting from defaults", self._path)
            return Settings()
        if not isinstance(raw, dict):
            log.warning("Settings at %s is not an object, ignoring", self._path)
            return Settings()
        return Settings.from_dict(raw)

    def save(self, settings: Settings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(settings.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self._path)
        log.debug("Saved settings to %s", self._path)

