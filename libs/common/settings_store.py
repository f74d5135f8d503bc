"""Small key/value settings stores injected into editing sessions.

The store is read once when a session opens and written whenever a
preference changes. Two backends: a JSON file on disk and an in-memory dict.
"""
from __future__ import annotations
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger("libs.common.settings_store")

KEY_MAP_VIEW = "mapViewPreference"
MAP_VIEW_MAP = "map"
MAP_VIEW_SATELLITE = "satellite"


class MemorySettingsStore:
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._d: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._d.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._d[key] = value

    def remove(self, key: str) -> None:
        self._d.pop(key, None)


class JsonFileSettingsStore(MemorySettingsStore):
    """Settings persisted as a flat JSON object.

    A missing or corrupt file starts empty; the next write replaces it.
    """

    def __init__(self, path: str):
        self.path = path
        super().__init__(self._load())

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read settings from %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _flush(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._d, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self.path)

    def set(self, key: str, value: Any) -> None:
        super().set(key, value)
        self._flush()

    def remove(self, key: str) -> None:
        super().remove(key)
        self._flush()


class MapViewPreference:
    """Map or satellite tiles, loaded on init and saved on every change."""

    def __init__(self, store):
        self.store = store
        self.satellite = store.get(KEY_MAP_VIEW) == MAP_VIEW_SATELLITE

    @property
    def value(self) -> str:
        return MAP_VIEW_SATELLITE if self.satellite else MAP_VIEW_MAP

    def set_satellite(self, satellite: bool) -> None:
        self.satellite = bool(satellite)
        self.store.set(KEY_MAP_VIEW, self.value)

    def toggle(self) -> str:
        self.set_satellite(not self.satellite)
        return self.value
