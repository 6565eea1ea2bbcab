"""Settings file management with validation and change notifications."""

from __future__ import annotations

import os
import sys
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional

from jsonschema import ValidationError

from ..errors import SettingsLoadError, SettingsValidationError
from ..gui.viewmodels.signal import Signal
from ..utils.jsonio import read_json, write_json
from .schema import DEFAULT_SETTINGS, LoaderSettings, merge_with_defaults

APP_DIR_NAME = "findash"


def default_settings_path() -> Path:
    """Return the default settings.json location for the current platform."""

    if os.name == "nt":
        base = os.environ.get("APPDATA")
        root = Path(base) if base else Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        root = Path.home() / "Library" / "Application Support"
    else:
        base = os.environ.get("XDG_CONFIG_HOME")
        root = Path(base) if base else Path.home() / ".config"
    return root / APP_DIR_NAME / "settings.json"


class SettingsManager:
    """Load, validate and persist user settings.

    ``changed`` fires with ``(key, value)`` after every successful
    :meth:`set`.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._data: dict[str, Any] = deepcopy(DEFAULT_SETTINGS)
        self.changed = Signal()

    @property
    def path(self) -> Path:
        return self._path or default_settings_path()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Load the settings JSON from disk, creating defaults if missing."""

        path = self.path
        self._path = path
        payload = None
        if path.exists():
            try:
                payload = read_json(path)
            except (OSError, ValueError) as exc:
                raise SettingsLoadError(f"Cannot read {path}: {exc}") from exc
            if not isinstance(payload, dict):
                raise SettingsLoadError(f"{path} does not contain a JSON object")
        self._data = self._merged(payload)
        self._write()

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return the value for *key*, supporting dotted access for nested keys."""

        target: Any = self._data
        for part in key.split("."):
            if not isinstance(target, dict) or part not in target:
                return default
            target = target[part]
        return target

    def set(self, key: str, value: Any) -> None:
        """Update *key* with *value*, validate, persist and notify.

        An invalid value leaves the previous settings in place.
        """

        if isinstance(value, Path):
            value = str(value)
        candidate = deepcopy(self._data)
        parts = key.split(".")
        target = candidate
        for part in parts[:-1]:
            branch = target.get(part)
            if not isinstance(branch, dict):
                branch = {}
                target[part] = branch
            target = branch
        target[parts[-1]] = value

        self._data = self._merged(candidate)
        self._write()
        self.changed.emit(key, value)

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------
    def loader_settings(self) -> LoaderSettings:
        return LoaderSettings.from_mapping(self._data.get("loading", {}))

    @property
    def base_url(self) -> Optional[str]:
        return self.get("api.base_url")

    @property
    def token(self) -> Optional[str]:
        return self.get("api.token")

    @property
    def request_timeout(self) -> float:
        return float(self.get("api.request_timeout_sec"))

    @property
    def suggestion_limit(self) -> int:
        return int(self.get("search.suggestion_limit"))

    @property
    def suggestion_min_chars(self) -> int:
        return int(self.get("search.suggestion_min_chars"))

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    @staticmethod
    def _merged(payload: dict[str, Any] | None) -> dict[str, Any]:
        try:
            return merge_with_defaults(payload)
        except ValidationError as exc:
            raise SettingsValidationError(exc.message) from exc

    def _write(self) -> None:
        path = self.path
        self._path = path
        write_json(path, self._data)


__all__ = ["SettingsManager", "default_settings_path"]
