"""Schema helpers for the application settings file."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Mapping

from jsonschema import Draft202012Validator

from .. import config
from ..errors import SettingsValidationError

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "findash/settings.schema.json",
    "type": "object",
    "required": ["schema", "api", "loading"],
    "properties": {
        "schema": {"const": "findash/settings@1"},
        "api": {
            "type": "object",
            "properties": {
                "base_url": {"type": ["string", "null"]},
                "token": {"type": ["string", "null"]},
                "request_timeout_sec": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": True,
        },
        "loading": {
            "type": "object",
            "properties": {
                "server_max_page_size": {"type": "integer", "minimum": 1},
                "full_load_threshold": {"type": "integer", "minimum": 0},
                "incremental_page_size": {"type": "integer", "minimum": 1},
                "min_page_size": {"type": "integer", "minimum": 10},
                "scroll_lookahead": {"type": "integer", "minimum": 0},
            },
            "additionalProperties": False,
        },
        "search": {
            "type": "object",
            "properties": {
                "suggestion_limit": {"type": "integer", "minimum": 1},
                "suggestion_min_chars": {"type": "integer", "minimum": 1},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "findash/settings@1",
    "api": {
        "base_url": None,
        "token": None,
        "request_timeout_sec": config.REQUEST_TIMEOUT_SEC,
    },
    "loading": {
        "server_max_page_size": config.SERVER_MAX_PAGE_SIZE,
        "full_load_threshold": config.FULL_LOAD_THRESHOLD,
        "incremental_page_size": config.INCREMENTAL_PAGE_SIZE,
        "min_page_size": config.MIN_PAGE_SIZE,
        "scroll_lookahead": config.SCROLL_LOOKAHEAD,
    },
    "search": {
        "suggestion_limit": config.SUGGESTION_LIMIT,
        "suggestion_min_chars": config.SUGGESTION_MIN_CHARS,
    },
}

_SECTIONS = ("api", "loading", "search")

_validator = Draft202012Validator(SETTINGS_SCHEMA)


@dataclass(frozen=True)
class LoaderSettings:
    """Tunable page-size policy consumed by the analyzer and the loader."""

    server_max_page_size: int = config.SERVER_MAX_PAGE_SIZE
    full_load_threshold: int = config.FULL_LOAD_THRESHOLD
    incremental_page_size: int = config.INCREMENTAL_PAGE_SIZE
    min_page_size: int = config.MIN_PAGE_SIZE
    scroll_lookahead: int = config.SCROLL_LOOKAHEAD

    def __post_init__(self) -> None:
        if self.incremental_page_size >= self.server_max_page_size:
            raise SettingsValidationError(
                "incremental_page_size must be smaller than server_max_page_size"
            )
        if self.full_load_threshold > self.server_max_page_size:
            raise SettingsValidationError(
                "full_load_threshold cannot exceed server_max_page_size"
            )

    @classmethod
    def from_mapping(cls, loading: Mapping[str, Any]) -> LoaderSettings:
        known = {key: loading[key] for key in cls.__dataclass_fields__ if key in loading}
        return cls(**known)


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, dict):
                target = merged.setdefault(key, {})
                for sub_key, sub_value in value.items():
                    target[sub_key] = sub_value
                continue
            merged[key] = value
    validate_settings(merged)
    return merged


def validate_settings(data: dict[str, Any]) -> None:
    """Validate *data* against the settings schema."""

    _validator.validate(data)
    LoaderSettings.from_mapping(data.get("loading", {}))


__all__ = [
    "DEFAULT_SETTINGS",
    "SETTINGS_SCHEMA",
    "LoaderSettings",
    "merge_with_defaults",
    "validate_settings",
]
