from __future__ import annotations

import json
from pathlib import Path

import pytest

from findash.errors import SettingsLoadError, SettingsValidationError
from findash.settings import manager as manager_module
from findash.settings.manager import SettingsManager, default_settings_path
from findash.settings.schema import LoaderSettings, merge_with_defaults


def test_settings_manager_roundtrip(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    manager = SettingsManager(path=settings_path)
    manager.load()
    assert settings_path.exists()
    assert manager.get("api.base_url") is None

    changes = []
    manager.changed.connect(lambda key, value: changes.append((key, value)))
    manager.set("api.base_url", "https://budget.example.test/api")

    assert changes == [("api.base_url", "https://budget.example.test/api")]
    assert manager.base_url == "https://budget.example.test/api"
    stored = json.loads(settings_path.read_text(encoding="utf-8"))
    assert stored["api"]["base_url"] == "https://budget.example.test/api"


def test_nested_updates_preserve_defaults(tmp_path: Path) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")
    manager.load()
    manager.set("loading.incremental_page_size", 50)
    assert manager.get("loading.incremental_page_size") == 50
    assert manager.get("loading.server_max_page_size") == 500
    assert manager.get("missing.key", "fallback") == "fallback"


def test_loader_settings_follow_file(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(
        json.dumps({"loading": {"full_load_threshold": 300, "incremental_page_size": 40}}),
        encoding="utf-8",
    )
    manager = SettingsManager(path=settings_path)
    manager.load()

    loader = manager.loader_settings()
    assert loader == LoaderSettings(full_load_threshold=300, incremental_page_size=40)
    assert manager.request_timeout == 30.0


def test_invalid_value_is_rejected_and_not_persisted(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    manager = SettingsManager(path=settings_path)
    manager.load()

    with pytest.raises(SettingsValidationError):
        manager.set("loading.min_page_size", 0)
    with pytest.raises(SettingsValidationError):
        manager.set("loading.incremental_page_size", 800)

    assert manager.get("loading.min_page_size") == 10
    stored = json.loads(settings_path.read_text(encoding="utf-8"))
    assert stored["loading"]["incremental_page_size"] == 100


def test_corrupt_file_raises_load_error(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        SettingsManager(path=settings_path).load()


def test_merge_with_defaults_fills_sections() -> None:
    merged = merge_with_defaults({"search": {"suggestion_limit": 5}})
    assert merged["search"] == {"suggestion_limit": 5, "suggestion_min_chars": 2}
    assert merged["loading"]["full_load_threshold"] == 500


def test_default_path_uses_xdg(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(manager_module.os, "name", "posix")
    monkeypatch.setattr(manager_module.sys, "platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_settings_path() == tmp_path / "findash" / "settings.json"
