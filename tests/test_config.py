"""Tests for CLI preferences loading and saving."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from lms.config import (
    MAX_REMEMBERED_MODELS,
    CliPreferences,
    ConfigError,
    get_config_dir,
    get_log_path,
    get_preferences_path,
    load_preferences,
    remember_loaded_model,
    save_preferences,
)


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("LMS_CONFIG_DIR", str(tmp_path))
    monkeypatch.delenv("LMS_LOG_FILE", raising=False)
    return tmp_path


# --- Paths ---


def test_config_dir_from_env(config_dir: Path) -> None:
    assert get_config_dir() == config_dir
    assert get_preferences_path() == config_dir / "cli-pref.json"
    assert get_log_path() == config_dir / "logs" / "lms.log"


def test_default_config_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("LMS_CONFIG_DIR", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert get_config_dir() == tmp_path / ".lmstudio" / ".internal"


def test_log_file_override(config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LMS_LOG_FILE", str(config_dir / "custom.log"))
    assert get_log_path() == config_dir / "custom.log"


# --- Loading ---


def test_missing_file_gives_defaults(config_dir: Path) -> None:
    prefs = load_preferences()
    assert prefs == CliPreferences()
    assert prefs.large_paste_threshold == 1000
    assert prefs.auto_start_server is None
    assert prefs.keybindings == {}


def test_loads_camel_case_keys(config_dir: Path) -> None:
    (config_dir / "cli-pref.json").write_text(
        json.dumps(
            {
                "autoLaunchMinimizedWarned": True,
                "lastLoadedModels": ["qwen"],
                "largePasteThreshold": 250,
                "keybindings": {"submit": ["ctrl+s"]},
            }
        )
    )
    prefs = load_preferences()
    assert prefs.auto_launch_minimized_warned is True
    assert prefs.last_loaded_models == ["qwen"]
    assert prefs.large_paste_threshold == 250
    assert prefs.keybindings == {"submit": ["ctrl+s"]}


def test_unknown_keys_are_ignored(config_dir: Path) -> None:
    (config_dir / "cli-pref.json").write_text('{"somethingNew": 1}')
    assert load_preferences() == CliPreferences()


def test_invalid_json_raises(config_dir: Path) -> None:
    (config_dir / "cli-pref.json").write_text("{not json")
    with pytest.raises(ConfigError, match="Error reading preferences"):
        load_preferences()


def test_invalid_threshold_raises(config_dir: Path) -> None:
    (config_dir / "cli-pref.json").write_text('{"largePasteThreshold": 0}')
    with pytest.raises(ConfigError):
        load_preferences()


# --- Saving ---


def test_save_writes_aliases(config_dir: Path) -> None:
    save_preferences(CliPreferences(large_paste_threshold=42))
    data = json.loads((config_dir / "cli-pref.json").read_text())
    assert data["largePasteThreshold"] == 42
    assert "large_paste_threshold" not in data
    assert load_preferences().large_paste_threshold == 42


def test_save_keeps_unused_shared_keys(config_dir: Path) -> None:
    path = config_dir / "cli-pref.json"
    path.write_text(
        json.dumps(
            {
                "autoLaunchMinimizedWarned": True,
                "importWillMoveWarned": True,
                "autoStartServer": False,
            }
        )
    )
    prefs = remember_loaded_model(load_preferences(), "qwen-7b")
    save_preferences(prefs)
    data = json.loads(path.read_text())
    assert data["autoLaunchMinimizedWarned"] is True
    assert data["importWillMoveWarned"] is True
    assert data["autoStartServer"] is False
    assert data["lastLoadedModels"] == ["qwen-7b"]


def test_save_creates_directory(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "dir" / "prefs.json"
    save_preferences(CliPreferences(), path)
    assert path.exists()
    assert not path.with_suffix(".json.tmp").exists()


def test_save_failure_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(ConfigError, match="Error saving preferences"):
        save_preferences(CliPreferences(), blocker / "prefs.json")


# --- Recent models ---


def test_remember_moves_model_to_front() -> None:
    prefs = CliPreferences(last_loaded_models=["a", "b", "c"])
    updated = remember_loaded_model(prefs, "c")
    assert updated.last_loaded_models == ["c", "a", "b"]
    assert prefs.last_loaded_models == ["a", "b", "c"]


def test_remember_caps_list() -> None:
    prefs = CliPreferences(last_loaded_models=[f"m{i}" for i in range(MAX_REMEMBERED_MODELS)])
    updated = remember_loaded_model(prefs, "new")
    assert len(updated.last_loaded_models) == MAX_REMEMBERED_MODELS
    assert updated.last_loaded_models[0] == "new"
    assert f"m{MAX_REMEMBERED_MODELS - 1}" not in updated.last_loaded_models
