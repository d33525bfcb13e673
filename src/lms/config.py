"""CLI preferences. Stored at ~/.lmstudio/.internal/cli-pref.json.

The directory can be moved with the ``LMS_CONFIG_DIR`` environment variable.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lms.chat.input_reducer import DEFAULT_LARGE_PASTE_THRESHOLD

logger = logging.getLogger(__name__)

MAX_REMEMBERED_MODELS = 10


class ConfigError(Exception):
    """The preferences file exists but cannot be read or validated."""


class CliPreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Not read by lms; kept so a shared cli-pref.json keeps these keys on save
    auto_launch_minimized_warned: bool = Field(default=False, alias="autoLaunchMinimizedWarned")
    import_will_move_warned: bool = Field(default=False, alias="importWillMoveWarned")
    auto_start_server: Optional[bool] = Field(default=None, alias="autoStartServer")

    last_loaded_models: list[str] = Field(default_factory=list, alias="lastLoadedModels")
    large_paste_threshold: int = Field(
        default=DEFAULT_LARGE_PASTE_THRESHOLD, ge=1, alias="largePasteThreshold"
    )
    keybindings: dict[str, list[str]] = Field(default_factory=dict)


def get_config_dir() -> Path:
    return Path(os.environ.get("LMS_CONFIG_DIR", Path.home() / ".lmstudio" / ".internal"))


def get_preferences_path() -> Path:
    return get_config_dir() / "cli-pref.json"


def get_log_path() -> Path:
    override = os.environ.get("LMS_LOG_FILE")
    if override:
        return Path(override)
    return get_config_dir() / "logs" / "lms.log"


def load_preferences(path: Optional[Path] = None) -> CliPreferences:
    """Load preferences; a missing file yields defaults."""
    path = path or get_preferences_path()
    if not path.exists():
        logger.debug("No preferences at %s, using defaults", path)
        return CliPreferences()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return CliPreferences.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ConfigError(f"Error reading preferences from {path}: {e}") from e


def save_preferences(prefs: CliPreferences, path: Optional[Path] = None) -> None:
    path = path or get_preferences_path()
    payload = json.dumps(prefs.model_dump(by_alias=True), indent=2)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(payload + "\n", encoding="utf-8")
        tmp_path.replace(path)
    except OSError as e:
        raise ConfigError(f"Error saving preferences to {path}: {e}") from e
    logger.debug("Saved preferences to %s", path)


def remember_loaded_model(prefs: CliPreferences, model: str) -> CliPreferences:
    """Return *prefs* with *model* moved to the front of the recent list."""
    models = [model] + [m for m in prefs.last_loaded_models if m != model]
    return prefs.model_copy(update={"last_loaded_models": models[:MAX_REMEMBERED_MODELS]})
