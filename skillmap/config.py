"""
Configuration management for SkillMap.

Settings come from three layers, later ones winning:
1. Built-in defaults (EditorSettings)
2. The "editor" section of config.json next to the project root/executable
3. SKILLMAP_* environment variables (a .env file is loaded by app.py)
"""

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

from skillmap.edit.constants import DOUBLE_CLICK_WINDOW_MS
from skillmap.paths import get_config_path
from skillmap.storage.persistence import STORAGE_KEY
from skillmap.text_fit import BALANCE_MAX_CHARS, MAX_FONT_SIZE, MIN_FONT_SIZE

logger = logging.getLogger(__name__)

ENV_PREFIX = "SKILLMAP_"


@dataclass
class EditorSettings:
    min_font: int = MIN_FONT_SIZE
    max_font: int = MAX_FONT_SIZE
    double_click_ms: int = DOUBLE_CLICK_WINDOW_MS
    balance_chars: int = BALANCE_MAX_CHARS
    storage_key: str = STORAGE_KEY
    port: int = 8080
    log_level: str = "INFO"
    storage_secret: str = "skillmap-local-secret"


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json."""
    config_path = config_path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError):
            return {}
    return {}


def save_config(config: dict, config_path: Optional[Path] = None) -> None:
    """Save configuration to config.json."""
    config_path = config_path or get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def _coerce(value, default):
    if isinstance(default, int):
        return int(value)
    return str(value)


def get_editor_settings(config_path: Optional[Path] = None) -> EditorSettings:
    """
    Build EditorSettings from defaults, config.json and the environment.

    Values that cannot be converted are logged and ignored.
    """
    settings = EditorSettings()
    config = load_config(config_path)
    section = config.get("editor", {}) if isinstance(config, dict) else {}
    if not isinstance(section, dict):
        section = {}

    for f in fields(EditorSettings):
        default = getattr(settings, f.name)
        raw = os.environ.get(ENV_PREFIX + f.name.upper(), section.get(f.name))
        if raw is None:
            continue
        try:
            setattr(settings, f.name, _coerce(raw, default))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid setting {f.name}={raw!r}")

    if settings.min_font > settings.max_font:
        logger.warning(f"min_font {settings.min_font} > max_font {settings.max_font}, using defaults")
        settings.min_font, settings.max_font = MIN_FONT_SIZE, MAX_FONT_SIZE
    return settings
