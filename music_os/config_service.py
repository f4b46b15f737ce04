"""Configuration management for Music OS.

User settings are stored in a JSON file called ``config.json``.  On
Windows it lives under ``%APPDATA%\\MusicOS``; on other systems the
directory defaults to ``$XDG_CONFIG_HOME/MusicOS`` or
``~/.config/MusicOS``.  The ``MUSIC_OS_CONFIG_DIR`` environment variable
overrides the location entirely.

Recognised keys (all optional):

* ``music_path`` – library root used when ``--music-path`` is not given.
* ``editor`` – editor command, takes precedence over ``$VISUAL``/``$EDITOR``.
* ``format`` – default download format (``m4a``).
* ``downloader`` – downloader executable (``youtube-dl``).
* ``player`` – media player executable (``vlc``).

The file is validated against ``schemas/config.schema.json`` using
``jsonschema``.  An invalid or unreadable configuration logs a warning
and falls back to the defaults; it never stops a command from running.

Example usage::

    from music_os.config_service import ConfigService

    config_service = ConfigService()
    cfg = config_service.load_config()
    music_path = config_service.get("music_path")
"""

from __future__ import annotations

import json
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
from loguru import logger

APP_NAME = "MusicOS"
CONFIG_DIR_ENV = "MUSIC_OS_CONFIG_DIR"
SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"

DEFAULT_CONFIG: Dict[str, Any] = {
    "format": "m4a",
    "downloader": "youtube-dl",
    "player": "vlc",
}


def _get_appdata_root(app_name: str = APP_NAME) -> Path:
    """Return the platform‑specific base directory for config files."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override)
    system = platform.system().lower()
    if system == "windows":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / app_name
        return Path.home() / f"AppData/Roaming/{app_name}"
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / app_name
    return Path.home() / ".config" / app_name


def _load_json(file_path: Path) -> Any:
    if not file_path.exists():
        return None
    with file_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _validate_json(data: Any, schema_path: Path) -> None:
    try:
        schema = _load_json(schema_path)
        if schema:
            jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc.message}")


@dataclass
class ConfigService:
    """Resolve and load the Music OS configuration."""

    config_dir: Optional[Path] = None
    config_filename: str = "config.json"
    schema_name: str = "config.schema.json"
    _cached: Optional[Dict[str, Any]] = field(default=None, init=False, repr=False)

    def get_config_dir(self) -> Path:
        if self.config_dir is not None:
            return Path(self.config_dir)
        return _get_appdata_root()

    def get_config_path(self) -> Path:
        return self.get_config_dir() / self.config_filename

    def get_schema_path(self) -> Path:
        return SCHEMA_DIR / self.schema_name

    def load_config(self) -> Dict[str, Any]:
        """Return defaults overlaid with the user's ``config.json``."""
        if self._cached is not None:
            return dict(self._cached)
        cfg_path = self.get_config_path()
        cfg: Dict[str, Any] = dict(DEFAULT_CONFIG)
        try:
            data = _load_json(cfg_path)
        except (OSError, ValueError) as exc:
            # ValueError covers both malformed JSON and non-UTF-8 bytes
            logger.warning(f"Could not read {cfg_path} ({exc}). Falling back to defaults.")
            data = None
        if data is not None:
            try:
                _validate_json(data, self.get_schema_path())
            except ValueError as exc:
                logger.warning(f"{exc}. Falling back to defaults.")
            else:
                cfg.update(data)
                logger.debug(f"Loaded configuration from {cfg_path}")
        self._cached = cfg
        return dict(cfg)

    def get(self, key: str, default: Any = None) -> Any:
        value = self.load_config().get(key)
        return default if value in (None, "") else value
