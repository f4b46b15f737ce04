from __future__ import annotations

import json
from pathlib import Path
from typing import List

import pytest
from loguru import logger

from music_os.config_service import DEFAULT_CONFIG, ConfigService, _get_appdata_root


@pytest.fixture
def logged_warnings():
    messages: List[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="WARNING")
    yield messages
    logger.remove(handler_id)


def _write_config(config_dir: Path, payload) -> Path:
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / "config.json"
    if isinstance(payload, bytes):
        path.write_bytes(payload)
    elif isinstance(payload, str):
        path.write_text(payload, encoding="utf-8")
    else:
        path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_missing_file_returns_defaults(tmp_path: Path) -> None:
    cfg = ConfigService(config_dir=tmp_path)
    assert cfg.load_config() == DEFAULT_CONFIG
    assert cfg.get("music_path") is None
    assert cfg.get("player", "vlc") == "vlc"


def test_user_values_overlay_defaults(tmp_path: Path) -> None:
    _write_config(tmp_path / "nested", {"music_path": "/mnt/music", "editor": "nano", "format": "mp3"})

    loaded = ConfigService(config_dir=tmp_path / "nested").load_config()
    assert loaded["music_path"] == "/mnt/music"
    assert loaded["format"] == "mp3"
    assert loaded["downloader"] == "youtube-dl"


def test_invalid_payload_falls_back(tmp_path: Path, logged_warnings, capsys) -> None:
    _write_config(tmp_path, ["not", "an", "object"])

    assert ConfigService(config_dir=tmp_path).load_config() == DEFAULT_CONFIG
    assert any("Falling back to defaults" in m for m in logged_warnings)
    assert capsys.readouterr().out == ""


def test_schema_violation_falls_back(tmp_path: Path, logged_warnings) -> None:
    _write_config(tmp_path, {"format": ""})
    assert ConfigService(config_dir=tmp_path).load_config() == DEFAULT_CONFIG
    assert any("Invalid configuration" in m for m in logged_warnings)


def test_unparsable_file_falls_back(tmp_path: Path, logged_warnings, capsys) -> None:
    _write_config(tmp_path, "{oops")
    assert ConfigService(config_dir=tmp_path).load_config() == DEFAULT_CONFIG
    assert any("Could not read" in m for m in logged_warnings)
    assert capsys.readouterr().out == ""


def test_non_utf8_file_falls_back(tmp_path: Path, logged_warnings) -> None:
    _write_config(tmp_path, b"\xff\xfe{}")
    cfg = ConfigService(config_dir=tmp_path)
    assert cfg.load_config() == DEFAULT_CONFIG
    assert cfg.get("format") == "m4a"
    assert any("Could not read" in m for m in logged_warnings)


def test_config_dir_env_override(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("MUSIC_OS_CONFIG_DIR", str(tmp_path))
    assert _get_appdata_root() == tmp_path
    assert ConfigService().get_config_path() == tmp_path / "config.json"


def test_xdg_config_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("MUSIC_OS_CONFIG_DIR", raising=False)
    monkeypatch.setattr("platform.system", lambda: "Linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert _get_appdata_root() == tmp_path / "MusicOS"
