from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from music_os import cli, player
from music_os.models import TagRecord
from music_os.tag_store import TagStore


@pytest.fixture
def library(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setenv("MUSIC_OS_CONFIG_DIR", str(tmp_path / "config"))
    root = tmp_path / "Music"
    for rel in ["Rock/Queen - Bohemian Rhapsody.m4a", "Rock/Queen - Live.m4a", "Pop/Levitating.m4a"]:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("dummy", encoding="utf-8")
    return root


def _seed(root: Path) -> None:
    store = TagStore(library_root=root)
    store.tags["drive"] = TagRecord(["Rock/Queen - Live.m4a", "Pop/Levitating.m4a"], 1_600_000_000, 1_700_000_000)
    store.tags["gym"] = TagRecord(["Pop/Levitating.m4a"], 1, 2)
    store.persist()


def _fake_editor(monkeypatch, new_content: str):
    seen = {}

    def _run(argv):
        path = Path(argv[-1])
        seen["before"] = path.read_text(encoding="utf-8") if path.exists() else None
        path.write_text(new_content, encoding="utf-8")
        return subprocess.CompletedProcess(argv, 0)

    monkeypatch.setenv("EDITOR", "fake-editor")
    monkeypatch.setattr(subprocess, "run", _run)
    return seen


def test_list_tags(library: Path, capsys) -> None:
    _seed(library)
    assert cli.main(["tags", "-m", str(library)]) == 0
    assert capsys.readouterr().out.splitlines() == ["drive", "gym"]


def test_list_tags_json(library: Path, capsys) -> None:
    _seed(library)
    assert cli.main(["tags", "--json", "-m", str(library)]) == 0
    assert json.loads(capsys.readouterr().out) == ["drive", "gym"]


def test_list_tags_without_store(library: Path, capsys) -> None:
    assert cli.main(["tags", "-m", str(library)]) == 0
    assert capsys.readouterr().out == ""
    assert not (library / "tags.json").exists()


def test_show_tag(library: Path, capsys) -> None:
    _seed(library)
    assert cli.main(["tags", "drive", "-m", str(library)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == (
        f"Amount: 2, Creation: {cli.format_time(1_600_000_000)}, Modified: {cli.format_time(1_700_000_000)}"
    )
    assert lines[1:] == ["Rock/Queen - Live.m4a", "Pop/Levitating.m4a"]


def test_show_missing_tag(library: Path, capsys) -> None:
    _seed(library)
    before = (library / "tags.json").read_bytes()
    assert cli.main(["tags", "chill", "-m", str(library)]) == 1
    assert 'Tag "chill" does not exist' in capsys.readouterr().err
    assert (library / "tags.json").read_bytes() == before


def test_delete_tag(library: Path, capsys) -> None:
    _seed(library)
    assert cli.main(["tags", "drive", "--delete", "-m", str(library)]) == 0
    store = TagStore.load(library)
    assert store.names() == ["gym"]
    assert store.get("gym") == TagRecord(["Pop/Levitating.m4a"], 1, 2)


def test_delete_missing_tag(library: Path, capsys) -> None:
    _seed(library)
    before = (library / "tags.json").read_bytes()
    assert cli.main(["tags", "chill", "-d", "-m", str(library)]) == 1
    assert (library / "tags.json").read_bytes() == before


@pytest.mark.parametrize(
    "argv,message",
    [
        (["tags", "drive", "--delete", "--editor"], "can't have --delete and --editor together"),
        (["tags", "--delete"], "can't use --delete without a tag"),
    ],
)
def test_invalid_flag_combinations(tmp_path: Path, monkeypatch, capsys, argv, message) -> None:
    monkeypatch.setenv("MUSIC_OS_CONFIG_DIR", str(tmp_path / "config"))
    missing = tmp_path / "nowhere"
    assert cli.main(argv + ["-m", str(missing)]) == 1
    assert message in capsys.readouterr().err
    assert not missing.exists()


def test_edit_tag_replaces_songs(library: Path, monkeypatch) -> None:
    _seed(library)
    seen = _fake_editor(monkeypatch, "Rock/Queen - Bohemian Rhapsody.m4a\r\n\n  \nPop/Levitating.m4a\n")
    assert cli.main(["tags", "drive", "--editor", "-m", str(library)]) == 0

    assert seen["before"] == "Rock/Queen - Live.m4a\nPop/Levitating.m4a"
    record = TagStore.load(library).get("drive")
    assert record.songs == ["Rock/Queen - Bohemian Rhapsody.m4a", "Pop/Levitating.m4a"]
    assert record.creation_time == 1_600_000_000
    assert record.modified_time > 1_700_000_000


def test_edit_creates_new_tag(library: Path, monkeypatch) -> None:
    seen = _fake_editor(monkeypatch, f"{library}/Pop/Levitating.m4a\nRock/Queen - Live.m4a\n")
    assert cli.main(["tags", "party", "-e", "-m", str(library)]) == 0
    assert seen["before"] == ""
    record = TagStore.load(library).get("party")
    assert record.songs == ["Pop/Levitating.m4a", "Rock/Queen - Live.m4a"]
    assert record.creation_time == record.modified_time


def test_edit_whole_store_reports_corruption(library: Path, monkeypatch, capsys) -> None:
    _seed(library)
    _fake_editor(monkeypatch, "{broken")
    assert cli.main(["tags", "--editor", "-m", str(library)]) == 1
    assert "Corrupt tag store" in capsys.readouterr().err


def test_corrupt_store_is_reported(library: Path, capsys) -> None:
    (library / "tags.json").write_text("[1, 2]", encoding="utf-8")
    assert cli.main(["tags", "-m", str(library)]) == 1
    assert "Error: Corrupt tag store" in capsys.readouterr().err
    assert (library / "tags.json").read_text(encoding="utf-8") == "[1, 2]"


def test_play_dry_run_appends_to_tag(library: Path, monkeypatch, capsys) -> None:
    _seed(library)
    launched = []
    monkeypatch.setattr(player, "play", lambda argv: launched.append(argv))

    assert cli.main(["play", "queen", "--dry-run", "--tag", "drive", "-m", str(library)]) == 0
    out = capsys.readouterr().out
    assert "Playing: [2]" in out
    assert launched == []

    record = TagStore.load(library).get("drive")
    assert record.songs == ["Rock/Queen - Live.m4a", "Pop/Levitating.m4a", "Rock/Queen - Bohemian Rhapsody.m4a"]
    assert record.creation_time == 1_600_000_000


def test_play_launches_player_with_limit(library: Path, monkeypatch, capsys) -> None:
    launched = []
    monkeypatch.setattr(player, "play", lambda argv: launched.append(argv))
    assert cli.main(["play", "queen", "-l", "1", "-m", str(library)]) == 0
    assert launched == [["vlc", str(library / "Rock/Queen - Bohemian Rhapsody.m4a")]]
    assert not (library / "tags.json").exists()


def test_play_without_terms_plays_everything(library: Path, monkeypatch, capsys) -> None:
    launched = []
    monkeypatch.setattr(player, "play", lambda argv: launched.append(argv))
    assert cli.main(["play", "-m", str(library)]) == 0
    assert launched == [["vlc", "--recursive=expand", str(library)]]


def test_play_no_match(library: Path, capsys) -> None:
    assert cli.main(["play", "abba", "-m", str(library)]) == 1
    assert "Didn't match anything" in capsys.readouterr().err


def test_install_invalid_folder(library: Path, capsys) -> None:
    assert cli.main(["install", "abc", "jazz", "-m", str(library)]) == 1
    assert "invalid folder: jazz" in capsys.readouterr().err


def test_music_path_from_config(library: Path, tmp_path: Path, capsys) -> None:
    _seed(library)
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "config.json").write_text(json.dumps({"music_path": str(library)}), encoding="utf-8")
    assert cli.main(["tags"]) == 0
    assert capsys.readouterr().out.splitlines() == ["drive", "gym"]


def test_json_output_stays_valid_with_broken_config(library: Path, tmp_path: Path, capsys) -> None:
    _seed(library)
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "config.json").write_text("{broken", encoding="utf-8")

    assert cli.main(["tags", "--json", "-m", str(library)]) == 0
    captured = capsys.readouterr()
    assert json.loads(captured.out) == ["drive", "gym"]
    assert "Falling back to defaults" in captured.err
