from __future__ import annotations

import json
from pathlib import Path

from modwatch.config import DEFAULT_CONFIG, Config


def test_missing_file_is_created_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "cfg" / "config.json"

    cfg = Config(path)

    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == DEFAULT_CONFIG
    assert cfg.mod_folder == ""
    assert not cfg.is_configured()


def test_mod_folder_round_trips(tmp_path: Path, mod_folder: Path) -> None:
    path = tmp_path / "config.json"
    cfg = Config(path)
    cfg.mod_folder = f"  {mod_folder}  "
    assert cfg.save()

    reloaded = Config(path)
    assert reloaded.mod_folder == str(mod_folder)
    assert reloaded.is_configured()


def test_legacy_key_is_migrated(tmp_path: Path, mod_folder: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"modFolder": str(mod_folder)}), encoding="utf-8")

    cfg = Config(path)

    assert cfg.mod_folder == str(mod_folder)
    cfg.save()
    stored = json.loads(path.read_text(encoding="utf-8"))
    assert "modFolder" not in stored
    assert stored["mod_folder"] == str(mod_folder)


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    cfg = Config(path)

    assert cfg.mod_folder == ""
    assert cfg.start_minimized is True


def test_non_object_root_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")

    assert Config(path).log_level == "INFO"


def test_vanished_folder_is_not_configured(tmp_path: Path) -> None:
    cfg = Config(tmp_path / "config.json")
    cfg.mod_folder = str(tmp_path / "deleted")

    assert not cfg.is_configured()


def test_setters_normalise_values(tmp_path: Path) -> None:
    cfg = Config(tmp_path / "config.json")
    cfg.max_log_size_mb = 0
    cfg.log_backup_count = -4
    cfg.hotkey_repack_now = " Ctrl+Alt+R "
    cfg.log_level = "debug"

    assert cfg.max_log_size_mb == 1
    assert cfg.log_backup_count == 0
    assert cfg.hotkey_repack_now == "ctrl+alt+r"
    assert cfg.log_level == "DEBUG"


def test_save_failure_is_reported(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    cfg = Config(tmp_path / "config.json")
    cfg._path = blocker / "config.json"

    assert cfg.save() is False
