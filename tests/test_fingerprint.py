from __future__ import annotations

import base64
import hashlib
import os
from pathlib import Path

import pytest

from modwatch import fingerprint
from modwatch.fingerprint import FingerprintError, compute_fingerprint, list_files


def _tree(root: Path, files: dict[str, bytes]) -> Path:
    for rel, data in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return root


def test_fingerprint_is_deterministic(mod_folder: Path) -> None:
    assert compute_fingerprint(mod_folder) == compute_fingerprint(mod_folder)


def test_fingerprint_is_sha256_of_contents_in_path_order(tmp_path: Path) -> None:
    root = _tree(tmp_path / "m", {"b.txt": b"BBB", "a/z.txt": b"Z", "a.txt": b"A"})

    # "a.txt" < "a/z.txt" < "b.txt" in plain string ordering
    expected = base64.b64encode(hashlib.sha256(b"A" + b"Z" + b"BBB").digest()).decode()
    assert compute_fingerprint(root) == expected


def test_empty_directory_hashes_empty_stream(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()

    expected = base64.b64encode(hashlib.sha256(b"").digest()).decode()
    assert compute_fingerprint(empty) == expected


def test_single_byte_change_changes_fingerprint(mod_folder: Path) -> None:
    before = compute_fingerprint(mod_folder)
    target = mod_folder / "Data" / "tables.xml"
    data = bytearray(target.read_bytes())
    data[-1] ^= 0x01
    target.write_bytes(bytes(data))

    assert compute_fingerprint(mod_folder) != before


def test_added_empty_subdirectory_does_not_change_fingerprint(mod_folder: Path) -> None:
    before = compute_fingerprint(mod_folder)
    (mod_folder / "Unused").mkdir()

    assert compute_fingerprint(mod_folder) == before


def test_enumeration_order_does_not_matter(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = _tree(tmp_path / "m", {"one.xml": b"1", "two.xml": b"22", "sub/three.xml": b"333"})
    expected = compute_fingerprint(root)

    real_walk = os.walk

    def reversed_walk(top, **kwargs):
        for dirpath, dirnames, filenames in reversed(list(real_walk(top, **kwargs))):
            yield dirpath, dirnames, list(reversed(filenames))

    monkeypatch.setattr(fingerprint.os, "walk", reversed_walk)
    assert compute_fingerprint(root) == expected


def test_swapping_two_file_names_changes_fingerprint(tmp_path: Path) -> None:
    root = _tree(tmp_path / "m", {"a.xml": b"first", "b.xml": b"second"})
    before = compute_fingerprint(root)

    (root / "a.xml").rename(root / "tmp")
    (root / "b.xml").rename(root / "a.xml")
    (root / "tmp").rename(root / "b.xml")

    assert compute_fingerprint(root) != before


def test_relative_paths_use_forward_slashes(tmp_path: Path) -> None:
    root = _tree(tmp_path / "m", {"Data/Libs/x.xml": b"x"})

    assert [rel for rel, _ in list_files(root)] == ["Data/Libs/x.xml"]


def test_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(FingerprintError):
        compute_fingerprint(tmp_path / "gone")


def test_unreadable_file_fails_whole_scan(mod_folder: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    real_open = open

    def flaky_open(path, *args, **kwargs):
        if Path(path).name == "tables.xml":
            raise PermissionError("locked by another process")
        return real_open(path, *args, **kwargs)

    monkeypatch.setattr("builtins.open", flaky_open)
    with pytest.raises(FingerprintError, match="tables.xml"):
        compute_fingerprint(mod_folder)


def test_walk_error_is_reported(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = _tree(tmp_path / "m", {"a": b"a"})

    def failing_walk(top, onerror=None, **kwargs):
        onerror(PermissionError("denied"))
        yield from ()

    monkeypatch.setattr(fingerprint.os, "walk", failing_walk)
    with pytest.raises(FingerprintError, match="denied"):
        compute_fingerprint(root)


def _symlink_dir(link: Path, target: Path) -> None:
    try:
        link.symlink_to(target, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("directory symlinks not permitted here")


def test_linked_subdirectory_contents_are_hashed(tmp_path: Path) -> None:
    shared = _tree(tmp_path / "shared_assets", {"tables.xml": b"<table>1</table>"})
    root = _tree(tmp_path / "my_mod", {"mod.manifest": b"<modding_manifest/>"})
    _symlink_dir(root / "Data", shared)

    assert [rel for rel, _ in list_files(root)] == ["Data/tables.xml", "mod.manifest"]
    before = compute_fingerprint(root)

    (shared / "tables.xml").write_bytes(b"<table>2</table>")

    assert compute_fingerprint(root) != before


def test_symlink_loop_is_walked_once(tmp_path: Path) -> None:
    root = _tree(tmp_path / "my_mod", {"Data/tables.xml": b"x"})
    _symlink_dir(root / "Data" / "again", root)

    assert [rel for rel, _ in list_files(root)] == ["Data/tables.xml"]
