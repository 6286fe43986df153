"""Directory content fingerprinting.

A fingerprint is the base64-encoded SHA-256 of every file under a
directory, read in ordinal order of the files' relative paths.  Paths
are normalised to ``/`` separators before sorting so the same tree
gives the same value on every platform.

Path order drives the order in which file contents are fed into the
hash, so renaming files can change the fingerprint even when the
total content is unchanged.  That yields an occasional unnecessary
repack, never a missed one.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

_HASH_CHUNK = 256 * 1024  # 256 KiB read chunks

# Stored when a fingerprint could not be computed.  Never equal to a real
# fingerprint, so the next successful comparison always reports a change.
EMPTY_FINGERPRINT = ""


class FingerprintError(OSError):
    """The directory or one of its files could not be enumerated or read."""


def _raise_walk_error(exc: OSError) -> None:
    raise exc


def list_files(root: str | Path) -> list[tuple[str, Path]]:
    """Return ``(relative_posix_path, absolute_path)`` for every file under *root*.

    Symlinked directories are followed; a directory reached a second time
    through a link loop is skipped.  The list is sorted by relative path
    using plain string ordering.
    """
    root = Path(root)
    if not root.is_dir():
        raise FingerprintError(f"Not a directory: {root}")

    entries: list[tuple[str, Path]] = []
    visited: set[str] = set()
    try:
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error, followlinks=True):
            real = os.path.realpath(dirpath)
            if real in visited:
                # Linked back to a directory already on the walk.
                dirnames[:] = []
                continue
            visited.add(real)
            base = Path(dirpath)
            for name in filenames:
                full = base / name
                rel = full.relative_to(root).as_posix()
                entries.append((rel, full))
    except OSError as exc:
        raise FingerprintError(f"Cannot enumerate {root}: {exc}") from exc

    entries.sort(key=lambda entry: entry[0])
    return entries


def compute_fingerprint(root: str | Path) -> str:
    """Return the content fingerprint of the directory at *root*.

    Raises :class:`FingerprintError` if the directory is missing or any
    file vanishes or becomes unreadable during the scan.
    """
    digest = hashlib.sha256()
    files = list_files(root)
    for rel, full in files:
        try:
            with open(full, "rb") as fh:
                while chunk := fh.read(_HASH_CHUNK):
                    digest.update(chunk)
        except OSError as exc:
            raise FingerprintError(f"Cannot read {rel}: {exc}") from exc

    value = base64.b64encode(digest.digest()).decode("ascii")
    logger.debug("Fingerprint of %s (%d files): %s", root, len(files), value)
    return value
