"""Locate the snapshot directory and name the files inside it."""

from __future__ import annotations

import os
from pathlib import Path

from snapguard.core.errors import SnapshotDirectoryError

DEFAULT_SNAPSHOTS_DIR = "__snapshots__"
SNAPSHOT_EXT = ".snapshot"


def find_or_create_snapshot_directory(root: str | Path, name: str = DEFAULT_SNAPSHOTS_DIR) -> Path:
    """Return ``root/name``, creating it when it does not exist yet."""
    if not root:
        raise SnapshotDirectoryError("unable to locate test path")
    directory = Path(root) / name
    try:
        directory.mkdir(exist_ok=True)
    except OSError as exc:
        raise SnapshotDirectoryError(f"unable to create snapshot directory {directory}") from exc
    if not directory.is_dir():
        raise SnapshotDirectoryError(f"{directory} is not a directory")
    return directory


def testing_package(root: str | Path) -> str:
    """Name of the package a working directory stands for (its basename)."""
    return os.path.basename(os.path.normpath(str(root)))


def snapshot_path(directory: str | Path, package: str) -> Path:
    return Path(directory) / f"{package}{SNAPSHOT_EXT}"


def is_snapshot(path: str | Path) -> bool:
    return Path(path).suffix.lower() == SNAPSHOT_EXT


def list_snapshot_files(directory: str | Path) -> list[Path]:
    """Snapshot files directly inside ``directory``, sorted by name."""
    return sorted(p for p in Path(directory).iterdir() if p.is_file() and is_snapshot(p))
