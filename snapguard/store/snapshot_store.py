"""Snapshot store: the registry of every snapshot known to a test run."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from pathlib import Path
from typing import Callable

from snapguard.core.errors import (
    DuplicateSnapshotError,
    InvalidSnapshotIDError,
    SnapshotDecodeError,
    SnapshotError,
    SnapshotWriteError,
)
from snapguard.core.types import LoadOutcome, Snapshot, SnapshotID
from snapguard.store.codec import decode, encode
from snapguard.store.directory import (
    DEFAULT_SNAPSHOTS_DIR,
    find_or_create_snapshot_directory,
    list_snapshot_files,
    snapshot_path,
    testing_package,
)

logger = logging.getLogger(__name__)


class LoadState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class SnapshotStore:
    """
    Holds every snapshot of a test run, keyed by id.

    Directory layout::

        {root}/
            __snapshots__/
                {package}.snapshot    # one file per test package/directory

    Files are read once, on first use, one thread per file. Every mutation and
    every write happens under a single lock, and a write always rewrites whole
    files from the in-memory state.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        *,
        snapshots_dir: str = DEFAULT_SNAPSHOTS_DIR,
        on_skip: Callable[[LoadOutcome], None] | None = None,
    ) -> None:
        self.root = Path(root) if root is not None else Path(os.getcwd())
        self.snapshots_dir = snapshots_dir
        self._on_skip = on_skip

        self._snapshots: dict[SnapshotID, Snapshot] = {}
        self._unreadable: set[str] = set()
        self._lock = threading.RLock()
        self._load_lock = threading.Lock()
        self._state = LoadState.UNLOADED
        self._load_error: SnapshotError | None = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def directory(self) -> Path:
        return find_or_create_snapshot_directory(self.root, self.snapshots_dir)

    def load(self) -> None:
        """Read every snapshot file once. Later calls return immediately."""
        if self._state is LoadState.LOADED:
            return
        with self._load_lock:
            if self._state is LoadState.LOADED:
                return
            if self._state is LoadState.FAILED:
                raise self._load_error
            self._state = LoadState.LOADING
            try:
                snaps = self._read_all()
            except SnapshotError as exc:
                self._load_error = exc
                self._state = LoadState.FAILED
                raise
            with self._lock:
                self._snapshots.update(snaps)
            self._state = LoadState.LOADED

    def _read_all(self) -> dict[SnapshotID, Snapshot]:
        directory = self.directory
        try:
            paths = list_snapshot_files(directory)
        except OSError as exc:
            raise SnapshotError(f"unable to list {directory}: {exc}") from exc
        if not paths:
            logger.debug("No snapshot files in %s", directory)
            return {}

        with ThreadPoolExecutor(max_workers=len(paths)) as pool:
            outcomes = list(pool.map(_read_file, paths))

        merged: dict[SnapshotID, Snapshot] = {}
        for outcome in outcomes:
            if outcome.skipped:
                self._unreadable.add(outcome.path)
                logger.warning("Skipping snapshot file %s: %s", outcome.path, outcome.error)
                if self._on_skip is not None:
                    self._on_skip(outcome)
                continue
            for snapshot_id, snap in outcome.snapshots.items():
                if snapshot_id in merged:
                    raise DuplicateSnapshotError(snapshot_id, merged[snapshot_id].path, snap.path)
                merged[snapshot_id] = snap

        logger.debug("Loaded %d snapshots from %d files in %s", len(merged), len(paths), directory)
        return merged

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, snapshot_id: str) -> Snapshot | None:
        """Return the snapshot for ``snapshot_id``, or None if there is none."""
        self.load()
        with self._lock:
            return self._snapshots.get(SnapshotID(snapshot_id))

    def create(self, snapshot_id: str, value: str, package: str | None = None) -> Snapshot:
        """Store a new snapshot in ``{package}.snapshot`` and persist it."""
        return self._write(snapshot_id, value, package)

    def update(self, snapshot_id: str, value: str) -> Snapshot:
        """Replace the value of a snapshot; it stays in the file that owns it."""
        return self._write(snapshot_id, value, None)

    def mark_evaluated(self, snap: Snapshot) -> None:
        with self._lock:
            snap.evaluated = True

    def mark_removed(self, snap: Snapshot) -> None:
        with self._lock:
            snap.should_remove = True

    def snapshots(self) -> list[Snapshot]:
        """All known snapshots, sorted by id."""
        self.load()
        with self._lock:
            return [self._snapshots[k] for k in sorted(self._snapshots)]

    def unevaluated(self) -> list[Snapshot]:
        """Snapshots neither compared nor created during this run."""
        return [s for s in self.snapshots() if not s.evaluated and not s.should_remove]

    def save(self) -> None:
        """Rewrite every snapshot file from the in-memory state."""
        with self._lock:
            by_path: dict[str, dict[SnapshotID, Snapshot]] = {}
            for snap in self._snapshots.values():
                if not snap.path:
                    continue
                bucket = by_path.setdefault(snap.path, {})
                if not snap.should_remove:
                    bucket[snap.id] = snap

            for path in sorted(by_path):
                if path in self._unreadable:
                    raise SnapshotWriteError(f"refusing to overwrite unreadable snapshot file {path}")

            for path, snaps in sorted(by_path.items()):
                try:
                    if snaps:
                        _atomic_write_text(Path(path), encode(snaps))
                    elif os.path.exists(path):
                        os.remove(path)
                except OSError as exc:
                    raise SnapshotWriteError(f"unable to write {path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write(self, snapshot_id: str, value: str, package: str | None) -> Snapshot:
        snapshot_id = SnapshotID(snapshot_id)
        if not snapshot_id.is_valid():
            raise InvalidSnapshotIDError(snapshot_id)

        self.load()
        directory = self.directory

        with self._lock:
            existing = self._snapshots.get(snapshot_id)
            if existing is not None and existing.path:
                path = existing.path
            else:
                path = str(snapshot_path(directory, package or testing_package(self.root)))

            snap = Snapshot(id=snapshot_id, value=value.strip(), path=path, evaluated=True)
            self._snapshots[snapshot_id] = snap
            try:
                self.save()
            except SnapshotError:
                if existing is None:
                    del self._snapshots[snapshot_id]
                else:
                    self._snapshots[snapshot_id] = existing
                raise
        return snap


def _read_file(path: Path) -> LoadOutcome:
    try:
        snaps = decode(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, SnapshotDecodeError) as exc:
        return LoadOutcome(path=str(path), error=exc)
    for snap in snaps.values():
        snap.path = str(path)
    return LoadOutcome(path=str(path), snapshots=snaps)


def _atomic_write_text(path: Path, text: str) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()
