from snapguard.core.config import SnapshotConfig, load_config
from snapguard.core.errors import (
    ConfigError,
    DuplicateSnapshotError,
    InvalidJSONBodyError,
    InvalidSnapshotIDError,
    NewSnapshotError,
    SnapshotAssertionError,
    SnapshotDecodeError,
    SnapshotDirectoryError,
    SnapshotError,
    SnapshotMismatchError,
    SnapshotWriteError,
    UnusedSnapshotsError,
)
from snapguard.core.types import RunMode, Snapshot, SnapshotFormat, SnapshotID
from snapguard.snapshotter import Snapshotter
from snapguard.store.snapshot_store import SnapshotStore

__all__ = [
    "RunMode",
    "Snapshot",
    "SnapshotConfig",
    "SnapshotFormat",
    "SnapshotID",
    "SnapshotStore",
    "Snapshotter",
    "load_config",
    # Errors
    "ConfigError",
    "DuplicateSnapshotError",
    "InvalidJSONBodyError",
    "InvalidSnapshotIDError",
    "NewSnapshotError",
    "SnapshotAssertionError",
    "SnapshotDecodeError",
    "SnapshotDirectoryError",
    "SnapshotError",
    "SnapshotMismatchError",
    "SnapshotWriteError",
    "UnusedSnapshotsError",
]
