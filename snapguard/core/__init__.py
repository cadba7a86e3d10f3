from snapguard.core.config import SnapshotConfig, load_config
from snapguard.core.substitute import substitute, substitute_all
from snapguard.core.types import LoadOutcome, RunMode, Snapshot, SnapshotFormat, SnapshotID

__all__ = [
    "LoadOutcome",
    "RunMode",
    "Snapshot",
    "SnapshotConfig",
    "SnapshotFormat",
    "SnapshotID",
    "load_config",
    "substitute",
    "substitute_all",
]
