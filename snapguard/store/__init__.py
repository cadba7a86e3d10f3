from snapguard.store.codec import decode, encode
from snapguard.store.snapshot_store import LoadState, SnapshotStore

__all__ = ["LoadState", "SnapshotStore", "decode", "encode"]
