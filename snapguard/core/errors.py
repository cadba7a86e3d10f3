"""Exception types raised by snapguard."""

from __future__ import annotations


class SnapshotError(Exception):
    """Configuration, environment or I/O problem; fatal to the current test."""


class SnapshotDirectoryError(SnapshotError):
    pass


class InvalidSnapshotIDError(SnapshotError):
    def __init__(self, snapshot_id: str) -> None:
        super().__init__(f"invalid snapshot id {snapshot_id!r}")
        self.snapshot_id = snapshot_id


class DuplicateSnapshotError(SnapshotError):
    def __init__(self, snapshot_id: str, first_path: str, second_path: str) -> None:
        super().__init__(
            f"snapshot {snapshot_id!r} is defined in both {first_path} and {second_path}"
        )
        self.snapshot_id = snapshot_id
        self.paths = (first_path, second_path)


class SnapshotDecodeError(SnapshotError):
    pass


class SnapshotWriteError(SnapshotError):
    pass


class InvalidJSONBodyError(SnapshotError):
    pass


class ConfigError(SnapshotError):
    pass


class UnusedSnapshotsError(SnapshotError):
    """Raised at suite end when snapshots were never evaluated."""

    def __init__(self, ids: list[str]) -> None:
        super().__init__(f"{len(ids)} unused snapshots")
        self.ids = ids

    @property
    def count(self) -> int:
        return len(self.ids)


class SnapshotAssertionError(AssertionError):
    """Expected test failure: the computed value disagrees with the baseline."""

    def __init__(self, snapshot_id: str, message: str) -> None:
        super().__init__(message)
        self.snapshot_id = snapshot_id


class NewSnapshotError(SnapshotAssertionError):
    pass


class SnapshotMismatchError(SnapshotAssertionError):
    def __init__(self, snapshot_id: str, message: str, diff: str) -> None:
        super().__init__(snapshot_id, message)
        self.diff = diff
