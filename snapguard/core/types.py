"""Shared types and dataclasses for snapguard."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SnapshotFormat(str, Enum):
    GENERIC = "generic"  # no known structure, compared as text
    HTTP_JSON = "http_json"  # HTTP dump whose body is JSON


class SnapshotID(str):
    """Identifier of a snapshot, unique across every file of a run."""

    def is_valid(self) -> bool:
        if not self.strip() or self != self.strip():
            return False
        if "\n" in self or "\r" in self:
            return False
        # would terminate the block header early
        return "*/" not in self


@dataclass
class Snapshot:
    """The expected value of a test, identified by an id."""

    id: SnapshotID
    value: str
    path: str = ""  # owning file; "" means never persisted
    evaluated: bool = False  # looked up or created during this run
    should_remove: bool = False  # stale, drop on next save


@dataclass(frozen=True)
class RunMode:
    """Run-mode flags provided by the host test runner."""

    update: bool = False
    single_run: bool = False


@dataclass
class LoadOutcome:
    """Result of decoding one snapshot file during load."""

    path: str
    snapshots: dict[SnapshotID, Snapshot] = field(default_factory=dict)
    error: Exception | None = None

    @property
    def skipped(self) -> bool:
        return self.error is not None
