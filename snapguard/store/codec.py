"""Snapshot file codec.

A snapshot file is a sequence of blocks sorted by id::

    /* snapshot: <id> */
    <value, possibly multi-line>

separated by one blank line, with the file trimmed of surrounding whitespace.
"""

from __future__ import annotations

from collections.abc import Mapping

from snapguard.core.errors import SnapshotDecodeError
from snapguard.core.types import Snapshot, SnapshotID

SEPARATOR = "/* snapshot: "
_HEADER_END = " */"


def decode(data: str) -> dict[SnapshotID, Snapshot]:
    """Parse the contents of a snapshot file into records (paths unset)."""
    snaps: dict[SnapshotID, Snapshot] = {}
    for segment in data.split(SEPARATOR):
        if not segment.strip():
            continue
        header, newline, rest = segment.partition("\n")
        if not newline:
            raise SnapshotDecodeError(f"snapshot block has no body: {segment[:40]!r}")
        header = header.rstrip("\r")
        if header.endswith(_HEADER_END):
            header = header[: -len(_HEADER_END)]
        snapshot_id = SnapshotID(header)
        snaps[snapshot_id] = Snapshot(id=snapshot_id, value=rest.strip())
    return snaps


def encode(snaps: Mapping[str, Snapshot]) -> str:
    """Serialize records deterministically, sorted by id."""
    blocks = []
    for snapshot_id in sorted(snaps):
        snap = snaps[snapshot_id]
        blocks.append(f"{SEPARATOR}{snap.id}{_HEADER_END}\n{snap.value}\n\n")
    return "".join(blocks).strip()
