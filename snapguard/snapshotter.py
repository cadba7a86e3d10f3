"""Snapshotter: assertion entry points and end-of-suite cleanup."""

from __future__ import annotations

import logging
import sys
from typing import IO, Any

import requests
from playwright.async_api import APIResponse

from snapguard.core.config import SnapshotConfig
from snapguard.core.errors import NewSnapshotError, SnapshotMismatchError, UnusedSnapshotsError
from snapguard.core.types import RunMode, SnapshotFormat
from snapguard.differ.differ import SnapshotDiffer
from snapguard.httpmsg.dump import (
    content_type_is_json,
    dump_api_response,
    dump_request,
    dump_request_out,
    dump_response,
    prepare_request,
)
from snapguard.httpmsg.message import HTTPMessage
from snapguard.store.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

UPDATE_HINT = "pytest --snapshot-update"


class Snapshotter:
    """
    Compares computed values against the snapshots held by a ``SnapshotStore``.

    Usage:
        store = SnapshotStore()
        snap = Snapshotter(store, mode=RunMode(update=False))
        snap.assert_value("greet", "hello")
        snap.assert_http_response("list-users", requests.get(url))
        ...
        snap.cleanup_or_fail()   # once, after every test ran

    Mismatches raise ``SnapshotMismatchError`` and unknown ids raise
    ``NewSnapshotError`` (both ``AssertionError``); in update mode the store
    is rewritten instead.
    """

    def __init__(
        self,
        store: SnapshotStore,
        *,
        config: SnapshotConfig | None = None,
        mode: RunMode | None = None,
        package: str | None = None,
    ) -> None:
        self.store = store
        self.config = config or SnapshotConfig()
        self.mode = mode or RunMode()
        self.package = package
        self._differ = SnapshotDiffer(self.config)

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------

    def assert_value(self, snapshot_id: str, value: Any) -> None:
        """Assert the string form of ``value``."""
        self._create_or_update(snapshot_id, str(value), SnapshotFormat.GENERIC)

    def assert_reader(self, snapshot_id: str, reader: IO) -> None:
        """Assert everything left to read from a file-like object."""
        data = reader.read()
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        self._create_or_update(snapshot_id, data, SnapshotFormat.GENERIC)

    def assert_http_request_out(
        self, snapshot_id: str, request: requests.PreparedRequest | requests.Request
    ) -> None:
        """Assert an outgoing client request, as sent on the wire."""
        request = prepare_request(request)
        self._assert_http(snapshot_id, dump_request_out(request), request.headers.get("Content-Type"))

    def assert_http_request(
        self, snapshot_id: str, request: requests.PreparedRequest | requests.Request
    ) -> None:
        """Assert an incoming request, as the server received it."""
        request = prepare_request(request)
        self._assert_http(snapshot_id, dump_request(request), request.headers.get("Content-Type"))

    def assert_http_response(self, snapshot_id: str, response: requests.Response) -> None:
        self._assert_http(snapshot_id, dump_response(response), response.headers.get("Content-Type"))

    async def assert_api_response(self, snapshot_id: str, response: APIResponse) -> None:
        """Assert a Playwright response; reads its body."""
        dump = await dump_api_response(response)
        self._assert_http(snapshot_id, dump, response.headers.get("content-type"))

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def cleanup(self) -> None:
        """In update mode, drop every snapshot not evaluated during the run."""
        for snap in self.store.unevaluated():
            if self.mode.update and not self.mode.single_run:
                self.store.mark_removed(snap)
                _notice(f"Removing unused snapshot `{snap.id}`")
        self.store.save()

    def cleanup_or_fail(self) -> None:
        """
        Like ``cleanup()`` in update mode. Otherwise raise
        ``UnusedSnapshotsError`` if any snapshot was never evaluated.
        """
        if self.mode.single_run:
            return
        if self.mode.update:
            self.cleanup()
            return

        unused = [snap.id for snap in self.store.unevaluated()]
        for snapshot_id in unused:
            print(f"Unused snapshot `{snapshot_id}`", file=sys.stderr)
            logger.info("Unused snapshot %s", snapshot_id)
        if unused:
            raise UnusedSnapshotsError(unused)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _assert_http(self, snapshot_id: str, dump: str, content_type: str | None) -> None:
        msg = HTTPMessage.parse(dump)
        msg.header_cleanup(self.config)

        fmt = SnapshotFormat.GENERIC
        if content_type_is_json(content_type):
            msg.json_body_cleanup(self.config)
            fmt = SnapshotFormat.HTTP_JSON

        self._create_or_update(snapshot_id, msg.dump(), fmt)

    def _create_or_update(self, snapshot_id: str, data: str, fmt: SnapshotFormat) -> None:
        snap = self.store.get(snapshot_id)

        if snap is None:
            if not self.mode.update:
                raise NewSnapshotError(snapshot_id, new_snapshot_message(snapshot_id, data))
            _notice(f"Creating snapshot `{snapshot_id}`")
            self.store.create(snapshot_id, data, package=self.package)
            return

        self.store.mark_evaluated(snap)
        diff = self._differ.compare(snapshot_id, snap.value, data.strip(), fmt)
        if not diff:
            return

        if self.mode.update:
            _notice(f"Updating snapshot `{snapshot_id}`")
            self.store.update(snapshot_id, data)
            return

        raise SnapshotMismatchError(snapshot_id, did_not_match_message(snapshot_id, diff), diff)


def did_not_match_message(snapshot_id: str, diff: str) -> str:
    return (
        "\n\n## Existing snapshot does not match results...\n"
        f'## "{snapshot_id}"\n\n'
        f"{diff}\n\n"
        f"If this change was intentional, run tests again, $ {UPDATE_HINT}\n"
    )


def new_snapshot_message(snapshot_id: str, body: str) -> str:
    return (
        "\n\n## New snapshot found...\n"
        f'## "{snapshot_id}"\n\n'
        f"{body}\n\n"
        f"To save, run tests again, $ {UPDATE_HINT}\n"
    )


def _notice(message: str) -> None:
    print(message)
    logger.info(message)
