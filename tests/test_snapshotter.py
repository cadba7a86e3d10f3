"""Tests for the Snapshotter assertion entry points and cleanup passes."""

from __future__ import annotations

import io
import os
import tempfile
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import requests

from snapguard.core.config import SnapshotConfig
from snapguard.core.errors import (
    InvalidJSONBodyError,
    NewSnapshotError,
    SnapshotMismatchError,
    UnusedSnapshotsError,
)
from snapguard.core.types import RunMode
from snapguard.snapshotter import Snapshotter
from snapguard.store.snapshot_store import SnapshotStore


def make_json_response(body: bytes, date: str = "Mon, 01 Jan 2024 00:00:00 GMT") -> requests.Response:
    response = requests.Response()
    response.status_code = 200
    response.reason = "OK"
    response.headers.update({"Content-Type": "application/json", "Date": date})
    response._content = body
    return response


class Greeting:
    def __str__(self) -> str:
        return "hello from Greeting"


class TestSnapshotter:
    def setup_method(self):
        self.root = tempfile.mkdtemp()
        self.snapshot_dir = os.path.join(self.root, "__snapshots__")
        self.package_file = os.path.join(self.snapshot_dir, "tests.snapshot")

    def make_snapshotter(self, update=False, single_run=False, config=None) -> Snapshotter:
        """A fresh store per call stands for a fresh test run."""
        return Snapshotter(
            SnapshotStore(root=self.root),
            config=config,
            mode=RunMode(update=update, single_run=single_run),
            package="tests",
        )

    def write_snapshots(self, content: str, name: str = "tests.snapshot") -> str:
        os.makedirs(self.snapshot_dir, exist_ok=True)
        path = os.path.join(self.snapshot_dir, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def read_snapshots(self, name: str = "tests.snapshot") -> str:
        with open(os.path.join(self.snapshot_dir, name), encoding="utf-8") as f:
            return f.read()

    # ------------------------------------------------------------------ generic values

    def test_new_snapshot_fails_without_update(self):
        snap = self.make_snapshotter()
        with pytest.raises(NewSnapshotError) as exc_info:
            snap.assert_value("greet", "hello")
        message = str(exc_info.value)
        assert "New snapshot found" in message
        assert "hello" in message
        assert "--snapshot-update" in message
        assert isinstance(exc_info.value, AssertionError)
        assert not os.path.exists(self.package_file)

    def test_new_snapshot_created_in_update_mode(self, capsys):
        snap = self.make_snapshotter(update=True)
        snap.assert_value("greet", "hello")
        assert self.read_snapshots() == "/* snapshot: greet */\nhello"
        assert "Creating snapshot `greet`" in capsys.readouterr().out
        assert snap.store.get("greet").evaluated is True

    def test_created_snapshot_matches_immediately(self):
        snap = self.make_snapshotter(update=True)
        snap.assert_value("greet", "hello")
        snap.mode = RunMode(update=False)
        snap.assert_value("greet", "hello")

    def test_matching_snapshot_passes_on_next_run(self):
        self.make_snapshotter(update=True).assert_value("greet", "hello")
        snap = self.make_snapshotter()
        snap.assert_value("greet", "hello")
        assert snap.store.get("greet").evaluated is True

    def test_trailing_whitespace_is_ignored(self):
        self.write_snapshots("/* snapshot: greet */\nhello")
        self.make_snapshotter().assert_value("greet", "hello\n\n")

    def test_mismatch_fails_with_diff(self):
        self.write_snapshots("/* snapshot: greet */\nhello")
        snap = self.make_snapshotter()
        with pytest.raises(SnapshotMismatchError) as exc_info:
            snap.assert_value("greet", "hallo")
        assert exc_info.value.diff == "h[-e-]{+a+}llo"
        assert "does not match" in str(exc_info.value)
        assert '"greet"' in str(exc_info.value)
        # compared, so not stale
        assert snap.store.get("greet").evaluated is True
        assert self.read_snapshots() == "/* snapshot: greet */\nhello"

    def test_mismatch_updates_in_update_mode(self, capsys):
        self.write_snapshots("/* snapshot: greet */\nhello")
        self.make_snapshotter(update=True).assert_value("greet", "hallo")
        assert self.read_snapshots() == "/* snapshot: greet */\nhallo"
        assert "Updating snapshot `greet`" in capsys.readouterr().out

    def test_mismatch_with_unified_diff(self):
        self.write_snapshots("/* snapshot: greet */\nhello")
        snap = self.make_snapshotter(config=SnapshotConfig(unified_diff=True))
        with pytest.raises(SnapshotMismatchError) as exc_info:
            snap.assert_value("greet", "hallo")
        assert "+hallo" in exc_info.value.diff

    def test_value_uses_str(self):
        self.write_snapshots("/* snapshot: answer */\n42\n\n/* snapshot: obj */\nhello from Greeting")
        snap = self.make_snapshotter()
        snap.assert_value("answer", 42)
        snap.assert_value("obj", Greeting())

    def test_reader_text_and_bytes(self):
        self.write_snapshots("/* snapshot: stream */\nline one\nline two")
        snap = self.make_snapshotter()
        snap.assert_reader("stream", io.StringIO("line one\nline two"))
        snap.assert_reader("stream", io.BytesIO(b"line one\nline two\n"))

    # ------------------------------------------------------------------ HTTP

    def test_json_response_stored_normalized(self):
        config = SnapshotConfig(defaults={"Date": "<date>", "token": "<token>"})
        snap = self.make_snapshotter(update=True, config=config)
        snap.assert_http_response("users", make_json_response(b'{"id":1,"token":"abc"}'))
        assert self.read_snapshots() == (
            "/* snapshot: users */\n"
            "HTTP/1.1 200 OK\n"
            "Content-Type: application/json\n"
            "Date: <date>\n"
            "\n"
            '{\n  "id": 1,\n  "token": "<token>"\n}'
        )

    def test_json_response_volatile_fields_do_not_fail(self):
        config = SnapshotConfig(defaults={"Date": "<date>", "token": "<token>"})
        self.make_snapshotter(update=True, config=config).assert_http_response(
            "users", make_json_response(b'{"id":1,"token":"abc"}', date="Mon")
        )
        self.make_snapshotter(config=config).assert_http_response(
            "users", make_json_response(b'{"token":"xyz","id":1}', date="Tue")
        )

    def test_json_response_mismatch_explains_field(self):
        self.make_snapshotter(update=True).assert_http_response("users", make_json_response(b'{"a":1,"b":2}'))
        with pytest.raises(SnapshotMismatchError) as exc_info:
            self.make_snapshotter().assert_http_response("users", make_json_response(b'{"a":1,"b":3}'))
        assert '"b": [-2-]{+3+}' in exc_info.value.diff

    def test_malformed_json_body_is_fatal(self):
        snap = self.make_snapshotter(update=True)
        with pytest.raises(InvalidJSONBodyError):
            snap.assert_http_response("broken", make_json_response(b"{oops"))
        assert snap.store.get("broken") is None

    def test_plain_text_response_is_generic(self):
        response = requests.Response()
        response.status_code = 200
        response.reason = "OK"
        response.headers["Content-Type"] = "text/plain"
        response._content = b"hi"
        snap = self.make_snapshotter(update=True)
        snap.assert_http_response("text", response)
        assert self.read_snapshots() == "/* snapshot: text */\nHTTP/1.1 200 OK\nContent-Type: text/plain\n\nhi"

    def test_outgoing_request(self):
        config = SnapshotConfig(defaults={"User-Agent": "<ua>"})
        snap = self.make_snapshotter(update=True, config=config)
        snap.assert_http_request_out(
            "create-user", requests.Request("POST", "https://api.example.com/users", json={"name": "ada"})
        )
        stored = snap.store.get("create-user").value
        assert stored.startswith("POST /users HTTP/1.1\nHost: api.example.com\n")
        assert "User-Agent: <ua>" in stored
        assert stored.endswith('{\n  "name": "ada"\n}')

    def test_outgoing_request_stable_across_library_defaults(self):
        config = SnapshotConfig(defaults={"User-Agent": "<ua>", "Accept-Encoding": "<encodings>"})
        request = requests.Request("GET", "https://api.example.com/users")
        old = {"User-Agent": "python-requests/2.31.0", "Accept-Encoding": "gzip, deflate", "Accept": "*/*"}
        new = {"User-Agent": "python-requests/2.32.3", "Accept-Encoding": "gzip, deflate, br, zstd", "Accept": "*/*"}

        with patch("snapguard.httpmsg.dump.default_headers", return_value=old):
            self.make_snapshotter(update=True, config=config).assert_http_request_out("list-users", request)
        with patch("snapguard.httpmsg.dump.default_headers", return_value=new):
            self.make_snapshotter(config=config).assert_http_request_out("list-users", request)

    def test_incoming_request(self):
        snap = self.make_snapshotter(update=True)
        snap.assert_http_request(
            "webhook",
            requests.Request("POST", "http://hooks.local/events", data="ping", headers={"Content-Type": "text/plain"}),
        )
        assert snap.store.get("webhook").value == (
            "POST /events HTTP/1.1\nHost: hooks.local\nContent-Length: 4\nContent-Type: text/plain\n\nping"
        )

    @pytest.mark.asyncio
    async def test_playwright_response(self):
        response = MagicMock()
        response.status = 200
        response.status_text = "OK"
        response.headers = {"content-type": "application/json", "date": "Mon"}
        response.body = AsyncMock(return_value=b'{"ok":true}')

        config = SnapshotConfig(defaults={"Date": "<date>"})
        snap = self.make_snapshotter(update=True, config=config)
        await snap.assert_api_response("health", response)
        assert snap.store.get("health").value == (
            'HTTP/1.1 200 OK\ncontent-type: application/json\ndate: <date>\n\n{\n  "ok": true\n}'
        )
        response.body.assert_awaited_once()

    # ------------------------------------------------------------------ cleanup

    def test_cleanup_removes_stale_in_update_mode(self, capsys):
        self.write_snapshots("/* snapshot: a */\n1\n\n/* snapshot: b */\n2")
        snap = self.make_snapshotter(update=True)
        snap.assert_value("a", "1")
        snap.cleanup()
        assert self.read_snapshots() == "/* snapshot: a */\n1"
        assert "Removing unused snapshot `b`" in capsys.readouterr().out

    def test_cleanup_keeps_stale_without_update(self):
        self.write_snapshots("/* snapshot: a */\n1\n\n/* snapshot: b */\n2")
        snap = self.make_snapshotter()
        snap.assert_value("a", "1")
        snap.cleanup()
        assert self.read_snapshots() == "/* snapshot: a */\n1\n\n/* snapshot: b */\n2"

    def test_cleanup_keeps_stale_in_single_run(self):
        self.write_snapshots("/* snapshot: a */\n1\n\n/* snapshot: b */\n2")
        snap = self.make_snapshotter(update=True, single_run=True)
        snap.assert_value("a", "1")
        snap.cleanup()
        assert "/* snapshot: b */" in self.read_snapshots()

    def test_cleanup_or_fail_counts_unused(self, capsys):
        self.write_snapshots("/* snapshot: a */\n1\n\n/* snapshot: b */\n2\n\n/* snapshot: c */\n3")
        snap = self.make_snapshotter()
        snap.assert_value("a", "1")
        with pytest.raises(UnusedSnapshotsError) as exc_info:
            snap.cleanup_or_fail()
        assert exc_info.value.count == 2
        assert str(exc_info.value) == "2 unused snapshots"
        err = capsys.readouterr().err
        assert "Unused snapshot `b`" in err
        assert "Unused snapshot `c`" in err

    def test_cleanup_or_fail_passes_when_all_evaluated(self):
        self.write_snapshots("/* snapshot: a */\n1")
        snap = self.make_snapshotter()
        snap.assert_value("a", "1")
        snap.cleanup_or_fail()

    def test_cleanup_or_fail_ignores_single_run(self):
        self.write_snapshots("/* snapshot: a */\n1")
        self.make_snapshotter(single_run=True).cleanup_or_fail()

    def test_cleanup_or_fail_cleans_in_update_mode(self):
        self.write_snapshots("/* snapshot: a */\n1\n\n/* snapshot: b */\n2")
        snap = self.make_snapshotter(update=True)
        snap.assert_value("b", "2")
        snap.cleanup_or_fail()
        assert self.read_snapshots() == "/* snapshot: b */\n2"
