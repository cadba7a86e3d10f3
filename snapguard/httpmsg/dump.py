"""Wire dumps of HTTP requests and responses.

``requests`` objects cover client-side tests (outgoing requests, received
responses) and the requests captured by mocking libraries (incoming requests).
Playwright responses cover browser-driven tests.
"""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlparse

import requests
from playwright.async_api import APIResponse
from requests.structures import CaseInsensitiveDict
from requests.utils import default_headers

from snapguard.core.errors import SnapshotError

_HTTP_VERSIONS = {10: "HTTP/1.0", 11: "HTTP/1.1", 20: "HTTP/2"}


def content_type_is_json(content_type: str | None) -> bool:
    """True for ``application/json`` and vendor types like ``application/vnd.acme.v1+json``."""
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type == "application/json":
        return True
    return media_type.startswith("application/vnd.") and media_type.endswith("+json")


def dump_request_out(request: requests.PreparedRequest | requests.Request) -> str:
    """
    Dump a client request as it goes on the wire: the Host header and the
    default headers a ``requests`` session adds are included.

    ``User-Agent`` carries the installed requests version and
    ``Accept-Encoding`` depends on which decoders are installed. List both in
    the config ``defaults`` to keep snapshots stable across upgrades.
    """
    request = prepare_request(request)
    headers = CaseInsensitiveDict(default_headers())
    headers.update(request.headers)
    return _dump_request(request, headers)


def dump_request(request: requests.PreparedRequest | requests.Request) -> str:
    """Dump a request as the server received it, with only its own headers."""
    request = prepare_request(request)
    return _dump_request(request, CaseInsensitiveDict(request.headers))


def dump_response(response: requests.Response) -> str:
    version = _HTTP_VERSIONS.get(getattr(response.raw, "version", None), "HTTP/1.1")
    status_line = f"{version} {response.status_code} {response.reason or ''}".rstrip()
    return _join(status_line, _header_lines(response.headers), _body_text(response.content))


async def dump_api_response(response: APIResponse) -> str:
    """Dump a Playwright ``APIResponse`` (or page ``Response``); awaits its body."""
    body = await response.body()
    status_line = f"HTTP/1.1 {response.status} {response.status_text}".rstrip()
    return _join(status_line, _header_lines(response.headers), _body_text(body))


def prepare_request(request: requests.PreparedRequest | requests.Request) -> requests.PreparedRequest:
    if isinstance(request, requests.Request):
        return request.prepare()
    return request


def _dump_request(request: requests.PreparedRequest, headers: CaseInsensitiveDict) -> str:
    host = headers.pop("Host", None) or urlparse(request.url or "").netloc
    lines = [f"Host: {host}"] + _header_lines(headers)
    request_line = f"{request.method} {request.path_url} HTTP/1.1"
    return _join(request_line, lines, _body_text(request.body))


def _header_lines(headers: Mapping[str, Any]) -> list[str]:
    return [f"{k}: {v}" for k, v in sorted(headers.items(), key=lambda kv: kv[0].lower())]


def _body_text(body: Any) -> str:
    if body is None:
        return ""
    if hasattr(body, "read"):
        body = body.read()
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        return body
    raise SnapshotError(f"cannot dump a body of type {type(body).__name__}")


def _join(start_line: str, header_lines: list[str], body: str) -> str:
    return "\r\n".join([start_line, *header_lines]) + "\r\n\r\n" + body
