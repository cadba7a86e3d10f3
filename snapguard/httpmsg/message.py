"""HTTP message dumps: parsing and normalization before comparison."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from snapguard.core.config import SnapshotConfig
from snapguard.core.errors import InvalidJSONBodyError
from snapguard.core.substitute import substitute_all


@dataclass
class HTTPMessage:
    """A request or response dump split into header lines and body."""

    header: list[str] = field(default_factory=list)
    body: str = ""

    @classmethod
    def parse(cls, dump: str | bytes) -> HTTPMessage:
        """
        Split a wire dump at the first blank line. The start line and header
        fields come before it, the body after it.
        """
        if isinstance(dump, bytes):
            dump = dump.decode("utf-8", errors="replace")
        lines = dump.strip().replace("\r\n", "\n").split("\n")
        header: list[str] = []
        for line in lines:
            if not line.strip():
                break
            header.append(line)
        body = "\n".join(lines[len(header):]).strip()
        return cls(header=header, body=body)

    def header_dump(self) -> str:
        return "\n".join(self.header)

    def dump(self) -> str:
        return f"{self.header_dump()}\n\n{self.body}"

    def header_cleanup(self, config: SnapshotConfig | None) -> None:
        """
        Replace the value of every header named in ``config.defaults``.
        Header names match case-insensitively.
        """
        if config is None or not config.defaults:
            return
        defaults = {str(k).lower(): v for k, v in config.defaults.items()}
        for i, line in enumerate(self.header):
            key, colon, _ = line.partition(":")
            if not colon:
                continue  # start line
            key = key.strip()
            if key.lower() in defaults:
                self.header[i] = f"{key}: {defaults[key.lower()]}"

    def json_body_cleanup(self, config: SnapshotConfig | None) -> None:
        """
        Re-indent a JSON body and replace every member named in
        ``config.defaults``, at any depth. Empty bodies are left alone.
        """
        if not self.body.strip():
            return
        try:
            document = json.loads(self.body)
        except json.JSONDecodeError as exc:
            raise InvalidJSONBodyError(f"body is not valid JSON: {exc}") from exc
        if config is not None:
            document = substitute_all(document, config.defaults)
        self.body = json.dumps(document, indent=2, ensure_ascii=False)
