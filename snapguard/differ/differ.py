"""SnapshotDiffer: the comparison engine behind every assertion."""

from __future__ import annotations

from snapguard.core.config import SnapshotConfig
from snapguard.core.errors import InvalidJSONBodyError
from snapguard.core.types import SnapshotFormat
from snapguard.differ.json_diff import JSONMatch, compare_json
from snapguard.differ.text_diff import char_diff, unified_diff
from snapguard.httpmsg.message import HTTPMessage


class SnapshotDiffer:
    """
    Compares a stored snapshot value with a freshly computed one.
    ``compare`` returns an empty string on a match, the rendered diff otherwise.
    """

    def __init__(self, config: SnapshotConfig | None = None) -> None:
        self.config = config or SnapshotConfig()

    def compare(self, snapshot_id: str, existing: str, new: str, fmt: SnapshotFormat) -> str:
        if fmt is SnapshotFormat.HTTP_JSON:
            return self.compare_http_json(existing, new)
        return self.compare_text(existing, new)

    def compare_text(self, existing: str, new: str) -> str:
        if self.config.unified_diff:
            return unified_diff(existing, new)
        return char_diff(existing, new)

    def compare_http_json(self, existing: str, new: str) -> str:
        existing_msg = self._normalize(existing)
        new_msg = self._normalize(new)

        diff = char_diff(existing_msg.header_dump(), new_msg.header_dump())

        match, explanation = compare_json(existing_msg.body, new_msg.body)
        if match is JSONMatch.FULL_MATCH:
            return diff
        if match is JSONMatch.SUPERSET_MATCH and self.config.allow_superset:
            return diff
        if match is JSONMatch.BOTH_INVALID and not existing_msg.body and not new_msg.body:
            return diff

        diff += "\n"
        if match in (JSONMatch.SUPERSET_MATCH, JSONMatch.NO_MATCH):
            diff += explanation
        elif match is JSONMatch.FIRST_INVALID:
            diff += "ERROR: Existing body is not valid JSON"
        elif match is JSONMatch.SECOND_INVALID:
            diff += "ERROR: New body is not valid JSON"
        else:
            diff += "ERROR: Neither Existing nor New bodies are valid JSON\n"
            diff += existing_msg.dump() + "\n" + new_msg.dump()
        return diff

    def _normalize(self, dump: str) -> HTTPMessage:
        msg = HTTPMessage.parse(dump)
        msg.header_cleanup(self.config)
        try:
            msg.json_body_cleanup(self.config)
        except InvalidJSONBodyError:
            pass  # reported by compare_json as an invalid body
        return msg
