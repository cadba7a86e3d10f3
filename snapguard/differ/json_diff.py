"""Structural JSON comparison with a human-readable explanation."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from snapguard.differ.text_diff import mark_deleted, mark_inserted

_INDENT = "  "


class JSONMatch(str, Enum):
    FULL_MATCH = "full_match"
    SUPERSET_MATCH = "superset_match"  # new has everything existing has, and more
    NO_MATCH = "no_match"
    FIRST_INVALID = "first_invalid"
    SECOND_INVALID = "second_invalid"
    BOTH_INVALID = "both_invalid"


_RANK = {JSONMatch.FULL_MATCH: 0, JSONMatch.SUPERSET_MATCH: 1, JSONMatch.NO_MATCH: 2}


def _worst(a: JSONMatch, b: JSONMatch) -> JSONMatch:
    return a if _RANK[a] >= _RANK[b] else b


def compare_json(existing: str, new: str) -> tuple[JSONMatch, str]:
    """
    Compare two JSON documents.

    Returns the match class and, when both parse, the existing document
    pretty-printed with the differences marked: changed values as
    ``[-old-]{+new+}``, members only in existing as ``[-"key": value-]`` and
    members only in new as ``{+"key": value+}``.
    """
    first_ok, a = _parse(existing)
    second_ok, b = _parse(new)
    if not first_ok and not second_ok:
        return JSONMatch.BOTH_INVALID, ""
    if not first_ok:
        return JSONMatch.FIRST_INVALID, ""
    if not second_ok:
        return JSONMatch.SECOND_INVALID, ""
    return _render(a, b, 0)


def _parse(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return False, None


def _dump(value: Any, level: int) -> str:
    return json.dumps(value, indent=2).replace("\n", "\n" + _INDENT * level)


def _scalars_equal(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return a is b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    return type(a) is type(b) and a == b


def _render(a: Any, b: Any, level: int) -> tuple[JSONMatch, str]:
    if isinstance(a, dict) and isinstance(b, dict):
        return _render_object(a, b, level)
    if isinstance(a, list) and isinstance(b, list):
        return _render_array(a, b, level)
    if not isinstance(a, (dict, list)) and not isinstance(b, (dict, list)) and _scalars_equal(a, b):
        return JSONMatch.FULL_MATCH, _dump(a, level)
    return JSONMatch.NO_MATCH, mark_deleted(_dump(a, level)) + mark_inserted(_dump(b, level))


def _render_object(a: dict, b: dict, level: int) -> tuple[JSONMatch, str]:
    if not a and not b:
        return JSONMatch.FULL_MATCH, "{}"
    pad = _INDENT * (level + 1)
    match = JSONMatch.FULL_MATCH
    entries: list[str] = []
    for key, value in a.items():
        label = json.dumps(key)
        if key in b:
            sub, text = _render(value, b[key], level + 1)
            match = _worst(match, sub)
            entries.append(f"{pad}{label}: {text}")
        else:
            match = JSONMatch.NO_MATCH
            entries.append(pad + mark_deleted(f"{label}: {_dump(value, level + 1)}"))
    for key, value in b.items():
        if key not in a:
            match = _worst(match, JSONMatch.SUPERSET_MATCH)
            entries.append(pad + mark_inserted(f"{json.dumps(key)}: {_dump(value, level + 1)}"))
    return match, "{\n" + ",\n".join(entries) + "\n" + _INDENT * level + "}"


def _render_array(a: list, b: list, level: int) -> tuple[JSONMatch, str]:
    if not a and not b:
        return JSONMatch.FULL_MATCH, "[]"
    pad = _INDENT * (level + 1)
    match = JSONMatch.FULL_MATCH
    entries: list[str] = []
    for old, new in zip(a, b):
        sub, text = _render(old, new, level + 1)
        match = _worst(match, sub)
        entries.append(pad + text)
    for old in a[len(b):]:
        match = JSONMatch.NO_MATCH
        entries.append(pad + mark_deleted(_dump(old, level + 1)))
    for new in b[len(a):]:
        match = _worst(match, JSONMatch.SUPERSET_MATCH)
        entries.append(pad + mark_inserted(_dump(new, level + 1)))
    return match, "[\n" + ",\n".join(entries) + "\n" + _INDENT * level + "]"
