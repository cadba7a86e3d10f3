"""Plain-text diffs: character-level pretty text and line-based unified."""

from __future__ import annotations

import difflib

DELETE_START, DELETE_END = "[-", "-]"
INSERT_START, INSERT_END = "{+", "+}"


def mark_deleted(text: str) -> str:
    return f"{DELETE_START}{text}{DELETE_END}"


def mark_inserted(text: str) -> str:
    return f"{INSERT_START}{text}{INSERT_END}"


def char_diff(existing: str, new: str) -> str:
    """
    Character-level diff rendered over the whole text, with deletions as
    ``[-...-]`` and insertions as ``{+...+}``. Empty when the texts are equal.
    """
    matcher = difflib.SequenceMatcher(None, existing, new, autojunk=False)
    opcodes = matcher.get_opcodes()
    if all(tag == "equal" for tag, *_ in opcodes):
        return ""

    parts: list[str] = []
    for tag, i1, i2, j1, j2 in opcodes:
        if tag == "equal":
            parts.append(existing[i1:i2])
            continue
        if tag in ("delete", "replace"):
            parts.append(mark_deleted(existing[i1:i2]))
        if tag in ("insert", "replace"):
            parts.append(mark_inserted(new[j1:j2]))
    return "".join(parts)


def unified_diff(existing: str, new: str) -> str:
    """Line-based unified diff between ``a.txt`` (existing) and ``b.txt`` (new)."""
    lines = difflib.unified_diff(
        existing.splitlines(),
        new.splitlines(),
        fromfile="a.txt",
        tofile="b.txt",
        lineterm="",
    )
    return "\n".join(lines)
