"""Key-path substitution over JSON-like trees of dicts, lists and scalars."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def substitute(document: Any, key: str, value: Any) -> Any:
    """
    Return a copy of ``document`` where every object member named ``key``,
    at any depth, has its value replaced by ``value``.

    Arrays are walked element by element, so objects nested in arrays (or in
    arrays of arrays) are rewritten too. The input tree is left untouched.
    """
    if isinstance(document, dict):
        return {
            k: value if k == key else substitute(v, key, value)
            for k, v in document.items()
        }
    if isinstance(document, list):
        return [substitute(item, key, value) for item in document]
    return document


def substitute_all(document: Any, defaults: Mapping[str, Any]) -> Any:
    """Apply every ``key -> value`` pair of ``defaults`` to ``document``."""
    for key, value in defaults.items():
        document = substitute(document, key, value)
    return document
