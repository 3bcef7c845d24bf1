"""Compact renderings of topic payloads for DEBUG logs.

Struct blobs and long arrays would otherwise flood the log; only their
shape and a few leading elements are kept.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MAX_DEPTH = 4


def preview_for_log(value: Any, *, max_string: int = 80, max_items: int = 8, _depth: int = 0) -> Any:
    """Return a loggable stand-in for *value* bounded in size and nesting."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        head = bytes(value[:max_items]).hex()
        suffix = "..." if len(value) > max_items else ""
        return f"<raw {len(value)}B {head}{suffix}>"

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}...(+{len(value) - max_string})"

    if _depth >= _MAX_DEPTH:
        return f"<{type(value).__name__}>"

    if isinstance(value, Mapping):
        shown = dict(list(value.items())[:max_items])
        return {
            str(key): preview_for_log(item, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for key, item in shown.items()
        }

    if isinstance(value, (list, tuple)):
        items = [
            preview_for_log(item, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for item in value[:max_items]
        ]
        if len(value) > max_items:
            items.append(f"(+{len(value) - max_items} more)")
        return items

    if value is None or isinstance(value, (bool, int, float)):
        return value
    return f"<{type(value).__name__}>"
