"""Dotted key-path resolution.

Paths look like "user.address.city" or "items.0.name". A backslash escapes
a literal dot inside a key ("a\\.b" is the single key "a.b"). Mappings are
walked by key and lists/tuples by integer index. Resolution never raises
for a missing segment; get() returns the default instead.

Lookups go through the containers' own __getitem__, so resolving a path
inside a watcher subscribes to every segment it passes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MISSING = object()


def split(path: str) -> list[str]:
    """Split a dotted path into segments, honouring backslash escapes."""
    segments: list[str] = []
    current: list[str] = []
    chars = iter(path)
    for char in chars:
        if char == "\\":
            escaped = next(chars, "")
            current.append("." if escaped == "." else char + escaped)
        elif char == ".":
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
    segments.append("".join(current))
    return segments


def lookup(obj: Any, key: Any) -> Any:
    """One step of resolution. Returns _MISSING instead of raising."""
    if isinstance(obj, Mapping):
        try:
            return obj[key]
        except (KeyError, TypeError):
            return _MISSING
    if isinstance(obj, (list, tuple)):
        index = to_index(key)
        if index is None or not 0 <= index < len(obj):
            return _MISSING
        return obj[index]
    return _MISSING


def to_index(key: Any) -> int | None:
    """Interpret key as a sequence index, or None if it is not one."""
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and key.isdigit():
        return int(key)
    return None


def resolve(obj: Any, path: str) -> Any:
    for segment in split(path):
        obj = lookup(obj, segment)
        if obj is _MISSING:
            break
    return obj


def get(obj: Any, path: str, default: Any = None) -> Any:
    """Value at path, or default when any segment does not resolve."""
    value = resolve(obj, path)
    return default if value is _MISSING else value


def has(obj: Any, path: str) -> bool:
    return resolve(obj, path) is not _MISSING


def parent(obj: Any, path: str) -> tuple[Any, str]:
    """Resolve all but the last segment.

    Returns (container, last_segment). Raises KeyError when the container
    itself does not resolve.
    """
    *head, last = split(path)
    container = obj
    for segment in head:
        container = lookup(container, segment)
        if container is _MISSING:
            raise KeyError(path)
    return container, last
