"""assign() and unset(): adding and removing keys with notification.

Replacing the value of an existing key goes through that key's accessor.
Creating or deleting a key is a change to the container itself, so it
notifies the container-level dependency instead.

String keys are dotted paths ("user.address.city"); any other key is used
as-is on container.
"""

from __future__ import annotations

from typing import Any

from seedfx import paths
from seedfx._tracking import untracked
from seedfx.observable import is_observed


def _locate(container: Any, key: Any) -> tuple[Any, Any]:
    if isinstance(key, str):
        parent, key = paths.parent(container, key)
    else:
        parent = container
    if isinstance(parent, list):
        index = paths.to_index(key)
        if index is None:
            raise TypeError(f"list indices must be integers, not {key!r}")
        key = index
    return parent, key


def _exists(container: Any, key: Any) -> bool:
    if isinstance(container, list):
        return 0 <= key < list.__len__(container)
    with untracked():
        try:
            return key in container
        except TypeError:
            return False


def assign(container: Any, key: Any, value: Any) -> Any:
    """Set key on container, making it reactive if it is new.

    - key already present: ordinary write (suppressed if the value is the same).
    - container not observed: plain write, nothing tracked.
    - otherwise: install a reactive property (or a computed one for a
      Computed declaration) and notify the container, always.

    A new index on a list must equal its length; the value is appended.

    Usage:
        state = observe({"a": 1})
        watch(state, lambda: len(state), print)
        assign(state, "b", 2)
        # prints "2 1"
    """
    parent, key = _locate(container, key)
    if isinstance(parent, list):
        if _exists(parent, key):
            parent[key] = value
        elif key == list.__len__(parent):
            parent.append(value)
        else:
            raise IndexError(f"list assignment index {key} out of range")
        return value
    if _exists(parent, key) or not is_observed(parent):
        parent[key] = value
        return value
    parent._add_key(key, value)
    return value


def unset(container: Any, key: Any) -> None:
    """Delete key from container. No-op if it does not resolve.

    Notifies the container once when it is observed.
    """
    try:
        parent, key = _locate(container, key)
    except (KeyError, TypeError):
        return
    if not _exists(parent, key):
        return
    del parent[key]
