"""Active-target stack: which watcher is currently being evaluated.

Uses contextvars to hold the stack of watchers under evaluation. The top of
the stack is the implicit subscriber for every reactive read: reading an
instrumented property while a watcher is on top wires a dependency edge
back to that watcher.

Entries are pushed and popped only through tracking(), so the stack is
restored even when a getter raises.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from seedfx.watcher import Watcher

# Watchers under evaluation, innermost last. None entries mark untracked scopes.
_targets: contextvars.ContextVar[tuple[Watcher | None, ...]] = contextvars.ContextVar(
    "seedfx_targets", default=()
)


def peek() -> Watcher | None:
    """The watcher that should receive dependencies right now, if any."""
    targets = _targets.get()
    return targets[-1] if targets else None


def active_targets() -> tuple[Watcher | None, ...]:
    """Snapshot of the whole stack. Useful for testing."""
    return _targets.get()


@contextmanager
def tracking(watcher: Watcher | None) -> Iterator[None]:
    """Push watcher for the duration of the block."""
    token = _targets.set(_targets.get() + (watcher,))
    try:
        yield
    finally:
        _targets.reset(token)


def untracked():
    """Context manager: reads inside the block register no dependencies.

    Usage:
        with untracked():
            value = record["key"]  # no subscription, even inside a watcher
    """
    return tracking(None)
