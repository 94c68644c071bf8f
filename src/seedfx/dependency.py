"""Dependencies: the subscriber sets linking data to watchers.

One Dependency is attached to every instrumented property slot and one to
every instrumented container as a whole. Edges are mutual: a watcher is in
a dependency's subscribers exactly when that dependency is in the watcher's
own dependency list, and depend() always updates both sides.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from seedfx._tracking import peek

if TYPE_CHECKING:
    from seedfx.watcher import Watcher


class Dependency:
    """An ordered set of subscribed watchers."""

    __slots__ = ("subscribers",)

    def __init__(self) -> None:
        # dict as an insertion-ordered set
        self.subscribers: dict[Watcher, None] = {}

    def depend(self) -> None:
        """Subscribe the watcher currently on top of the stack, if any."""
        target = peek()
        if target is not None:
            depend(self, target)

    def notify(self) -> None:
        """Inform every subscriber, in registration order, synchronously.

        A subscriber's recompute may write and notify further before this
        returns. Nothing is batched or de-duplicated across dependencies.
        """
        for watcher in list(self.subscribers):
            watcher._inform()

    def _remove_subscriber(self, watcher: Watcher) -> None:
        self.subscribers.pop(watcher, None)

    def __repr__(self) -> str:
        return f"Dependency(subscribers={len(self.subscribers)})"


def depend(dependency: Dependency, watcher: Watcher) -> None:
    """Add the mutual edge between dependency and watcher. Idempotent.

    Ignored watchers are terminal and never gain edges again.
    """
    if not watcher.active:
        return
    if watcher not in dependency.subscribers:
        dependency.subscribers[watcher] = None
    if dependency not in watcher.dependencies:
        watcher.dependencies[dependency] = None


def depend_each(values: Iterable, watcher: Watcher, seen: set[int] | None = None) -> None:
    """Subscribe watcher to every instrumented element of a sequence.

    Nested sequences are walked too. Elements are read raw so the walk
    itself records nothing else.
    """
    if seen is None:
        seen = set()
    seen.add(id(values))
    for value in list.__iter__(values):
        dependency = getattr(value, "_dependency", None)
        if dependency is not None:
            depend(dependency, watcher)
        if isinstance(value, list) and id(value) not in seen:
            depend_each(value, watcher, seen)
