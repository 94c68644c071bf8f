"""Watchers: the unit of subscription.

A Watcher pairs a getter with an update callback. Evaluating it runs the
getter with the watcher on top of the active-target stack, so every
reactive read along the way subscribes it. When one of those dependencies
notifies, an eager watcher recomputes immediately and calls
update(new, old); a lazy watcher is only marked dirty and recomputes on its
next read.

Dependencies are re-collected on every evaluation. Anything read last time
but not this time is pruned, so conditional reads never keep stale
subscriptions alive.

States: fresh -> idle/dirty -> (evaluating) -> idle/dirty -> ... -> inactive.
Inactive is terminal.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from seedfx import paths
from seedfx._tracking import peek, tracking
from seedfx.dependency import Dependency, depend

logger = logging.getLogger("seedfx.watcher")

Update = Callable[[Any, Any], None]

# Types compared by value when deciding whether a write or a recompute changed anything.
_PRIMITIVES = (type(None), bool, int, float, complex, str, bytes)


def same_value(a: Any, b: Any) -> bool:
    """Identity, or equality between two primitives of the same type.

    Containers and other objects are compared by identity only.
    """
    if a is b:
        return True
    return type(a) is type(b) and type(a) in _PRIMITIVES and a == b


def is_container(value: Any) -> bool:
    """Records and sequences: never trusted to be unchanged by identity."""
    return isinstance(value, (dict, list))


def _noop(new: Any, old: Any) -> None:
    pass


class Watcher:
    """An eager or lazy, shallow or deep observer with a cached value."""

    __slots__ = ("getter", "update", "deep", "lazy", "active", "dirty", "dependencies", "value")

    def __init__(
        self,
        getter: Callable[[], Any],
        update: Update | None = None,
        *,
        deep: bool = False,
        lazy: bool = False,
    ) -> None:
        self.getter = getter
        self.update = update or _noop
        self.deep = deep
        self.lazy = lazy
        self.active = True
        self.dirty = lazy
        self.dependencies: dict[Dependency, None] = {}
        self.value: Any = None

    def get(self) -> Any:
        """Read the cached value, recomputing first if dirty.

        If another watcher is being evaluated, it inherits every dependency
        this one collected.
        """
        if self.dirty:
            self.evaluate()
        target = peek()
        if target is not None:
            for dependency in list(self.dependencies):
                depend(dependency, target)
        return self.value

    def evaluate(self) -> None:
        """Recompute and cache. Clears dirty only when the getter succeeds."""
        self.value = self._get_value()
        self.dirty = False

    def _get_value(self) -> Any:
        previous = self.dependencies
        self.dependencies = {}
        try:
            with tracking(self):
                value = self.getter()
                if self.deep:
                    traverse(value)
        finally:
            self._prune(previous)
        return value

    def _prune(self, previous: dict[Dependency, None]) -> None:
        """Drop edges to dependencies not read during the last evaluation."""
        for dependency in previous:
            if dependency not in self.dependencies:
                dependency._remove_subscriber(self)

    def _inform(self) -> None:
        """Called by Dependency.notify() when something this watcher read changed."""
        if self.lazy:
            self.dirty = True
            return
        if not self.active:
            return
        old = self.value
        value = self._get_value()
        if not same_value(value, old) or is_container(value) or self.deep:
            self.value = value
            self.update(value, old)

    def dispose(self) -> None:
        """Stop this watcher permanently. Same as ignore(watcher)."""
        ignore(self)

    def __repr__(self) -> str:
        if not self.active:
            state = "inactive"
        elif self.dirty:
            state = "dirty"
        else:
            state = f"value={self.value!r}"
        flags = "".join(
            f", {name}=True" for name in ("deep", "lazy") if getattr(self, name)
        )
        return f"Watcher({getattr(self.getter, '__name__', 'getter')}, {state}{flags})"


def traverse(value: Any, seen: set[int] | None = None) -> None:
    """Read everything reachable from value inside the current watcher.

    Subscribes to each instrumented container and, through the reads, to
    every property. The seen set only guards this single call.
    """
    if not is_container(value):
        return
    if seen is None:
        seen = set()
    if id(value) in seen:
        return
    seen.add(id(value))
    dependency = getattr(value, "_dependency", None)
    if dependency is not None:
        dependency.depend()
    children = value.values() if isinstance(value, dict) else value
    for child in children:
        traverse(child, seen)


def registry_of(container: Any) -> list[Watcher]:
    """The watcher registry of the graph container belongs to."""
    seed = getattr(container, "_seed", None)
    if seed is None:
        seed = container
    registry = getattr(seed, "_watchers", None)
    if registry is None:
        raise TypeError(f"cannot watch {type(container).__name__}: not an observed container")
    return registry


def watch(
    container: Any,
    path_or_reader: str | Callable[[], Any],
    update: Update | None = None,
    *,
    deep: bool = False,
    lazy: bool = False,
) -> Watcher:
    """Watch a dotted path on container, or any zero-argument read function.

    Eager watchers evaluate immediately and cache the result in .value;
    lazy ones stay dirty (value None) until first read through .get().

    Usage:
        state = observe({"a": 1, "b": 2})
        w = watch(state, lambda: state["a"] + state["b"], print)
        # w.value == 3
        state["a"] = 5
        # prints "7 3"
        w.dispose()
    """
    if callable(path_or_reader):
        getter = path_or_reader
    else:
        getter = functools.partial(paths.get, container, path_or_reader)
    watcher = Watcher(getter, update, deep=deep, lazy=lazy)
    registry_of(container).append(watcher)
    logger.debug("Created %r", watcher)
    if not lazy:
        watcher.value = watcher._get_value()
    return watcher


def ignore(watcher: Watcher) -> None:
    """Deactivate watcher for good. No notification reaches it afterwards."""
    if not watcher.active:
        return
    for dependency in watcher.dependencies:
        dependency._remove_subscriber(watcher)
    watcher.dependencies = {}
    watcher.active = False
    logger.debug("Ignored %r", watcher)
