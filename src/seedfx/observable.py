"""Observable containers: records and sequences that track their readers.

observe() instruments a Record or ReactiveList in place, or adopts a plain
dict/list into a new one. Every key of a record gets an accessor: a
ReactiveProperty for data, or a ComputedProperty for a Computed
declaration. Reading a key inside a watcher subscribes the watcher; writing
a different value notifies every subscriber.

Each container also carries one container-level Dependency, notified when
keys are added or removed (or when a sequence is mutated), plus a seed
reference to the root of its graph. The root holds the watcher registry.
All of it lives in __slots__, so it never shows up in iteration, equality
or json.dumps.
"""

from __future__ import annotations

import logging
import reprlib
from typing import Any, Callable, Generic, Iterator, TypeVar

from seedfx._tracking import peek, untracked
from seedfx.dependency import Dependency, depend, depend_each
from seedfx.watcher import Watcher, same_value, watch

logger = logging.getLogger("seedfx.observable")

T = TypeVar("T")

_MISSING = object()


# ─── Declarations ────────────────────────────────────────────────────────────


class Computed(Generic[T]):
    """Declares a record key as a lazily re-evaluated derived value.

    Usage:
        state = observe({
            "a": 1,
            "b": 2,
            "total": Computed(lambda: state["a"] + state["b"]),
        })
        state["total"]  # 3, evaluated on first read

    Works as a decorator too, with an optional setter:

        @Computed
        def full_name():
            return f"{person['first']} {person['last']}"

        @full_name.setter
        def full_name(value):
            person["first"], person["last"] = value.split(" ", 1)
    """

    __slots__ = ("getter", "fset")

    def __init__(self, getter: Callable[[], T], setter: Callable[[T], None] | None = None) -> None:
        self.getter = getter
        self.fset = setter

    def setter(self, fn: Callable[[T], None]) -> Computed[T]:
        return Computed(self.getter, fn)

    def __repr__(self) -> str:
        return f"Computed({getattr(self.getter, '__name__', 'getter')})"


# ─── Accessors ───────────────────────────────────────────────────────────────


class ReactiveProperty:
    """Intercepted read/write pair for one data key of a record.

    If the key already had an accessor, storage is delegated to it.
    """

    __slots__ = ("key", "dependency", "inner")

    def __init__(self, key: Any, inner: ReactiveProperty | ComputedProperty | None = None) -> None:
        self.key = key
        self.dependency = Dependency()
        self.inner = inner

    def _read(self, container: Record) -> Any:
        if self.inner is not None:
            return self.inner.get(container)
        return dict.__getitem__(container, self.key)

    def get(self, container: Record) -> Any:
        value = self._read(container)
        target = peek()
        if target is not None:
            depend(self.dependency, target)
            # Reading a key that holds a container also tracks mutations inside it.
            nested = getattr(value, "_dependency", None)
            if nested is not None:
                depend(nested, target)
            if isinstance(value, list):
                depend_each(value, target)
        return value

    def set(self, container: Record, value: Any) -> None:
        with untracked():
            old = self._read(container)
        if same_value(value, old):
            return
        value = inspect(value, seed_of(container))
        if self.inner is not None:
            self.inner.set(container, value)
        else:
            dict.__setitem__(container, self.key, value)
        self.dependency.notify()


class ComputedProperty:
    """Read-only (or setter-backed) accessor over a lazy watcher."""

    __slots__ = ("key", "watcher", "setter")

    def __init__(self, key: Any, watcher: Watcher, setter: Callable[[Any], None] | None) -> None:
        self.key = key
        self.watcher = watcher
        self.setter = setter

    def get(self, container: Record) -> Any:
        return self.watcher.get()

    def set(self, container: Record, value: Any) -> None:
        if self.setter is not None:
            self.setter(value)


# ─── Containers ──────────────────────────────────────────────────────────────


class _Tracked:
    """Bookkeeping shared by Record and ReactiveList."""

    __slots__ = ()

    def _init_bookkeeping(self) -> None:
        self._dependency: Dependency | None = None
        self._watchers: list[Watcher] | None = None
        self._seed: Record | ReactiveList | None = None

    def _track(self) -> None:
        """Subscribe the current watcher to membership changes."""
        if self._dependency is not None:
            self._dependency.depend()

    def _changed(self) -> None:
        if self._dependency is not None:
            self._dependency.notify()

    def _adopt(self, value: Any) -> Any:
        """Instrument a value entering this container under the same seed."""
        if self._dependency is None:
            return value
        return inspect(value, seed_of(self))


class Record(_Tracked, dict):
    """A dict whose keys are reactive once observed.

    Before observe() it behaves exactly like a dict. Once observed, values()
    and items() return lists rather than live views: each entry is read
    through its accessor, so computed keys yield their value and every read
    is tracked. copy() returns a plain dict built the same way, and equality
    and repr go through it too.
    """

    __slots__ = ("_dependency", "_watchers", "_seed", "_accessors")

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_bookkeeping()
        self._accessors: dict[Any, ReactiveProperty | ComputedProperty] = {}

    # --- Read operations (track) ---

    def __getitem__(self, key: Any) -> Any:
        accessor = self._accessors.get(key)
        if accessor is not None:
            return accessor.get(self)
        if not dict.__contains__(self, key):
            # A later assign of this key must reach whoever looked for it.
            self._track()
        return dict.__getitem__(self, key)

    def get(self, key: Any, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def __contains__(self, key: object) -> bool:
        self._track()
        return dict.__contains__(self, key)

    def __iter__(self) -> Iterator[Any]:
        self._track()
        return dict.__iter__(self)

    def __len__(self) -> int:
        self._track()
        return dict.__len__(self)

    def __reversed__(self) -> Iterator[Any]:
        self._track()
        return dict.__reversed__(self)

    def keys(self):
        self._track()
        return dict.keys(self)

    def values(self) -> list[Any]:
        return [self[key] for key in self.keys()]

    def items(self) -> list[tuple[Any, Any]]:
        return [(key, self[key]) for key in self.keys()]

    def copy(self) -> dict[Any, Any]:
        """A plain dict snapshot of the current values."""
        return dict(self.items())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Record):
            other = other.copy()
        return self.copy() == other

    def __ne__(self, other: object) -> bool:
        return not self == other

    def __or__(self, other: Any) -> Any:
        if not isinstance(other, dict):
            return NotImplemented
        return self.copy() | (other.copy() if isinstance(other, Record) else other)

    def __ror__(self, other: Any) -> Any:
        if not isinstance(other, dict):
            return NotImplemented
        return other | self.copy()

    # --- Write operations (notify) ---

    def __setitem__(self, key: Any, value: Any) -> None:
        if self._dependency is None:
            dict.__setitem__(self, key, value)
            return
        accessor = self._accessors.get(key)
        if accessor is not None:
            accessor.set(self, value)
        else:
            self._add_key(key, value)

    def __delitem__(self, key: Any) -> None:
        dict.__delitem__(self, key)
        if self._dependency is None:
            return
        self._accessors.pop(key, None)
        logger.debug("Removed key %r", key)
        self._changed()

    def _add_key(self, key: Any, value: Any) -> None:
        """Install an accessor for a key that did not exist, then notify."""
        if isinstance(value, Computed):
            dict.__setitem__(self, key, value)
            computed(self, key)
        else:
            reactive(self, key, value)
        logger.debug("Added key %r", key)
        self._changed()

    def pop(self, key: Any, *default: Any) -> Any:
        if not dict.__contains__(self, key):
            if default:
                return default[0]
            raise KeyError(key)
        with untracked():
            value = self[key]
        del self[key]
        return value

    def popitem(self) -> tuple[Any, Any]:
        if not dict.__len__(self):
            raise KeyError("popitem(): record is empty")
        key = next(reversed(dict.keys(self)))
        return key, self.pop(key)

    def setdefault(self, key: Any, default: Any = None) -> Any:
        if not dict.__contains__(self, key):
            self[key] = default
        return self[key]

    def update(self, *args: Any, **kwargs: Any) -> None:
        for key, value in dict(*args, **kwargs).items():
            self[key] = value

    def __ior__(self, other: Any) -> Record:
        self.update(other)
        return self

    def clear(self) -> None:
        dict.clear(self)
        if self._dependency is None:
            return
        self._accessors.clear()
        self._changed()

    @reprlib.recursive_repr()
    def __repr__(self) -> str:
        with untracked():
            return f"Record({self.copy()!r})"


def _tracked_comparison(name: str) -> Callable[[Any, Any], Any]:
    compare = getattr(list, name)

    def method(self: ReactiveList, other: Any) -> Any:
        self._track()
        if isinstance(other, ReactiveList):
            other._track()
        return compare(self, other)

    method.__name__ = name
    return method


class ReactiveList(_Tracked, list):
    """A list that tracks reads and notifies on mutation once observed.

    Any read (indexing, iteration, len, membership, comparison, copying)
    subscribes to the list as a whole; any mutation notifies it. Entering
    elements are instrumented under the list's seed.
    """

    __slots__ = ("_dependency", "_watchers", "_seed")

    def __init__(self, items: Any = ()) -> None:
        super().__init__(items)
        self._init_bookkeeping()

    # --- Read operations (track) ---

    def __getitem__(self, index: Any) -> Any:
        self._track()
        return list.__getitem__(self, index)

    def __iter__(self) -> Iterator[Any]:
        self._track()
        return list.__iter__(self)

    def __len__(self) -> int:
        self._track()
        return list.__len__(self)

    def __contains__(self, item: object) -> bool:
        self._track()
        return list.__contains__(self, item)

    def index(self, item: Any, *args: Any) -> int:
        self._track()
        return list.index(self, item, *args)

    def count(self, item: Any) -> int:
        self._track()
        return list.count(self, item)

    def __reversed__(self) -> Iterator[Any]:
        self._track()
        return list.__reversed__(self)

    def copy(self) -> list[Any]:
        """A plain list snapshot of the current items."""
        self._track()
        return list.copy(self)

    def __add__(self, other: Any) -> Any:
        self._track()
        if isinstance(other, ReactiveList):
            other._track()
        return list.__add__(self, other)

    def __mul__(self, times: Any) -> Any:
        self._track()
        return list.__mul__(self, times)

    __rmul__ = __mul__

    __eq__ = _tracked_comparison("__eq__")
    __ne__ = _tracked_comparison("__ne__")
    __lt__ = _tracked_comparison("__lt__")
    __le__ = _tracked_comparison("__le__")
    __gt__ = _tracked_comparison("__gt__")
    __ge__ = _tracked_comparison("__ge__")

    # --- Write operations (notify) ---

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            list.__setitem__(self, index, [self._adopt(item) for item in value])
        else:
            if same_value(list.__getitem__(self, index), value):
                return
            list.__setitem__(self, index, self._adopt(value))
        self._changed()

    def __delitem__(self, index: Any) -> None:
        list.__delitem__(self, index)
        self._changed()

    def append(self, item: Any) -> None:
        list.append(self, self._adopt(item))
        self._changed()

    def extend(self, items: Any) -> None:
        list.extend(self, [self._adopt(item) for item in items])
        self._changed()

    def __iadd__(self, items: Any) -> ReactiveList:
        self.extend(items)
        return self

    def __imul__(self, times: int) -> ReactiveList:
        list.__imul__(self, times)
        self._changed()
        return self

    def insert(self, index: int, item: Any) -> None:
        list.insert(self, index, self._adopt(item))
        self._changed()

    def pop(self, index: int = -1) -> Any:
        result = list.pop(self, index)
        self._changed()
        return result

    def remove(self, item: Any) -> None:
        list.remove(self, item)
        self._changed()

    def clear(self) -> None:
        list.clear(self)
        self._changed()

    def sort(self, *, key: Any = None, reverse: bool = False) -> None:
        list.sort(self, key=key, reverse=reverse)
        self._changed()

    def reverse(self) -> None:
        list.reverse(self)
        self._changed()

    def __repr__(self) -> str:
        return f"ReactiveList({list.__repr__(self)})"


# ─── Inspector & installers ──────────────────────────────────────────────────


def is_observed(value: Any) -> bool:
    """True if value is an instrumented container."""
    return getattr(value, "_dependency", None) is not None


def seed_of(container: Record | ReactiveList) -> Record | ReactiveList:
    """The root of the graph container belongs to."""
    return container if container._seed is None else container._seed


def inspect(value: Any, seed: Record | ReactiveList | None = None, memo: dict | None = None) -> Any:
    """Instrument value and everything reachable from it, exactly once.

    Anything that is not a record or sequence comes back unchanged. Plain
    dicts and lists are adopted into a Record/ReactiveList first. A value
    that is already instrumented is returned as-is.
    """
    if isinstance(value, (Record, ReactiveList)):
        if value._dependency is not None:
            return value
        container = value
    elif type(value) is dict or type(value) is list:
        if memo is None:
            memo = {}
        if id(value) in memo:
            return memo[id(value)]
        container = Record(value) if type(value) is dict else ReactiveList(value)
        memo[id(value)] = container
        logger.debug("Adopted %s into %s", type(value).__name__, type(container).__name__)
    else:
        return value

    container._dependency = Dependency()
    if seed is None:
        container._watchers = []
    else:
        container._seed = seed

    if isinstance(container, ReactiveList):
        for index, item in enumerate(list.__iter__(container)):
            list.__setitem__(container, index, inspect(item, seed_of(container), memo))
    else:
        for key in list(dict.keys(container)):
            if isinstance(dict.__getitem__(container, key), Computed):
                computed(container, key)
            else:
                reactive(container, key, memo=memo)
    return container


def observe(value: T) -> T:
    """Instrument value and return it. Idempotent.

    Usage:
        state = observe({"count": 0, "todos": []})
        observe(state) is state  # True
    """
    return inspect(value)


def reactive(container: Record, key: Any, value: Any = _MISSING, memo: dict | None = None) -> Record:
    """Install a ReactiveProperty for key on an observed record.

    An accessor already installed on key keeps owning the storage; the new
    property wraps it.
    """
    inner = container._accessors.get(key)
    if value is _MISSING:
        if inner is not None:
            with untracked():
                value = inner.get(container)
        else:
            value = dict.__getitem__(container, key)
    value = inspect(value, seed_of(container), memo)
    if inner is None:
        dict.__setitem__(container, key, value)
    container._accessors[key] = ReactiveProperty(key, inner)
    return container


def computed(container: Record, key: Any) -> Record:
    """Turn the Computed declaration stored at key into a lazy accessor."""
    declaration: Computed = dict.__getitem__(container, key)
    watcher = watch(container, declaration.getter, lazy=True)
    container._accessors[key] = ComputedProperty(key, watcher, declaration.fset)
    return container
