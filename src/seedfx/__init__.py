"""seedfx: Vue-style fine-grained reactive records and lists for Python."""

from importlib.metadata import version as _version

__version__ = _version("seedfx")

from seedfx._tracking import untracked
from seedfx.dependency import Dependency
from seedfx.watcher import Watcher, watch, ignore
from seedfx.observable import Computed, Record, ReactiveList, observe, is_observed
from seedfx.membership import assign, unset

__all__ = [
    "Computed",
    "Dependency",
    "ReactiveList",
    "Record",
    "Watcher",
    "assign",
    "ignore",
    "is_observed",
    "observe",
    "unset",
    "untracked",
    "watch",
]
