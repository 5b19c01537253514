"""Signal cells: atomic mutable boxes that track their readers.

When a Signal is read inside a Computed or Reaction evaluation, the
dependency is registered automatically. When the Signal changes, all
dependents are scheduled.

Every primitive leaf of a reified tree lives in exactly one Signal. Nested
nodes and shallow references are stored in a Signal too, so the cell for a
key keeps its identity whatever is written to it.

Thread safety: call set_scheduler() once from the owning thread. After
that, any write from another thread is marshaled to it. Owning-thread
writes stay synchronous.
"""

from __future__ import annotations

import threading
from typing import Generic, TypeVar

from deepstate._tracking import current_derivation, schedule

T = TypeVar("T")

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global thread scheduler for cross-thread writes.

    Call once from the thread that owns the state tree:
        deepstate.set_scheduler(app.call_from_thread)

    After this, any Signal.set() from another thread is handed to the
    scheduler instead of mutating the tree in place. Pass None to remove it.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


class Signal(Generic[T]):
    """A single observable value with automatic dependency tracking."""

    __slots__ = ("_value", "_observers", "__weakref__")

    def __init__(self, value: T) -> None:
        self._value = value
        self._observers: set = set()

    def get(self) -> T:
        """Read the value. If inside a derivation, registers the dependency."""
        derivation = current_derivation.get()
        if derivation is not None:
            self._observers.add(derivation)
            derivation._dependencies.add(self)
        return self._value

    def peek(self) -> T:
        """Read the value without registering a dependency."""
        return self._value

    def set(self, value: T) -> None:
        """Write a new value. Auto-marshals from foreign threads."""
        if _scheduler is not None and threading.current_thread() != _scheduler_thread:
            _scheduler(lambda v=value: self._set_direct(v))
        else:
            self._set_direct(value)

    @property
    def value(self) -> T:
        return self.get()

    @value.setter
    def value(self, value: T) -> None:
        self.set(value)

    def _set_direct(self, value: T) -> None:
        old = self._value
        if old is not value and old != value:
            self._value = value
            self._notify()

    def _replace(self, value) -> None:
        """Internal write comparing by identity only.

        Used when list operations move nested nodes between cells, where two
        distinct nodes must never be taken for one another.
        """
        if self._value is not value:
            self._value = value
            self._notify()

    def _notify(self) -> None:
        """Schedule all observers for re-evaluation."""
        for observer in list(self._observers):
            schedule(observer)

    def _remove_observer(self, observer) -> None:
        """Remove an observer. Called during dependency cleanup."""
        self._observers.discard(observer)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


class StaticSignal(Signal[T]):
    """A Signal for server-side rendering: a plain box.

    Reads never register dependencies and writes never notify, so no
    subscriber graph is built during a single-pass render.
    """

    __slots__ = ()

    def get(self) -> T:
        return self._value

    def _set_direct(self, value: T) -> None:
        self._value = value

    def _replace(self, value) -> None:
        self._value = value
