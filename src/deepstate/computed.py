"""Computed values: derived state with automatic dependency tracking.

A Computed wraps a function. When evaluated, it tracks which cells the
function reads and caches the result. When any dependency changes, the
cached value is invalidated. On next read, it re-evaluates.

Computed values are lazy: they only recompute when read.

StaticComputed is the server-side rendering variant. It never caches and
never tracks, so every read is a fresh evaluation.
"""

from __future__ import annotations

import inspect
from typing import Callable, Generic, TypeVar

from deepstate._tracking import current_derivation, schedule
from deepstate.errors import RootUnavailable

T = TypeVar("T")

_UNSET = object()


class Computed(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_fn", "_cached", "_dirty", "_dependencies", "_observers", "fn", "__weakref__")

    _eager = False

    def __init__(self, fn: Callable[[], T], *, declared: Callable | None = None) -> None:
        self._fn = fn
        self._cached = _UNSET
        self._dirty = True
        self._dependencies: set = set()
        self._observers: set = set()
        # The user function this instance was materialized from.
        self.fn = declared if declared is not None else fn

    def get(self) -> T:
        """Read the computed value. Recomputes if dirty."""
        derivation = current_derivation.get()
        if derivation is not None:
            self._observers.add(derivation)
            derivation._dependencies.add(self)

        if self._dirty:
            self._recompute()

        return self._cached

    def peek(self) -> T:
        """Read the value without registering a dependency."""
        if self._dirty:
            self._recompute()
        return self._cached

    @property
    def value(self) -> T:
        return self.get()

    def _recompute(self) -> None:
        """Re-evaluate the function, tracking dependencies.

        If the function raises, the instance stays dirty and the error
        propagates; the next read tries again.
        """
        for dep in self._dependencies:
            dep._remove_observer(self)
        self._dependencies.clear()

        token = current_derivation.set(self)
        try:
            self._cached = self._fn()
        finally:
            current_derivation.reset(token)

        self._dirty = False

    def _run(self) -> None:
        """Called by the scheduler when a dependency changed.

        Marks dirty and propagates to our own observers. We don't recompute
        eagerly; that happens on next get().
        """
        if not self._dirty:
            self._dirty = True
            for observer in list(self._observers):
                schedule(observer)

    def _remove_observer(self, observer) -> None:
        self._observers.discard(observer)

    def dispose(self) -> None:
        """Disconnect from all dependencies. The computed becomes inert."""
        for dep in self._dependencies:
            dep._remove_observer(self)
        self._dependencies.clear()
        self._observers.clear()
        self._dirty = True
        self._cached = _UNSET

    def __repr__(self) -> str:
        state = "dirty" if self._dirty else f"cached={self._cached!r}"
        return f"Computed({_name(self.fn)}, {state})"


class StaticComputed(Generic[T]):
    """A derived value that re-evaluates on every read."""

    __slots__ = ("_fn", "fn")

    def __init__(self, fn: Callable[[], T], *, declared: Callable | None = None) -> None:
        self._fn = fn
        self.fn = declared if declared is not None else fn

    def get(self) -> T:
        return self._fn()

    peek = get

    @property
    def value(self) -> T:
        return self._fn()

    def _remove_observer(self, observer) -> None:
        pass

    def dispose(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"StaticComputed({_name(self.fn)})"


def computed(fn: Callable[[], T]) -> Computed[T]:
    """Decorator/factory to create a Computed from a function.

    Usage:
        counter = Signal(0)

        @computed
        def doubled():
            return counter.get() * 2

        doubled.get()  # 0
        counter.set(5)
        doubled.get()  # 10
    """
    return Computed(fn)


def positional_arity(fn: Callable) -> int:
    """How many positional arguments fn accepts; -1 when unbounded."""
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return 1
    count = 0
    for param in params:
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return -1
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


def derived_by(fn: Callable, node, get_root: Callable[[], object]) -> Callable[[], object]:
    """Bind a computed declaration to its owning node.

    fn(self, root) receives root only when its arity asks for it, and root
    is only looked up in that case. A missing root is an error rather than
    a silent None.
    """
    arity = positional_arity(fn)

    if arity == 0:
        return fn
    if arity == 1:
        return lambda: fn(node)

    def evaluate():
        root = get_root()
        if root is None:
            raise RootUnavailable(f"Root node not available for computed function {_name(fn)}")
        return fn(node, root)

    return evaluate


def _name(fn) -> str:
    return getattr(fn, "__name__", None) or type(fn).__name__
