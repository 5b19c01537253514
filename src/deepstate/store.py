"""Store: a reified state tree plus the actions bound to it.

reify() builds the tree; attach() binds a map of actions whose first
parameter is the root state. Actions are looked up when they are
dispatched, never validated up front.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import replace
from typing import Any, Callable

from deepstate.builder import build
from deepstate.errors import UnknownActionError
from deepstate.node import ObjectNode
from deepstate.options import ReifyOptions

logger = logging.getLogger("deepstate.store")


def _bind(fn: Callable, state: ObjectNode) -> Callable:
    @functools.wraps(fn)
    def bound(*args, **kwargs):
        return fn(state, *args, **kwargs)

    return bound


class Actions:
    """Namespace of actions bound to a state tree.

    `actions.name(*args)` calls `fn(state, *args)` and returns its result,
    a coroutine for `async def` actions. Unknown names raise
    UnknownActionError when they are looked up.
    """

    __slots__ = ("_state", "_fns")

    def __init__(self, state: ObjectNode, fns: dict[str, Callable]) -> None:
        self._state = state
        self._fns = fns

    def __getattr__(self, name: str) -> Callable:
        if name in ("_state", "_fns") or (name.startswith("__") and name.endswith("__")):
            raise AttributeError(name)
        try:
            fn = self._fns[name]
        except KeyError:
            raise UnknownActionError(name) from None
        return _bind(fn, self._state)

    def __getitem__(self, name: str) -> Callable:
        return self.__getattr__(name)

    def __contains__(self, name: str) -> bool:
        return name in self._fns

    def __iter__(self):
        return iter(self._fns)

    def __len__(self) -> int:
        return len(self._fns)

    def __repr__(self) -> str:
        return f"Actions({', '.join(self._fns)})"


class Store:
    """Reactive state with an actions namespace."""

    def __init__(self, state: ObjectNode) -> None:
        self.state = state
        self.actions = Actions(state, {})

    def attach(self, actions: dict[str, Callable] | None = None, **named: Callable) -> Store:
        """Bind actions to this store's state, replacing any attached before.

        Usage:
            store = reify({"count": 0}).attach(
                increment=lambda state, by=1: setattr(state, "count", state.count + by),
            )
            store.actions.increment(5)
        """
        fns = {**(actions or {}), **named}
        for name, fn in fns.items():
            if not callable(fn):
                raise TypeError(f"action {name!r} must be callable, got {type(fn).__name__}")
        self.actions = Actions(self.state, fns)
        logger.debug("attached %d actions: %s", len(fns), ", ".join(fns))
        return self

    def to_json(self) -> dict:
        return self.state.to_json()

    def __repr__(self) -> str:
        return f"Store({self.to_json()!r}, actions=[{', '.join(self.actions)}])"


def reify(initial: dict, options: ReifyOptions | None = None, **overrides: Any) -> Store:
    """Turn a plain dict into a reactive Store.

    Options are `permissive` (allow new keys after construction, default
    False), `mode` ("spa" caches computeds, "ssr" recomputes them on every
    read; default "spa") and `escape_hatch` (prefix exposing the reactive
    artifact behind a key; default "$").

    Usage:
        store = reify({"count": 0, "double": lambda self: self.count * 2})
        store.state.double  # 0
        store.state.count = 5
        store.state.double  # 10
    """
    if options is None:
        options = ReifyOptions(**overrides)
    elif overrides:
        options = replace(options, **overrides)
    return Store(build(initial, options))
