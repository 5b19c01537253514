"""Batching: coalesce several writes into one notification pass.

Writes made inside `batch()`, `with transaction()` or an `@action` defer
subscriber re-runs until the outermost scope exits, so a subscriber that
depends on several of the written cells runs once and never sees an
intermediate state. Scopes nest and flatten into the outermost one.

Batches are synchronous. A coroutine started inside a batch does its
writes after the batch has already flushed.
"""

from __future__ import annotations

import functools
import inspect
import logging
from contextlib import contextmanager
from typing import Callable, ParamSpec, TypeVar

from deepstate._tracking import begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger("deepstate.batch")


def batch(fn: Callable[P, R], *args: P.args, **kwargs: P.kwargs) -> R:
    """Call fn inside a batch and return its result.

    Usage:
        batch(lambda: (state.todos.append(t1), state.todos.append(t2)))
        # subscribers reading state.todos run once, here
    """
    if inspect.iscoroutinefunction(fn):
        logger.warning(
            "batch() got coroutine function %s; its writes happen after the batch flushes",
            getattr(fn, "__name__", fn),
        )
    begin_batch()
    try:
        return fn(*args, **kwargs)
    finally:
        end_batch()


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch all writes inside fn.

    Usage:
        @action
        def swap(state):
            state.a, state.b = state.b, state.a
            # subscribers see both changes at once, not one at a time
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        begin_batch()
        try:
            return fn(*args, **kwargs)
        finally:
            end_batch()

    return wrapper


@contextmanager
def transaction():
    """Context manager for batching writes.

    Usage:
        with transaction():
            state.first = "John"
            state.last = "Smith"
            # subscribers fire here, after both are set
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()
