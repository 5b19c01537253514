"""Dependency tracking engine.

Uses contextvars to track which cells are read while a computed or a
reaction is evaluating, building the dependency graph automatically.

Batching: writes inside `batch()`, `with transaction()` or an `@action`
defer subscriber re-runs until the outermost scope exits. Computeds are
lazy, so they are invalidated straight away even inside a batch; only
eager derivations (reactions) wait for the flush.
"""

from __future__ import annotations

import contextvars
from typing import TYPE_CHECKING, Callable, TypeVar

if TYPE_CHECKING:
    from deepstate.computed import Computed
    from deepstate.reaction import Reaction

    Derivation = Computed | Reaction

T = TypeVar("T")

# The currently-evaluating derivation (computed or reaction).
# When set, any Signal.get() call registers itself as a dependency.
current_derivation: contextvars.ContextVar[Derivation | None] = contextvars.ContextVar(
    "current_derivation", default=None
)

# Batch depth counter. When > 0, eager derivations are deferred.
_batch_depth: int = 0

# Derivations scheduled during a batch, awaiting flush.
_pending: set[Derivation] = set()


def begin_batch() -> None:
    """Enter a batching scope. Nested batches flatten into the outermost one."""
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. When the outermost scope exits, flush pending derivations."""
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        _flush_pending()


def in_batch() -> bool:
    return _batch_depth > 0


def schedule(derivation: Derivation) -> None:
    """Schedule a derivation after one of its dependencies changed.

    Lazy derivations only mark themselves dirty, so they always run now.
    Eager ones are deferred while a batch is open.
    """
    if _batch_depth > 0 and derivation._eager:
        _pending.add(derivation)
    else:
        derivation._run()


def _flush_pending() -> None:
    """Run all pending derivations. Handles derivations scheduled during flush."""
    while _pending:
        # Snapshot and clear: derivations may schedule new ones during run.
        batch = list(_pending)
        _pending.clear()
        for derivation in batch:
            derivation._run()


def untracked(fn: Callable[[], T]) -> T:
    """Call fn without registering any read as a dependency."""
    token = current_derivation.set(None)
    try:
        return fn()
    finally:
        current_derivation.reset(token)


def get_pending_count() -> int:
    """Number of derivations waiting to run. Useful for testing."""
    return len(_pending)
