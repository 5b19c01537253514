"""Textual integration for deepstate stores. Opt-in, requires textual.

Binds store state to widgets of a running Textual app:

    class Counter(App):
        def on_mount(self):
            self._binding = stx.bind(
                self, store,
                lambda state: state.count,
                lambda count: self.query_one("#count", Label).update(str(count)),
            )

Guarding and thread marshaling live here, not at callsites.
Pause state has a single owner (this module), keyed by id(app) so several
apps can coexist in tests.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable

from textual.css.query import NoMatches

from deepstate.reaction import Reaction
from deepstate.reaction import reaction as _reaction
from deepstate.store import Store

_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bindings of app, e.g. while widgets are being replaced."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, fn: Callable) -> Callable:
    """Wrap fn so it only runs on a safe app, on the app's thread."""
    owner = threading.get_ident()

    def safe(*args):
        try:
            fn(*args)
        except NoMatches:
            # widget not mounted (yet or anymore)
            pass

    def guarded(*args):
        if not is_safe(app):
            return
        if threading.get_ident() != owner:
            app.call_from_thread(safe, *args)
        else:
            safe(*args)

    return guarded


def bind(
    app,
    store: Store,
    select: Callable,
    apply: Callable,
    *,
    fire_immediately: bool = True,
) -> Reaction:
    """Call apply(value) whenever select(store.state) changes.

    select runs tracked, so only the cells it reads wake the binding.
    Returns the reaction; dispose() it when the widget goes away.
    """
    state = store.state
    return _reaction(lambda: select(state), _guard(app, apply), fire_immediately=fire_immediately)


class _AppReaction(Reaction):
    """A reaction that only runs while its app is safe, on the app's thread.

    A skipped run keeps the dependencies of the last real one, so the
    reaction wakes up again after a pause.
    """

    __slots__ = ("_app", "_owner")

    def __init__(self, app, fn: Callable[[], None]) -> None:
        super().__init__(fn)
        self._app = app
        self._owner = threading.get_ident()

    def _run(self) -> None:
        if not is_safe(self._app):
            return
        if threading.get_ident() != self._owner:
            self._app.call_from_thread(self._run_here)
        else:
            self._run_here()

    def _run_here(self) -> None:
        try:
            super()._run()
        except NoMatches:
            pass


def autorun(app, store: Store, fn: Callable) -> Reaction:
    """Run fn(store.state) now and after every change to what it read."""
    state = store.state
    r = _AppReaction(app, lambda: fn(state))
    r._run()
    return r
