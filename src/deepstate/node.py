"""Tree nodes: the reactive stand-ins for plain dicts and lists.

ObjectNode gives attribute and item access over its keys, ArrayNode
behaves like a list. Reads unwrap the slot (tracking it inside a
derivation), writes go through the mutation guard, and keys carrying the
escape prefix return the underlying reactive artifact.

Each node also owns a version cell, bumped on structural changes (keys
added or removed, list length changed, holes punched). Iteration, len()
and membership track it, and so does every list index read.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from deepstate import escape, guard
from deepstate._slots import (
    Raw,
    TreeNode,
    is_computed,
    release,
    snapshot,
    to_plain,
    unwrap,
)
from deepstate._tracking import untracked
from deepstate.signal import Signal

logger = logging.getLogger("deepstate.node")

_INTERNAL = frozenset({"_ctx", "_cells", "_version"})


def _write(node, key, cell, value) -> None:
    """Guarded write of value into an existing cell of node."""
    current = cell.peek()
    if value is current or (isinstance(current, Raw) and current.ref is value):
        return
    guard.check_write(key, current, value)
    if isinstance(current, Signal):
        # caller-supplied cell keeps receiving writes
        current.set(value)
        return
    cell.set(node._ctx.wrap(value, raw=isinstance(current, Raw)))


class ObjectNode(TreeNode):
    """A reactive dict, read and written through attributes or items.

    Usage:
        state = reify({"user": {"first": "Jane"}, "greeting": lambda s: f"Hi {s.user.first}"}).state
        state.user.first = "John"
        state.greeting          # "Hi John"
        state["user"]["first"]  # "John"
        state["$greeting"]      # the Computed behind greeting
    """

    __slots__ = ("_ctx", "_cells", "_version", "__weakref__")

    def __init__(self, ctx, source: dict) -> None:
        object.__setattr__(self, "_ctx", ctx)
        object.__setattr__(self, "_cells", {key: ctx.cell(ctx.wrap(value)) for key, value in source.items()})
        object.__setattr__(self, "_version", ctx.cell(0))

    # --- Reads ---

    def _read(self, key):
        name = escape.split(key, self._ctx.options.escape_hatch)
        if name is not None:
            return escape.resolve(self._cells.get(name), self)
        return unwrap(self._cells[key].get(), self)

    def __getattr__(self, name: str):
        if name in _INTERNAL or (name.startswith("__") and name.endswith("__")):
            raise AttributeError(name)
        if name not in self._cells and escape.split(name, self._ctx.options.escape_hatch) is None:
            raise AttributeError(f"{type(self).__name__} has no property '{name}'")
        return self._read(name)

    def __getitem__(self, key):
        if key not in self._cells and escape.split(key, self._ctx.options.escape_hatch) is None:
            raise KeyError(key)
        return self._read(key)

    def __iter__(self):
        self._version.get()
        return iter(list(self._cells))

    def __len__(self) -> int:
        self._version.get()
        return len(self._cells)

    def __contains__(self, key) -> bool:
        self._version.get()
        return key in self._cells

    # --- Writes ---

    def __setattr__(self, name: str, value) -> None:
        if hasattr(type(self), name):
            raise AttributeError(
                f"'{name}' is a read-only attribute of {type(self).__name__}; "
                f"use item access for a key of that name"
            )
        self._assign(name, value)

    def __setitem__(self, key, value) -> None:
        self._assign(key, value)

    def _assign(self, key, value) -> None:
        if escape.split(key, self._ctx.options.escape_hatch) is not None:
            escape.reject_write(key)
        cell = self._cells.get(key)
        if cell is not None:
            _write(self, key, cell, value)
            return
        guard.check_add(key, self._ctx.options)
        guard.check_value(key, value)
        self._cells[key] = self._ctx.cell(self._ctx.wrap(value))
        logger.debug("added property %r", key)
        self._bump()

    def __delattr__(self, name: str) -> None:
        self._remove(name)

    def __delitem__(self, key) -> None:
        self._remove(key)

    def _remove(self, key) -> None:
        if escape.split(key, self._ctx.options.escape_hatch) is not None:
            escape.reject_write(key)
        cell = self._cells.get(key)
        guard.check_remove(key, cell, self._ctx.options)
        # readers of the key see None before it goes away
        cell.set(None)
        if self._ctx.options.permissive:
            del self._cells[key]
            logger.debug("removed property %r", key)
            self._bump()

    def _bump(self) -> None:
        self._version.set(self._version.peek() + 1)

    # --- Serialization ---

    def to_json(self) -> dict:
        """Plain dict of current values. Computed keys are left out."""
        return {
            key: to_plain(cell.peek())
            for key, cell in self._cells.items()
            if not is_computed(cell.peek())
        }

    def _snapshot(self) -> dict:
        return {key: snapshot(cell.peek()) for key, cell in self._cells.items()}

    def __repr__(self) -> str:
        return f"ObjectNode({self.to_json()!r})"


class ArrayNode(TreeNode, Sequence):
    """A reactive list.

    Element cells keep their identity per index: list operations move
    values between cells rather than moving cells, so a subscriber of
    `todos[0]` hears about whatever lands at index 0. Each element write
    notifies on its own, so outside a batch `insert(0, x)` or `reverse()`
    can notify a subscriber more than once.

    `del todos[i]` leaves a hole (None) and keeps the length. Use pop(),
    remove() or splice() to take items out.
    """

    __slots__ = ("_ctx", "_cells", "_version", "__weakref__")

    def __init__(self, ctx, source: list) -> None:
        self._ctx = ctx
        self._cells = [ctx.cell(ctx.wrap(value)) for value in source]
        self._version = ctx.cell(0)

    # --- Reads ---

    def __getitem__(self, index):
        if isinstance(index, str):
            return self._escape(index)
        self._version.get()
        if isinstance(index, slice):
            return [unwrap(cell.get(), self) for cell in self._cells[index]]
        return unwrap(self._cells[index].get(), self)

    def _escape_name(self, key: str) -> str:
        name = escape.split(key, self._ctx.options.escape_hatch)
        if name is None:
            raise TypeError(f"list indices must be integers or slices, not str ({key!r})")
        return name

    def _escape(self, key: str):
        name = self._escape_name(key)
        try:
            cell = self._cells[int(name)]
        except (ValueError, IndexError):
            return None
        return escape.resolve(cell, self)

    def __len__(self) -> int:
        self._version.get()
        return len(self._cells)

    def __iter__(self):
        self._version.get()
        return iter([unwrap(cell.get(), self) for cell in self._cells])

    # --- Writes ---

    def __setitem__(self, index, value) -> None:
        if isinstance(index, str):
            self._escape_name(index)
            escape.reject_write(index)
        if isinstance(index, slice):
            start, stop, step = index.indices(len(self._cells))
            if step != 1:
                raise ValueError("extended slice assignment is not supported; use splice()")
            self.splice(start, max(0, stop - start), *value)
            return
        _write(self, index, self._cells[index], value)

    def __delitem__(self, index) -> None:
        if isinstance(index, str):
            self._escape_name(index)
            escape.reject_write(index)
        if isinstance(index, slice):
            raise TypeError("deleting a slice is not supported; use splice()")
        self._cells[index]._replace(None)
        self._bump()

    def _prepare(self, index, value):
        guard.check_value(index, value)
        return self._ctx.wrap(value)

    def _contents(self) -> list:
        return [cell.peek() for cell in self._cells]

    def _rewrite(self, contents: list) -> None:
        """Write contents into the cells index by index, then fix the length."""
        cells = self._cells
        for cell, content in zip(cells, contents):
            cell._replace(content)
        if len(contents) == len(cells):
            return
        if len(contents) > len(cells):
            cells.extend(self._ctx.cell(content) for content in contents[len(cells):])
        else:
            del cells[len(contents):]
        self._bump()

    def _bump(self) -> None:
        self._version.set(self._version.peek() + 1)

    def append(self, value) -> None:
        self._cells.append(self._ctx.cell(self._prepare(len(self._cells), value)))
        self._bump()

    def extend(self, values) -> None:
        start = len(self._cells)
        contents = [self._prepare(start + offset, value) for offset, value in enumerate(values)]
        if not contents:
            return
        self._cells.extend(self._ctx.cell(content) for content in contents)
        self._bump()

    def __iadd__(self, values):
        self.extend(values)
        return self

    def insert(self, index: int, value) -> None:
        contents = self._contents()
        contents.insert(index, self._prepare(index, value))
        self._rewrite(contents)

    def pop(self, index: int = -1):
        contents = self._contents()
        if not contents:
            raise IndexError("pop from empty list")
        removed = contents.pop(index)
        self._rewrite(contents)
        return release(removed)

    def remove(self, value) -> None:
        contents = self._contents()
        for i, content in enumerate(contents):
            current = untracked(lambda c=content: unwrap(c, self))
            if current is value or current == value:
                del contents[i]
                self._rewrite(contents)
                return
        raise ValueError(f"{value!r} not in ArrayNode")

    def clear(self) -> None:
        self._rewrite([])

    def reverse(self) -> None:
        contents = self._contents()
        contents.reverse()
        self._rewrite(contents)

    def sort(self, *, key=None, reverse: bool = False) -> None:
        def sort_key(content):
            value = untracked(lambda: unwrap(content, self))
            return key(value) if key is not None else value

        self._rewrite(sorted(self._contents(), key=sort_key, reverse=reverse))

    def splice(self, start: int, delete_count: int | None = None, *items) -> list:
        """Remove delete_count items at start, insert items there, return the removed ones.

        Negative start counts from the end; a missing delete_count removes
        everything from start on.
        """
        contents = self._contents()
        size = len(contents)
        start = max(size + start, 0) if start < 0 else min(start, size)
        if delete_count is None:
            delete_count = size - start
        delete_count = max(0, min(delete_count, size - start))
        removed = contents[start:start + delete_count]
        contents[start:start + delete_count] = [
            self._prepare(start + offset, item) for offset, item in enumerate(items)
        ]
        self._rewrite(contents)
        return [release(content) for content in removed]

    # --- Serialization ---

    def to_json(self) -> list:
        """Plain list of current values. Computed items serialize as None."""
        return [
            None if is_computed(content) else to_plain(content)
            for content in self._contents()
        ]

    def _snapshot(self) -> list:
        return [snapshot(content) for content in self._contents()]

    def __repr__(self) -> str:
        return f"ArrayNode({self.to_json()!r})"
