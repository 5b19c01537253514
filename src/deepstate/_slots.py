"""Slot contents: what a tree cell can hold.

Every key of a tree node owns one cell, and the cell holds exactly one of:

- a primitive value (anything the builder does not wrap),
- a nested tree node,
- a Raw shallow reference,
- a Derived computed declaration,
- a caller-supplied Signal or Computed, stored as-is.

unwrap() is the single place that dispatches on the kind.
"""

from __future__ import annotations

import logging

from deepstate.computed import Computed, StaticComputed
from deepstate.signal import Signal

logger = logging.getLogger("deepstate.slots")

_IMMUTABLE = (str, bytes, int, float, complex, tuple, frozenset, type(None))

_MISSING = object()

# Attribute tagging a function as a computed declaration that may be
# assigned after the tree was built.
_COMPUTED_PROP = "_deepstate_computed"

# id -> object. Built-in dicts and lists take no attributes, so the shallow
# tag lives here. The entry holds the object, so its id cannot be reused
# while marked. Marks stay until unshallow() releases them.
_shallow_marks: dict[int, object] = {}


def shallow(value):
    """Mark value so a tree stores it as a raw reference instead of wrapping it.

    Returns value itself. The mark is permanent: every tree and every key the
    value is placed in stores the same reference. Nested mutations of a
    shallow value are invisible to the dependency graph, but the key holding
    it may be reassigned wholesale.

    The registry keeps marked values alive; call unshallow() on a value that
    is no longer needed anywhere.

    Usage:
        data = shallow({"id": 1, "nested": {"value": 42}})
        store = reify({"data": data})
        store.state.data is data  # True
    """
    if not isinstance(value, _IMMUTABLE):
        _shallow_marks[id(value)] = value
    return value


def unshallow(value):
    """Drop the shallow mark of value and return it.

    Slots that already hold value keep it as a raw reference; only trees
    built or written afterwards wrap it deeply again.
    """
    if is_shallow(value):
        del _shallow_marks[id(value)]
    return value


def is_shallow(value) -> bool:
    return _shallow_marks.get(id(value), _MISSING) is value


def computed_prop(fn):
    """Mark fn as a computed declaration that may be assigned to a new key.

    Functions in the initial state are computeds already. After construction
    a plain function is rejected as state, while a marked one installs a new
    computed on a permissive tree:

        state = reify({"count": 1}, permissive=True).state
        state.double = computed_prop(lambda self: self.count * 2)
        state.double  # 2
    """
    if not callable(fn) or isinstance(fn, type):
        raise TypeError(f"computed_prop() needs a function, got {type(fn).__name__}")
    setattr(fn, _COMPUTED_PROP, True)
    return fn


def is_computed_prop(value) -> bool:
    return callable(value) and getattr(value, _COMPUTED_PROP, False) is True


def is_reactive(value) -> bool:
    """True for cells that a tree stores as-is instead of wrapping."""
    return isinstance(value, (Signal, Computed, StaticComputed))


def is_declaration(value) -> bool:
    """True for values the builder turns into computed declarations."""
    return callable(value) and not isinstance(value, type) and not is_reactive(value)


def is_computed(content) -> bool:
    return isinstance(content, (Derived, Computed, StaticComputed))


class TreeNode:
    """Base of ObjectNode and ArrayNode."""

    __slots__ = ()


class Raw:
    """A shallow reference, stored unchanged."""

    __slots__ = ("ref",)

    def __init__(self, ref) -> None:
        self.ref = ref

    def __repr__(self) -> str:
        return f"Raw({self.ref!r})"


class Derived:
    """A computed declaration and its lazily materialized instance."""

    __slots__ = ("fn", "instance")

    def __init__(self, fn) -> None:
        self.fn = fn
        self.instance = None

    def materialize(self, node):
        if self.instance is None:
            self.instance = node._ctx.computed(self.fn, node)
            logger.debug("materialized computed %s", getattr(self.fn, "__name__", self.fn))
        return self.instance

    def __repr__(self) -> str:
        return f"Derived({getattr(self.fn, '__name__', self.fn)})"


def unwrap(content, node):
    """Normal read access: the current value of a slot."""
    if isinstance(content, Raw):
        return content.ref
    if isinstance(content, Derived):
        return content.materialize(node).get()
    if is_reactive(content):
        return content.get()
    return content


def release(content):
    """What a slot gives back when it is removed from a list."""
    if isinstance(content, Raw):
        return content.ref
    if isinstance(content, Derived):
        return content.fn
    return content


def to_plain(content):
    """Serializable value of a non-computed slot. Never tracks."""
    if isinstance(content, TreeNode):
        return content.to_json()
    if isinstance(content, Raw):
        return content.ref
    if isinstance(content, Signal):
        return content.peek()
    return content


def snapshot(content):
    """Plain input that rebuilds an equivalent slot in a fresh tree."""
    if isinstance(content, TreeNode):
        return content._snapshot()
    if isinstance(content, Raw):
        return shallow(content.ref)
    if isinstance(content, Derived):
        return content.fn
    return content
