"""Proxy tree builder: turns a plain data tree into a reactive one.

For every key of a dict (or index of a list) the builder picks one slot
kind:

1. a function becomes a computed declaration, materialized on first read;
2. a Signal or Computed built by the caller is stored as-is;
3. a value marked with shallow() is stored as a raw reference;
4. a plain dict or list becomes a nested node, built recursively;
5. anything else is a primitive leaf in its own signal cell.

All nodes of one tree share a TreeContext: the options fixed at build
time and the root, handed to computeds that ask for it. The root and its
nodes reference each other; the cycle collector reclaims them together.
"""

from __future__ import annotations

import logging

from deepstate._slots import (
    Derived,
    Raw,
    TreeNode,
    computed_prop,
    is_declaration,
    is_reactive,
    is_shallow,
    shallow,
    unshallow,
)
from deepstate.computed import Computed, StaticComputed, derived_by
from deepstate.errors import InvalidRootShape
from deepstate.node import ArrayNode, ObjectNode
from deepstate.options import ReifyOptions
from deepstate.signal import Signal, StaticSignal

__all__ = ["TreeContext", "build", "shallow", "unshallow", "is_shallow", "computed_prop"]

logger = logging.getLogger("deepstate.builder")


class TreeContext:
    """Options and root shared by every node of one tree."""

    __slots__ = ("options", "_root")

    def __init__(self, options: ReifyOptions) -> None:
        self.options = options
        self._root = None

    @property
    def root(self) -> ObjectNode | None:
        """The root node, or None while the tree is still being built."""
        return self._root

    def adopt_root(self, node: ObjectNode) -> None:
        self._root = node

    def cell(self, content) -> Signal:
        return StaticSignal(content) if self.options.ssr else Signal(content)

    def computed(self, fn, node):
        evaluate = derived_by(fn, node, lambda: self.root)
        if self.options.ssr:
            return StaticComputed(evaluate, declared=fn)
        return Computed(evaluate, declared=fn)

    def wrap(self, value, *, raw: bool = False):
        """Slot content for value."""
        if isinstance(value, TreeNode):
            # a node is never shared between two parents
            value = value._snapshot()
        if raw:
            return Raw(value)
        if is_reactive(value):
            return value
        if is_declaration(value):
            return Derived(value)
        if is_shallow(value):
            return Raw(value)
        if isinstance(value, dict):
            return ObjectNode(self, value)
        if isinstance(value, list):
            return ArrayNode(self, value)
        return value


def build(value, options: ReifyOptions | None = None) -> ObjectNode:
    """Build the reactive tree for value, whose top level must be a plain dict."""
    if isinstance(value, TreeNode):
        value = value._snapshot()
    if not isinstance(value, dict) or is_shallow(value):
        raise InvalidRootShape(
            f"Top-level state must be a plain dict, got {type(value).__name__}. "
            "Use Signal(...) for single values."
        )
    ctx = TreeContext(options if options is not None else ReifyOptions())
    root = ObjectNode(ctx, value)
    ctx.adopt_root(root)
    logger.debug(
        "built %s tree with %d top-level keys (permissive=%s)",
        ctx.options.mode.value,
        len(value),
        ctx.options.permissive,
    )
    return root
