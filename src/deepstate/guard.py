"""Mutation guard: which writes and deletes a tree accepts.

Strict trees keep the shape they were built with; permissive trees accept
new keys at any depth. In both, a deep node can never be replaced
wholesale, only mutated, so the cells inside it keep their identity.
Shallow slots are the escape valve and may be reassigned freely.

Every check raises; none of them silently ignores a write.
"""

from __future__ import annotations

from deepstate._slots import (
    TreeNode,
    is_computed,
    is_computed_prop,
    is_declaration,
    is_reactive,
)
from deepstate.errors import (
    ComputedAssignmentError,
    ReplacementDisallowedError,
    UnknownPropertyError,
)
from deepstate.options import ReifyOptions


def check_value(key, value) -> None:
    """Values that may never be written as state."""
    if is_declaration(value) and not is_computed_prop(value):
        raise ComputedAssignmentError(
            f"Functions are not allowed as state values (key '{key}'). "
            "Mark computed values with computed_prop()."
        )


def check_add(key, options: ReifyOptions) -> None:
    if not options.permissive:
        raise UnknownPropertyError(key)


def check_write(key, current, value) -> None:
    """Writing value over a slot that currently holds current."""
    if is_computed(current):
        raise ComputedAssignmentError(f"'{key}' is a computed value and cannot be assigned.")
    if is_computed_prop(value):
        raise ComputedAssignmentError(
            f"Cannot turn existing '{key}' into a computed; computed_prop() values go to new keys."
        )
    check_value(key, value)
    if isinstance(current, TreeNode):
        raise ReplacementDisallowedError(
            f"Whole array/object replacement is disallowed for deep '{key}'. "
            "Mutate its items instead, or mark it shallow() to allow replacement."
        )
    if is_reactive(current) and is_reactive(value):
        raise ReplacementDisallowedError(f"'{key}' already holds a signal; write its value instead.")


def check_remove(key, cell, options: ReifyOptions) -> None:
    if cell is None:
        raise UnknownPropertyError(key, permissive=options.permissive, action="delete")
    if not options.permissive and is_computed(cell.peek()):
        raise ComputedAssignmentError(f"Cannot delete computed '{key}' in strict mode.")
