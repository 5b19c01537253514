"""Escape hatch: prefixed keys that expose the reactive artifact itself.

With the default prefix, `node["$count"]` returns the Signal behind
`node.count` instead of its current value, which keeps reactivity after
the value leaves the tree:

    count = store.state["$count"]
    count.value += 1  # same as store.state.count += 1

Computed slots give their Computed instance; nested nodes and shallow
references come back as-is, since normal access does not unwrap them
either. Unknown keys give None. Escape keys are read-only and are never
members of a node.
"""

from __future__ import annotations

from deepstate._slots import Derived, Raw, TreeNode, is_reactive
from deepstate.errors import EscapeHatchAssignmentError


def split(key, prefix: str | None) -> str | None:
    """The underlying key if key carries the escape prefix, else None."""
    if prefix and isinstance(key, str) and key.startswith(prefix):
        return key[len(prefix):]
    return None


def resolve(cell, node):
    """The artifact behind a slot, one level less unwrapped than a normal read."""
    if cell is None:
        return None
    content = cell.peek()
    if isinstance(content, Raw):
        return content.ref
    if isinstance(content, Derived):
        return content.materialize(node)
    if isinstance(content, TreeNode) or is_reactive(content):
        return content
    return cell


def reject_write(key: str) -> None:
    raise EscapeHatchAssignmentError(key)
