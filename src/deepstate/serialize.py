"""JSON output for stores and tree nodes."""

from __future__ import annotations

import json

from deepstate._slots import TreeNode
from deepstate.computed import Computed, StaticComputed
from deepstate.signal import Signal
from deepstate.store import Store


def _default(obj):
    if isinstance(obj, (Store, TreeNode)):
        return obj.to_json()
    if isinstance(obj, Signal):
        # signals placed inside shallow data
        return obj.peek()
    if isinstance(obj, (Computed, StaticComputed)):
        return None
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(obj, **kwargs) -> str:
    """json.dumps that understands stores, nodes and signals.

    Usage:
        dumps(store.state)                # '{"count": 0}'
        dumps({"page": 1, "data": store})  # nested anywhere
    """
    kwargs.setdefault("default", _default)
    return json.dumps(obj, **kwargs)
