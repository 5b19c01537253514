"""deepstate: deep reactive state trees for Python."""

from importlib.metadata import version as _version

__version__ = _version("deepstate")

from deepstate._tracking import get_pending_count, untracked
from deepstate.signal import Signal, StaticSignal, set_scheduler
from deepstate.computed import Computed, StaticComputed, computed
from deepstate.reaction import Reaction, autorun, reaction
from deepstate.batch import action, batch, transaction
from deepstate.options import Mode, ReifyOptions
from deepstate.errors import (
    ComputedAssignmentError,
    DeepStateError,
    EscapeHatchAssignmentError,
    InvalidRootShape,
    ReplacementDisallowedError,
    RootUnavailable,
    UnknownActionError,
    UnknownPropertyError,
)
from deepstate.builder import build, computed_prop, is_shallow, shallow, unshallow
from deepstate.node import ArrayNode, ObjectNode
from deepstate.store import Actions, Store, reify
from deepstate.serialize import dumps
# textual NOT auto-imported: opt-in only

__all__ = [
    "reify",
    "shallow",
    "unshallow",
    "is_shallow",
    "computed_prop",
    "build",
    "Store",
    "Actions",
    "ObjectNode",
    "ArrayNode",
    "Mode",
    "ReifyOptions",
    "Signal",
    "StaticSignal",
    "Computed",
    "StaticComputed",
    "computed",
    "Reaction",
    "autorun",
    "reaction",
    "batch",
    "action",
    "transaction",
    "untracked",
    "get_pending_count",
    "set_scheduler",
    "dumps",
    "DeepStateError",
    "InvalidRootShape",
    "UnknownPropertyError",
    "ReplacementDisallowedError",
    "RootUnavailable",
    "UnknownActionError",
    "EscapeHatchAssignmentError",
    "ComputedAssignmentError",
]
