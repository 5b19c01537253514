"""Errors raised by reified trees.

Each error also derives from the built-in exception a Python caller would
expect for the same mistake, so `except TypeError` and friends keep working.
"""

from __future__ import annotations


class DeepStateError(Exception):
    """Base class for all deepstate errors."""


class InvalidRootShape(DeepStateError, TypeError):
    """The value handed to reify() is not a plain dict."""


class UnknownPropertyError(DeepStateError, AttributeError):
    """Write or delete of a key the tree does not declare."""

    def __init__(self, key, *, permissive: bool = False, action: str = "add new") -> None:
        mode = "permissive" if permissive else "strict"
        super().__init__(f"Cannot {action} property '{key}' in {mode} mode.")
        self.key = key
        self.mode = mode


class ReplacementDisallowedError(DeepStateError, TypeError):
    """Wholesale replacement of a deep node or of a signal cell."""


class RootUnavailable(DeepStateError, RuntimeError):
    """A computed asked for the root while the tree was still being built."""


class UnknownActionError(DeepStateError, AttributeError):
    """Dispatch to an action name that was never attached."""

    def __init__(self, name: str) -> None:
        super().__init__(f"actions.{name} is not a function")
        self.action = name


class EscapeHatchAssignmentError(DeepStateError, TypeError):
    """Write or delete through an escape-hatch key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Cannot directly set '{key}'. Use the signal's 'value' property.")
        self.key = key


class ComputedAssignmentError(DeepStateError, TypeError):
    """A callable written as state, or a write to a computed key."""
