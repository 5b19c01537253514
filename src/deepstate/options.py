"""Per-tree configuration, fixed when the tree is built."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Mode(str, Enum):
    """How computed values behave.

    SPA keeps a subscriber graph and caches computeds until a dependency
    changes. SSR recomputes on every read and builds no graph, which suits
    a single render pass on the server.
    """

    SPA = "spa"
    SSR = "ssr"


@dataclass(frozen=True)
class ReifyOptions:
    permissive: bool = False
    mode: Mode = Mode.SPA
    escape_hatch: str | None = "$"

    def __post_init__(self) -> None:
        if not isinstance(self.mode, Mode):
            try:
                mode = Mode(str(self.mode).lower())
            except ValueError:
                raise ValueError(
                    f"mode must be one of {[m.value for m in Mode]}, got {self.mode!r}"
                ) from None
            object.__setattr__(self, "mode", mode)
        if self.escape_hatch is not None and not isinstance(self.escape_hatch, str):
            raise TypeError(f"escape_hatch must be a string or None, got {self.escape_hatch!r}")
        object.__setattr__(self, "permissive", bool(self.permissive))

    @property
    def ssr(self) -> bool:
        return self.mode is Mode.SSR
