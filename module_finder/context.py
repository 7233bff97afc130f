"""Execution context captured when a finder is built.

Lookups always run under the context variables that were in effect when the
finder was constructed, not whatever the calling thread has set since.
"""

import contextvars
from collections.abc import Callable
from typing import Any
from typing import TypeVar

T = TypeVar("T")

# Identity the surrounding runtime acts on behalf of (None = the process itself).
current_principal: contextvars.ContextVar[str | None] = contextvars.ContextVar("current_principal", default=None)


class ContextToken:
    """Read-only snapshot of the ambient ``contextvars`` context."""

    __slots__ = ("_snapshot",)

    def __init__(self, snapshot: contextvars.Context):
        object.__setattr__(self, "_snapshot", snapshot)

    @classmethod
    def capture(cls) -> "ContextToken":
        return cls(contextvars.copy_context())

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def get(self, var: contextvars.ContextVar, default: Any = None) -> Any:
        return self._snapshot.get(var, default)

    def run(self, fn: Callable[..., T], *args, **kwargs) -> T:
        """Call ``fn`` inside a private copy of the snapshot.

        A context can only be entered by one thread at a time, so every call
        gets its own copy; writes made by ``fn`` stay in that copy.
        """
        return self._snapshot.copy().run(fn, *args, **kwargs)

    def __repr__(self) -> str:
        return f"ContextToken(principal={self.get(current_principal)!r})"
