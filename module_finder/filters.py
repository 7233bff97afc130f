"""Path filters deciding which module paths a finder may resolve.

A filter is any callable taking a ``/``-separated relative path and returning
``True`` to accept it. Finders hand filters directory prefixes, so the paths
they test always end with ``/`` (e.g. ``org/example/core/main/``).

Example:
    only_org = any_of(match("org/**"), is_child_of("com/example"))
    finder = LocalModuleFinder(roots, only_org)
"""

from __future__ import annotations

import logging
from fnmatch import fnmatchcase
from typing import Protocol

logger = logging.getLogger(__name__)


class PathFilter(Protocol):
    def __call__(self, path: str) -> bool: ...


class _Constant:
    def __init__(self, value: bool):
        self.value = value

    def __call__(self, path: str) -> bool:
        return self.value

    def __repr__(self) -> str:
        return "accept_all()" if self.value else "reject_all()"


_ACCEPT_ALL = _Constant(True)
_REJECT_ALL = _Constant(False)


def accept_all() -> PathFilter:
    return _ACCEPT_ALL


def reject_all() -> PathFilter:
    return _REJECT_ALL


class GlobFilter:
    """Match paths against a glob pattern.

    ``*`` and ``?`` follow :func:`fnmatch.fnmatchcase` (so ``*`` also crosses
    ``/``). A pattern ending in ``/`` or ``/**`` matches the named directory and
    everything beneath it.
    """

    def __init__(self, pattern: str):
        self.pattern = pattern.replace("\\", "/")
        self._prefix: str | None = None
        if self.pattern.endswith("/**"):
            self._prefix = self.pattern[:-2]
        elif self.pattern.endswith("/"):
            self._prefix = self.pattern

    def __call__(self, path: str) -> bool:
        path = path.replace("\\", "/")
        if self._prefix is not None:
            if fnmatchcase(path, self._prefix) or fnmatchcase(path, self._prefix + "*"):
                return True
        return fnmatchcase(path, self.pattern)

    def __repr__(self) -> str:
        return f"match({self.pattern!r})"


class ChildFilter:
    """Accept paths strictly below a directory prefix."""

    def __init__(self, prefix: str):
        prefix = prefix.replace("\\", "/")
        self.prefix = prefix if prefix.endswith("/") else prefix + "/"

    def __call__(self, path: str) -> bool:
        return path.startswith(self.prefix) and len(path) > len(self.prefix)

    def __repr__(self) -> str:
        return f"is_child_of({self.prefix!r})"


class AnyOf:
    def __init__(self, filters: tuple[PathFilter, ...]):
        self.filters = filters

    def __call__(self, path: str) -> bool:
        return any(f(path) for f in self.filters)

    def __repr__(self) -> str:
        return f"any_of({', '.join(repr(f) for f in self.filters)})"


class AllOf:
    def __init__(self, filters: tuple[PathFilter, ...]):
        self.filters = filters

    def __call__(self, path: str) -> bool:
        return all(f(path) for f in self.filters)

    def __repr__(self) -> str:
        return f"all_of({', '.join(repr(f) for f in self.filters)})"


class Negate:
    def __init__(self, inner: PathFilter):
        self.inner = inner

    def __call__(self, path: str) -> bool:
        return not self.inner(path)

    def __repr__(self) -> str:
        return f"negate({self.inner!r})"


def match(pattern: str) -> PathFilter:
    return GlobFilter(pattern)


def is_child_of(prefix: str) -> PathFilter:
    return ChildFilter(prefix)


def any_of(*filters: PathFilter) -> PathFilter:
    """Accept when at least one filter accepts. No filters rejects everything."""
    return AnyOf(filters) if filters else reject_all()


def all_of(*filters: PathFilter) -> PathFilter:
    """Accept when every filter accepts. No filters accepts everything."""
    return AllOf(filters) if filters else accept_all()


def negate(inner: PathFilter) -> PathFilter:
    return Negate(inner)


def filter_from_patterns(includes: list[str] | None = None, excludes: list[str] | None = None) -> PathFilter:
    """Build a filter from include and exclude glob lists.

    Args:
        includes: Globs a path must match (any of). Empty means accept all.
        excludes: Globs that reject a path even when included.

    Returns:
        Combined filter
    """
    include = any_of(*(match(p) for p in includes)) if includes else accept_all()
    if not excludes:
        return include
    combined = all_of(include, negate(any_of(*(match(p) for p in excludes))))
    logger.debug(f"Path filter from patterns: {combined!r}")
    return combined
