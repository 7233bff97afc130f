"""Repository roots: the ordered directories a finder searches.

Order is precedence; the first root holding a module wins. A ``RootSet`` is
fixed at construction and never changes afterwards.
"""

import logging
import os
from collections.abc import Iterable
from collections.abc import Iterator
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

MODULE_PATH_ENV = "MODULE_PATH"


class RootSet:
    """Immutable, ordered snapshot of repository roots.

    Args:
        roots: Root directories, highest precedence first.
        copy: Copy ``roots`` so later changes to the caller's list are not
            observed. Only trusted internal callers that own a private list
            pass ``False``.
    """

    __slots__ = ("_roots",)

    def __init__(self, roots: Iterable[Path | str] = (), copy: bool = True):
        if isinstance(roots, (str, bytes, os.PathLike)):
            raise TypeError(f"roots must be a sequence of paths, not a single path: {roots!r}")
        if copy or not isinstance(roots, tuple):
            roots = tuple(Path(r) for r in roots)
        object.__setattr__(self, "_roots", roots)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __iter__(self) -> Iterator[Path]:
        return iter(self._roots)

    def __len__(self) -> int:
        return len(self._roots)

    def __getitem__(self, index):
        return self._roots[index]

    def __bool__(self) -> bool:
        return bool(self._roots)

    def __eq__(self, other) -> bool:
        if isinstance(other, RootSet):
            return self._roots == other._roots
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._roots)

    def __repr__(self) -> str:
        return f"RootSet({', '.join(str(r) for r in self._roots)})"


def split_module_path(module_path: str | None) -> list[Path]:
    """Split an ``os.pathsep``-separated module path into absolute directories.

    Empty segments are skipped; ``None`` or ``""`` gives an empty list.
    """
    if not module_path:
        return []
    return [Path(segment).absolute() for segment in module_path.split(os.pathsep) if segment]


def get_module_path(module_path: str | None = None, environ: Mapping[str, str] | None = None) -> list[Path]:
    """Module path roots from an explicit value, else the ``MODULE_PATH`` variable."""
    if module_path is None:
        environ = os.environ if environ is None else environ
        module_path = environ.get(MODULE_PATH_ENV)
    roots = split_module_path(module_path)
    logger.debug(f"Module path roots: {[str(r) for r in roots]}")
    return roots


def get_repo_roots(
    supports_layers_and_add_ons: bool,
    module_path: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[Path, ...]:
    """Repository roots for the module path, optionally expanded with layers and add-ons."""
    roots = get_module_path(module_path, environ)
    if supports_layers_and_add_ons:
        from .layers import resolve_layered_module_path

        roots = resolve_layered_module_path(roots)
    return tuple(roots)
