"""Local module finder - locate module descriptors under repository roots.

Resolution order (first match wins):
1. Path filter gate - a name whose current and legacy paths are both
   rejected is declined (``None``) without touching the filesystem
2. Each repository root in order - ``<root>/<legacy path>/module.yaml``
3. Nothing usable found - ``ModuleNotFoundError``

Per-root outcomes:
- descriptor missing: next root
- descriptor unreadable (permission denied): fail
- other I/O error probing it: log, next root
- parser returns a spec: done
- parser returns nothing: stop searching, fail as not found
- parser raises: fail
"""

import logging
import os
from collections.abc import Callable
from collections.abc import Iterable
from pathlib import Path
from typing import Any
from typing import Protocol

from .context import ContextToken
from .descriptor import MODULE_FILE
from .descriptor import ModuleSpec
from .descriptor import parse_module_descriptor
from .errors import ModuleAccessDeniedError
from .errors import ModuleLoadError
from .errors import ModuleNotFoundError
from .filters import PathFilter
from .filters import accept_all
from .names import candidates
from .names import to_legacy_path_string
from .roots import RootSet
from .roots import get_repo_roots

logger = logging.getLogger(__name__)

DescriptorParser = Callable[[Any, str, Path, Path], ModuleSpec | None]


class ModuleFinder(Protocol):
    """Anything that can locate a module spec by name.

    ``find_module`` returns None when the finder does not handle the name, so
    a higher-level loader can try the next finder.
    """

    def find_module(self, name: str, delegate_loader: Any = None) -> ModuleSpec | None: ...


def _filter_key(relative: str) -> str:
    return relative.replace(os.sep, "/") + "/"


class LocalModuleFinder:
    """Finds modules stored in local repositories using ``module.yaml`` descriptors.

    Roots, filter and captured execution context are fixed at construction,
    so one instance may serve lookups from many threads at once.

    Example:
        finder = LocalModuleFinder([Path("/opt/app/modules")])
        spec = finder.find_module("org.example.core")
    """

    def __init__(
        self,
        roots: Iterable[Path | str],
        path_filter: PathFilter | None = None,
        *,
        parser: DescriptorParser = parse_module_descriptor,
        diagnostics: logging.Logger | None = None,
        _copy_roots: bool = True,
    ):
        """Initialize finder.

        Args:
            roots: Repository roots, highest precedence first. Copied, so
                later changes to the caller's sequence have no effect.
            path_filter: Decides which module paths this finder handles
                (default: all)
            parser: Turns a located descriptor into a ModuleSpec
            diagnostics: Sink for probe diagnostics (default: this module's logger)
        """
        self._roots = roots if isinstance(roots, RootSet) else RootSet(roots, copy=_copy_roots)
        self._path_filter = path_filter or accept_all()
        self._parser = parser
        self._diagnostics = diagnostics or logger
        self._context = ContextToken.capture()

    @classmethod
    def from_module_path(
        cls,
        supports_layers_and_add_ons: bool = True,
        module_path: str | None = None,
        path_filter: PathFilter | None = None,
        **kwargs,
    ) -> "LocalModuleFinder":
        """Build a finder from ``module_path`` or the ``MODULE_PATH`` variable.

        Args:
            supports_layers_and_add_ons: Expand each root with its
                ``system/layers`` and ``system/add-ons`` directories
            module_path: ``os.pathsep``-separated roots (default: environment)
            path_filter: Path filter (default: all)

        Raises:
            LayerConfigError: Invalid layered structure under a root
        """
        roots = get_repo_roots(supports_layers_and_add_ons, module_path)
        return cls(roots, path_filter, _copy_roots=False, **kwargs)

    @property
    def roots(self) -> RootSet:
        return self._roots

    @property
    def context(self) -> ContextToken:
        return self._context

    def find_module(self, name: str, delegate_loader: Any = None) -> ModuleSpec | None:
        """Find the spec for a module.

        Args:
            name: Module name (``dotted.name`` or ``dotted.name:slot``)
            delegate_loader: Passed through to the descriptor parser

        Returns:
            Module spec, or None when the path filter rejects the name

        Raises:
            NameFormatError: Malformed module name
            ModuleNotFoundError: No root supplied a usable descriptor
            ModuleAccessDeniedError: A descriptor exists but cannot be read
            ModuleLoadError: The descriptor could not be parsed
        """
        current, legacy = candidates(name)
        if not (self._path_filter(_filter_key(current)) or self._path_filter(_filter_key(legacy))):
            self._diagnostics.debug(
                f"[module:find] {name} rejected by path filter", extra={"event": "module:filter_rejected"}
            )
            return None

        return self._context.run(
            self.parse_module_file,
            name,
            delegate_loader,
            *self._roots,
            parser=self._parser,
            diagnostics=self._diagnostics,
        )

    @staticmethod
    def parse_module_file(
        name: str,
        delegate_loader: Any,
        *roots: Path,
        parser: DescriptorParser = parse_module_descriptor,
        diagnostics: logging.Logger = logger,
    ) -> ModuleSpec:
        """Search ``roots`` in order for the module's descriptor and parse it.

        Args:
            name: Module name
            delegate_loader: Passed through to ``parser``
            roots: Repository roots to search, highest precedence first
            parser: Descriptor parser
            diagnostics: Diagnostic sink

        Returns:
            Spec parsed from the first root holding a descriptor

        Raises:
            ModuleNotFoundError: No descriptor found, or the first one found
                parsed to nothing
            ModuleAccessDeniedError: Permission denied reading a descriptor
            ModuleLoadError: Parser failure
        """
        legacy = to_legacy_path_string(name)
        for root in roots:
            module_root = Path(root) / legacy
            descriptor = module_root / MODULE_FILE
            diagnostics.debug(f"[module:find] checking {descriptor}", extra={"event": "module:probe"})

            try:
                with open(descriptor, "rb"):
                    pass
            except (FileNotFoundError, NotADirectoryError):
                continue
            except PermissionError as e:
                raise ModuleAccessDeniedError(name, descriptor) from e
            except OSError as e:
                diagnostics.warning(
                    f"[module:find] cannot probe {descriptor}: {e}",
                    extra={"event": "module:probe_failed", "path": str(descriptor), "error": str(e)},
                )
                continue

            try:
                spec = parser(delegate_loader, name, module_root, descriptor)
            except ModuleLoadError:
                raise
            except OSError as e:
                raise ModuleLoadError(f"{name}: Failed reading {descriptor}: {e}", name) from e

            if spec is None:
                # An existing but empty descriptor is authoritative; lower roots are not consulted.
                diagnostics.debug(
                    f"[module:find] {descriptor} declares no module, stopping search",
                    extra={"event": "module:parse_empty"},
                )
                break

            diagnostics.debug(f"[module:find] {name} -> {module_root}", extra={"event": "module:found"})
            return spec

        raise ModuleNotFoundError(name, MODULE_FILE)

    def __str__(self) -> str:
        return f"local module finder @{id(self):x} (roots: {','.join(str(r) for r in self._roots)})"

    def __repr__(self) -> str:
        return str(self)
