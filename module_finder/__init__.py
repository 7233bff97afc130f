"""Locate module descriptors in ordered local repository roots.

A ``LocalModuleFinder`` searches its repository roots in order for
``<root>/<name as path>/<slot>/module.yaml`` and returns the ``ModuleSpec``
parsed from the first one found.
"""

from .context import ContextToken
from .context import current_principal
from .descriptor import MODULE_FILE
from .descriptor import ModuleSpec
from .descriptor import parse_module_descriptor
from .errors import LayerConfigError
from .errors import ModuleAccessDeniedError
from .errors import ModuleLoadError
from .errors import ModuleNotFoundError
from .errors import NameFormatError
from .filters import accept_all
from .filters import reject_all
from .finder import LocalModuleFinder
from .finder import ModuleFinder
from .layers import resolve_layered_module_path
from .names import ModuleName
from .names import candidates
from .roots import RootSet

__all__ = [
    "ContextToken",
    "current_principal",
    "MODULE_FILE",
    "ModuleSpec",
    "parse_module_descriptor",
    "LayerConfigError",
    "ModuleAccessDeniedError",
    "ModuleLoadError",
    "ModuleNotFoundError",
    "NameFormatError",
    "accept_all",
    "reject_all",
    "LocalModuleFinder",
    "ModuleFinder",
    "resolve_layered_module_path",
    "ModuleName",
    "candidates",
    "RootSet",
]
