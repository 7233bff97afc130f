"""Module lookup failures.

Every failure a caller sees is a ``ModuleLoadError`` naming the module.
Declining a name (path filter rejected it) is not an error: finders return
``None`` for that case.
"""

from pathlib import Path


class ModuleLoadError(Exception):
    """Base class for failures while locating or loading a module."""

    def __init__(self, message: str, module_name: str | None = None):
        self.module_name = module_name
        super().__init__(message)


class ModuleNotFoundError(ModuleLoadError):
    """No repository root supplied a usable descriptor for the module."""

    def __init__(self, module_name: str, descriptor_name: str):
        self.descriptor_name = descriptor_name
        super().__init__(f'{module_name}: File "{descriptor_name}" does not exist in any roots', module_name)


class ModuleAccessDeniedError(ModuleLoadError):
    """A descriptor exists but the current process may not read it."""

    def __init__(self, module_name: str, path: Path):
        self.path = path
        super().__init__(f"{module_name}: Permission denied reading {path}", module_name)


class NameFormatError(ModuleLoadError):
    """A module name could not be parsed."""

    def __init__(self, text: str, reason: str):
        self.text = text
        super().__init__(f"Invalid module name '{text}': {reason}", text)


class LayerConfigError(Exception):
    """A ``layers.conf`` file is unreadable or names a layer that does not exist."""

    def __init__(self, message: str, root: Path):
        self.root = root
        super().__init__(message)
