"""Module descriptors (``module.yaml``) and the module specs parsed from them.

Descriptor format::

    name: org.example.core
    slot: main                    # optional, defaults to main
    main: org.example.core:run    # optional entry point
    dependencies:
      - org.example.util
      - name: org.example.api:2
        optional: true
    resources:
      - lib/core
    properties:
      vendor: example

An empty descriptor parses to ``None``: the module directory exists but
declares nothing usable.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator

from .errors import ModuleLoadError
from .errors import NameFormatError
from .names import DEFAULT_SLOT
from .names import ModuleName

MODULE_FILE = "module.yaml"


class DependencySpec(BaseModel):
    """A dependency on another module."""

    name: str = Field(..., description="Module name, optionally with :slot")
    optional: bool = Field(default=False, description="Missing dependency is not an error")
    export: bool = Field(default=False, description="Re-export the dependency to importers")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        try:
            return str(ModuleName.parse(value))
        except NameFormatError as e:
            raise ValueError(str(e)) from e


class ModuleDescriptor(BaseModel):
    """Raw content of a ``module.yaml`` file."""

    # YAML reads `slot: 2` and `version: 1.0` as numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str = Field(..., description="Module name without slot")
    slot: str = Field(default=DEFAULT_SLOT, description="Module slot")
    main: str | None = Field(None, description="Entry point")
    dependencies: list[DependencySpec] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list, description="Resource paths relative to the module root")
    properties: dict[str, str] = Field(default_factory=dict)

    @field_validator("dependencies", mode="before")
    @classmethod
    def expand_short_form(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"name": d} if isinstance(d, str) else d for d in value]
        return value


class ModuleSpec(BaseModel):
    """Specification of a located module, ready for the module runtime."""

    name: str = Field(..., description="Canonical module name")
    slot: str = Field(default=DEFAULT_SLOT)
    module_root: Path = Field(..., description="Directory holding the descriptor")
    descriptor: Path = Field(..., description="Descriptor file the spec was read from")
    main: str | None = None
    dependencies: list[DependencySpec] = Field(default_factory=list)
    resources: list[Path] = Field(default_factory=list)
    properties: dict[str, str] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def parse_module_descriptor(
    delegate_loader: Any, name: str, module_root: Path, descriptor: Path
) -> ModuleSpec | None:
    """Parse a descriptor into a ``ModuleSpec``.

    Args:
        delegate_loader: Loader the runtime will resolve dependencies with
            (unused by this parser)
        name: Requested module name
        module_root: Module directory within its repository root
        descriptor: Path to the ``module.yaml`` file

    Returns:
        The module spec, or None for an empty descriptor

    Raises:
        ModuleLoadError: Unreadable, malformed or mismatched descriptor
    """
    try:
        with open(descriptor, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ModuleLoadError(f"{name}: Malformed descriptor {descriptor}: {e}", name) from e
    except OSError as e:
        raise ModuleLoadError(f"{name}: Cannot read descriptor {descriptor}: {e}", name) from e

    if data is None:
        return None
    if not isinstance(data, dict):
        raise ModuleLoadError(f"{name}: Descriptor {descriptor} must be a mapping, got {type(data).__name__}", name)

    try:
        raw = ModuleDescriptor.model_validate(data)
    except ValidationError as e:
        raise ModuleLoadError(f"{name}: Invalid descriptor {descriptor}: {e}", name) from e

    requested = ModuleName.parse(name)
    if (raw.name, raw.slot) != (requested.name, requested.slot):
        declared = ModuleName(raw.name, raw.slot)
        raise ModuleLoadError(f"{name}: Descriptor {descriptor} declares module '{declared}'", name)

    return ModuleSpec(
        name=str(requested),
        slot=requested.slot,
        module_root=module_root,
        descriptor=descriptor,
        main=raw.main,
        dependencies=raw.dependencies,
        resources=[module_root / r for r in raw.resources],
        properties=raw.properties,
    )
