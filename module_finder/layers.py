"""Layered module path expansion.

A repository root may hold a layered structure beneath it::

    <root>/
        layers.conf              # layers=product,extras  (highest first)
        system/layers/product/
        system/layers/extras/
        system/layers/base/      # implicit, lowest layer
        system/add-ons/<name>/   # below every layer, no defined order

Each root expands to itself, then its layers in ``layers.conf`` order, then
``base``, then its add-ons.
"""

import logging
from pathlib import Path

from .errors import LayerConfigError

logger = logging.getLogger(__name__)

LAYERS_CONF = "layers.conf"
BASE_LAYER = "base"


class LayersConfig:
    """Parsed ``layers.conf``."""

    def __init__(self, layers: list[str] | None = None, exclude_base: bool = False, configured: bool = False):
        self.layers = layers or []
        self.exclude_base = exclude_base
        self.configured = configured

    @classmethod
    def load(cls, root: Path) -> "LayersConfig":
        """Read ``<root>/layers.conf``; a missing file means no extra layers."""
        conf = root / LAYERS_CONF
        if not conf.is_file():
            return cls()

        try:
            text = conf.read_text(encoding="utf-8")
        except OSError as e:
            raise LayerConfigError(f"Cannot read {conf}: {e}", root) from e

        values: dict[str, str] = {}
        for raw in text.splitlines():
            line = raw.strip()
            if not line or line.startswith(("#", "!")):
                continue
            key, sep, value = line.partition("=")
            if not sep:
                key, sep, value = line.partition(":")
            values[key.strip()] = value.strip()

        layers = [name.strip() for name in values.get("layers", "").split(",") if name.strip()]
        if BASE_LAYER in layers:
            raise LayerConfigError(f"{conf}: '{BASE_LAYER}' is implicit and may not be listed in layers", root)
        exclude_base = values.get("exclude.base.layer", "false").lower() == "true"
        return cls(layers, exclude_base, configured=True)

    def __repr__(self) -> str:
        return f"LayersConfig(layers={self.layers}, exclude_base={self.exclude_base})"


def _expand_root(root: Path) -> list[Path]:
    expanded = [root]
    config = LayersConfig.load(root)
    layers_dir = root / "system" / "layers"

    for name in config.layers:
        layer = layers_dir / name
        if not layer.is_dir():
            raise LayerConfigError(f"Cannot find layer '{name}' under directory {layers_dir}", root)
        expanded.append(layer)

    if not config.exclude_base:
        base = layers_dir / BASE_LAYER
        if base.is_dir():
            expanded.append(base)

    add_ons_dir = root / "system" / "add-ons"
    if add_ons_dir.is_dir():
        expanded.extend(sorted((d for d in add_ons_dir.iterdir() if d.is_dir()), key=lambda p: p.name))

    if len(expanded) > 1:
        logger.debug(f"Expanded {root} with {config!r} into {len(expanded)} roots")
    return expanded


def resolve_layered_module_path(base_roots: list[Path]) -> list[Path]:
    """Interleave each base root with its layer and add-on directories.

    Args:
        base_roots: Module path roots, highest precedence first

    Returns:
        Expanded roots in search order; a directory reachable twice keeps its
        first position.

    Raises:
        LayerConfigError: Unreadable ``layers.conf`` or a configured layer
            missing on disk
    """
    result: list[Path] = []
    seen: set[Path] = set()
    for root in base_roots:
        for candidate in _expand_root(Path(root)):
            key = candidate.resolve()
            if key in seen:
                continue
            seen.add(key)
            result.append(candidate)
    return result
