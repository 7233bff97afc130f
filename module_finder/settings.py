"""Settings for the module-finder CLI.

Merged lowest to highest precedence:
- Built-in defaults
- User settings (~/.module-finder/settings.yaml)
- Project settings (.module-finder/settings.yaml)
- Environment (MODULE_PATH, MODULE_FINDER_LOG_LEVEL, MODULE_FINDER_LOG_PATH)

Command-line options override all of these.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

from .roots import MODULE_PATH_ENV

logger = logging.getLogger(__name__)

SETTINGS_DIR = ".module-finder"
SETTINGS_FILE = "settings.yaml"
LOG_LEVEL_ENV = "MODULE_FINDER_LOG_LEVEL"
LOG_PATH_ENV = "MODULE_FINDER_LOG_PATH"


class FinderSettings(BaseModel):
    """Effective finder settings."""

    module_path: list[str] = Field(default_factory=list, description="Repository roots, highest precedence first")
    layers: bool = Field(default=True, description="Expand roots with system/layers and system/add-ons")
    includes: list[str] = Field(default_factory=list, description="Module path globs to handle (empty = all)")
    excludes: list[str] = Field(default_factory=list, description="Module path globs never to handle")
    log_level: str = Field(default="WARNING", description="Log level for the JSONL log")
    log_path: str | None = Field(None, description="JSONL log file (None = no file log)")

    def module_path_string(self) -> str | None:
        return os.pathsep.join(self.module_path) if self.module_path else None


def _read_settings(path: Path) -> dict[str, Any]:
    """Read one settings file; unreadable or malformed files count as empty."""
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to read {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring {path}: expected a mapping")
        return {}
    return data


def _environment_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if module_path := environ.get(MODULE_PATH_ENV):
        overrides["module_path"] = [p for p in module_path.split(os.pathsep) if p]
    if log_level := environ.get(LOG_LEVEL_ENV):
        overrides["log_level"] = log_level
    if log_path := environ.get(LOG_PATH_ENV):
        overrides["log_path"] = log_path
    return overrides


def load_settings(
    project_dir: Path | None = None,
    user_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> FinderSettings:
    """Load merged settings.

    Args:
        project_dir: Project settings directory (default: ./.module-finder)
        user_dir: User settings directory (default: ~/.module-finder)
        environ: Environment mapping (default: os.environ)

    Returns:
        Effective settings
    """
    project_dir = project_dir if project_dir is not None else Path(SETTINGS_DIR)
    user_dir = user_dir if user_dir is not None else Path.home() / SETTINGS_DIR
    environ = os.environ if environ is None else environ

    merged: dict[str, Any] = {}
    for layer in (
        _read_settings(user_dir / SETTINGS_FILE),
        _read_settings(project_dir / SETTINGS_FILE),
        _environment_overrides(environ),
    ):
        merged.update(layer)

    try:
        return FinderSettings.model_validate(merged)
    except ValidationError as e:
        logger.warning(f"Invalid settings, using defaults: {e}")
        return FinderSettings()
