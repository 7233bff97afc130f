"""Shared fixtures for module-finder tests."""

from pathlib import Path

import pytest

from module_finder.names import ModuleName


def write_module(root: Path, name: str, content: str | None = None) -> Path:
    """Create ``<root>/<legacy path>/module.yaml`` and return its module directory."""
    parsed = ModuleName.parse(name)
    module_dir = root.joinpath(*parsed.name.split("."), parsed.slot)
    module_dir.mkdir(parents=True, exist_ok=True)
    if content is None:
        content = f"name: {parsed.name}\nslot: {parsed.slot}\n"
    (module_dir / "module.yaml").write_text(content)
    return module_dir


@pytest.fixture
def make_module():
    return write_module


@pytest.fixture
def repo_roots(tmp_path):
    """Three empty repository roots, highest precedence first."""
    roots = [tmp_path / "r1", tmp_path / "r2", tmp_path / "r3"]
    for root in roots:
        root.mkdir()
    return roots
