"""Module lookup command."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.panel import Panel
from rich.table import Table

from ..console import console
from ..console import error_console
from ..errors import LayerConfigError
from ..errors import ModuleLoadError
from ..filters import filter_from_patterns
from ..finder import LocalModuleFinder
from ..roots import get_repo_roots
from ..settings import FinderSettings
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message


def resolve_roots(settings: FinderSettings, module_path: str | None, layers: bool | None) -> tuple[Path, ...]:
    """Roots from the command line, falling back to settings."""
    if module_path is None:
        module_path = settings.module_path_string()
    if layers is None:
        layers = settings.layers
    # Settings already carry MODULE_PATH; "" stops get_repo_roots reading it again
    return get_repo_roots(layers, module_path or "")


def create_finder(
    settings: FinderSettings,
    module_path: str | None = None,
    layers: bool | None = None,
    includes: tuple[str, ...] = (),
    excludes: tuple[str, ...] = (),
) -> LocalModuleFinder:
    path_filter = filter_from_patterns(
        list(includes) or settings.includes,
        list(excludes) or settings.excludes,
    )
    return LocalModuleFinder(resolve_roots(settings, module_path, layers), path_filter)


def _render_spec(spec) -> None:
    lines = [
        f"[bold]Module:[/bold] {escape_markup(spec.name)}",
        f"[bold]Slot:[/bold] {escape_markup(spec.slot)}",
        f"[bold]Root:[/bold] {escape_markup(spec.module_root)}",
        f"[bold]Descriptor:[/bold] {escape_markup(spec.descriptor)}",
    ]
    if spec.main:
        lines.append(f"[bold]Main:[/bold] {escape_markup(spec.main)}")
    console.print(Panel("\n".join(lines), title="Module Found", border_style="green"))

    if spec.dependencies:
        table = Table(title="Dependencies", show_header=True, header_style="bold cyan")
        table.add_column("Name", style="green")
        table.add_column("Optional")
        table.add_column("Export")
        for dep in spec.dependencies:
            table.add_row(dep.name, "yes" if dep.optional else "", "yes" if dep.export else "")
        console.print(table)

    if spec.resources:
        console.print("[bold]Resources:[/bold]")
        for resource in spec.resources:
            console.print(f"  {escape_markup(resource)}")


@click.command("find")
@click.argument("module_name")
@click.option("--module-path", "-p", default=None, help="Repository roots, separated by the OS path separator")
@click.option("--layers/--no-layers", default=None, help="Expand roots with layers and add-ons")
@click.option("--include", "includes", multiple=True, help="Only handle module paths matching this glob")
@click.option("--exclude", "excludes", multiple=True, help="Never handle module paths matching this glob")
@click.option("--json", "as_json", is_flag=True, help="Print the module spec as JSON")
@click.pass_context
def find_cmd(
    ctx: click.Context,
    module_name: str,
    module_path: str | None,
    layers: bool | None,
    includes: tuple[str, ...],
    excludes: tuple[str, ...],
    as_json: bool,
):
    """Find a module and show its specification."""
    settings: FinderSettings = ctx.obj or FinderSettings()

    try:
        finder = create_finder(settings, module_path, layers, includes, excludes)
        spec = finder.find_module(module_name)
    except (ModuleLoadError, LayerConfigError) as e:
        error_console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e, include_type=False))}")
        ctx.exit(1)

    if spec is None:
        error_console.print(f"[yellow]{escape_markup(module_name)} is not handled by the path filter[/yellow]")
        ctx.exit(2)

    if as_json:
        click.echo(json.dumps(spec.to_dict(), indent=2))
        return
    _render_spec(spec)
