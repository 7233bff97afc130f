"""Commands showing how module names map onto the repository."""

from __future__ import annotations

import click
from rich.table import Table

from ..console import console
from ..console import error_console
from ..errors import LayerConfigError
from ..errors import NameFormatError
from ..names import ModuleName
from ..names import candidates
from ..settings import FinderSettings
from ..utils.error_format import escape_markup
from .find import resolve_roots


@click.command("roots")
@click.option("--module-path", "-p", default=None, help="Repository roots, separated by the OS path separator")
@click.option("--layers/--no-layers", default=None, help="Expand roots with layers and add-ons")
@click.pass_context
def roots_cmd(ctx: click.Context, module_path: str | None, layers: bool | None):
    """List repository roots in search order."""
    settings: FinderSettings = ctx.obj or FinderSettings()
    try:
        roots = resolve_roots(settings, module_path, layers)
    except LayerConfigError as e:
        error_console.print(f"[red]Error:[/red] {escape_markup(e)}")
        ctx.exit(1)

    if not roots:
        console.print("[dim]No repository roots configured (set MODULE_PATH or use --module-path)[/dim]")
        return

    table = Table(title="Repository Roots", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Root", style="green")
    table.add_column("Exists")
    for index, root in enumerate(roots, start=1):
        table.add_row(str(index), str(root), "yes" if root.is_dir() else "[red]no[/red]")
    console.print(table)


@click.command("paths")
@click.argument("module_name")
@click.pass_context
def paths_cmd(ctx: click.Context, module_name: str):
    """Show the relative paths derived from a module name."""
    try:
        parsed = ModuleName.parse(module_name)
        current, legacy = candidates(module_name)
    except NameFormatError as e:
        error_console.print(f"[red]Error:[/red] {escape_markup(e)}")
        ctx.exit(1)

    console.print(f"[bold]Name:[/bold] {escape_markup(parsed.name)}")
    console.print(f"[bold]Slot:[/bold] {escape_markup(parsed.slot)}")
    console.print(f"[bold]Current path:[/bold] {escape_markup(current)}")
    console.print(f"[bold]Legacy path:[/bold] {escape_markup(legacy)}")
