"""module-finder - locate module descriptors in local repository roots."""

import logging

import click

from .commands.find import find_cmd
from .commands.inspect import paths_cmd
from .commands.inspect import roots_cmd
from .commands.logs import logs_cmd
from .logging_setup import init_json_logging
from .settings import load_settings

logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.version_option(package_name="module-finder")
@click.option("--log-file", default=None, help="Write a JSONL log of lookups to this file")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for the JSONL log",
)
@click.pass_context
def cli(ctx: click.Context, log_file: str | None, log_level: str | None):
    """Locate modules in ordered local repository roots."""
    settings = load_settings()
    if log_file:
        settings.log_path = log_file
    if log_level:
        settings.log_level = log_level.upper()
    ctx.obj = settings

    if settings.log_path:
        init_json_logging(settings.log_path, settings.log_level)
        logger.debug(f"Settings: {settings.model_dump()}")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


cli.add_command(find_cmd)
cli.add_command(roots_cmd)
cli.add_command(paths_cmd)
cli.add_command(logs_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
