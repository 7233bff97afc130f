import json
import time
from pathlib import Path

import click

from ..settings import FinderSettings


@click.command("logs")
@click.option("--path", default=None, help="Path to JSONL log file (default: configured log path)")
@click.option("--follow/--no-follow", default=False, help="Tail the log")
@click.option("--event", "event_name", default=None, help="Only show records for this event (e.g. module:probe_failed)")
@click.pass_context
def logs_cmd(ctx: click.Context, path: str | None, follow: bool, event_name: str | None):
    """Show the JSONL lookup log."""
    settings: FinderSettings = ctx.obj or FinderSettings()
    path = path or settings.log_path
    if not path:
        click.echo("No log file configured (use --path or MODULE_FINDER_LOG_PATH)")
        return
    p = Path(path)
    if not p.exists():
        click.echo(f"No log file at {p}")
        return

    def wanted(line: str) -> bool:
        if not event_name:
            return True
        try:
            return json.loads(line).get("event") == event_name
        except json.JSONDecodeError:
            return False

    with p.open("r", encoding="utf-8") as f:
        if not follow:
            for line in f:
                if wanted(line):
                    click.echo(line.rstrip())
            return
        # seek to end
        f.seek(0, 2)
        while True:
            line = f.readline()
            if not line:
                time.sleep(0.25)
                continue
            if wanted(line):
                click.echo(line.rstrip())
