"""List stored context directories."""

from __future__ import annotations

import typer
from rich.table import Table

from letterpress.cli import console, out, require_config
from letterpress.core.context_store import ContextStore


def contexts_command(
    context_id: str = typer.Argument("", help="Only show runs whose ID starts with this."),
) -> None:
    """Show every stored run with the artifacts it holds."""
    config = require_config()
    store = ContextStore(config.base_dir, config.tmp_dir)
    runs = [r for r in store.list_runs() if r.context_id.startswith(context_id)]

    if not runs:
        console.print(f"[yellow]No contexts found under {config.base_dir}.[/yellow]")
        raise typer.Exit(code=0)

    table = Table(title="Contexts")
    table.add_column("ID", style="cyan")
    table.add_column("Version")
    table.add_column("Artifacts")
    for run in runs:
        artifacts = sorted(p.name for p in run.path.iterdir() if p.is_file())
        table.add_row(run.context_id, run.version, " ".join(artifacts))
    out.print(table)
