import logging
from importlib.metadata import version as pkg_version
from typing import Optional

import typer

from letterpress.cli.contexts_cmd import contexts_command
from letterpress.cli.write_cmd import write_command

app = typer.Typer(
    name="letterpress",
    help="Cover letters from job postings and resumes with a local LLM.",
    no_args_is_help=True,
    invoke_without_command=True,
)

app.command("write")(write_command)
app.command("contexts")(contexts_command)


def version_callback(value: bool):
    if value:
        typer.echo(f"letterpress {pkg_version('letterpress')}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True,
        help="Show version and exit.",
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug logging.",
    ),
):
    """Cover letters from job postings and resumes with a local LLM."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=logging.WARNING, format="%(name)s %(levelname)s: %(message)s")
    logging.getLogger("letterpress").setLevel(level)


if __name__ == "__main__":
    app()
