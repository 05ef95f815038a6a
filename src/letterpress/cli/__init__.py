"""CLI shared utilities: consoles and error exit used across commands."""

from __future__ import annotations

from typing import NoReturn

import typer
from rich.console import Console

from letterpress.core.config import LetterConfig, load_config
from letterpress.core.errors import ConfigError

# Progress goes to stderr so stdout carries only the letter.
console = Console(stderr=True)
out = Console()


def cli_error(message: str) -> NoReturn:
    """Print a red error message and exit with code 1."""
    console.print(f"[red]error:[/red] {message}", markup=True, highlight=False)
    raise typer.Exit(code=1)


def require_config() -> LetterConfig:
    """Load the configuration or exit with an error message."""
    try:
        return load_config()
    except ConfigError as exc:
        cli_error(str(exc))
