"""Letter writing CLI command."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from letterpress.cli import cli_error, console, require_config
from letterpress.core.errors import LetterError
from letterpress.core.models import Stage
from letterpress.generation.pipeline import produce_letter
from letterpress.rendering.markdown_parser import parse_letter_markdown
from letterpress.rendering.pdf_renderer import publish_letter, render_letter_pdf
from letterpress.sources.inputs import collect_applicant_inputs, read_job_posting

logger = logging.getLogger(__name__)


def _report(message: str) -> None:
    console.print(escape(message), highlight=False)


def write_command(
    output: Optional[Path] = typer.Argument(
        None, help="Write the letter as a PDF to this path.",
    ),
    extras: Optional[list[Path]] = typer.Argument(
        None, help="PDFs to merge; with several, the last one is the merge target.",
    ),
    paste: bool = typer.Option(
        False, "--paste", help="Read the job posting from the clipboard.",
    ),
) -> None:
    """Write a cover letter for the job posting on stdin or the clipboard."""
    config = require_config()
    extras = extras or []

    inputs = collect_applicant_inputs(config.sources_dir)

    try:
        console.print("reading job posting... ", end="")
        posting = read_job_posting(paste=paste)
        console.print("ok")

        run = produce_letter(
            posting,
            inputs.read_sources(),
            inputs.read_precomputed(),
            config=config,
            report=_report,
        )

        if output is not None:
            console.print("merge cov letters... ", end="")
            letter_pdf = run.context.artifact(Stage.COV.value, "pdf")
            render_letter_pdf(parse_letter_markdown(run.letter), letter_pdf)
            written = publish_letter(letter_pdf, output, extras)
            console.print(f"ok at {escape(', '.join(str(p) for p in written))}")
    except LetterError as exc:
        logger.debug("Run failed", exc_info=True)
        cli_error(escape(str(exc)))

    console.print("---")
    typer.echo(run.letter, nl=False)
