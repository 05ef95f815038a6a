"""Read the job posting from stdin or the clipboard, and resumes from disk."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from letterpress.core.context_store import PRECOMPUTED_APP_NAME
from letterpress.core.errors import DependencyMissing, EmptyInputError

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".md", ".txt")

# Tried in order when reading the clipboard.
CLIPBOARD_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("pbpaste",),
    ("xclip", "-selection", "clipboard", "-o"),
)


def read_text_file(path: Path) -> str:
    """Read a UTF-8 input file; unreadable files raise ``EmptyInputError``."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise EmptyInputError(f"unreadable input: {path} is not UTF-8 text") from exc
    except OSError as exc:
        raise EmptyInputError(f"unreadable input: {path}: {exc.strerror or exc}") from exc


@dataclass
class ApplicantInputs:
    """Resume sources plus an optional pre-computed applicant extract."""

    sources: list[Path] = field(default_factory=list)
    precomputed: Path | None = None

    def read_sources(self) -> list[tuple[str, str]]:
        """``(file name, text)`` for every source, in order."""
        return [(p.name, read_text_file(p)) for p in self.sources]

    def read_precomputed(self) -> str | None:
        if self.precomputed is None:
            return None
        return read_text_file(self.precomputed)


def collect_applicant_inputs(directory: Path) -> ApplicantInputs:
    """Find ``*.md`` then ``*.txt`` resume files in *directory*.

    A file named ``app.txt`` is the pre-computed extract, not a source.
    """
    inputs = ApplicantInputs()
    if not directory.is_dir():
        return inputs
    for suffix in SOURCE_SUFFIXES:
        for path in sorted(directory.glob(f"*{suffix}")):
            if path.name == PRECOMPUTED_APP_NAME:
                inputs.precomputed = path
            elif path.is_file():
                inputs.sources.append(path)
    logger.debug(
        "Applicant inputs in %s: %d sources, precomputed=%s",
        directory, len(inputs.sources), inputs.precomputed,
    )
    return inputs


def find_clipboard_command() -> tuple[str, ...] | None:
    for command in CLIPBOARD_COMMANDS:
        if shutil.which(command[0]):
            return command
    return None


def read_clipboard() -> str:
    """Return the clipboard text.

    Raises ``DependencyMissing`` when neither ``pbpaste`` nor ``xclip`` can
    be run, and ``EmptyInputError`` when the tool exits with an error (xclip
    does so for an empty clipboard).
    """
    command = find_clipboard_command()
    if command is None:
        names = ", ".join(c[0] for c in CLIPBOARD_COMMANDS)
        raise DependencyMissing(f"missing required deps: one of {names}")
    try:
        result = subprocess.run(command, capture_output=True, text=True, check=True)
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
        raise EmptyInputError(
            f"empty context: clipboard read failed ({command[0]}: {detail})"
        ) from exc
    except OSError as exc:
        raise DependencyMissing(f"cannot run {command[0]}: {exc.strerror or exc}") from exc
    return result.stdout


def read_job_posting(stream: TextIO | None = None, *, paste: bool = False) -> str:
    """Read the posting from a pipe, else from the clipboard, else interactively.

    With *paste* the clipboard is required.
    """
    if stream is None:
        stream = sys.stdin
    if paste:
        return read_clipboard()
    if not stream.isatty():
        return stream.read()
    if find_clipboard_command() is not None:
        return read_clipboard()
    return stream.read()
