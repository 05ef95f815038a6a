"""Render the letter to PDF with fpdf2 and merge PDFs with pypdf."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Sequence

from fpdf import FPDF
from pypdf import PdfWriter

from letterpress.core.models import Letter

logger = logging.getLogger(__name__)

# Helvetica is Latin-1 only. Replace common Unicode characters.
_UNICODE_REPLACEMENTS = {
    "\u2014": "--",   # em-dash
    "\u2013": "-",    # en-dash
    "\u2018": "'",    # left single quote
    "\u2019": "'",    # right single quote
    "\u201c": '"',    # left double quote
    "\u201d": '"',    # right double quote
    "\u2026": "...",  # ellipsis
    "\u2022": "*",    # bullet
    "\u00a0": " ",    # non-breaking space
}


def _sanitize(text: str) -> str:
    """Replace Unicode characters unsupported by Helvetica with ASCII fallbacks."""
    for char, replacement in _UNICODE_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    return text.encode("latin-1", "replace").decode("latin-1")


def _new_pdf() -> FPDF:
    """A blank page with no header or footer (no page numbers)."""
    pdf = FPDF()
    pdf.set_margins(25, 25, 25)
    pdf.set_auto_page_break(auto=True, margin=25)
    pdf.add_page()
    return pdf


def render_letter_pdf(letter: Letter, path: Path) -> None:
    """Render a Letter to a PDF file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    pdf = _new_pdf()

    # Salutation
    pdf.set_font("Helvetica", "B", 13)
    pdf.multi_cell(0, 7, _sanitize(letter.salutation), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # Body
    pdf.set_font("Helvetica", "", 11)
    for paragraph in letter.paragraphs:
        pdf.multi_cell(0, 6, _sanitize(paragraph), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(4)

    # Signature
    if letter.signature:
        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(0, 7, _sanitize(letter.signature), new_x="LMARGIN", new_y="NEXT")

    pdf.output(str(path))
    logger.debug("Letter PDF written to %s", path)


def merge_pdfs(target: Path, sources: Sequence[Path]) -> None:
    """Concatenate *sources* into *target*; *target* may be one of the sources."""
    writer = PdfWriter()
    for source in sources:
        writer.append(str(source))
    target.parent.mkdir(parents=True, exist_ok=True)
    # Write to a sibling first: *target* can still be open as a source.
    scratch = target.with_name(f".{target.name}.part")
    with open(scratch, "wb") as f:
        writer.write(f)
    writer.close()
    scratch.replace(target)


def publish_letter(letter_pdf: Path, output: Path, extras: Sequence[Path] = ()) -> list[Path]:
    """Copy the letter PDF to *output* and merge any *extras*.

    - no extras: *output* is a copy of the letter;
    - one extra: *output* becomes the letter followed by the extra;
    - several: *output* is a copy of the letter, and the last extra is
      rebuilt from the letter followed by the remaining extras.

    Returns the files written.
    """
    output.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(letter_pdf, output)
    if not extras:
        return [output]
    if len(extras) == 1:
        merge_pdfs(output, [output, extras[0]])
        return [output]
    target = extras[-1]
    merge_pdfs(target, [letter_pdf, *extras[:-1]])
    return [output, target]
