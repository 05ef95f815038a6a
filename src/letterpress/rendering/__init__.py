"""Convert the cleaned letter to PDF and merge it with other documents."""

from letterpress.rendering.markdown_parser import parse_letter_markdown
from letterpress.rendering.pdf_renderer import merge_pdfs, publish_letter, render_letter_pdf

__all__ = [
    "merge_pdfs",
    "parse_letter_markdown",
    "publish_letter",
    "render_letter_pdf",
]
