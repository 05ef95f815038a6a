"""Read the cleaned letter markdown back into a :class:`Letter`."""

from __future__ import annotations

from letterpress.core.models import Letter


def _strip_heading(line: str) -> str:
    return line.lstrip("#").strip()


def parse_letter_markdown(text: str) -> Letter:
    """Split cleaned letter text into salutation, paragraphs and signature.

    The first paragraph is the salutation; a final ``###`` paragraph is the
    signature.  Anything else is body text.
    """
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    if not paragraphs:
        raise ValueError("Letter text is empty")

    salutation = _strip_heading(paragraphs[0])
    body = paragraphs[1:]
    signature = ""
    if body and body[-1].startswith("###"):
        signature = _strip_heading(body.pop())
    return Letter(salutation=salutation, paragraphs=body, signature=signature)

