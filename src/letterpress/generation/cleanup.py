"""Ordered, pure text transforms that turn the raw synthesis stream into the letter.

Each step takes and returns the whole text, so every step can be tested on
its own and the order is visible in :func:`cleanup_steps`.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from functools import partial

from letterpress.generation.filters import filter_words
from letterpress.generation.prompts import PLACEHOLDER_PATTERN, SALUTATION_KEYWORD

Transform = Callable[[str], str]

THINK_START = "<think>"
THINK_END = "</think>"

_RUNS = re.compile(r"( |\n)\1+")
_EMPHASIS = re.compile(r"\*\*|__")
_SPAN_END = re.compile(r"^(---|```)")
_CORPORATE_SUFFIX = re.compile(r"[-, ]* (Co|Corp|Inc|LLC)\.?,")
# "at {{Company Name}}," with nothing to fill in reads "Dear Hiring Manager,".
_DANGLING_TOKEN = re.compile(
    r" +(?:at|for|with|to) +" + PLACEHOLDER_PATTERN.pattern + r"(?= *(?:[,.;:!?]|$))"
)
_SPACE_BEFORE_PUNCT = re.compile(r" +([,.;:!?])")


def squeeze_whitespace(text: str) -> str:
    """Collapse runs of spaces, and runs of newlines (dropping blank lines)."""
    return _RUNS.sub(r"\1", text)


def trim_lines(text: str) -> str:
    return "\n".join(line.strip(" \t\r") for line in text.split("\n"))


def strip_emphasis(text: str) -> str:
    return _EMPHASIS.sub("", text)


def drop_reasoning(text: str) -> str:
    """Delete every line from a ``<think>`` line through its ``</think>`` line.

    An unterminated block runs to the end of the text.
    """
    kept = []
    inside = False
    for line in text.split("\n"):
        if not inside and THINK_START in line:
            inside = THINK_END not in line.split(THINK_START, 1)[1]
            continue
        if inside:
            if THINK_END in line:
                inside = False
            continue
        kept.append(line)
    return "\n".join(kept)


def resolve_placeholders(text: str, fills: Mapping[str, str]) -> str:
    """Substitute known ``{{...}}`` tokens, then remove any that remain.

    A removed token takes a preposition that would be left dangling with it.
    Lines emptied by the removal are dropped.
    """
    if not PLACEHOLDER_PATTERN.search(text):
        return text
    for token, value in fills.items():
        text = text.replace(token, value)
    lines = []
    for line in text.split("\n"):
        resolved = PLACEHOLDER_PATTERN.sub("", _DANGLING_TOKEN.sub("", line))
        if resolved != line:
            resolved = re.sub(r" {2,}", " ", resolved)
            resolved = _SPACE_BEFORE_PUNCT.sub(r"\1", resolved).strip(" ")
            if not resolved:
                continue
        lines.append(resolved)
    return "\n".join(lines)


def keep_letter_span(text: str) -> str:
    """Keep from the first salutation line up to a ``---`` or code-fence line.

    Without a salutation line the text is returned unchanged.
    """
    lines = text.split("\n")
    start = next(
        (i for i, line in enumerate(lines) if line.startswith(SALUTATION_KEYWORD)), None
    )
    if start is None:
        return text
    span = []
    for line in lines[start:]:
        if _SPAN_END.match(line):
            break
        span.append(line)
    return "\n".join(span)


def strip_corporate_suffix(text: str) -> str:
    """``Dear Hiring Manager at Acme, Inc.,`` -> ``Dear Hiring Manager at Acme,``."""
    first, sep, rest = text.partition("\n")
    return _CORPORATE_SUFFIX.sub(",", first, count=1) + sep + rest


def heading_first_line(text: str) -> str:
    first, sep, rest = text.partition("\n")
    if first and not first.startswith("#"):
        first = f"# {first}"
    return first + sep + rest


def heading_last_line(text: str) -> str:
    lines = text.split("\n")
    for i in range(len(lines) - 1, -1, -1):
        if lines[i].strip():
            if i > 0 and not lines[i].startswith("#"):
                lines[i] = f"### {lines[i]}"
            break
    return "\n".join(lines)


def space_paragraphs(text: str) -> str:
    """Exactly one blank line between paragraphs and a single final newline."""
    paragraphs = [line for line in text.split("\n") if line.strip()]
    return "\n\n".join(paragraphs) + "\n" if paragraphs else ""


def cleanup_steps(fills: Mapping[str, str] | None = None) -> list[Transform]:
    """The ordered cleanup pipeline; *fills* maps placeholder tokens to values."""
    return [
        filter_words,
        squeeze_whitespace,
        trim_lines,
        strip_emphasis,
        drop_reasoning,
        partial(resolve_placeholders, fills=fills or {}),
        keep_letter_span,
        strip_corporate_suffix,
        heading_first_line,
        heading_last_line,
        space_paragraphs,
    ]


def clean_letter(text: str, fills: Mapping[str, str] | None = None) -> str:
    """Run *text* through every step of :func:`cleanup_steps`."""
    for step in cleanup_steps(fills):
        text = step(text)
    return text
