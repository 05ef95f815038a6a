"""Terminology and tone normalization of model text.

Rules apply in order, each to the previous rule's output.  A replacement
must never match any rule's pattern so that the filter stays idempotent.
"""

from __future__ import annotations

import re

WORD_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    # Terminology
    (re.compile(r"[Gg]oLang"), "Golang"),
    # Tone: overclaiming words become modest ones
    (re.compile(r"honed"), "refined"),
    (re.compile(r"innovat"), "progress"),
    (re.compile(r"master"), "learn"),
    (re.compile(r"obsess"), "dedicat"),
)


def filter_words(text: str) -> str:
    """Apply :data:`WORD_RULES` to *text*."""
    for pattern, replacement in WORD_RULES:
        text = pattern.sub(replacement, text)
    return text
