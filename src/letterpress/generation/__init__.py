"""Extraction and letter synthesis stages."""

from letterpress.generation.pipeline import LetterRun, produce_letter
from letterpress.generation.writer import synthesize

__all__ = [
    "LetterRun",
    "produce_letter",
    "synthesize",
]
