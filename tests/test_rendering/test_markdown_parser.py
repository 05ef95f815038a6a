"""Tests for reading cleaned letter markdown."""

from __future__ import annotations

import pytest

from letterpress.rendering.markdown_parser import parse_letter_markdown

from tests.conftest import EXPECTED_LETTER


class TestParseLetterMarkdown:
    def test_cleaned_letter(self):
        letter = parse_letter_markdown(EXPECTED_LETTER)
        assert letter.salutation == "Dear Hiring Manager at Acme,"
        assert letter.paragraphs == [
            "I have five years of Go experience and refined my skills on payments.",
            "Sincerely,",
        ]
        assert letter.signature == "Jane Doe"

    def test_without_signature_heading(self):
        letter = parse_letter_markdown("# Dear X,\n\nBody\n\nThanks\n")
        assert letter.paragraphs == ["Body", "Thanks"]
        assert letter.signature == ""

    def test_salutation_only(self):
        letter = parse_letter_markdown("# Hello\n")
        assert letter.salutation == "Hello"
        assert letter.paragraphs == []

    def test_empty_text_raises(self):
        with pytest.raises(ValueError, match="empty"):
            parse_letter_markdown("\n\n")
