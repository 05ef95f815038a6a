"""Recover a clean key/value-list record from model output.

Generative output is only nearly JSON.  :func:`sanitize` isolates the first
top-level object and applies an ordered list of defensive fixes, then
:func:`normalize` parses it and flattens each schema key to trimmed strings.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Sequence
from typing import Any

from letterpress.core.context_store import ContextHandle
from letterpress.core.errors import ParseError
from letterpress.core.models import ExtractRecord
from letterpress.generation.filters import filter_words

logger = logging.getLogger(__name__)

_TRAILING_COMMENT = re.compile(r" +//.*$")
_COMMENT_LINE = re.compile(r"^ *//")
# A backslash that does not start a valid JSON escape, e.g. ``\#`` or ``\&``.
_OVER_ESCAPE = re.compile(r'(?<!\\)\\([^"\\/bfnrtu])')
_CONTINUATION = re.compile(r"\s*\+(,?)\s*$")
_TRAILING_COMMA = re.compile(r",(\s*[\]}])")
_KEY_MARKER = re.compile(r"([A-Z][a-z]+):")


def _closes_itself(line: str) -> bool:
    stripped = line.rstrip()
    return stripped.endswith("}") and stripped.count("{") == stripped.count("}")


def json_span(text: str) -> list[str]:
    """Lines from the first one opening an object through the one closing it.

    A one-line object is its own span.  Otherwise the span ends at the next
    line starting with ``}``, else at the last line ending with ``}``, else
    at the end of *text*.  Raises ``ParseError`` when no line opens an object.
    """
    lines = text.splitlines()
    start = next((i for i, line in enumerate(lines) if line.startswith("{")), None)
    if start is None:
        raise ParseError("no JSON object found in model response")
    if _closes_itself(lines[start]):
        return lines[start:start + 1]
    end = next(
        (i for i in range(start + 1, len(lines)) if lines[i].startswith("}")), None
    )
    if end is None:
        end = next(
            (i for i in range(len(lines) - 1, start, -1) if lines[i].rstrip().endswith("}")),
            len(lines) - 1,
        )
    return lines[start:end + 1]


def _strip_trailing_comment(line: str) -> str:
    return _TRAILING_COMMENT.sub("", line)


def _unescape(line: str) -> str:
    return _OVER_ESCAPE.sub(r"\1", line)


def _strip_continuation(line: str) -> str:
    return _CONTINUATION.sub(r"\1", line)


# Applied in order to every line of the span.
LINE_FIXES: tuple[Callable[[str], str], ...] = (
    _strip_trailing_comment,
    _unescape,
    _strip_continuation,
)


def sanitize(text: str) -> str:
    """Return the cleaned JSON span of *text*.

    1. restrict to the object span (see :func:`json_span`);
    2. drop comment-only lines;
    3. per line: strip `` // comments``, un-escape over-escaped punctuation,
       strip a trailing ``+`` continuation marker;
    4. drop trailing commas before a closing bracket.
    """
    cleaned = []
    for line in json_span(text):
        if _COMMENT_LINE.match(line):
            continue
        for fix in LINE_FIXES:
            line = fix(line)
        cleaned.append(line)
    return _TRAILING_COMMA.sub(r"\1", "\n".join(cleaned))


def flatten(value: Any) -> list[str]:
    """Every string leaf of *value*, depth first, in document order."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict):
        value = list(value.values())
    if isinstance(value, list):
        leaves: list[str] = []
        for item in value:
            leaves.extend(flatten(item))
        return leaves
    return []


def clean_values(value: Any) -> list[str]:
    """Flattened, trimmed, period-free, non-empty strings of *value*."""
    values = []
    for leaf in flatten(value):
        leaf = leaf.strip().rstrip(". \t")
        if leaf:
            values.append(leaf)
    return values


def parse_record(text: str, keys: Sequence[str]) -> ExtractRecord:
    """Parse a model response into an :data:`ExtractRecord` in *keys* order.

    Raises ``ParseError`` if no object can be recovered.  Keys outside the
    schema are ignored; keys with no usable values are omitted.
    """
    span = sanitize(text)
    try:
        data = json.loads(span)
    except json.JSONDecodeError as exc:
        raise ParseError(f"model response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ParseError("model response JSON is not an object")

    extra = [key for key in data if key not in keys]
    if extra:
        logger.debug("Ignoring keys outside the schema: %s", ", ".join(extra))

    record: ExtractRecord = {}
    for key in keys:
        if key not in data:
            continue
        values = clean_values(data[key])
        if values:
            record[key] = values
    return record


def render_record(record: ExtractRecord) -> str:
    """Line-oriented rendering: ``Company Name: Acme; Globex`` per key."""
    lines = []
    for key, values in record.items():
        line = filter_words(f"{key}: {'; '.join(values)}")
        lines.append(_KEY_MARKER.sub(r" \1:", line, count=1))
    return "\n".join(lines) + "\n" if lines else ""


def normalize(
    response: str,
    stage: str,
    keys: Sequence[str],
    context: ContextHandle,
) -> tuple[ExtractRecord, str]:
    """Parse *response*, persist ``{stage}.json`` and return (record, rendering)."""
    record = parse_record(response, keys)
    with open(context.artifact(stage, "json"), "a", encoding="utf-8") as f:
        json.dump(record, f, indent=2, ensure_ascii=False)
        f.write("\n")
    logger.debug("Extracted %d keys for stage %s", len(record), stage)
    return record, render_record(record)
