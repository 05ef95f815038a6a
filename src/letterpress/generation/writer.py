"""Compose the letter from the job and applicant extracts."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from letterpress.core.context_store import ContextHandle
from letterpress.core.models import Stage
from letterpress.generation.cleanup import clean_letter
from letterpress.generation.keys import APP_KEYS, JOB_KEYS, placeholder_name
from letterpress.generation.prompts import (
    APPLICANT_PLACEHOLDER,
    COMPANY_PLACEHOLDER,
    compose_synthesis_prompt,
)
from letterpress.llm.gateway import ModelGateway

logger = logging.getLogger(__name__)


def first_value(extract_text: str, key: str) -> str | None:
    """First ``;``-separated value of *key* in a rendered extract, if any."""
    label = re.escape(placeholder_name(key))
    match = re.search(rf"^\s*{label}:\s*([^;\n]+)", extract_text, re.MULTILINE)
    if match is None:
        return None
    return match.group(1).strip() or None


def placeholder_fills(job_text: str, app_text: str) -> dict[str, str]:
    """Template tokens that can be resolved from the extracts."""
    fills = {}
    company = first_value(job_text, JOB_KEYS[0])
    if company:
        fills[COMPANY_PLACEHOLDER] = company
    applicant = first_value(app_text, APP_KEYS[0])
    if applicant:
        fills[APPLICANT_PLACEHOLDER] = applicant
    return fills


def synthesize(
    job_text: str,
    app_text: str,
    *,
    gateway: ModelGateway,
    context: ContextHandle,
    on_chunk: Callable[[str], None] | None = None,
) -> str:
    """Write the letter and return its cleaned markdown text."""
    prompt = compose_synthesis_prompt(job_text, app_text)
    raw = gateway.complete(prompt, Stage.COV.value, context, on_chunk)
    letter = clean_letter(raw, placeholder_fills(job_text, app_text))
    logger.debug("Letter cleaned: %d raw chars -> %d chars", len(raw), len(letter))
    return letter
