"""Self-contained prompts with nested ``>``-quoted context.

Source hierarchy is expressed by quote depth: the block quoted with the most
``>`` markers is the primary subject, shallower blocks are background the
model may draw on.  Blocks are passed explicitly as :class:`ContextBlock`
records rather than assembled positionally.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Sequence

from letterpress.generation.keys import APP_KEYS, JOB_KEYS, placeholder_name

THINK_PREAMBLE = """\
IMPORTANT: Before EVERY response, specifically before the first token, you must:
- Fully perform the complete exercise, internally, at least once.
- Reflect on your anticipated result but DO NOT share this version.
- Refine it instead; assert truthfulness and correctness per instructions.
- Avoid excessive, superfluous, extraneous, or self-aggrandizing language.
- PROMPT is GENERATED! EXIT ASAP when bad, barren, broken, or incoherent!"""

EXTRACTION_RULES = """\
IMPORTANT: Guided Analysis and Details Extraction

- Scope responses to constraint context if it exists.
- Task is pulling key details from extraction context.
- Map extraction context to JSON LIST-of-STRING values.
- Fill JSON key-values with context-derived observables.
- Leave empty any keys where insufficient confidence exists.
- Never guess or fabricate; leaving a list empty is always acceptable.
- For technical elements, focus on specific named technologies.
- For experience parameters, extract both quantitative and qualitative aspects.
- For impact records, prioritize measurable outcomes and concrete achievements.
- Maintain factual accuracy without extrapolation beyond what is directly supported.
- Seek concision, humility, confidence, and rigorously proper attribution."""

AUTHORING_RULES = """\
Guidelines for structuring the cover letter:

- Accuracy First: Represent qualifications truthfully, in a favorable yet authentic light.
- Intent and Fit: Clearly highlight why the applicant is a strong match and why they want to work there.
- Conciseness and Clarity: Keep it high-impact and to the point; eliminate unnecessary words.
- No Fabrication: If an exact match is missing, emphasize relevant strengths without exaggeration.
- Balance Technical and Soft Skills:
  - Ensure both hard technical qualifications and interpersonal strengths are covered.
  - Do not focus only on technical experience; mention collaboration, leadership, or problem-solving skills where relevant.
  - Use real-world impact examples.
- Language:
  - No excessive self-praise.
  - Use simple, direct wording.
  - Avoid vague, nondescript qualifiers.
  - Let the experience speak for itself.
- Resume Anchoring: If the applicant has directly relevant experience, reference it explicitly.
- Fallback Strategy: If the match isn't exact, highlight the closest transferable skills."""

CLOSING_RULES = """\
PROMPT: Ensure the closing statement is engaging and forward-looking:

- Avoid generic phrases; instead, show initiative and interest.
- Express enthusiasm about specific aspects of the role.
- Keep it concise but impactful, fluid and natural."""

COMPANY_PLACEHOLDER = "{{" + placeholder_name(JOB_KEYS[0]) + "}}"
APPLICANT_PLACEHOLDER = "{{" + placeholder_name(APP_KEYS[0]) + "}}"
BODY_PLACEHOLDER = "{{compact, minimalistic, high-impact, first-person POV truth statements}}"

LETTER_TEMPLATE = f"""\
Dear Hiring Manager at {COMPANY_PLACEHOLDER},

{BODY_PLACEHOLDER}

Sincerely,

{APPLICANT_PLACEHOLDER}"""

PLACEHOLDER_PATTERN = re.compile(r"\{\{[^{}]*\}\}")

SALUTATION_KEYWORD = "Dear"


@dataclass(frozen=True)
class ContextBlock:
    """A labelled text quoted *depth* levels deep."""

    label: str
    text: str
    depth: int


def quote(text: str, depth: int = 1) -> str:
    """Prefix every line of *text* with *depth* ``>`` markers."""
    if depth < 1:
        raise ValueError(f"quote depth must be >= 1, got {depth}")
    marker = ">" * depth
    return "\n".join(f"{marker} {line}".rstrip() for line in text.splitlines())


def format_contexts(blocks: Sequence[ContextBlock]) -> str:
    """Render *blocks* in order, each as a label line followed by its quote."""
    if not blocks:
        return ""
    head, rest = blocks[0], blocks[1:]
    rendered = f"\n{head.label}\n\n{quote(head.text, head.depth)}\n"
    return rendered + format_contexts(rest)


def supporting_contexts(sources: Sequence[tuple[str, str]]) -> list[ContextBlock]:
    """Depths for supporting sources around a single-level extraction block.

    The first of *n* sources is quoted ``n + 1`` deep, the last two deep, so
    every supporting block sits beneath the extraction block itself.
    """
    count = len(sources)
    return [
        ContextBlock(label=label, text=text, depth=count + 1 - index)
        for index, (label, text) in enumerate(sources)
    ]


def extraction_contract(keys: Sequence[str]) -> str:
    """The JSON answer template: every key, in order, mapped to an empty list."""
    template = json.dumps({key: [] for key in keys}, indent=2)
    return (
        "PROMPT: Update with your observations and respond with this EXACT STRICT VALID JSON format:\n"
        "\n"
        f"```json\n{template}\n```\n"
        "\n"
        "CRITICAL PROMPT: STRICT VALID JSON ONLY!"
    )


def compose_extraction_prompt(
    source_text: str,
    keys: Sequence[str],
    contexts: Sequence[ContextBlock] = (),
) -> str:
    """Prompt asking the model to fill *keys* from *source_text*.

    *source_text* is quoted one level deep and the model is told to scope to
    it; optional *contexts* precede it as supporting details.
    """
    parts = [THINK_PREAMBLE, ""]
    if contexts:
        parts.append("Each level of `>`-quoted text defines a details context:")
        parts.append(format_contexts(contexts))
    parts.extend([
        "SINGLE-level `>`-quoted text defines the extraction context:",
        "",
        quote(source_text, 1),
        "",
        EXTRACTION_RULES,
        "",
        extraction_contract(keys),
    ])
    return "\n".join(parts) + "\n"


def compose_synthesis_prompt(
    job_text: str,
    app_text: str,
    *,
    job_label: str = "job.txt",
    app_label: str = "app.txt",
) -> str:
    """Prompt asking the model to write the letter from both extracts.

    Job details form the outer (shallow) context, applicant details the inner
    (deep) one.
    """
    blocks = [
        ContextBlock(label=job_label, text=job_text, depth=1),
        ContextBlock(label=app_label, text=app_text, depth=2),
    ]
    parts = [
        THINK_PREAMBLE,
        "",
        "IMPORTANT: Objectively analyze the extracted job details "
        f"(`{job_label}`) against the applicant's resume (`{app_label}`).",
        "",
        AUTHORING_RULES,
        "",
        "Each level of `>`-quoted text defines a details context:",
        format_contexts(blocks),
        CLOSING_RULES,
        "",
        "Final output must be fully resolved with NO placeholders:",
        "",
        f"```\n{LETTER_TEMPLATE}\n```",
    ]
    return "\n".join(parts) + "\n"
