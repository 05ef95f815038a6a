"""Letter pipeline: job extraction, applicant extraction, then synthesis.

The three stages run strictly in order inside one freshly allocated context
directory.  Each stage checks its own output and aborts the run when it is
blank; whatever was written so far stays on disk for inspection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from letterpress.core.config import LetterConfig
from letterpress.core.context_store import (
    PRECOMPUTED_APP_NAME,
    RAW_INPUT_NAME,
    ContextHandle,
    ContextStore,
)
from letterpress.core.errors import EmptyInputError
from letterpress.core.models import ExtractRecord, Stage
from letterpress.generation.extractor import normalize
from letterpress.generation.keys import APP_KEYS, JOB_KEYS
from letterpress.generation.prompts import compose_extraction_prompt, supporting_contexts
from letterpress.generation.writer import synthesize
from letterpress.llm.gateway import ModelGateway

logger = logging.getLogger(__name__)

Reporter = Callable[[str], None]


@dataclass
class LetterRun:
    """Result of one pipeline run."""

    context: ContextHandle
    letter: str
    job_record: ExtractRecord | None = None
    app_record: ExtractRecord | None = None
    app_cached: bool = False

    @property
    def letter_path(self) -> Path:
        return self.context.artifact(Stage.COV.value, "txt")


def count_items(text: str) -> int:
    """Number of ``,``/``;`` separated items across the lines of *text*."""
    return text.count("\n") + text.count(",") + text.count(";")


def _require_text(path: Path) -> str:
    text = path.read_text(encoding="utf-8") if path.exists() else ""
    if not text.strip():
        raise EmptyInputError(f"empty context: {path}")
    return text


def _noop(message: str) -> None:
    pass


def extract_stage(
    stage: Stage,
    prompt: str,
    keys: Sequence[str],
    *,
    gateway: ModelGateway,
    context: ContextHandle,
    on_chunk: Callable[[str], None] | None = None,
) -> ExtractRecord:
    """Run one extraction stage and write its ``{stage}.txt`` rendering."""
    response = gateway.complete(prompt, stage.value, context, on_chunk)
    record, rendered = normalize(response, stage.value, keys, context)
    context.artifact(stage.value, "txt").write_text(rendered, encoding="utf-8")
    return record


def produce_letter(
    job_posting: str,
    applicant_sources: Sequence[tuple[str, str]] = (),
    precomputed_app: str | None = None,
    *,
    config: LetterConfig,
    gateway: ModelGateway | None = None,
    store: ContextStore | None = None,
    report: Reporter | None = None,
    on_chunk: Callable[[str], None] | None = None,
) -> LetterRun:
    """Turn a job posting and resume sources into a letter.

    Args:
        job_posting: Raw job posting text.
        applicant_sources: ``(label, text)`` pairs; the first is extracted,
            the rest are supporting context.
        precomputed_app: A ready applicant extract; skips applicant extraction.
        config: Storage and model settings.
        gateway: Override the model gateway (for tests).
        store: Override the context store (for tests).
        report: Receives one progress line per completed step.
        on_chunk: Receives streamed model output as it arrives.

    Raises:
        EmptyInputError: the posting or any stage output is blank.
        ParseError: an extraction response held no usable JSON.
        TransportError: the model endpoint failed.
    """
    report = report or _noop
    gateway = gateway or ModelGateway(config)
    store = store or ContextStore(config.base_dir, config.tmp_dir)

    store.reset_staging()
    staged = store.stage(RAW_INPUT_NAME, job_posting)
    if precomputed_app is not None and precomputed_app.strip():
        store.stage(PRECOMPUTED_APP_NAME, precomputed_app)
    if not job_posting.strip():
        raise EmptyInputError(f"empty context: {staged}")

    context = store.resolve(staged.read_bytes())
    report(f"resolving CONTEXT_ID to {context.context_id}")
    report(f"resolving CONTEXT_TS to {context.version}")
    report(f"resolving CONTEXT_AT to {context.path}")

    # Job details
    job_prompt = compose_extraction_prompt(
        _require_text(context.raw_input), JOB_KEYS,
    )
    job_record = extract_stage(
        Stage.JOB, job_prompt, JOB_KEYS,
        gateway=gateway, context=context, on_chunk=on_chunk,
    )
    job_path = context.artifact(Stage.JOB.value, "txt")
    job_text = _require_text(job_path)
    report(f"genai job details... {count_items(job_text)} at {job_path}")

    # Applicant details
    app_path = context.artifact(Stage.APP.value, "txt")
    app_record: ExtractRecord | None = None
    cached = app_path.exists() and bool(app_path.read_text(encoding="utf-8").strip())
    if not cached:
        if not applicant_sources:
            raise EmptyInputError(f"empty context: no applicant sources for {app_path}")
        (label, primary), supporting = applicant_sources[0], applicant_sources[1:]
        if not primary.strip():
            raise EmptyInputError(f"empty context: {label}")
        app_prompt = compose_extraction_prompt(
            primary, APP_KEYS, supporting_contexts(supporting),
        )
        app_record = extract_stage(
            Stage.APP, app_prompt, APP_KEYS,
            gateway=gateway, context=context, on_chunk=on_chunk,
        )
    app_text = _require_text(app_path)
    suffix = f" ({PRECOMPUTED_APP_NAME})" if cached else ""
    report(f"genai app details... {count_items(app_text)} at {app_path}{suffix}")

    # Letter
    letter = synthesize(
        job_text, app_text, gateway=gateway, context=context, on_chunk=on_chunk,
    )
    letter_path = context.artifact(Stage.COV.value, "txt")
    letter_path.write_text(letter, encoding="utf-8")
    _require_text(letter_path)
    report(f"genai cov details... ok at {letter_path}")

    logger.info("Letter written for %s/%s", context.context_id, context.version)
    return LetterRun(
        context=context,
        letter=letter,
        job_record=job_record,
        app_record=app_record,
        app_cached=cached,
    )
