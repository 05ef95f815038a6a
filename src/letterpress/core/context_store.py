"""Content-addressed, timestamp-versioned storage for one application run.

Layout::

    {base}/{context_id}/{version}/
        ctx.txt                 raw job posting
        job.{md,log,json,txt}   prompt, response log, record, rendering
        app.{md,log,json,txt}
        cov.{md,log,txt,pdf}

Directories are append-only: a run never reuses or deletes one.
"""

from __future__ import annotations

import hashlib
import logging
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from letterpress.core.errors import ContextError

logger = logging.getLogger(__name__)

RAW_INPUT_NAME = "ctx.txt"
PRECOMPUTED_APP_NAME = "app.txt"

# 8 hex chars of SHA-256: 32 bits, collisions accepted.
FINGERPRINT_LENGTH = 8
VERSION_FORMAT = "%Y%m%dT%H%M%SZ"
_ID_PATTERN = re.compile(r"[0-9a-f]{8}")


def fingerprint(raw: bytes) -> str:
    """Return the context ID for *raw* input bytes."""
    return hashlib.sha256(raw).hexdigest()[:FINGERPRINT_LENGTH]


def version_token(now: datetime | None = None) -> str:
    """Return the UTC, second-granularity version token for *now*."""
    moment = now or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime(VERSION_FORMAT)


@dataclass(frozen=True)
class ContextHandle:
    """One allocated context directory."""

    context_id: str
    version: str
    path: Path

    def artifact(self, stage: str, suffix: str) -> Path:
        """Path of a stage artifact, e.g. ``artifact("job", "json")``."""
        return self.path / f"{stage}.{suffix}"

    @property
    def raw_input(self) -> Path:
        return self.path / RAW_INPUT_NAME


class ContextStore:
    """Allocates context directories under *base_dir*.

    Raw inputs are first written to *staging_dir*; :meth:`resolve` moves every
    staged ``*.txt`` file into the freshly created directory.
    """

    def __init__(self, base_dir: Path, staging_dir: Path):
        self.base_dir = base_dir
        self.staging_dir = staging_dir

    def reset_staging(self) -> None:
        """Remove files left in the staging area by an aborted run."""
        if self.staging_dir.is_dir():
            for leftover in self.staging_dir.glob("*.txt"):
                leftover.unlink()

    def stage(self, name: str, content: str) -> Path:
        """Write *content* to the staging area and return its path."""
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        path = self.staging_dir / name
        path.write_text(content, encoding="utf-8")
        return path

    def resolve(self, raw: bytes, *, now: datetime | None = None) -> ContextHandle:
        """Allocate ``{base}/{id}/{version}`` for *raw* and move staged files in.

        A same-second rerun gets a ``-N`` suffix on its version.  The final
        directory is created exclusively; failure raises ``ContextError``.
        """
        context_id = fingerprint(raw)
        logger.info("resolving CONTEXT_ID to %s", context_id)

        parent = self.base_dir / context_id
        base_version = version_token(now)
        version = base_version
        suffix = 0
        while (parent / version).exists():
            suffix += 1
            version = f"{base_version}-{suffix}"
        logger.info("resolving CONTEXT_TS to %s", version)

        path = parent / version
        try:
            parent.mkdir(parents=True, exist_ok=True)
            path.mkdir()
        except OSError as exc:
            raise ContextError(f"cannot create context directory {path}: {exc}") from exc
        logger.info("resolving CONTEXT_AT to %s", path)

        if self.staging_dir.is_dir():
            for staged in sorted(self.staging_dir.glob("*.txt")):
                shutil.move(str(staged), str(path / staged.name))

        return ContextHandle(context_id=context_id, version=version, path=path)

    def list_runs(self) -> list[ContextHandle]:
        """Every stored run, oldest version first within each context ID."""
        runs: list[ContextHandle] = []
        if not self.base_dir.is_dir():
            return runs
        for context_dir in sorted(self.base_dir.iterdir()):
            if not context_dir.is_dir() or not _ID_PATTERN.fullmatch(context_dir.name):
                continue
            for version_dir in sorted(context_dir.iterdir()):
                if version_dir.is_dir():
                    runs.append(
                        ContextHandle(
                            context_id=context_dir.name,
                            version=version_dir.name,
                            path=version_dir,
                        )
                    )
        return runs
