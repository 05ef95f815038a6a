"""Runtime configuration: storage, endpoint and model settings from the environment.

On import, this module loads the nearest ``.env`` file (if any) so that
settings placed there are visible through ``os.environ``.  Components never
read the environment themselves; they receive a :class:`LetterConfig`.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

from letterpress.core.errors import ConfigError

logger = logging.getLogger(__name__)


def load_env_file() -> str:
    """Load the nearest ``.env`` at or above the working directory.

    Existing environment variables win.  Returns the file loaded, or ``""``.
    """
    path = find_dotenv(usecwd=True)
    if path:
        load_dotenv(path, override=False)
    logger.debug("Loaded .env from %s", path or "<none>")
    return path


load_env_file()

DEFAULT_DIR = "letter"
DEFAULT_HOST = "localhost:11434"

# Small local reasoning model; needs ~24GB of GPU memory at num_ctx=8192.
DEFAULT_MODEL = "deepseek-r1:8B"

DEFAULT_OPTIONS: dict[str, Any] = {"num_ctx": 8192}
DEFAULT_TIMEOUT = 600.0


class LetterConfig(BaseModel):
    """Settings shared by the context store, gateway and pipeline."""

    base_dir: Path = Path(DEFAULT_DIR)
    context_dir: Path | None = None
    staging_dir: Path | None = None
    log_path: Path | None = None
    host: str = DEFAULT_HOST
    model: str = DEFAULT_MODEL
    options: dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_OPTIONS))
    timeout: float = DEFAULT_TIMEOUT

    @property
    def sources_dir(self) -> Path:
        """Directory holding the resume files and an optional ``app.txt``."""
        return self.context_dir or self.base_dir

    @property
    def tmp_dir(self) -> Path:
        """Staging directory for raw inputs before a context exists."""
        return self.staging_dir or self.base_dir / "tmp"

    @property
    def generate_url(self) -> str:
        host = self.host.rstrip("/")
        if "://" not in host:
            host = f"http://{host}"
        return f"{host}/api/generate"


def parse_options(raw: str) -> dict[str, Any]:
    """Decode the ``LETTER_OPTIONS`` JSON object.

    Raises ``ConfigError`` when the value is not valid JSON or not an object.
    """
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"LETTER_OPTIONS is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise ConfigError("LETTER_OPTIONS must be a JSON object.")
    return value


def load_config(environ: dict[str, str] | None = None) -> LetterConfig:
    """Build a :class:`LetterConfig` from ``LETTER_*`` environment variables."""
    env = os.environ if environ is None else environ

    base_dir = Path(env.get("LETTER_DIR") or DEFAULT_DIR)
    context_dir = env.get("LETTER_CTX")
    staging_dir = env.get("LETTER_TMP")
    log_path = env.get("LETTER_LOG")
    raw_options = env.get("LETTER_OPTIONS")
    raw_timeout = env.get("LETTER_TIMEOUT")

    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
    except ValueError as exc:
        raise ConfigError(f"LETTER_TIMEOUT is not a number: {raw_timeout!r}") from exc

    config = LetterConfig(
        base_dir=base_dir,
        context_dir=Path(context_dir) if context_dir else None,
        staging_dir=Path(staging_dir) if staging_dir else None,
        log_path=Path(log_path) if log_path and log_path != os.devnull else None,
        host=env.get("LETTER_HOST") or DEFAULT_HOST,
        model=env.get("LETTER_MODEL") or DEFAULT_MODEL,
        options=parse_options(raw_options) if raw_options else dict(DEFAULT_OPTIONS),
        timeout=timeout,
    )
    logger.debug(
        "Config loaded (base_dir=%s, host=%s, model=%s)",
        config.base_dir, config.host, config.model,
    )
    return config
