"""Streams completions from a local ``/api/generate`` endpoint.

The endpoint answers one POST of ``{prompt, model, options}`` with newline
delimited JSON chunks, each carrying a partial ``response`` string and a
``done`` flag.  Chunks are yielded as they arrive so slow local models show
progress and large answers are never buffered whole.

Every call persists the exact prompt (``{stage}.md``) and tees the streamed
output to the per-stage transcript (``{stage}.log``) and, when configured,
the diagnostic log.  Nothing is retried here: a transport failure aborts the
run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import ExitStack
from pathlib import Path
from typing import IO

import httpx
from pydantic import BaseModel, ValidationError

from letterpress.core.config import LetterConfig
from letterpress.core.context_store import ContextHandle
from letterpress.core.errors import TransportError

logger = logging.getLogger(__name__)


class GenerateChunk(BaseModel):
    """One streamed line of the generate endpoint."""

    response: str = ""
    done: bool = False


def parse_chunk(line: str) -> GenerateChunk | None:
    """Decode one stream line, or ``None`` for a blank or malformed line.

    Malformed lines are dropped rather than failing the stream; this is a
    known gap, not a guarantee of completeness.
    """
    if not line.strip():
        return None
    try:
        return GenerateChunk.model_validate_json(line)
    except ValidationError:
        logger.debug("Dropping malformed chunk: %.80r", line)
        return None


class ModelGateway:
    """Sends prompts to the configured model and streams the answers back.

    Parameters
    ----------
    config:
        Endpoint, model, inference options and diagnostic log location.
    client:
        An ``httpx.Client`` to use instead of building one (tests pass a
        client backed by ``httpx.MockTransport``).
    """

    def __init__(self, config: LetterConfig, client: httpx.Client | None = None):
        self.config = config
        self._client = client

    def _build_client(self) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(10.0, read=self.config.timeout))

    def stream(self, prompt: str) -> Iterator[str]:
        """POST *prompt* and yield text chunks; a final ``"\\n"`` follows ``done``."""
        body = {
            "prompt": prompt,
            "model": self.config.model,
            "options": self.config.options,
        }
        logger.debug(
            "LLM call: model=%s, url=%s, prompt_len=%d",
            self.config.model, self.config.generate_url, len(prompt),
        )
        client = self._client or self._build_client()
        try:
            with client.stream("POST", self.config.generate_url, json=body) as response:
                response.raise_for_status()
                for line in response.iter_lines():
                    chunk = parse_chunk(line)
                    if chunk is None:
                        continue
                    if chunk.response:
                        yield chunk.response
                    if chunk.done:
                        yield "\n"
                        return
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"model endpoint returned {exc.response.status_code} for {self.config.generate_url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"model endpoint {self.config.generate_url} failed: {exc}") from exc
        finally:
            if self._client is None:
                client.close()

    def send(self, prompt: str, stage: str, context: ContextHandle) -> Iterator[str]:
        """Persist *prompt* for *stage*, then stream and tee the response."""
        with open(context.artifact(stage, "md"), "a", encoding="utf-8") as f:
            f.write(prompt)

        with ExitStack() as stack:
            sinks: list[IO[str]] = [
                stack.enter_context(open(context.artifact(stage, "log"), "a", encoding="utf-8"))
            ]
            if self.config.log_path is not None:
                sinks.append(stack.enter_context(_open_log(self.config.log_path)))

            for text in self.stream(prompt):
                for sink in sinks:
                    sink.write(text)
                    sink.flush()
                yield text

    def complete(
        self,
        prompt: str,
        stage: str,
        context: ContextHandle,
        on_chunk: Callable[[str], None] | None = None,
    ) -> str:
        """Run :meth:`send` to completion and return the whole response.

        *on_chunk* sees each piece as it arrives.
        """
        parts = []
        for text in self.send(prompt, stage, context):
            if on_chunk is not None:
                on_chunk(text)
            parts.append(text)
        return "".join(parts)


def _open_log(path: Path) -> IO[str]:
    path.parent.mkdir(parents=True, exist_ok=True)
    return open(path, "a", encoding="utf-8")
