"""Shared test fixtures: a scripted model endpoint and sample model output."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from letterpress.core.config import LetterConfig
from letterpress.core.context_store import ContextHandle, ContextStore
from letterpress.llm.gateway import ModelGateway

JOB_POSTING = "We need a backend engineer with 5 years of Go experience at Acme Corp."

RESUME = """\
# Jane Doe

Senior engineer. Go, Kubernetes.
Cut p99 latency 40% on the payments API.
"""

JOB_RESPONSE = """\
<think>
The posting mentions Go.
</think>
Here is the JSON:
```json
{
  "CompanyName": ["Acme Corp."],
  "RoleTitle": ["Backend Engineer"],
  "TechRequired": ["Go"],  // language
  "ExpYears": ["5 years"],
  "TechHelpful": []
}
```
"""

APP_RESPONSE = """\
{
  "ApplicantName": ["Jane Doe"],
  "TechExpert": ["Go", ["Kubernetes"]],
  "ImpactProven": ["Cut latency 40%."],
  "SysExpert": ["", " "]
}
"""

COV_RESPONSE = """\
<think>
I should mention Go and {{Company Name}}.
</think>

Dear Hiring Manager at Acme Corp.,

I have **five years** of Go experience and honed my skills on payments.

Sincerely,

Jane Doe
---
Note: this letter was generated.
"""

EXPECTED_LETTER = """\
# Dear Hiring Manager at Acme,

I have five years of Go experience and refined my skills on payments.

Sincerely,

### Jane Doe
"""


def ndjson(text: str, size: int = 7) -> bytes:
    """Encode *text* as a generate-endpoint stream of *size*-char chunks."""
    lines = [
        json.dumps({"response": text[i:i + size], "done": False})
        for i in range(0, len(text), size)
    ]
    lines.append(json.dumps({"response": "", "done": True}))
    return ("\n".join(lines) + "\n").encode("utf-8")


class ScriptedEndpoint:
    """MockTransport handler answering requests from a list of responses."""

    def __init__(self, responses: list[str]):
        self.responses = list(responses)
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if not self.responses:
            return httpx.Response(500, text="no scripted response left")
        return httpx.Response(200, content=ndjson(self.responses.pop(0)))

    @property
    def prompts(self) -> list[str]:
        return [r["prompt"] for r in self.requests]


@pytest.fixture
def config(tmp_path: Path) -> LetterConfig:
    return LetterConfig(
        base_dir=tmp_path / "letter",
        host="llm.test:11434",
        model="test-model",
        options={"num_ctx": 1024},
    )


@pytest.fixture
def store(config: LetterConfig) -> ContextStore:
    return ContextStore(config.base_dir, config.tmp_dir)


@pytest.fixture
def context(store: ContextStore) -> ContextHandle:
    return store.resolve(JOB_POSTING.encode("utf-8"))


@pytest.fixture
def make_gateway(config: LetterConfig):
    """Return a factory building a gateway over a :class:`ScriptedEndpoint`."""

    def _make(responses: list[str]) -> tuple[ModelGateway, ScriptedEndpoint]:
        endpoint = ScriptedEndpoint(responses)
        client = httpx.Client(transport=httpx.MockTransport(endpoint))
        return ModelGateway(config, client=client), endpoint

    return _make


@pytest.fixture(name="ndjson")
def ndjson_fixture():
    return ndjson
