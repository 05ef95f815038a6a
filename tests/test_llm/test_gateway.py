"""Unit tests for letterpress.llm.gateway, with no real endpoint."""

from __future__ import annotations

import json

import httpx
import pytest

from letterpress.core.errors import TransportError
from letterpress.llm.gateway import GenerateChunk, ModelGateway, parse_chunk


def _gateway(config, handler) -> ModelGateway:
    return ModelGateway(config, client=httpx.Client(transport=httpx.MockTransport(handler)))


class TestParseChunk:
    def test_valid_chunk(self):
        assert parse_chunk('{"response": "Hi", "done": false}') == GenerateChunk(response="Hi")

    def test_blank_line_is_skipped(self):
        assert parse_chunk("   ") is None

    def test_malformed_line_is_dropped(self):
        assert parse_chunk('{"response": "Hi"') is None

    def test_non_object_is_dropped(self):
        assert parse_chunk("42") is None


class TestStream:
    def test_request_body(self, config, make_gateway):
        gateway, endpoint = make_gateway(["ok"])
        list(gateway.stream("the prompt"))
        assert endpoint.requests == [
            {"prompt": "the prompt", "model": "test-model", "options": {"num_ctx": 1024}}
        ]

    def test_posts_to_generate_url(self, config, ndjson):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, content=ndjson("x"))

        list(_gateway(config, handler).stream("p"))
        assert seen == ["http://llm.test:11434/api/generate"]

    def test_yields_chunks_incrementally_and_one_newline(self, config, make_gateway):
        gateway, _ = make_gateway(["Hello world"])
        chunks = list(gateway.stream("p"))
        assert len(chunks) > 2
        assert chunks[-1] == "\n"
        assert "".join(chunks) == "Hello world\n"

    def test_stops_at_done(self, config):
        body = "\n".join([
            json.dumps({"response": "a", "done": False}),
            "garbage {",
            json.dumps({"response": "b", "done": True}),
            json.dumps({"response": "ignored", "done": False}),
        ]).encode()

        chunks = list(_gateway(config, lambda r: httpx.Response(200, content=body)).stream("p"))
        assert chunks == ["a", "b", "\n"]

    def test_connection_failure_is_transport_error(self, config):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError, match="failed"):
            list(_gateway(config, handler).stream("p"))

    def test_error_status_is_transport_error(self, config):
        gateway = _gateway(config, lambda r: httpx.Response(404, text="model not found"))
        with pytest.raises(TransportError, match="404"):
            list(gateway.stream("p"))

    def test_one_request_per_stream(self, make_gateway):
        gateway, endpoint = make_gateway(["a", "b"])
        list(gateway.stream("p"))
        list(gateway.stream("q"))
        assert endpoint.prompts == ["p", "q"]


class TestSend:
    def test_persists_prompt_and_transcript(self, context, make_gateway):
        gateway, _ = make_gateway(["model says hi"])
        text = gateway.complete("exact prompt\n", "job", context)
        assert text == "model says hi\n"
        assert context.artifact("job", "md").read_text() == "exact prompt\n"
        assert context.artifact("job", "log").read_text() == "model says hi\n"

    def test_tees_to_diagnostic_log(self, config, context, make_gateway, tmp_path):
        config.log_path = tmp_path / "logs" / "letter.log"
        gateway, _ = make_gateway(["first", "second"])
        gateway.complete("p", "job", context)
        gateway.complete("p", "app", context)
        assert config.log_path.read_text() == "first\nsecond\n"

    def test_on_chunk_sees_every_piece(self, context, make_gateway):
        gateway, _ = make_gateway(["streamed output"])
        seen: list[str] = []
        text = gateway.complete("p", "cov", context, seen.append)
        assert "".join(seen) == text
        assert len(seen) > 1

    def test_failed_call_keeps_prompt(self, config, context):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError):
            _gateway(config, handler).complete("kept prompt", "job", context)
        assert context.artifact("job", "md").read_text() == "kept prompt"
