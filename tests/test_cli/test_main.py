from pathlib import Path

import pytest
from typer.testing import CliRunner

from letterpress.cli import write_cmd
from letterpress.generation.pipeline import produce_letter
from letterpress.main import app

from tests.conftest import (
    APP_RESPONSE,
    COV_RESPONSE,
    EXPECTED_LETTER,
    JOB_POSTING,
    JOB_RESPONSE,
    RESUME,
)

runner = CliRunner()


@pytest.fixture
def letter_dir(tmp_path: Path, monkeypatch) -> Path:
    base = tmp_path / "letter"
    base.mkdir()
    monkeypatch.setenv("LETTER_DIR", str(base))
    for name in ("LETTER_CTX", "LETTER_TMP", "LETTER_LOG", "LETTER_OPTIONS", "LETTER_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    return base


@pytest.fixture
def scripted(monkeypatch, make_gateway):
    """Route the write command's model calls to a scripted endpoint."""

    def _script(responses: list[str]):
        gateway, endpoint = make_gateway(responses)

        def produce(*args, **kwargs):
            return produce_letter(*args, gateway=gateway, **kwargs)

        monkeypatch.setattr(write_cmd, "produce_letter", produce)
        return endpoint

    return _script


def test_version_flag():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "letterpress 0.1.0" in result.output


def test_no_args_shows_help():
    result = runner.invoke(app, [])
    assert "Cover letters from job postings" in result.output


def test_debug_flag(letter_dir):
    """--debug flag should be accepted and not error."""
    result = runner.invoke(app, ["--debug", "contexts"])
    assert result.exit_code == 0


class TestWrite:
    def test_prints_letter(self, letter_dir, scripted):
        (letter_dir / "resume.md").write_text(RESUME)
        endpoint = scripted([JOB_RESPONSE, APP_RESPONSE, COV_RESPONSE])

        result = runner.invoke(app, ["write"], input=JOB_POSTING)

        assert result.exit_code == 0, result.output
        assert result.stdout.endswith(EXPECTED_LETTER)
        assert len(endpoint.requests) == 3
        assert "genai cov details... ok" in result.output

    def test_writes_pdf(self, letter_dir, scripted, tmp_path):
        (letter_dir / "resume.md").write_text(RESUME)
        scripted([JOB_RESPONSE, APP_RESPONSE, COV_RESPONSE])
        output = tmp_path / "out" / "letter.pdf"

        result = runner.invoke(app, ["write", str(output)], input=JOB_POSTING)

        assert result.exit_code == 0, result.output
        assert output.read_bytes()[:5] == b"%PDF-"
        assert list(letter_dir.glob("*/*/cov.pdf"))

    def test_uses_precomputed_applicant(self, letter_dir, scripted):
        (letter_dir / "app.txt").write_text("Applicant Name: Jane Doe\nTech Expert: Go\n")
        endpoint = scripted([JOB_RESPONSE, COV_RESPONSE])

        result = runner.invoke(app, ["write"], input=JOB_POSTING)

        assert result.exit_code == 0, result.output
        assert len(endpoint.requests) == 2
        assert "(app.txt)" in result.output

    def test_empty_posting_fails(self, letter_dir, scripted):
        (letter_dir / "resume.md").write_text(RESUME)
        endpoint = scripted([JOB_RESPONSE])

        result = runner.invoke(app, ["write"], input="\n")

        assert result.exit_code == 1
        assert "empty context" in result.output
        assert endpoint.requests == []

    def test_missing_resume_fails(self, letter_dir, scripted):
        scripted([JOB_RESPONSE])
        result = runner.invoke(app, ["write"], input=JOB_POSTING)
        assert result.exit_code == 1
        assert "no applicant sources" in result.output

    def test_undecodable_resume_fails(self, letter_dir, scripted):
        (letter_dir / "resume.md").write_bytes(b"\xff\xfe\x00")
        endpoint = scripted([JOB_RESPONSE])

        result = runner.invoke(app, ["write"], input=JOB_POSTING)

        assert result.exit_code == 1
        assert "UTF-8" in result.output
        assert endpoint.requests == []

    def test_bad_options_fail(self, letter_dir, monkeypatch):
        monkeypatch.setenv("LETTER_OPTIONS", "[1, 2]")
        result = runner.invoke(app, ["write"], input=JOB_POSTING)
        assert result.exit_code == 1
        assert "LETTER_OPTIONS" in result.output


class TestContexts:
    def test_empty(self, letter_dir):
        result = runner.invoke(app, ["contexts"])
        assert result.exit_code == 0
        assert "No contexts found" in result.output

    def test_lists_runs(self, letter_dir, scripted):
        (letter_dir / "resume.md").write_text(RESUME)
        scripted([JOB_RESPONSE, APP_RESPONSE, COV_RESPONSE])
        runner.invoke(app, ["write"], input=JOB_POSTING)
        (run_dir,) = [p for p in letter_dir.glob("*/*") if p.parent.name != "tmp"]

        result = runner.invoke(app, ["contexts"])
        assert result.exit_code == 0
        assert run_dir.parent.name in result.output
        assert run_dir.name in result.output

        filtered = runner.invoke(app, ["contexts", "ffffffff"])
        assert "No contexts found" in filtered.output
