"""
Tests for the typer command line interface.
"""

import json
import logging

import pytest
from typer.testing import CliRunner

import main
from conftest import ScriptedBackend

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    path = tmp_path / "matchpoint_config.json"
    path.write_text(json.dumps({"local_store_file": "state.json"}), encoding="utf-8")
    return path


@pytest.fixture
def scripted(monkeypatch, thinking_json, match_json):
    backend = ScriptedBackend([thinking_json, "Twelve startups found", match_json])

    class FakeClient:
        @classmethod
        def from_settings(cls, settings):
            return backend

    monkeypatch.setattr(main, "GeminiClient", FakeClient)
    return backend


class TestCli:
    def test_analyze_without_survey(self, config_path, pdf_resume, scripted, tmp_path):
        json_out = tmp_path / "result.json"

        result = runner.invoke(
            main.app,
            ["analyze", str(pdf_resume), "--config", str(config_path), "--skip-survey", "--json-out", str(json_out)],
        )

        assert result.exit_code == 0, result.output
        assert "72/100" in result.output
        assert json.loads(json_out.read_text(encoding="utf-8"))["grade"] == "B-"
        assert (tmp_path / "summaries" / "match_summary.html").exists()
        assert len(scripted.requests) == 3

    def test_rejected_file_exits_with_error(self, config_path, tmp_path, scripted):
        path = tmp_path / "setup.exe"
        path.write_bytes(b"MZ")

        result = runner.invoke(main.app, ["analyze", str(path), "--config", str(config_path), "--skip-survey"])

        assert result.exit_code == 1
        assert "Supported formats" in result.output
        assert scripted.requests == []

    def test_history_after_analysis(self, config_path, pdf_resume, scripted):
        runner.invoke(main.app, ["analyze", str(pdf_resume), "--config", str(config_path), "--skip-survey"])

        result = runner.invoke(main.app, ["history", "count", "--config", str(config_path)])

        assert result.exit_code == 0
        assert "1 resumes analysed" in result.output

    def test_theme_toggle(self, config_path):
        first = runner.invoke(main.app, ["theme", "--config", str(config_path)])
        second = runner.invoke(main.app, ["theme", "--config", str(config_path)])

        assert "dark" in first.output
        assert "light" in second.output

    def test_missing_config(self, tmp_path):
        result = runner.invoke(main.app, ["theme", "--config", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
