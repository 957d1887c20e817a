"""
Tests for settings loading.
"""

import json

import pytest

from config import DEFAULT_MODEL, SUMMARY_FILENAME, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("GEMINI_API_KEY", "SUPABASE_URL", "SUPABASE_ANON_KEY"):
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, **values):
    path = tmp_path / "matchpoint_config.json"
    path.write_text(json.dumps(values), encoding="utf-8")
    return path


class TestLoadSettings:
    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        settings = load_settings(write_config(tmp_path))

        assert settings.gemini_api_key == "env-key"
        assert settings.gemini_model == DEFAULT_MODEL
        assert settings.history_limit == 50
        assert settings.local_history_limit == 10
        assert settings.summary_file == (tmp_path / "summaries" / SUMMARY_FILENAME).resolve()
        assert settings.log_file is None
        assert not settings.persistence_enabled

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ValueError):
            load_settings(path, require_api_key=False)

    def test_api_key_required(self, tmp_path):
        path = write_config(tmp_path)
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            load_settings(path)
        assert load_settings(path, require_api_key=False).gemini_api_key == ""

    def test_secret_files(self, tmp_path):
        (tmp_path / "gemini.key").write_text("file-key\n", encoding="utf-8")
        (tmp_path / "supabase.key").write_text("anon-key\n", encoding="utf-8")
        path = write_config(
            tmp_path,
            gemini_api_key_file="gemini.key",
            supabase_key_file="supabase.key",
            supabase_url="https://project.supabase.co",
        )

        settings = load_settings(path)

        assert settings.gemini_api_key == "file-key"
        assert settings.supabase_key == "anon-key"
        assert settings.persistence_enabled

    def test_supabase_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
        settings = load_settings(write_config(tmp_path), require_api_key=False)
        assert settings.persistence_enabled

    def test_rejects_bad_values(self, tmp_path):
        with pytest.raises(ValueError, match="history_limit"):
            load_settings(write_config(tmp_path, history_limit=0), require_api_key=False)
        with pytest.raises(ValueError, match="search_temperature"):
            load_settings(write_config(tmp_path, search_temperature=3), require_api_key=False)

    def test_log_file_placeholder(self, tmp_path):
        path = write_config(tmp_path, log_file="logs/run_YYYYMMDD_HHMMSS.log")

        settings = load_settings(path, require_api_key=False)

        assert settings.log_file.parent == (tmp_path / "logs").resolve()
        assert settings.log_file.parent.is_dir()
        assert "YYYYMMDD" not in settings.log_file.name
