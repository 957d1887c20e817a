"""
Application configuration management.

Loads non-sensitive configuration from JSON and sensitive values
(Gemini API key, Supabase credentials) from environment variables or
secret files.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("matchpoint_config.json")
DEFAULT_SUMMARY_DIR = Path("summaries")
DEFAULT_LOCAL_STORE = Path("local_state.json")
SUMMARY_FILENAME = "match_summary.html"

DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_FALLBACK_MODELS = ("gemini-1.5-flash-latest", "gemini-1.5-pro")


@dataclass(frozen=True)
class Settings:
    """Container for application configuration."""

    gemini_api_key: str
    gemini_model: str
    fallback_models: Tuple[str, ...]
    search_tool: str
    reasoning_temperature: float
    search_temperature: float
    structuring_temperature: float
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    resumes_table: str
    resumes_bucket: str
    history_limit: int
    local_history_limit: int
    local_store_file: Path
    log_file: Optional[Path]
    log_format: Optional[str]
    log_date_format: Optional[str]
    debug: bool
    summary_file: Path

    @property
    def persistence_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def _read_json(path: Path) -> Dict[str, Any]:
    """Read a JSON file into a dictionary."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file missing: {path}") from None
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in configuration file: {path}") from exc


def _resolve_path(base: Path, value: Optional[str]) -> Optional[Path]:
    """Resolve a possibly relative path against a base directory."""
    if not value:
        return None
    candidate = Path(value)
    return candidate if candidate.is_absolute() else (base / candidate).resolve()


def _load_secret(base: Path, key_path: Optional[str]) -> Optional[str]:
    """Load a secret value from a text file."""
    if not key_path:
        return None
    secret_file = _resolve_path(base, key_path)
    if secret_file and secret_file.exists():
        return secret_file.read_text(encoding="utf-8").strip()
    LOGGER.warning("Secret file %s not found; skipping", secret_file)
    return None


def _read_temperature(config: Dict[str, Any], key: str, default: float) -> float:
    value = float(config.get(key, default))
    if not 0.0 <= value <= 2.0:
        raise ValueError(f"Config '{key}' must be between 0 and 2.")
    return value


def load_settings(config_path: Path = DEFAULT_CONFIG_PATH, require_api_key: bool = True) -> Settings:
    """
    Load application settings from config file and environment variables.

    Args:
        config_path: Path to the JSON configuration file.
        require_api_key: Fail when no Gemini key is available. History
            commands never talk to Gemini and pass False.

    Returns:
        Settings dataclass populated with configuration values.
    """
    config_path = config_path.resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    config = _read_json(config_path)
    base_dir = config_path.parent

    secret_key = _load_secret(base_dir, config.get("gemini_api_key_file"))
    api_key = secret_key or os.environ.get("GEMINI_API_KEY", "").strip()
    if require_api_key and not api_key:
        raise ValueError(
            "Gemini API key missing. Set GEMINI_API_KEY env or provide gemini_api_key_file."
        )

    gemini_model = config.get("gemini_model", DEFAULT_MODEL)
    fallback_models = tuple(config.get("fallback_models", DEFAULT_FALLBACK_MODELS))

    history_limit = int(config.get("history_limit", 50))
    if history_limit <= 0:
        raise ValueError("Config 'history_limit' must be > 0.")

    local_history_limit = int(config.get("local_history_limit", 10))
    if local_history_limit <= 0:
        raise ValueError("Config 'local_history_limit' must be > 0.")

    supabase_url = config.get("supabase_url") or os.environ.get("SUPABASE_URL", "").strip() or None
    supabase_key = (
        _load_secret(base_dir, config.get("supabase_key_file"))
        or os.environ.get("SUPABASE_ANON_KEY", "").strip()
        or None
    )
    if not (supabase_url and supabase_key):
        LOGGER.warning("Supabase credentials not found. Database features will be disabled.")

    local_store_file = (
        _resolve_path(base_dir, config.get("local_store_file"))
        or (base_dir / DEFAULT_LOCAL_STORE).resolve()
    )

    log_file_str = config.get("log_file")
    if log_file_str:
        # Replace timestamp placeholder if present
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_str = log_file_str.replace("YYYYMMDD_HHMMSS", timestamp)
        log_file = _resolve_path(base_dir, log_file_str)
        log_file.parent.mkdir(parents=True, exist_ok=True)
    else:
        log_file = None

    summary_file = _resolve_path(base_dir, config.get("summary_file"))
    if summary_file is None:
        summary_file = (base_dir / DEFAULT_SUMMARY_DIR / SUMMARY_FILENAME).resolve()

    return Settings(
        gemini_api_key=api_key,
        gemini_model=gemini_model,
        fallback_models=fallback_models,
        search_tool=config.get("search_tool", "google_search_retrieval"),
        reasoning_temperature=_read_temperature(config, "reasoning_temperature", 0.4),
        search_temperature=_read_temperature(config, "search_temperature", 0.7),
        structuring_temperature=_read_temperature(config, "structuring_temperature", 0.2),
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        resumes_table=config.get("resumes_table", "resumes"),
        resumes_bucket=config.get("resumes_bucket", "resumes"),
        history_limit=history_limit,
        local_history_limit=local_history_limit,
        local_store_file=local_store_file,
        log_file=log_file,
        log_format=config.get("log_format"),
        log_date_format=config.get("log_date_format"),
        debug=bool(config.get("debug", False)),
        summary_file=summary_file,
    )
