"""Runtime configuration read from environment variables.

Values are looked up on every call so tests can override them with
``monkeypatch.setenv``. A ``.env`` file in the working directory is loaded
once at import time.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_THEME_ID = "sleek"
DEFAULT_ACCENT_COLOR = "#3b82f6"


def _get_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_github_api_url() -> str:
    return os.environ.get("GITHUB_API_URL", DEFAULT_GITHUB_API_URL).rstrip("/")


def get_github_timeout() -> float:
    """Timeout in seconds applied to every GitHub request."""
    return _get_float("GITHUB_TIMEOUT_SECONDS", 20.0)


def get_repo_page_size() -> int:
    """Maximum number of repositories fetched per sync."""
    return _get_int("GITHUB_REPO_PAGE_SIZE", 50)


def get_llm_timeout() -> float:
    return _get_float("LLM_TIMEOUT_SECONDS", 60.0)


def get_llm_provider_name() -> str:
    return os.environ.get("LLM_PROVIDER", "gemini").lower()


def get_default_theme() -> str:
    return os.environ.get("PORTPILOT_DEFAULT_THEME", DEFAULT_THEME_ID)


def get_default_accent_color() -> str:
    return os.environ.get("PORTPILOT_DEFAULT_ACCENT", DEFAULT_ACCENT_COLOR)
