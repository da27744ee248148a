"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

_ALLOWED_LLM_ADAPTERS = {"anthropic", "openai", "mock"}

_DEFAULT_MODELS = {
    "anthropic": "claude-3-5-sonnet-20241022",
    "openai": "gpt-4o-mini",
    "mock": "mock",
}


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    for filename in (".env", ".env.local"):
        env_path = PROJECT_ROOT / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(*names: str) -> str | None:
    """
    Return the first non-empty value among ``names``.
    """

    _load_env_once()
    for name in names:
        value = os.getenv(name)
        if value is None:
            continue
        stripped = value.strip()
        if stripped:
            return stripped
    return None


@dataclass(frozen=True)
class LLMSettings:
    """
    Report-generation model settings.
    """

    adapter: str = "anthropic"
    model: str = _DEFAULT_MODELS["anthropic"]
    max_tokens: int = 4000
    max_retries: int = 2
    api_key: str | None = None
    base_url: str | None = None


@dataclass(frozen=True)
class UploadSettings:
    """
    Runtime settings for CSV uploads.
    """

    max_bytes: int = 10 * 1024 * 1024
    preview_rows: int = 5


@dataclass(frozen=True)
class ReportSettings:
    """
    Report storage and retention settings.
    """

    reports_dir: Path = PROJECT_ROOT / "reports"
    max_age_hours: float = 24.0
    cleanup_interval_minutes: int = 60
    scheduler_enabled: bool = True


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """
    Return cached LLM settings from environment variables.

    The API key is looked up in LLM_API_KEY first, then in the
    provider-specific variables of the selected adapter.
    """

    adapter = _get_str_env("LLM_ADAPTER", "anthropic").lower()
    if adapter not in _ALLOWED_LLM_ADAPTERS:
        raise RuntimeError(
            f"LLM_ADAPTER '{adapter}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_LLM_ADAPTERS)}."
        )

    if adapter == "openai":
        api_key = _get_optional_str_env("LLM_API_KEY", "OPENAI_API_KEY")
    else:
        api_key = _get_optional_str_env("LLM_API_KEY", "CLAUDE_API_KEY", "ANTHROPIC_API_KEY")

    return LLMSettings(
        adapter=adapter,
        model=_get_str_env("LLM_MODEL", _DEFAULT_MODELS[adapter]),
        max_tokens=max(1, _get_int_env("LLM_MAX_TOKENS", 4000)),
        max_retries=max(0, _get_int_env("LLM_MAX_RETRIES", 2)),
        api_key=api_key,
        base_url=_get_optional_str_env("LLM_BASE_URL"),
    )


@lru_cache(maxsize=1)
def get_upload_settings() -> UploadSettings:
    """
    Return cached CSV upload settings from environment variables.
    """

    return UploadSettings(
        max_bytes=max(1, _get_int_env("UPLOAD_MAX_BYTES", 10 * 1024 * 1024)),
        preview_rows=max(0, _get_int_env("PREVIEW_ROWS", 5)),
    )


@lru_cache(maxsize=1)
def get_report_settings() -> ReportSettings:
    """
    Return cached report storage settings from environment variables.
    """

    reports_dir = _get_optional_str_env("REPORTS_DIR")
    return ReportSettings(
        reports_dir=Path(reports_dir) if reports_dir else PROJECT_ROOT / "reports",
        max_age_hours=max(0.0, _get_float_env("REPORT_MAX_AGE_HOURS", 24.0)),
        cleanup_interval_minutes=max(1, _get_int_env("REPORT_CLEANUP_INTERVAL_MINUTES", 60)),
        scheduler_enabled=_get_bool_env("SCHEDULER_ENABLED", True),
    )
