"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_ALLOWED_LLM_ADAPTERS = {"openai", "mock"}


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
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
    """
    Read a float from environment variables with safe fallback.
    """

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


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_optional_float_env(name: str) -> float | None:
    """
    Read an optional positive float; unset, invalid or non-positive values yield None.
    """

    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return None
    try:
        parsed = float(raw_value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


@dataclass(frozen=True)
class BatchSettings:
    """
    Runtime settings for the sequential validation batch runner.
    """

    inter_request_delay_seconds: float = 2.0
    oracle_timeout_seconds: float | None = None
    notification_buffer_size: int = 200


@dataclass(frozen=True)
class OracleSettings:
    """
    LLM adapter settings for the category classification oracle.
    """

    adapter: str = "openai"
    model: str = "gpt-4o-mini"
    max_tokens: int = 512
    api_key: str | None = None
    base_url: str | None = None


@dataclass(frozen=True)
class DisplaySettings:
    """
    Presentation settings shared by exports and the dashboard.
    """

    timezone: str = "UTC"


@dataclass(frozen=True)
class SeedSettings:
    """
    Initial record source for the in-memory record store.
    """

    seed_demo_records: bool = True
    seed_records_path: str | None = None


@lru_cache(maxsize=1)
def get_batch_settings() -> BatchSettings:
    """
    Return cached batch runner settings from environment variables.
    """

    return BatchSettings(
        inter_request_delay_seconds=max(0.0, _get_float_env("BATCH_INTER_REQUEST_DELAY_SECONDS", 2.0)),
        oracle_timeout_seconds=_get_optional_float_env("ORACLE_TIMEOUT_SECONDS"),
        notification_buffer_size=max(10, _get_int_env("NOTIFICATION_BUFFER_SIZE", 200)),
    )


@lru_cache(maxsize=1)
def get_oracle_settings() -> OracleSettings:
    """
    Return cached oracle adapter settings from environment variables.
    """

    return OracleSettings(
        adapter=_get_str_env("LLM_ADAPTER", "openai").lower(),
        model=_get_str_env("LLM_MODEL", "gpt-4o-mini"),
        max_tokens=max(64, _get_int_env("LLM_MAX_TOKENS", 512)),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
    )


@lru_cache(maxsize=1)
def get_display_settings() -> DisplaySettings:
    """
    Return cached display settings from environment variables.
    """

    return DisplaySettings(timezone=_get_str_env("DISPLAY_TIMEZONE", "UTC"))


@lru_cache(maxsize=1)
def get_seed_settings() -> SeedSettings:
    """
    Return cached seed settings from environment variables.
    """

    return SeedSettings(
        seed_demo_records=_get_bool_env("SEED_DEMO_RECORDS", True),
        seed_records_path=_get_optional_str_env("SEED_RECORDS_PATH"),
    )


def validate_settings() -> list[str]:
    """
    Return every configuration problem found, empty when the process may start.
    """

    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

    errors: list[str] = []

    oracle = get_oracle_settings()
    if oracle.adapter not in _ALLOWED_LLM_ADAPTERS:
        errors.append(
            f"LLM_ADAPTER='{oracle.adapter}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_LLM_ADAPTERS)}."
        )
    elif oracle.adapter != "mock" and not oracle.api_key:
        errors.append(
            "LLM API key is not set. Provide LLM_API_KEY or OPENAI_API_KEY, "
            "or set LLM_ADAPTER=mock."
        )

    timezone_name = get_display_settings().timezone
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(f"DISPLAY_TIMEZONE='{timezone_name}' is not a known IANA time zone.")

    seed = get_seed_settings()
    if seed.seed_records_path and not Path(seed.seed_records_path).is_file():
        errors.append(f"SEED_RECORDS_PATH='{seed.seed_records_path}' does not point to a file.")

    return errors


def clear_settings_cache() -> None:
    """
    Drop cached settings so the next getter call re-reads the environment.
    """

    for getter in (get_batch_settings, get_oracle_settings, get_display_settings, get_seed_settings):
        getter.cache_clear()
