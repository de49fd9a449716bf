import pytest

from app.config import (
    clear_settings_cache,
    get_batch_settings,
    get_oracle_settings,
    validate_settings,
)


@pytest.fixture()
def env(monkeypatch):
    def _set(**values: str) -> None:
        for name, value in values.items():
            monkeypatch.setenv(name, value)
        clear_settings_cache()

    return _set


def test_test_environment_is_valid() -> None:
    assert validate_settings() == []


def test_batch_settings_fall_back_on_invalid_numbers(env) -> None:
    env(BATCH_INTER_REQUEST_DELAY_SECONDS="soon", ORACLE_TIMEOUT_SECONDS="-3")

    settings = get_batch_settings()

    assert settings.inter_request_delay_seconds == 2.0
    assert settings.oracle_timeout_seconds is None


def test_oracle_timeout_is_read_when_positive(env) -> None:
    env(ORACLE_TIMEOUT_SECONDS="12.5")

    assert get_batch_settings().oracle_timeout_seconds == 12.5


def test_openai_adapter_requires_api_key(env, monkeypatch) -> None:
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    env(LLM_ADAPTER="openai")

    errors = validate_settings()

    assert len(errors) == 1
    assert "LLM_API_KEY" in errors[0]


def test_openai_key_fallback(env, monkeypatch) -> None:
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    env(LLM_ADAPTER="OpenAI", OPENAI_API_KEY="sk-test")

    settings = get_oracle_settings()

    assert settings.adapter == "openai"
    assert settings.api_key == "sk-test"
    assert validate_settings() == []


def test_every_problem_is_reported(env, tmp_path) -> None:
    env(
        LLM_ADAPTER="llama",
        DISPLAY_TIMEZONE="Mars/Olympus_Mons",
        SEED_RECORDS_PATH=str(tmp_path / "missing.json"),
    )

    errors = validate_settings()

    assert len(errors) == 3
    assert any("LLM_ADAPTER" in error for error in errors)
    assert any("DISPLAY_TIMEZONE" in error for error in errors)
    assert any("SEED_RECORDS_PATH" in error for error in errors)
