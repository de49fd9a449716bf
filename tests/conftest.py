"""
tests/conftest.py

Process environment shared by every test module.

The API module builds its FastAPI instance at import time, so the
environment has to be fixed before any test imports ``app.main``: the mock
LLM adapter (no API key, no network), no demo seed records, no rate-limit
delay.
"""

from __future__ import annotations

import os

os.environ["LLM_ADAPTER"] = "mock"
os.environ["SEED_DEMO_RECORDS"] = "false"
os.environ["BATCH_INTER_REQUEST_DELAY_SECONDS"] = "0"
os.environ["DISPLAY_TIMEZONE"] = "UTC"
os.environ.pop("SEED_RECORDS_PATH", None)
os.environ.pop("ORACLE_TIMEOUT_SECONDS", None)

import pytest  # noqa: E402

from app.config import clear_settings_cache  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings getters are cached; every test starts from the environment above."""
    clear_settings_cache()
    yield
    clear_settings_cache()
