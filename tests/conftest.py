"""Shared test fixtures."""

from __future__ import annotations

import pytest

_ENV_VARS = (
    "LEDGERMIRROR_API_URL",
    "LEDGERMIRROR_DATABASE_URL",
    "LEDGERMIRROR_USER_ID",
    "LEDGERMIRROR_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clear_ledgermirror_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate tests from LEDGERMIRROR_* variables set by the shell or a .env file."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
