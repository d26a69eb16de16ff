"""Pytest configuration isolating tests from provider credentials."""

from __future__ import annotations

import pytest

import config as config_module

_PROVIDER_ENV = [
    "OPENAI_API_KEY",
    "OPENAI_TIMEOUT_SECONDS",
    "ALLOWED_ORIGINS",
]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch):
    """Start each test without a provider key and with a fresh config."""
    for key in _PROVIDER_ENV:
        monkeypatch.delenv(key, raising=False)
    cfg = config_module.reset_config()
    yield cfg
    config_module.reset_config()
