"""Pytest fixtures and config."""


import pytest


@pytest.fixture(autouse=True)
def env_cleanup(monkeypatch):
    """Avoid picking up real keys or overrides from the environment in tests."""
    for name in (
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "TOOLSTREAM_ENV",
        "TOOLSTREAM_PROVIDER",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
