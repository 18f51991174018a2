"""Configure pytest fixtures and environment for meeting intelligence tests."""

import pytest

from meetingintel.core import config as config_module
from meetingintel.core.logging import clear_correlation_id

PROVIDER_ENV_VARS = [
    "OPENAI_API_KEY",
    "SERPER_API_KEY",
    "HUBSPOT_TOKEN",
    "PEOPLEDATALABS_API_KEY",
    "SELF_CRITIQUE",
    "OPENAI_TOOLS_ENABLED",
    "OPENAI_MAX_TOOL_ROUNDS",
    "RESEARCH_SCRAPE_LINKEDIN",
]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep real credentials and any local .env file out of every test."""
    monkeypatch.chdir(tmp_path)
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "settings", None)
    yield
    clear_correlation_id()


@pytest.fixture
def clock():
    return FakeClock()
