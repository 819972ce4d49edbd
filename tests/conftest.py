"""Pytest configuration and shared fixtures."""

import os
from collections.abc import Generator

import pytest

from tokenwise.config.settings import TokenEngineSettings
from tokenwise.core.context.messages import Message


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Clean environment variables before and after test."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("TOKENWISE_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def sample_env_vars() -> dict[str, str]:
    """Sample environment variables for testing."""
    return {
        "TOKENWISE_CONTEXT_WINDOW": "128000",
        "TOKENWISE_PREFERRED_PROVIDER": "openai",
        "TOKENWISE_OPENAI_API_KEY": "sk-test-openai-key-12345678901234567890",
        "TOKENWISE_COMPACTION_STRATEGY": "always-llm",
        "TOKENWISE_RESULT_CACHE_TTL_MS": "60000",
    }


@pytest.fixture
def set_env_vars(
    clean_env: None, sample_env_vars: dict[str, str]
) -> Generator[dict[str, str], None, None]:
    """Set sample environment variables for testing."""
    for key, value in sample_env_vars.items():
        os.environ[key] = value
    yield sample_env_vars


@pytest.fixture
def settings(clean_env: None) -> TokenEngineSettings:
    """Default settings, isolated from the environment and any .env file."""
    return TokenEngineSettings(_env_file=None)  # type: ignore[call-arg]


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    """A fake clock for TTL and usage-window tests."""
    return FakeClock()


@pytest.fixture
def long_history() -> list[Message]:
    """Thirty alternating user/assistant messages of about 500 characters each."""
    messages = []
    for i in range(30):
        role = "user" if i % 2 == 0 else "assistant"
        messages.append(Message.text(role, f"message {i:02d} " + "x" * 500))
    return messages
