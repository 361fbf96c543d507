"""Shared pytest fixtures for Dify LLM SDK tests."""

import itertools

import pytest

from dify_llm_sdk.config.settings import DifyChatSettings, DifyProviderSettings
from dify_llm_sdk.models.conversation_types import ConversationMessage, TurnRole as ConversationRole
from dify_llm_sdk.models.generation import CallOptions
from dify_llm_sdk.providers.dify.streaming import StreamTranslator
from dify_llm_sdk.streaming.reasoning import ReasoningSplitter


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O")
    config.addinivalue_line("markers", "integration: tests across the full request pipeline")


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Mock environment variables for testing."""
    env_vars = {
        "DIFY_API_KEY": "app-test-key",
        "DIFY_BASE_URL": "https://dify.example.com/v1/",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def id_generator():
    """Deterministic block ids: reasoning-1, reasoning-2, ..."""
    counter = itertools.count(1)
    return lambda: f"reasoning-{next(counter)}"


@pytest.fixture
def splitter(id_generator):
    return ReasoningSplitter(id_generator=id_generator)


@pytest.fixture
def translator(id_generator):
    return StreamTranslator(id_generator=id_generator)


@pytest.fixture
def provider_settings():
    return DifyProviderSettings(base_url="https://dify.example.com/v1", api_key="app-test-key")


@pytest.fixture
def chat_settings():
    return DifyChatSettings(inputs={"topic": "physics"})


@pytest.fixture
def sample_conversation_messages():
    """Sample conversation ending with a user turn."""
    return [
        ConversationMessage(
            role=ConversationRole.SYSTEM,
            content="You are a helpful assistant."
        ),
        ConversationMessage(
            role=ConversationRole.ASSISTANT,
            content="How can I help?"
        ),
        ConversationMessage(
            role=ConversationRole.USER,
            content="What is quantum computing?"
        )
    ]


@pytest.fixture
def call_options(sample_conversation_messages):
    return CallOptions(
        prompt=sample_conversation_messages,
        headers={"user-id": "user-123"},
    )
