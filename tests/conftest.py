"""Test configuration and shared fixtures.

Pattern: Pytest fixtures, conftest.py
Anti-Pattern Avoided: Fixture reuse without explicit scope
"""

import pytest

from groupchat.core.config import Settings
from groupchat.schemas import (
    ChatContext,
    GroupChatConfig,
    Message,
    MessageRole,
    Participant,
)


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with safe defaults."""
    return Settings(
        environment="test",
        log_level="DEBUG",
        llm_gateway_url="http://gateway.test",
        default_max_rounds=20,
        default_max_messages=100,
        default_nested_max_rounds=3,
    )


# ============================================================================
# Participant and Message Fixtures
# ============================================================================

@pytest.fixture
def participants() -> list[Participant]:
    """Three agent participants in registry order."""
    return [
        Participant(name="alice", capabilities=["planning"]),
        Participant(name="bob", capabilities=["coding"]),
        Participant(name="carol", capabilities=["review"]),
    ]


@pytest.fixture
def context() -> ChatContext:
    """Fresh context for a chat that has not started."""
    return ChatContext(chat_id="chat-test", active_participants=["alice", "bob", "carol"])


@pytest.fixture
def messages() -> list[Message]:
    """Short conversation log."""
    return [
        Message(role=MessageRole.USER, content="Let's plan the release", name="user"),
        Message(role=MessageRole.ASSISTANT, content="I will draft the plan", name="alice"),
    ]


@pytest.fixture
def chat_config(participants: list[Participant]) -> GroupChatConfig:
    """Round-robin chat over the three participants with a small round cap."""
    return GroupChatConfig(name="test-chat", participants=participants, max_rounds=3)
