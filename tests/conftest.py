"""Shared fixtures for conversation-memory tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from conversation_memory.config import load_config
from conversation_memory.types import (
    AccumulatedEntities,
    EntityValue,
    MemoryConfig,
    Message,
)


class MockSummarizer:
    """Records every call; returns a canned summary or raises."""

    def __init__(self, summary: str = "Visitor from Acme discussed budget.", error: Exception | None = None):
        self.summary = summary
        self.error = error
        self.calls: list[tuple[list[Message], str]] = []

    async def __call__(self, messages: list[Message], instruction: str) -> str:
        self.calls.append((list(messages), instruction))
        if self.error is not None:
            raise self.error
        return self.summary


def make_transcript(count: int, chars: int = 60, session_id: str = "sess-1") -> list[Message]:
    """Alternating user/bot messages, each exactly ``chars`` long."""
    messages = []
    for i in range(count):
        role = "user" if i % 2 == 0 else "bot"
        text = f"{role} message {i} "
        messages.append(Message(
            role=role,
            content=(text * (chars // len(text) + 1))[:chars],
            id=f"m{i}",
            session_id=session_id,
        ))
    return messages


@pytest.fixture
def ts() -> datetime:
    return datetime(2026, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def summarizer() -> MockSummarizer:
    return MockSummarizer()


@pytest.fixture
def sample_config() -> MemoryConfig:
    return load_config(config_dict={
        "compression": {
            "token_threshold_percentage": 80,
            "max_token_limit": 200,
            "recent_turns_to_preserve": 3,
        },
        "entities": {"confidence_threshold": 0.6},
        "relevance": {"max_messages": 4},
        "vector_cache": {"max_vectors": 3, "eviction_policy": "lru"},
    })


@pytest.fixture
def sales_messages(ts) -> list[Message]:
    return [
        Message(role="user", content="Hi, I'm Dana from Acme Corp.", id="s1", timestamp=ts),
        Message(role="bot", content="Welcome Dana! How can I help Acme today?", id="s2",
                timestamp=ts + timedelta(seconds=20)),
        Message(role="user", content="Our budget is $50k and we need this by Q3. What does pricing look like?",
                id="s3", timestamp=ts + timedelta(minutes=1)),
        Message(role="bot", content="For a team your size, plans start at $30k per year.", id="s4",
                timestamp=ts + timedelta(minutes=1, seconds=30)),
        Message(role="user", content="ok", id="s5", timestamp=ts + timedelta(minutes=2)),
    ]


@pytest.fixture
def acme_entities(ts) -> AccumulatedEntities:
    return AccumulatedEntities(
        company=EntityValue(value="Acme Corp", source_message_id="s1", confidence=0.9, extracted_at=ts),
        budget=EntityValue(value="$50k", source_message_id="s3", confidence=0.8, extracted_at=ts),
        timeline=EntityValue(value="Q3", source_message_id="s3", confidence=0.8, extracted_at=ts),
        total_extractions=3,
        last_updated=ts,
    )
