"""Tests for CompressionCoordinator."""

import pytest

from conversation_memory.core.compactor import (
    CONTINUITY_INSTRUCTION,
    DEFAULT_SUMMARY_INSTRUCTION,
    CompressionCoordinator,
)
from conversation_memory.core.retention import RetentionPlanner
from conversation_memory.types import (
    AccumulatedEntities,
    CompressionConfig,
    CompressionResult,
    ConfigurationError,
    EntityValue,
    IntentContext,
    Message,
    PreconditionError,
    RetentionPlan,
    ScoringContext,
)
from tests.conftest import MockSummarizer, make_transcript


@pytest.fixture
def config():
    return CompressionConfig(max_token_limit=200, recent_turns_to_preserve=3)


@pytest.fixture
def coordinator(summarizer, config):
    return CompressionCoordinator(summarizer, config)


@pytest.mark.asyncio
async def test_twenty_messages_keeps_six(coordinator, summarizer):
    messages = make_transcript(20, chars=60)
    result = await coordinator.compress_conversation(messages)

    assert result.was_compressed is True
    assert len(result.recent_messages) == 6
    assert list(result.recent_messages) == messages[-6:]
    assert len(summarizer.calls) == 1

    summarized, instruction = summarizer.calls[0]
    assert summarized == messages[:14]
    assert "business entities" in instruction
    assert "lead qualification" in instruction


@pytest.mark.asyncio
async def test_compressed_token_accounting(coordinator, summarizer):
    messages = make_transcript(20, chars=60)
    result = await coordinator.compress_conversation(messages)

    summary_tokens = -(-len(summarizer.summary) // 4)
    assert result.original_token_count == 300
    assert result.compressed_token_count == summary_tokens + 6 * 15
    assert result.compression_ratio == pytest.approx(result.compressed_token_count / 300)
    assert result.conversation_summary == summarizer.summary


@pytest.mark.asyncio
async def test_below_threshold_is_identity(summarizer):
    coordinator = CompressionCoordinator(summarizer, CompressionConfig(max_token_limit=16_000))
    messages = make_transcript(10)
    result = await coordinator.compress_conversation(messages)

    assert result.was_compressed is False
    assert result.recent_messages == tuple(messages)
    assert result.compression_ratio == 1.0
    assert result.conversation_summary == ""
    assert summarizer.calls == []


@pytest.mark.asyncio
async def test_short_transcript_not_summarized(summarizer):
    # Over budget, but everything falls inside the preserved window
    coordinator = CompressionCoordinator(
        summarizer, CompressionConfig(max_token_limit=50, recent_turns_to_preserve=3),
    )
    messages = make_transcript(6, chars=60)
    result = await coordinator.compress_conversation(messages)
    assert result.was_compressed is False
    assert len(result.recent_messages) == 6
    assert summarizer.calls == []


@pytest.mark.asyncio
async def test_empty_conversation(coordinator):
    with pytest.raises(PreconditionError, match="Cannot compress empty conversation"):
        await coordinator.compress_conversation([])


@pytest.mark.asyncio
@pytest.mark.parametrize("threshold", [10, 49, 96])
async def test_bad_threshold_checked_before_messages(summarizer, threshold):
    coordinator = CompressionCoordinator(summarizer)
    bad = CompressionConfig(token_threshold_percentage=threshold, recent_turns_to_preserve=0)
    # Threshold is reported first, even with an empty transcript and bad turns
    with pytest.raises(ConfigurationError, match="between 50% and 95%"):
        await coordinator.compress_conversation([], config=bad)


@pytest.mark.asyncio
async def test_turns_checked_before_empty(summarizer):
    coordinator = CompressionCoordinator(summarizer)
    with pytest.raises(ConfigurationError, match="Must preserve at least 1 recent conversation turn"):
        await coordinator.compress_conversation([], config=CompressionConfig(recent_turns_to_preserve=0))


@pytest.mark.asyncio
async def test_summarizer_error_propagates(config):
    error = RuntimeError("model unavailable")
    coordinator = CompressionCoordinator(MockSummarizer(error=error), config)
    with pytest.raises(RuntimeError) as exc:
        await coordinator.compress_conversation(make_transcript(20, chars=60))
    assert exc.value is error


@pytest.mark.asyncio
async def test_per_call_summarizer_and_instruction(config):
    override = MockSummarizer(summary="short")
    coordinator = CompressionCoordinator(config=config)
    custom = CompressionConfig(
        max_token_limit=200, recent_turns_to_preserve=3, summary_instruction_prompt="Just the facts.",
    )
    result = await coordinator.compress_conversation(make_transcript(20, chars=60), override, custom)
    assert result.conversation_summary == "short"
    assert override.calls[0][1] == "Just the facts."


@pytest.mark.asyncio
async def test_missing_summarizer(config):
    coordinator = CompressionCoordinator(config=config)
    with pytest.raises(ConfigurationError) as exc:
        await coordinator.compress_conversation(make_transcript(20, chars=60))
    assert exc.value.field == "summarizer"


def test_default_instruction_content():
    for phrase in (
        "business entities",
        "company, role, budget, timeline, pain points",
        "lead qualification",
        "business-critical information",
        "Decisions",
    ):
        assert phrase in DEFAULT_SUMMARY_INSTRUCTION


@pytest.mark.asyncio
async def test_planner_keeps_high_value_prefix_messages(summarizer, ts):
    messages = make_transcript(20, chars=60)
    key = Message(role="user", content="Our budget is $50k for Acme Corp, can we talk?", id="key")
    messages[2] = key
    entities = AccumulatedEntities(
        budget=EntityValue(value="$50k", source_message_id="key", extracted_at=ts),
        company=EntityValue(value="Acme Corp", source_message_id="key", extracted_at=ts),
    )
    context = ScoringContext(
        entities=entities,
        intent=IntentContext(intent="qualification", confidence=0.9),
        lead_score=80,
        conversation_phase="qualification",
    )
    coordinator = CompressionCoordinator(
        summarizer,
        CompressionConfig(max_token_limit=200, recent_turns_to_preserve=3),
        planner=RetentionPlanner(max_messages=1),
    )
    result = await coordinator.compress_conversation(messages, scoring_context=context)

    assert result.recent_messages[0] is key
    assert len(result.recent_messages) == 7
    summarized = summarizer.calls[0][0]
    assert key not in summarized
    assert len(summarized) == 13


@pytest.mark.asyncio
async def test_precomputed_retention_plan(coordinator, summarizer):
    messages = make_transcript(20, chars=60)
    plan = RetentionPlan(retained=(messages[0], messages[5]), to_compress=())
    result = await coordinator.compress_conversation(messages, retention_plan=plan)
    assert [m.id for m in result.recent_messages[:2]] == ["m0", "m5"]
    assert len(summarizer.calls[0][0]) == 12


def test_build_context_with_summary(coordinator):
    recent = tuple(make_transcript(2))
    result = CompressionResult(
        conversation_summary="Dana from Acme, budget $50k.",
        recent_messages=recent,
        was_compressed=True,
    )
    prompt = coordinator.build_compressed_context(result, "You are a sales assistant.")

    assert len(prompt) == 3
    assert prompt[0].role == "system"
    assert prompt[0].content == (
        "You are a sales assistant.\n\nCONVERSATION CONTEXT SUMMARY:\n"
        "Dana from Acme, budget $50k." + CONTINUITY_INSTRUCTION
    )
    assert [p.role for p in prompt[1:]] == ["user", "assistant"]
    assert prompt[1].to_dict() == {"role": "user", "content": recent[0].content}


def test_build_context_without_compression(coordinator):
    messages = [
        Message(role="user", content="hello"),
        Message(role="lead_capture", content="Can I get your email?"),
        Message(role="qualification", content="How big is your team?"),
    ]
    result = CompressionResult(recent_messages=tuple(messages))
    prompt = coordinator.build_compressed_context(result, "System prompt")
    assert prompt[0].content == "System prompt"
    assert [p.role for p in prompt] == ["system", "user", "assistant", "assistant"]
