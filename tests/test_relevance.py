"""Tests for RelevanceScorer."""

import math

import pytest

from conversation_memory.core.relevance import RelevanceScorer, decay_rate, tier_for
from conversation_memory.types import (
    AccumulatedEntities,
    ConfigurationError,
    EntityValue,
    IntentContext,
    Message,
    RetentionTier,
    ScoringContext,
)
from tests.conftest import make_transcript


@pytest.fixture
def scorer():
    return RelevanceScorer()


def test_recency_endpoints(scorer):
    messages = make_transcript(11)
    scores = scorer.score_messages(messages, ScoringContext())
    assert scores[-1].components.recency == pytest.approx(1.0)
    assert scores[0].components.recency == pytest.approx(math.exp(-1.0))
    assert scores[-1].components.recency > scores[0].components.recency


def test_recency_single_message(scorer):
    score = scorer.score_message(Message(role="user", content="hi"), 0, 1, ScoringContext())
    assert score.components.recency == 1.0


def test_adaptive_decay_rates():
    assert decay_rate(40, adaptive=True) == 0.1
    assert decay_rate(51, adaptive=True) == 0.15
    assert decay_rate(101, adaptive=True) == 0.2
    assert decay_rate(101, adaptive=False) == 0.1


def test_adaptive_decay_applied(scorer):
    messages = make_transcript(60)
    plain = scorer.score_messages(messages, ScoringContext())
    adaptive = scorer.score_messages(messages, ScoringContext(adaptive_decay=True))
    assert adaptive[0].components.recency == pytest.approx(math.exp(-1.5))
    assert adaptive[0].components.recency < plain[0].components.recency


def test_entity_relevance_weights_and_bonus(scorer, acme_entities):
    context = ScoringContext(entities=acme_entities)
    message = Message(role="user", content="For ACME CORP the budget is $50k, needed by q3.")
    score = scorer.score_message(message, 0, 1, context)
    # budget .30 + company .25 + timeline .15 + 2 extra entities × 0.1
    assert score.components.entity_relevance == pytest.approx(0.9)
    assert "mentions budget, company, timeline" in score.reasons


def test_entity_relevance_capped(scorer, ts):
    entities = AccumulatedEntities(
        budget=EntityValue("50k", "m", 1.0, ts),
        company=EntityValue("Acme", "m", 1.0, ts),
        role=EntityValue("CTO", "m", 1.0, ts),
        urgency=EntityValue("urgent", "m", 1.0, ts),
    )
    message = Message(role="user", content="Acme CTO here, urgent, 50k ready")
    score = scorer.score_message(message, 0, 1, ScoringContext(entities=entities))
    assert score.components.entity_relevance == 1.0


def test_entity_relevance_defaults(scorer, acme_entities):
    message = Message(role="user", content="Nothing relevant here")
    no_context = scorer.score_message(message, 0, 1, ScoringContext())
    no_mention = scorer.score_message(message, 0, 1, ScoringContext(entities=acme_entities))
    assert no_context.components.entity_relevance == 0.1
    assert no_mention.components.entity_relevance == 0.0


@pytest.mark.parametrize("intent,confidence,expected", [
    ("booking_request", 1.0, 1.0),
    ("demo_request", 0.5, 0.4 * 0.5 + 0.6 * 0.95),
    ("faq_pricing", 0.8, 0.4 * 0.8 + 0.6 * 0.8),
    ("greeting", 0.9, 0.4 * 0.9 + 0.6 * 0.3),
])
def test_intent_alignment(scorer, intent, confidence, expected):
    context = ScoringContext(intent=IntentContext(intent=intent, confidence=confidence))
    score = scorer.score_message(Message(role="user", content="x"), 0, 1, context)
    assert score.components.intent_alignment == pytest.approx(expected)


def test_intent_alignment_default(scorer):
    score = scorer.score_message(Message(role="user", content="x"), 0, 1, ScoringContext())
    assert score.components.intent_alignment == 0.3


@pytest.mark.parametrize("lead,phase,expected", [
    (None, None, 0.3),
    (100, "closing", 1.0),
    (50, "discovery", 0.6 * 0.5 + 0.4 * 0.6),
    (150, "evaluation", 0.6 + 0.4 * 0.9),
    (None, "demo", 0.4 * 0.8),
    (80, None, 0.6 * 0.8 + 0.4 * 0.3),
])
def test_business_context(scorer, lead, phase, expected):
    context = ScoringContext(lead_score=lead, conversation_phase=phase)
    score = scorer.score_message(Message(role="user", content="x"), 0, 1, context)
    assert score.components.business_context == pytest.approx(expected)


@pytest.mark.parametrize("content,expected", [
    ("ok", 0.3),
    ("x" * 20, 0.5),
    ("x" * 50, 0.6),
    ("x" * 100, 0.7),
    ("why?", 0.45),
    ("x" * 100 + "???", 1.0),
])
def test_engagement(scorer, content, expected):
    score = scorer.score_message(Message(role="user", content=content), 0, 1, ScoringContext())
    assert score.components.engagement == pytest.approx(expected)


def test_overall_weighted_sum_and_tier(scorer):
    context = ScoringContext(
        intent=IntentContext(intent="booking_request", confidence=1.0),
        lead_score=100,
        conversation_phase="closing",
    )
    message = Message(role="user", content="x" * 100 + "??")
    score = scorer.score_message(message, 0, 1, context)
    # recency 1.0, entity 0.1, intent 1.0, business 1.0, engagement 1.0
    assert score.overall_score == pytest.approx(0.2 + 0.025 + 0.2 + 0.25 + 0.1)
    assert score.tier == RetentionTier.HIGH
    assert score.message_id == message.id


def test_overall_always_in_unit_range(scorer, acme_entities):
    context = ScoringContext(
        entities=acme_entities,
        intent=IntentContext(intent="qualification", confidence=1.0),
        lead_score=1000,
        conversation_phase="qualification",
    )
    for score in scorer.score_messages(make_transcript(30), context):
        assert 0.0 <= score.overall_score <= 1.0


@pytest.mark.parametrize("value,tier", [
    (0.8, RetentionTier.CRITICAL),
    (0.79, RetentionTier.HIGH),
    (0.6, RetentionTier.HIGH),
    (0.4, RetentionTier.MEDIUM),
    (0.39, RetentionTier.LOW),
])
def test_tier_thresholds(value, tier):
    assert tier_for(value) == tier


def test_validation(scorer):
    message = Message(role="user", content="x")
    with pytest.raises(ConfigurationError):
        scorer.score_message(None, 0, 1, ScoringContext())
    with pytest.raises(ConfigurationError):
        scorer.score_message(message, 0, 1, None)
    with pytest.raises(ConfigurationError):
        scorer.score_message(message, 3, 2, ScoringContext())
    with pytest.raises(ConfigurationError):
        scorer.score_messages(None, ScoringContext())
