"""RelevanceScorer: multi-factor relevance scoring for transcript messages."""

from __future__ import annotations

import logging
import math
from typing import Sequence

from ..types import (
    ConfigurationError,
    Message,
    RelevanceScore,
    RetentionTier,
    ScoreComponents,
    ScoringContext,
)
from .math_utils import clamp

logger = logging.getLogger(__name__)

BASE_DECAY_RATE = 0.1
DECAY_SCALE = 10

COMPONENT_WEIGHTS: dict[str, float] = {
    "recency": 0.20,
    "entity_relevance": 0.25,
    "intent_alignment": 0.20,
    "business_context": 0.25,
    "engagement": 0.10,
}

ENTITY_WEIGHTS: dict[str, float] = {
    "budget": 0.30,
    "company": 0.25,
    "role": 0.20,
    "urgency": 0.15,
    "timeline": 0.15,
    "team_size": 0.10,
    "industry": 0.10,
    "contact_method": 0.05,
}
MULTI_ENTITY_BONUS = 0.1
NO_ENTITY_CONTEXT_SCORE = 0.1

INTENT_PHASE_IMPORTANCE: dict[str, float] = {
    "booking_request": 1.0,
    "qualification": 1.0,
    "demo_request": 0.95,
    "sales_inquiry": 0.9,
    "faq_pricing": 0.8,
    "faq_features": 0.7,
    "support_request": 0.6,
    "unknown": 0.3,
}

BUSINESS_PHASE_SCORES: dict[str, float] = {
    "qualification": 1.0,
    "closing": 1.0,
    "objection_handling": 0.9,
    "evaluation": 0.9,
    "demo": 0.8,
    "discovery": 0.6,
}

DEFAULT_SCORE = 0.3

TIER_THRESHOLDS: list[tuple[float, RetentionTier]] = [
    (0.8, RetentionTier.CRITICAL),
    (0.6, RetentionTier.HIGH),
    (0.4, RetentionTier.MEDIUM),
]


def decay_rate(total: int, adaptive: bool = False) -> float:
    """Longer transcripts decay faster when adaptive decay is enabled."""
    if adaptive:
        if total > 100:
            return 0.2
        if total > 50:
            return 0.15
    return BASE_DECAY_RATE


def tier_for(score: float) -> RetentionTier:
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return RetentionTier.LOW


class RelevanceScorer:
    """Score each message on recency, entity mentions, intent, business
    context and engagement, then combine with fixed weights."""

    def __init__(self, weights: dict[str, float] | None = None) -> None:
        self.weights = dict(weights or COMPONENT_WEIGHTS)

    def score_messages(
        self,
        messages: Sequence[Message],
        context: ScoringContext,
    ) -> list[RelevanceScore]:
        if messages is None:
            raise ConfigurationError("Messages are required for relevance scoring", field="messages", value=None)
        if context is None:
            raise ConfigurationError("Scoring context is required", field="context", value=None)
        total = len(messages)
        return [self.score_message(m, i, total, context) for i, m in enumerate(messages)]

    def score_message(
        self,
        message: Message,
        index: int,
        total: int,
        context: ScoringContext,
    ) -> RelevanceScore:
        if message is None:
            raise ConfigurationError("Message is required for relevance scoring", field="message", value=None)
        if context is None:
            raise ConfigurationError("Scoring context is required", field="context", value=None)
        if total < 1 or not 0 <= index < total:
            raise ConfigurationError(
                f"Message index {index} out of range for transcript of {total}",
                field="index",
                value=index,
            )

        reasons: list[str] = []
        recency = self._recency(index, total, context.adaptive_decay)
        entity_relevance, mentioned = self._entity_relevance(message.content, context)
        intent_alignment = self._intent_alignment(context)
        business_context = self._business_context(context)
        engagement = self._engagement(message.content)

        components = ScoreComponents(
            recency=recency,
            entity_relevance=entity_relevance,
            intent_alignment=intent_alignment,
            business_context=business_context,
            engagement=engagement,
        )
        overall = clamp(sum(
            getattr(components, name) * weight for name, weight in self.weights.items()
        ))

        if recency >= 0.8:
            reasons.append("recent message")
        if mentioned:
            reasons.append(f"mentions {', '.join(mentioned)}")
        if context.intent is not None and intent_alignment >= 0.7:
            reasons.append(f"high-value intent: {context.intent.intent}")
        if business_context >= 0.7:
            reasons.append("strong business context")
        if message.content.count("?"):
            reasons.append(f"visitor engagement ({message.content.count('?')} questions)")

        return RelevanceScore(
            message_id=message.id,
            overall_score=overall,
            components=components,
            tier=tier_for(overall),
            reasons=tuple(reasons),
        )

    @staticmethod
    def _recency(index: int, total: int, adaptive: bool) -> float:
        if total <= 1:
            return 1.0
        k = decay_rate(total, adaptive)
        distance = (total - 1 - index) / (total - 1)
        return math.exp(-k * distance * DECAY_SCALE)

    @staticmethod
    def _entity_relevance(content: str, context: ScoringContext) -> tuple[float, list[str]]:
        entities = context.entities
        if entities is None or entities.is_empty():
            return NO_ENTITY_CONTEXT_SCORE, []

        text = content.lower()
        mentioned: list[str] = []
        score = 0.0
        for name, weight in ENTITY_WEIGHTS.items():
            entity = getattr(entities, name)
            if entity is None or not entity.value.strip():
                continue
            if entity.value.lower() in text:
                mentioned.append(name)
                score += weight
        if len(mentioned) > 1:
            score += MULTI_ENTITY_BONUS * (len(mentioned) - 1)
        return clamp(score), mentioned

    @staticmethod
    def _intent_alignment(context: ScoringContext) -> float:
        if context.intent is None:
            return DEFAULT_SCORE
        importance = INTENT_PHASE_IMPORTANCE.get(context.intent.intent, DEFAULT_SCORE)
        return clamp(0.4 * context.intent.confidence + 0.6 * importance)

    @staticmethod
    def _business_context(context: ScoringContext) -> float:
        if context.lead_score is None and context.conversation_phase is None:
            return DEFAULT_SCORE
        lead = clamp((context.lead_score or 0.0) / 100)
        phase = BUSINESS_PHASE_SCORES.get(context.conversation_phase or "", DEFAULT_SCORE)
        return clamp(0.6 * lead + 0.4 * phase)

    @staticmethod
    def _engagement(content: str) -> float:
        score = 0.3
        length = len(content)
        if length >= 100:
            score += 0.4
        elif length >= 50:
            score += 0.3
        elif length >= 20:
            score += 0.2
        score += min(0.3, 0.15 * content.count("?"))
        return clamp(score)
