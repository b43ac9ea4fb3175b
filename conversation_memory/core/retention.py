"""RetentionPlanner: decide which scored messages stay verbatim."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..token_counter import estimate_tokens
from ..types import (
    ConfigurationError,
    Message,
    RelevanceScore,
    RetentionPlan,
    RetentionTier,
)

logger = logging.getLogger(__name__)

TIER_ORDER = (RetentionTier.CRITICAL, RetentionTier.HIGH, RetentionTier.MEDIUM, RetentionTier.LOW)


class RetentionPlanner:
    """Fill the retention budget tier by tier (critical first).

    Within a tier, higher scores go first and ties favour the more recent
    message. A message that would overflow the token cap is skipped and
    smaller candidates are still considered. Both output lists keep
    transcript order.
    """

    def __init__(
        self,
        max_messages: int,
        max_tokens: int | None = None,
        token_counter: Callable[[str], int] | None = None,
    ) -> None:
        if max_messages is None or max_messages <= 0:
            raise ConfigurationError(
                "max_messages must be greater than 0", field="max_messages", value=max_messages,
            )
        if max_tokens is not None and max_tokens <= 0:
            raise ConfigurationError(
                "max_tokens must be greater than 0", field="max_tokens", value=max_tokens,
            )
        self.max_messages = max_messages
        self.max_tokens = max_tokens
        self.token_counter = token_counter or estimate_tokens

    def plan(
        self,
        messages: Sequence[Message],
        scores: Sequence[RelevanceScore],
    ) -> RetentionPlan:
        if messages is None or scores is None:
            raise ConfigurationError("Messages and scores are required", field="messages", value=None)
        if len(messages) != len(scores):
            raise ConfigurationError(
                f"Got {len(scores)} scores for {len(messages)} messages",
                field="scores",
                value=len(scores),
            )

        rank = {tier: i for i, tier in enumerate(TIER_ORDER)}
        candidates = sorted(
            range(len(messages)),
            key=lambda i: (rank[scores[i].tier], -scores[i].overall_score, -i),
        )

        keep: set[int] = set()
        used_tokens = 0
        for i in candidates:
            if len(keep) >= self.max_messages:
                break
            tokens = self.token_counter(messages[i].content)
            if self.max_tokens is not None and used_tokens + tokens > self.max_tokens:
                continue
            keep.add(i)
            used_tokens += tokens

        tier_counts = {tier.value: 0 for tier in TIER_ORDER}
        for score in scores:
            tier_counts[score.tier.value] += 1

        retained = tuple(m for i, m in enumerate(messages) if i in keep)
        to_compress = tuple(m for i, m in enumerate(messages) if i not in keep)
        logger.debug(
            "Retention plan: keep %d, compress %d (%d tokens)",
            len(retained), len(to_compress), used_tokens,
        )
        return RetentionPlan(
            retained=retained,
            to_compress=to_compress,
            retained_tokens=used_tokens,
            tier_counts=tier_counts,
        )
