"""TokenUsageMonitor: threshold checking for compression triggers."""

from __future__ import annotations

import logging
import math
from typing import Callable, Sequence

from ..config import MAX_THRESHOLD_PERCENTAGE, MIN_THRESHOLD_PERCENTAGE
from ..token_counter import estimate_message_tokens
from ..types import (
    CompressionConfig,
    ConfigurationError,
    Message,
    TokenUsageAnalysis,
)

logger = logging.getLogger(__name__)

# After compression the transcript should land at this fraction of the limit.
TARGET_UTILIZATION = 0.6


def check_compression_config(config: CompressionConfig) -> None:
    """Raise ConfigurationError for the first invalid compression setting."""
    threshold = config.token_threshold_percentage
    if threshold is None or not MIN_THRESHOLD_PERCENTAGE <= threshold <= MAX_THRESHOLD_PERCENTAGE:
        raise ConfigurationError(
            f"Token threshold must be between {MIN_THRESHOLD_PERCENTAGE}% and {MAX_THRESHOLD_PERCENTAGE}%",
            field="token_threshold_percentage",
            value=threshold,
        )
    if config.recent_turns_to_preserve is None or config.recent_turns_to_preserve < 1:
        raise ConfigurationError(
            "Must preserve at least 1 recent conversation turn",
            field="recent_turns_to_preserve",
            value=config.recent_turns_to_preserve,
        )
    if config.max_token_limit is None or config.max_token_limit <= 0:
        raise ConfigurationError(
            "Max token limit must be greater than 0",
            field="max_token_limit",
            value=config.max_token_limit,
        )


class TokenUsageMonitor:
    """Measure transcript token usage against the configured limit.

    Compression is needed once utilization reaches the threshold percentage.
    The savings target brings usage back down to 60% of the limit.
    """

    def __init__(
        self,
        config: CompressionConfig | None = None,
        token_counter: Callable[[str], int] | None = None,
    ) -> None:
        self.config = config or CompressionConfig()
        self.token_counter = token_counter
        self._last_analysis: TokenUsageAnalysis | None = None

    def analyze(
        self,
        messages: Sequence[Message],
        config: CompressionConfig | None = None,
    ) -> TokenUsageAnalysis:
        config = config or self.config
        check_compression_config(config)

        current = estimate_message_tokens(messages, self.token_counter)
        max_tokens = config.max_token_limit
        utilization = current * 100 / max_tokens
        needs_compression = utilization >= config.token_threshold_percentage

        tokens_to_save = 0
        if needs_compression:
            tokens_to_save = max(0, math.ceil(current - max_tokens * TARGET_UTILIZATION))

        analysis = TokenUsageAnalysis(
            current_tokens=current,
            max_tokens=max_tokens,
            utilization_percentage=utilization,
            needs_compression=needs_compression,
            tokens_to_save=tokens_to_save,
        )
        self._last_analysis = analysis
        logger.debug(
            "Token usage: %d/%d (%.1f%%), compress=%s",
            current, max_tokens, utilization, needs_compression,
        )
        return analysis

    @property
    def last_analysis(self) -> TokenUsageAnalysis | None:
        return self._last_analysis


def analyze_token_usage(
    messages: Sequence[Message],
    config: CompressionConfig | None = None,
    token_counter: Callable[[str], int] | None = None,
) -> TokenUsageAnalysis:
    """Convenience wrapper around TokenUsageMonitor.analyze."""
    return TokenUsageMonitor(config, token_counter).analyze(messages)
