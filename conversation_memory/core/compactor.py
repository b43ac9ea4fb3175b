"""CompressionCoordinator: summarizes older turns with an injected summarizer."""

from __future__ import annotations

import inspect
import logging
from typing import Callable, Sequence

from ..token_counter import estimate_message_tokens, estimate_tokens
from ..types import (
    CompressionConfig,
    CompressionResult,
    ConfigurationError,
    Message,
    MessageRole,
    PreconditionError,
    PromptMessage,
    RetentionPlan,
    ScoringContext,
    Summarizer,
)
from .monitor import TokenUsageMonitor, check_compression_config
from .relevance import RelevanceScorer
from .retention import RetentionPlanner

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_INSTRUCTION = """\
Summarize the earlier part of this sales conversation so it can replace the
original messages in the assistant's context.

Preserve:
- All business entities mentioned (company, role, budget, timeline, pain points,
  team size, industry, decision makers)
- Questions the visitor asked and the answers they were given
- Decisions, commitments and agreed next steps
- Signals relevant to lead qualification (authority, need, urgency, buying intent)

Keep business-critical information exact: names, numbers, dates and amounts.
Write concise plain text in the third person. Do not invent details."""

SUMMARY_HEADER = "CONVERSATION CONTEXT SUMMARY:"

CONTINUITY_INSTRUCTION = (
    "\n\nUse the summary above to maintain continuity. Do not ask the visitor "
    "to repeat information that has already been captured."
)


class CompressionCoordinator:
    """Replace older turns with a summary once the transcript nears its limit.

    The most recent ``recent_turns_to_preserve`` turns (two messages each)
    are always kept verbatim. When a RetentionPlanner and a ScoringContext
    (or a precomputed RetentionPlan) are supplied, high-value messages from
    the older prefix are kept as well and only the remainder is summarized.
    """

    def __init__(
        self,
        summarizer: Summarizer | None = None,
        config: CompressionConfig | None = None,
        token_counter: Callable[[str], int] | None = None,
        planner: RetentionPlanner | None = None,
        scorer: RelevanceScorer | None = None,
    ) -> None:
        self.summarizer = summarizer
        self.config = config or CompressionConfig()
        self.token_counter = token_counter or estimate_tokens
        self.monitor = TokenUsageMonitor(self.config, self.token_counter)
        self.planner = planner
        self.scorer = scorer or RelevanceScorer()

    async def compress_conversation(
        self,
        messages: Sequence[Message],
        summarizer: Summarizer | None = None,
        config: CompressionConfig | None = None,
        scoring_context: ScoringContext | None = None,
        retention_plan: RetentionPlan | None = None,
    ) -> CompressionResult:
        config = config or self.config
        check_compression_config(config)
        if not messages:
            raise PreconditionError("Cannot compress empty conversation")

        analysis = self.monitor.analyze(messages, config)
        if not analysis.needs_compression:
            logger.debug("Below threshold (%.1f%%), no compression", analysis.utilization_percentage)
            return self._uncompressed(messages, analysis.current_tokens)

        keep = config.recent_turns_to_preserve * 2
        if len(messages) <= keep:
            logger.debug("Over threshold but only %d messages; nothing to summarize", len(messages))
            return self._uncompressed(messages, analysis.current_tokens)

        prefix = list(messages[:-keep])
        suffix = list(messages[-keep:])

        retained_prefix, to_summarize = self._select_prefix(
            messages, prefix, scoring_context, retention_plan,
        )
        if not to_summarize:
            logger.debug("Every older message is retained; nothing to summarize")
            return self._uncompressed(messages, analysis.current_tokens)

        summarizer = summarizer or self.summarizer
        if summarizer is None:
            raise ConfigurationError("A summarizer is required to compress", field="summarizer", value=None)

        instruction = config.summary_instruction_prompt or DEFAULT_SUMMARY_INSTRUCTION
        try:
            summary = summarizer(to_summarize, instruction)
            if inspect.isawaitable(summary):
                summary = await summary
        except Exception as e:
            logger.warning("Summarizer failed for %d messages: %s", len(to_summarize), e)
            raise
        summary = summary or ""

        recent = tuple(retained_prefix + suffix)
        original_tokens = analysis.current_tokens
        compressed_tokens = self.token_counter(summary) + estimate_message_tokens(recent, self.token_counter)
        ratio = compressed_tokens / original_tokens if original_tokens > 0 else 1.0

        logger.info(
            "Compressed %d messages into summary: %d -> %d tokens (ratio %.2f)",
            len(to_summarize), original_tokens, compressed_tokens, ratio,
        )
        return CompressionResult(
            conversation_summary=summary,
            recent_messages=recent,
            original_token_count=original_tokens,
            compressed_token_count=compressed_tokens,
            compression_ratio=ratio,
            was_compressed=True,
        )

    def build_compressed_context(
        self,
        result: CompressionResult,
        system_prompt: str,
        recent_messages: Sequence[Message] | None = None,
    ) -> list[PromptMessage]:
        """Assemble a prompt: system message first, then recent messages in order."""
        system_content = system_prompt
        if result.was_compressed and result.conversation_summary:
            system_content = (
                f"{system_prompt}\n\n{SUMMARY_HEADER}\n"
                f"{result.conversation_summary}{CONTINUITY_INSTRUCTION}"
            )

        recent = result.recent_messages if recent_messages is None else recent_messages
        prompt = [PromptMessage(role="system", content=system_content)]
        prompt.extend(
            PromptMessage(role="user" if m.role == MessageRole.USER else "assistant", content=m.content)
            for m in recent
        )
        return prompt

    def _select_prefix(
        self,
        messages: Sequence[Message],
        prefix: list[Message],
        scoring_context: ScoringContext | None,
        retention_plan: RetentionPlan | None,
    ) -> tuple[list[Message], list[Message]]:
        """Split the older prefix into (kept verbatim, to summarize)."""
        if retention_plan is None and self.planner is not None and scoring_context is not None:
            scores = self.scorer.score_messages(messages, scoring_context)
            retention_plan = self.planner.plan(prefix, scores[:len(prefix)])
        if retention_plan is None:
            return [], prefix

        retained_ids = {m.id for m in retention_plan.retained}
        kept = [m for m in prefix if m.id in retained_ids]
        rest = [m for m in prefix if m.id not in retained_ids]
        return kept, rest

    @staticmethod
    def _uncompressed(messages: Sequence[Message], tokens: int) -> CompressionResult:
        return CompressionResult(
            conversation_summary="",
            recent_messages=tuple(messages),
            original_token_count=tokens,
            compressed_token_count=tokens,
            compression_ratio=1.0,
            was_compressed=False,
        )
