"""Keyword classifiers for visitor intent and conversation phase, zero external deps."""

from __future__ import annotations

import re
from typing import Sequence

from ..patterns import (
    DEFAULT_INTENT_PATTERNS,
    DEFAULT_PHASE,
    DEFAULT_PHASE_KEYWORDS,
)
from ..types import ClassificationResult, Message, MessageRole
from .base import Classifier


class KeywordIntentClassifier(Classifier):
    """Classify a message's intent with an ordered regex ladder.

    Every intent with a matching pattern scores 0.9; ties keep ladder order,
    so the earliest matching intent comes first.
    """

    def __init__(self, patterns: list[tuple[str, list[str]]] | None = None) -> None:
        self._patterns = patterns or DEFAULT_INTENT_PATTERNS
        self._compiled: list[tuple[str, list[re.Pattern]]] = []

    @property
    def name(self) -> str:
        return "keyword-intent"

    async def initialize(self) -> None:
        self._compiled = [
            (intent, [re.compile(p, re.IGNORECASE) for p in patterns])
            for intent, patterns in self._patterns
        ]

    async def classify(self, text: str) -> list[ClassificationResult]:
        if not self._compiled:
            await self.initialize()

        results: list[ClassificationResult] = []
        for intent, patterns in self._compiled:
            if any(p.search(text) for p in patterns):
                results.append(ClassificationResult(label=intent, confidence=0.9, source="keyword"))
        return results


class KeywordPhaseClassifier(Classifier):
    """Classify the conversation phase from keyword counts.

    Confidence: 0.5 base + 0.05 per additional keyword hit (capped at 0.85).
    """

    def __init__(self, keywords: dict[str, list[str]] | None = None) -> None:
        self._keywords = keywords or DEFAULT_PHASE_KEYWORDS
        self._compiled: dict[str, list[re.Pattern]] = {}

    @property
    def name(self) -> str:
        return "keyword-phase"

    async def initialize(self) -> None:
        self._compiled = {
            phase: [re.compile(rf"\b{re.escape(kw)}\b", re.IGNORECASE) for kw in keywords]
            for phase, keywords in self._keywords.items()
        }

    async def classify(self, text: str) -> list[ClassificationResult]:
        if not self._compiled:
            await self.initialize()

        results: list[ClassificationResult] = []
        for phase, patterns in self._compiled.items():
            matches = sum(len(p.findall(text)) for p in patterns)
            if matches > 0:
                confidence = min(0.85, 0.5 + 0.05 * (matches - 1))
                results.append(ClassificationResult(label=phase, confidence=confidence, source="keyword"))
        return sorted(results, key=lambda r: r.confidence, reverse=True)

    async def classify_transcript(self, messages: Sequence[Message]) -> str:
        """Phase of a transcript, judged from the visitor's messages only."""
        text = "\n".join(m.content for m in messages if m.role == MessageRole.USER)
        if not text:
            return DEFAULT_PHASE
        results = await self.classify(text)
        return results[0].label if results else DEFAULT_PHASE
