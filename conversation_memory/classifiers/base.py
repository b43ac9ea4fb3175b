"""Classifier ABC and ClassifierPipeline (ordered fallback chain)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ..patterns import DEFAULT_FALLBACK_INTENT
from ..types import ClassificationResult, IntentContext, Message

FALLBACK_CONFIDENCE = 0.1


class Classifier(ABC):
    """Base class for intent and conversation-phase classifiers."""

    @abstractmethod
    async def classify(self, text: str) -> list[ClassificationResult]:
        """Return matching labels ordered by confidence descending. Empty = no opinion."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Classifier identifier (e.g. 'keyword-intent', 'keyword-phase')."""

    async def initialize(self) -> None:
        """Optional: pre-compile patterns or load models."""
        pass


class ClassifierPipeline:
    """Ordered fallback chain. First confident classifier wins.

    Intent pipelines fall back to ``unknown``; phase pipelines are usually
    built with ``fallback_label="discovery"``.
    """

    def __init__(
        self,
        classifiers: list[Classifier],
        min_confidence: float = 0.3,
        fallback_label: str = DEFAULT_FALLBACK_INTENT,
    ):
        self.classifiers = classifiers
        self.min_confidence = min_confidence
        self.fallback_label = fallback_label

    async def initialize(self) -> None:
        for c in self.classifiers:
            await c.initialize()

    async def classify(self, text: str) -> list[ClassificationResult]:
        """Run classifiers in order. First to return confident results wins.

        Guaranteed to return at least one result (``fallback_label``).
        """
        for classifier in self.classifiers:
            results = await classifier.classify(text)
            confident = [r for r in results if r.confidence >= self.min_confidence]
            if confident:
                return sorted(confident, key=lambda r: r.confidence, reverse=True)

        return [self._fallback()]

    async def best(self, text: str) -> ClassificationResult:
        return (await self.classify(text))[0]

    async def detect_intent(self, messages: Sequence[Message]) -> IntentContext:
        """Intent of the latest visitor message; fallback when the visitor has not spoken."""
        for message in reversed(messages):
            if message.is_from_user():
                return (await self.best(message.content)).to_intent()
        return self._fallback().to_intent()

    def _fallback(self) -> ClassificationResult:
        return ClassificationResult(
            label=self.fallback_label, confidence=FALLBACK_CONFIDENCE, source="fallback",
        )
