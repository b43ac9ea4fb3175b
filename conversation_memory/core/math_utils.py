"""Shared math utilities."""

from __future__ import annotations

from typing import Sequence

from ..types import ConfigurationError


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors.

    Zero-magnitude vectors yield 0.0. Mismatched dimensions are an error.
    """
    if len(a) != len(b):
        raise ConfigurationError(
            f"Vector dimensions must match: {len(a)} vs {len(b)}",
            field="vector",
            value=(len(a), len(b)),
        )
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = sum(x * x for x in a) ** 0.5
    norm_b = sum(x * x for x in b) ** 0.5
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
