"""Per-field merge strategies for accumulated entities.

Three strategies cover every field:

- replaceable: the latest extraction always wins (budget, timeline, ...)
- confidence-based: a trusted value yields only to strictly higher
  confidence; a value below the threshold yields to any new extraction
- additive: list fields grow, deduplicated on a normalized form
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable

from ..patterns import NON_WORD_PATTERN, WHITESPACE_PATTERN
from ..types import EntityValue

_NON_WORD_RE = re.compile(NON_WORD_PATTERN)
_WHITESPACE_RE = re.compile(WHITESPACE_PATTERN)


def normalize_entity_value(value: str) -> str:
    """Lower-case with punctuation and whitespace removed.

    "Data Migration", "data-migration" and "DATA MIGRATION!" all normalize
    to "datamigration".
    """
    text = _NON_WORD_RE.sub("", value.lower())
    return _WHITESPACE_RE.sub("", text)


def is_extracted(value: str | None) -> bool:
    return value is not None and bool(str(value).strip())


def apply_replaceable(
    new_value: str,
    message_id: str,
    confidence: float,
    now: datetime | None = None,
) -> EntityValue:
    return EntityValue(
        value=new_value.strip(),
        source_message_id=message_id,
        confidence=confidence,
        extracted_at=now or datetime.now(timezone.utc),
    )


def apply_confidence_based(
    existing: EntityValue | None,
    new_value: str,
    message_id: str,
    confidence: float,
    confidence_threshold: float,
    now: datetime | None = None,
) -> EntityValue:
    """Return the value to keep. ``existing`` is returned unchanged when it wins.

    An existing value below ``confidence_threshold`` is replaced by any new
    extraction; at or above it the new value needs strictly higher confidence.
    """
    candidate = apply_replaceable(new_value, message_id, confidence, now)
    if existing is None:
        return candidate
    if existing.confidence < confidence_threshold or confidence > existing.confidence:
        return candidate
    return existing


def apply_additive(
    existing: tuple[EntityValue, ...],
    new_values: Iterable[str],
    message_id: str,
    confidence: float,
    deduplicate: bool = True,
    now: datetime | None = None,
) -> tuple[tuple[EntityValue, ...], int]:
    """Append new values; returns (merged, number added)."""
    now = now or datetime.now(timezone.utc)
    seen = {normalize_entity_value(e.value) for e in existing}
    merged = list(existing)
    added = 0
    for raw in new_values:
        if not is_extracted(raw):
            continue
        key = normalize_entity_value(raw)
        if deduplicate and key in seen:
            continue
        merged.append(apply_replaceable(raw, message_id, confidence, now))
        seen.add(key)
        added += 1
    return tuple(merged), added


def remove_matching(
    existing: tuple[EntityValue, ...],
    value: str,
) -> tuple[tuple[EntityValue, ...], int]:
    """Drop every entry whose normalized value matches; returns (kept, number removed)."""
    target = normalize_entity_value(value)
    kept = tuple(e for e in existing if normalize_entity_value(e.value) != target)
    return kept, len(existing) - len(kept)


QUALITY_CONFIDENCE_WEIGHT = 0.7
QUALITY_FRESHNESS_WEIGHT = 0.3
FRESHNESS_WINDOW_DAYS = 30


def entity_quality(entity: EntityValue, now: datetime | None = None) -> float:
    """Blend confidence with freshness; freshness falls linearly to 0 over 30 days."""
    now = now or datetime.now(timezone.utc)
    age_days = max(0.0, (now - entity.extracted_at).total_seconds() / 86400)
    freshness = max(0.0, 1.0 - age_days / FRESHNESS_WINDOW_DAYS)
    return entity.confidence * QUALITY_CONFIDENCE_WEIGHT + freshness * QUALITY_FRESHNESS_WEIGHT
