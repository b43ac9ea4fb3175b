"""EntityAccumulator: folds per-turn extractions into a running snapshot."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..types import (
    ADDITIVE_FIELDS,
    CONFIDENCE_BASED_FIELDS,
    CORRECTABLE_FIELDS,
    REMOVABLE_FIELDS,
    REPLACEABLE_FIELDS,
    SINGLE_VALUE_FIELDS,
    AccumulatedEntities,
    EntityConfig,
    EntityCorrections,
    EntityMergeContext,
    EntityMergeResult,
    EntityValue,
    ExtractedEntities,
    MergeMetadata,
)
from .entity_strategies import is_extracted

logger = logging.getLogger(__name__)

CONTEXT_HEADER = "ACCUMULATED CONVERSATION CONTEXT:"

_LABELS = {
    "visitor_name": "Name",
    "role": "Role",
    "company": "Company",
    "industry": "Industry",
    "team_size": "Team size",
    "budget": "Budget",
    "timeline": "Timeline",
    "urgency": "Urgency",
    "contact_method": "Preferred contact",
    "decision_makers": "Decision makers",
    "pain_points": "Pain points",
    "goals": "Goals",
    "integration_needs": "Integration needs",
    "evaluation_criteria": "Evaluation criteria",
}

_SECTIONS: list[tuple[str, tuple[str, ...]]] = [
    ("Personal", ("visitor_name", "role")),
    ("Business", ("company", "industry", "team_size")),
    ("Requirements", ("budget", "timeline", "urgency", "contact_method")),
    ("Insights", ADDITIVE_FIELDS),
]

_AGED_FIELDS = ("budget", "timeline")


class EntityAccumulator:
    """Merge fresh extractions into accumulated entities.

    Corrections (removals, then field corrections) are applied before the
    fresh values, so a correction and a new extraction in the same turn
    resolve in favour of the new extraction.
    """

    def __init__(self, config: EntityConfig | None = None) -> None:
        self.config = config or EntityConfig()

    def context_for(self, message_id: str) -> EntityMergeContext:
        """Merge context for ``message_id`` using the configured defaults."""
        return EntityMergeContext(
            message_id=message_id,
            default_confidence=self.config.default_confidence,
            confidence_threshold=self.config.confidence_threshold,
            enable_deduplication=self.config.enable_deduplication,
        )

    def merge(
        self,
        existing: AccumulatedEntities | None,
        fresh: ExtractedEntities,
        context: EntityMergeContext,
    ) -> EntityMergeResult:
        entities = existing or AccumulatedEntities.create()

        corrections_applied = 0
        entities_removed = 0
        correction_ops = 0
        if fresh.corrections is not None and not fresh.corrections.is_empty():
            entities, corrections_applied, entities_removed, correction_ops = self._apply_corrections(
                entities, fresh.corrections,
            )

        entities, entities_added, extracted = self._accumulate(entities, fresh, context)

        metadata = MergeMetadata(
            total_entities_processed=extracted + correction_ops,
            corrections_applied=corrections_applied,
            entities_added=entities_added,
            entities_removed=entities_removed,
        )
        logger.debug(
            "Merged entities for %s: +%d, -%d, %d corrections",
            context.message_id, entities_added, entities_removed, corrections_applied,
        )
        return EntityMergeResult(
            accumulated_entities=entities,
            processed_corrections=fresh.corrections,
            merge_metadata=metadata,
        )

    def _apply_corrections(
        self,
        entities: AccumulatedEntities,
        corrections: EntityCorrections,
    ) -> tuple[AccumulatedEntities, int, int, int]:
        removed = 0
        operations = 0
        for name in REMOVABLE_FIELDS:
            for removal in corrections.removals_for(name):
                operations += 1
                before = len(getattr(entities, name))
                entities = entities.with_removed_entity(name, removal.entity_value)
                removed += before - len(getattr(entities, name))

        applied = 0
        for name in CORRECTABLE_FIELDS:
            correction = corrections.correction_for(name)
            if correction is None:
                continue
            operations += 1
            current = getattr(entities, name)
            if correction.previous_value and current and current.value != correction.previous_value:
                logger.debug(
                    "Correction for %s expected %r but found %r; applying anyway",
                    name, correction.previous_value, current.value,
                )
            entities = entities.with_corrected_entity(
                name, correction.new_value, correction.source_message_id, correction.confidence,
            )
            applied += 1
        return entities, applied, removed, operations

    def _accumulate(
        self,
        entities: AccumulatedEntities,
        fresh: ExtractedEntities,
        context: EntityMergeContext,
    ) -> tuple[AccumulatedEntities, int, int]:
        added = 0
        extracted = 0

        def confidence_for(name: str) -> float:
            return fresh.field_confidences.get(name, context.default_confidence)

        for name in REPLACEABLE_FIELDS:
            value = getattr(fresh, name)
            if not is_extracted(value):
                continue
            extracted += 1
            entities = entities.with_replaceable_entity(
                name, value, context.message_id, confidence_for(name),
            )
            added += 1

        for name in CONFIDENCE_BASED_FIELDS:
            value = getattr(fresh, name)
            if not is_extracted(value):
                continue
            extracted += 1
            before = getattr(entities, name)
            entities = entities.with_confidence_based_entity(
                name, value, context.message_id, confidence_for(name), context.confidence_threshold,
            )
            if getattr(entities, name) is not before:
                added += 1

        for name in ADDITIVE_FIELDS:
            values = [v for v in getattr(fresh, name) if is_extracted(v)]
            if not values:
                continue
            extracted += len(values)
            before = len(getattr(entities, name))
            entities = entities.with_additive_entity(
                name, values, context.message_id, confidence_for(name), context.enable_deduplication,
            )
            added += len(getattr(entities, name)) - before

        return entities, added, extracted

    def build_context_prompt(
        self,
        entities: AccumulatedEntities | None,
        now: datetime | None = None,
    ) -> str:
        """Render accumulated entities as a prompt block. Empty when nothing is known."""
        if entities is None or entities.is_empty():
            return ""
        now = now or datetime.now(timezone.utc)

        blocks: list[str] = [CONTEXT_HEADER]
        for title, names in _SECTIONS:
            lines: list[str] = []
            for name in names:
                value = getattr(entities, name)
                if name in SINGLE_VALUE_FIELDS:
                    if value is None:
                        continue
                    line = f"- {_LABELS[name]}: {value.value}"
                    if name in _AGED_FIELDS:
                        line += f" (updated {entity_age(value, now)})"
                    lines.append(line)
                elif value:
                    lines.append(f"- {_LABELS[name]}: {', '.join(e.value for e in value)}")
            if lines:
                blocks.append(f"{title}:\n" + "\n".join(lines))
        return "\n\n".join(blocks)


def entity_age(entity: EntityValue, now: datetime | None = None) -> str:
    """Relative age: "3h ago", "12m ago" or "just now"."""
    now = now or datetime.now(timezone.utc)
    seconds = (now - entity.extracted_at).total_seconds()
    hours = int(seconds // 3600)
    if hours > 0:
        return f"{hours}h ago"
    minutes = int(seconds // 60)
    if minutes > 0:
        return f"{minutes}m ago"
    return "just now"
