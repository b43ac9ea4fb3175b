"""All dataclasses, Protocols, errors and type aliases for conversation-memory."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, Sequence, runtime_checkable


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ConversationMemoryError(Exception):
    """Base error. ``context`` holds structured details for logging."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context: dict[str, Any] = dict(context or {})


class ConfigurationError(ConversationMemoryError):
    """Invalid configuration or argument. Raised before any work is attempted."""

    def __init__(self, message: str, field: str | None = None, value: Any = None, **context: Any):
        super().__init__(message, {"field": field, "value": value, **context})
        self.field = field
        self.value = value


class PreconditionError(ConversationMemoryError):
    """Operation called in the wrong state (empty input, cache not ready)."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message, context)


def require_confidence(value: float, field_name: str = "confidence") -> None:
    if value is None or not 0.0 <= value <= 1.0:
        raise ConfigurationError(
            f"{field_name} must be between 0 and 1",
            field=field_name,
            value=value,
        )


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

MAX_MESSAGE_LENGTH = 4000


class MessageRole(str, Enum):
    USER = "user"
    BOT = "bot"
    SYSTEM = "system"
    LEAD_CAPTURE = "lead_capture"
    QUALIFICATION = "qualification"


@dataclass(frozen=True)
class Message:
    role: MessageRole
    content: str
    id: str = field(default_factory=lambda: f"msg_{uuid.uuid4().hex[:12]}")
    session_id: str = ""
    timestamp: datetime = field(default_factory=_utcnow)
    is_visible: bool = True
    processing_time_ms: int | None = None

    def __post_init__(self) -> None:
        try:
            role = MessageRole(self.role)
        except ValueError:
            raise ConfigurationError(
                f"Unknown message role: {self.role}", field="role", value=self.role,
            ) from None
        object.__setattr__(self, "role", role)
        if self.content is None:
            raise ConfigurationError("Message content is required", field="content", value=None)
        if len(self.content) > MAX_MESSAGE_LENGTH:
            raise ConfigurationError(
                f"Message content exceeds {MAX_MESSAGE_LENGTH} characters",
                field="content",
                value=len(self.content),
            )

    def is_from_user(self) -> bool:
        return self.role == MessageRole.USER

    def with_content(self, content: str) -> Message:
        return replace(self, content=content)

    def with_visibility(self, is_visible: bool) -> Message:
        return replace(self, is_visible=is_visible)


@dataclass(frozen=True)
class PromptMessage:
    """One entry of a chat-completion request."""
    role: str  # "system", "user", "assistant"
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@runtime_checkable
class Summarizer(Protocol):
    """Externally supplied summarization capability."""

    async def __call__(self, messages: list[Message], instruction: str) -> str: ...


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

REPLACEABLE_FIELDS: tuple[str, ...] = ("budget", "timeline", "urgency", "contact_method")
CONFIDENCE_BASED_FIELDS: tuple[str, ...] = (
    "visitor_name", "industry", "company", "team_size", "role",
)
ADDITIVE_FIELDS: tuple[str, ...] = (
    "decision_makers", "pain_points", "goals", "integration_needs", "evaluation_criteria",
)
SINGLE_VALUE_FIELDS: tuple[str, ...] = REPLACEABLE_FIELDS + CONFIDENCE_BASED_FIELDS

REMOVABLE_FIELDS: tuple[str, ...] = ADDITIVE_FIELDS
CORRECTABLE_FIELDS: tuple[str, ...] = SINGLE_VALUE_FIELDS


@dataclass(frozen=True)
class EntityValue:
    value: str
    source_message_id: str
    confidence: float = 1.0
    extracted_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        require_confidence(self.confidence)


@dataclass(frozen=True)
class AccumulatedEntities:
    """Immutable snapshot of everything learned about the visitor so far."""
    visitor_name: EntityValue | None = None
    budget: EntityValue | None = None
    timeline: EntityValue | None = None
    company: EntityValue | None = None
    industry: EntityValue | None = None
    team_size: EntityValue | None = None
    role: EntityValue | None = None
    urgency: EntityValue | None = None
    contact_method: EntityValue | None = None
    decision_makers: tuple[EntityValue, ...] = ()
    pain_points: tuple[EntityValue, ...] = ()
    goals: tuple[EntityValue, ...] = ()
    integration_needs: tuple[EntityValue, ...] = ()
    evaluation_criteria: tuple[EntityValue, ...] = ()
    total_extractions: int = 0
    last_updated: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.total_extractions < 0:
            raise ConfigurationError(
                "Total extractions cannot be negative",
                field="total_extractions",
                value=self.total_extractions,
            )
        for name in ADDITIVE_FIELDS:
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @classmethod
    def create(cls) -> AccumulatedEntities:
        return cls()

    def get(self, name: str) -> EntityValue | tuple[EntityValue, ...] | None:
        if name not in SINGLE_VALUE_FIELDS and name not in ADDITIVE_FIELDS:
            raise ConfigurationError(f"Unknown entity field: {name}", field="entity_type", value=name)
        return getattr(self, name)

    def is_empty(self) -> bool:
        return (
            all(getattr(self, name) is None for name in SINGLE_VALUE_FIELDS)
            and all(not getattr(self, name) for name in ADDITIVE_FIELDS)
        )

    # -- copy-on-write updates (strategies live in core.entity_strategies) --

    def _updated(self, applied: int, **changes: Any) -> AccumulatedEntities:
        if applied == 0:
            return self
        return replace(
            self,
            **changes,
            total_extractions=self.total_extractions + applied,
            last_updated=_utcnow(),
        )

    def with_replaceable_entity(
        self,
        entity_type: str,
        value: str | None,
        message_id: str,
        confidence: float = 0.8,
    ) -> AccumulatedEntities:
        from .core import entity_strategies

        _check_entity_type(entity_type, REPLACEABLE_FIELDS)
        if not entity_strategies.is_extracted(value):
            return self
        entity = entity_strategies.apply_replaceable(value, message_id, confidence)
        return self._updated(1, **{entity_type: entity})

    def with_confidence_based_entity(
        self,
        entity_type: str,
        value: str | None,
        message_id: str,
        confidence: float = 0.8,
        confidence_threshold: float = 0.7,
    ) -> AccumulatedEntities:
        from .core import entity_strategies

        _check_entity_type(entity_type, CONFIDENCE_BASED_FIELDS)
        if not entity_strategies.is_extracted(value):
            return self
        existing = getattr(self, entity_type)
        kept = entity_strategies.apply_confidence_based(
            existing, value, message_id, confidence, confidence_threshold,
        )
        if kept is existing:
            return self
        return self._updated(1, **{entity_type: kept})

    def with_additive_entity(
        self,
        entity_type: str,
        values: str | Sequence[str] | None,
        message_id: str,
        confidence: float = 0.8,
        deduplicate: bool = True,
    ) -> AccumulatedEntities:
        from .core import entity_strategies

        _check_entity_type(entity_type, ADDITIVE_FIELDS)
        if values is None:
            return self
        if isinstance(values, str):
            values = [values]
        merged, added = entity_strategies.apply_additive(
            getattr(self, entity_type), values, message_id, confidence, deduplicate,
        )
        return self._updated(added, **{entity_type: merged})

    def with_removed_entity(self, entity_type: str, value: str) -> AccumulatedEntities:
        from .core import entity_strategies

        _check_entity_type(entity_type, REMOVABLE_FIELDS)
        kept, removed = entity_strategies.remove_matching(getattr(self, entity_type), value)
        return self._updated(removed, **{entity_type: kept})

    def with_corrected_entity(
        self,
        entity_type: str,
        new_value: str,
        message_id: str,
        confidence: float = 0.9,
    ) -> AccumulatedEntities:
        from .core import entity_strategies

        _check_entity_type(entity_type, CORRECTABLE_FIELDS)
        if not entity_strategies.is_extracted(new_value):
            return self
        entity = entity_strategies.apply_replaceable(new_value, message_id, confidence)
        return self._updated(1, **{entity_type: entity})

    def get_all_entities_summary(self) -> dict[str, Any]:
        """Plain values only, no metadata."""
        summary: dict[str, Any] = {}
        for name in ADDITIVE_FIELDS:
            summary[name] = [e.value for e in getattr(self, name)]
        for name in SINGLE_VALUE_FIELDS:
            entity = getattr(self, name)
            summary[name] = entity.value if entity else None
        return summary

    def get_entity_count_by_category(self) -> dict[str, int]:
        return {
            "additive": sum(len(getattr(self, name)) for name in ADDITIVE_FIELDS),
            "replaceable": sum(1 for name in REPLACEABLE_FIELDS if getattr(self, name)),
            "confidence_based": sum(1 for name in CONFIDENCE_BASED_FIELDS if getattr(self, name)),
        }

    def to_dict(self) -> dict[str, Any]:
        raw = asdict(self)

        def _ts(value: Any) -> Any:
            if isinstance(value, datetime):
                return value.isoformat()
            if isinstance(value, dict):
                return {k: _ts(v) for k, v in value.items()}
            if isinstance(value, (list, tuple)):
                return [_ts(v) for v in value]
            return value

        return _ts(raw)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> AccumulatedEntities:
        def _entity(data: dict[str, Any]) -> EntityValue:
            extracted_at = data.get("extracted_at")
            return EntityValue(
                value=data["value"],
                source_message_id=data.get("source_message_id", ""),
                confidence=data.get("confidence", 1.0),
                extracted_at=datetime.fromisoformat(extracted_at) if extracted_at else _utcnow(),
            )

        kwargs: dict[str, Any] = {}
        for name in SINGLE_VALUE_FIELDS:
            if raw.get(name):
                kwargs[name] = _entity(raw[name])
        for name in ADDITIVE_FIELDS:
            kwargs[name] = tuple(_entity(item) for item in raw.get(name, []))
        kwargs["total_extractions"] = raw.get("total_extractions", 0)
        if raw.get("last_updated"):
            kwargs["last_updated"] = datetime.fromisoformat(raw["last_updated"])
        return cls(**kwargs)


@dataclass(frozen=True)
class RemovalOperation:
    entity_value: str
    source_message_id: str
    confidence: float = 0.9
    reason: str | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.entity_value or not self.entity_value.strip():
            raise ConfigurationError("Removal value cannot be empty", field="entity_value", value=self.entity_value)
        require_confidence(self.confidence)


@dataclass(frozen=True)
class CorrectionOperation:
    new_value: str
    source_message_id: str
    previous_value: str | None = None
    confidence: float = 0.9
    reason: str | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.new_value or not str(self.new_value).strip():
            raise ConfigurationError("Corrected value cannot be empty", field="new_value", value=self.new_value)
        require_confidence(self.confidence)


@dataclass(frozen=True)
class EntityCorrections:
    """Explicit reconciliation request: removals from list fields and
    replacements of single-valued fields, applied before accumulation."""
    session_id: str
    removed_decision_makers: tuple[RemovalOperation, ...] = ()
    removed_pain_points: tuple[RemovalOperation, ...] = ()
    removed_goals: tuple[RemovalOperation, ...] = ()
    removed_integration_needs: tuple[RemovalOperation, ...] = ()
    removed_evaluation_criteria: tuple[RemovalOperation, ...] = ()
    corrected_visitor_name: CorrectionOperation | None = None
    corrected_budget: CorrectionOperation | None = None
    corrected_timeline: CorrectionOperation | None = None
    corrected_urgency: CorrectionOperation | None = None
    corrected_contact_method: CorrectionOperation | None = None
    corrected_role: CorrectionOperation | None = None
    corrected_industry: CorrectionOperation | None = None
    corrected_company: CorrectionOperation | None = None
    corrected_team_size: CorrectionOperation | None = None
    total_corrections: int = 0
    last_correction_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.session_id or not self.session_id.strip():
            raise ConfigurationError(
                "Session ID is required for entity corrections",
                field="session_id",
                value=self.session_id,
            )
        if self.total_corrections < 0:
            raise ConfigurationError(
                "Total corrections cannot be negative",
                field="total_corrections",
                value=self.total_corrections,
            )
        for name in REMOVABLE_FIELDS:
            object.__setattr__(self, f"removed_{name}", tuple(getattr(self, f"removed_{name}")))

    @classmethod
    def create(cls, session_id: str, **operations: Any) -> EntityCorrections:
        """Build corrections from ``removed_*`` / ``corrected_*`` keyword args.

        ``total_corrections`` is always recomputed from the operations given.
        """
        allowed = {f.name for f in fields(cls)} - {"session_id", "total_corrections", "last_correction_at"}
        unknown = set(operations) - allowed
        if unknown:
            name = sorted(unknown)[0]
            raise ConfigurationError(f"Unknown correction field: {name}", field="entity_type", value=name)
        draft = cls(session_id=session_id, **operations)
        return replace(draft, total_corrections=draft._count_operations())

    def _count_operations(self) -> int:
        total = sum(len(self.removals_for(name)) for name in REMOVABLE_FIELDS)
        total += sum(1 for name in CORRECTABLE_FIELDS if self.correction_for(name))
        return total

    def removals_for(self, entity_type: str) -> tuple[RemovalOperation, ...]:
        _check_entity_type(entity_type, REMOVABLE_FIELDS)
        return getattr(self, f"removed_{entity_type}")

    def correction_for(self, entity_type: str) -> CorrectionOperation | None:
        _check_entity_type(entity_type, CORRECTABLE_FIELDS)
        return getattr(self, f"corrected_{entity_type}")

    def with_removed_entity(
        self,
        entity_type: str,
        entity_value: str,
        message_id: str,
        confidence: float = 0.9,
        reason: str | None = None,
    ) -> EntityCorrections:
        _check_entity_type(entity_type, REMOVABLE_FIELDS)
        removal = RemovalOperation(
            entity_value=entity_value,
            source_message_id=message_id,
            confidence=confidence,
            reason=reason,
        )
        key = f"removed_{entity_type}"
        return replace(
            self,
            **{key: getattr(self, key) + (removal,)},
            total_corrections=self.total_corrections + 1,
            last_correction_at=_utcnow(),
        )

    def with_corrected_entity(
        self,
        entity_type: str,
        new_value: str,
        message_id: str,
        previous_value: str | None = None,
        confidence: float = 0.9,
        reason: str | None = None,
    ) -> EntityCorrections:
        _check_entity_type(entity_type, CORRECTABLE_FIELDS)
        correction = CorrectionOperation(
            new_value=new_value,
            source_message_id=message_id,
            previous_value=previous_value,
            confidence=confidence,
            reason=reason,
        )
        return replace(
            self,
            **{f"corrected_{entity_type}": correction},
            total_corrections=self.total_corrections + 1,
            last_correction_at=_utcnow(),
        )

    def has_removals(self) -> bool:
        return any(self.removals_for(name) for name in REMOVABLE_FIELDS)

    def has_corrections(self) -> bool:
        return any(self.correction_for(name) for name in CORRECTABLE_FIELDS)

    def is_empty(self) -> bool:
        return not self.has_removals() and not self.has_corrections()

    def get_correction_summary(self) -> list[str]:
        summary: list[str] = []
        for name in REMOVABLE_FIELDS:
            removals = self.removals_for(name)
            if removals:
                label = name.replace("_", " ").rstrip("s")
                summary.append(f"{len(removals)} {label}(s) removed")
        for name in CORRECTABLE_FIELDS:
            correction = self.correction_for(name)
            if correction:
                label = name.replace("_", " ").capitalize()
                summary.append(f"{label} corrected to {correction.new_value}")
        return summary


def _check_entity_type(entity_type: str, allowed: Sequence[str]) -> None:
    if entity_type not in allowed:
        raise ConfigurationError(
            f"Invalid entity type: {entity_type}. Allowed: {', '.join(allowed)}",
            field="entity_type",
            value=entity_type,
        )


@dataclass(frozen=True)
class ExtractedEntities:
    """Fresh extraction for a single turn. Blank values mean "not extracted"."""
    visitor_name: str | None = None
    budget: str | None = None
    timeline: str | None = None
    company: str | None = None
    industry: str | None = None
    team_size: str | None = None
    role: str | None = None
    urgency: str | None = None
    contact_method: str | None = None
    decision_makers: tuple[str, ...] = ()
    pain_points: tuple[str, ...] = ()
    goals: tuple[str, ...] = ()
    integration_needs: tuple[str, ...] = ()
    evaluation_criteria: tuple[str, ...] = ()
    corrections: EntityCorrections | None = None
    field_confidences: dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ADDITIVE_FIELDS:
            object.__setattr__(self, name, tuple(getattr(self, name) or ()))
        for name, confidence in self.field_confidences.items():
            require_confidence(confidence, f"{name}_confidence")

    @classmethod
    def from_dict(cls, raw: dict[str, Any], session_id: str = "", message_id: str = "") -> ExtractedEntities:
        """Build from a plain dict. A nested ``corrections`` dict may hold
        ``corrected_<field>`` strings and ``removed_<field>`` lists."""
        kwargs: dict[str, Any] = {}
        for name in SINGLE_VALUE_FIELDS:
            if raw.get(name) is not None:
                kwargs[name] = str(raw[name])
        for name in ADDITIVE_FIELDS:
            if raw.get(name):
                kwargs[name] = tuple(str(v) for v in raw[name])
        if raw.get("field_confidences"):
            kwargs["field_confidences"] = dict(raw["field_confidences"])

        corrections_raw = raw.get("corrections")
        if corrections_raw:
            corrections = EntityCorrections.create(corrections_raw.get("session_id") or session_id)
            for name in REMOVABLE_FIELDS:
                for value in corrections_raw.get(f"removed_{name}", []):
                    corrections = corrections.with_removed_entity(name, value, message_id)
            for name in CORRECTABLE_FIELDS:
                value = corrections_raw.get(f"corrected_{name}")
                if value:
                    corrections = corrections.with_corrected_entity(name, str(value), message_id)
            kwargs["corrections"] = corrections
        return cls(**kwargs)


@dataclass(frozen=True)
class EntityMergeContext:
    message_id: str
    default_confidence: float = 0.8
    confidence_threshold: float = 0.7
    enable_deduplication: bool = True

    def __post_init__(self) -> None:
        if not self.message_id or not self.message_id.strip():
            raise ConfigurationError(
                "Message ID is required for entity accumulation",
                field="message_id",
                value=self.message_id,
            )
        if self.default_confidence is None or not 0.0 <= self.default_confidence <= 1.0:
            raise ConfigurationError(
                "Default confidence must be between 0 and 1",
                field="default_confidence",
                value=self.default_confidence,
            )
        if self.confidence_threshold is None or not 0.0 <= self.confidence_threshold <= 1.0:
            raise ConfigurationError(
                "Confidence threshold must be between 0 and 1",
                field="confidence_threshold",
                value=self.confidence_threshold,
            )


@dataclass(frozen=True)
class MergeMetadata:
    total_entities_processed: int = 0
    corrections_applied: int = 0
    entities_added: int = 0
    entities_removed: int = 0
    processing_timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class EntityMergeResult:
    accumulated_entities: AccumulatedEntities
    processed_corrections: EntityCorrections | None = None
    merge_metadata: MergeMetadata = field(default_factory=MergeMetadata)


# ---------------------------------------------------------------------------
# Relevance & Retention
# ---------------------------------------------------------------------------

class RetentionTier(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class IntentContext:
    intent: str = "unknown"
    confidence: float = 0.0
    source: str = "caller"  # "caller", "keyword", "fallback"

    def __post_init__(self) -> None:
        require_confidence(self.confidence, "intent_confidence")


@dataclass(frozen=True)
class ClassificationResult:
    label: str  # intent or conversation phase
    confidence: float
    source: str  # "keyword", "fallback", or classifier name

    def to_intent(self) -> IntentContext:
        return IntentContext(intent=self.label, confidence=self.confidence, source=self.source)


@dataclass(frozen=True)
class ScoringContext:
    entities: AccumulatedEntities | None = None
    intent: IntentContext | None = None
    lead_score: float | None = None
    conversation_phase: str | None = None
    adaptive_decay: bool = False


@dataclass(frozen=True)
class ScoreComponents:
    recency: float
    entity_relevance: float
    intent_alignment: float
    business_context: float
    engagement: float


@dataclass(frozen=True)
class RelevanceScore:
    message_id: str
    overall_score: float
    components: ScoreComponents
    tier: RetentionTier
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class RetentionPlan:
    retained: tuple[Message, ...] = ()
    to_compress: tuple[Message, ...] = ()
    retained_tokens: int = 0
    tier_counts: dict[str, int] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Compression
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TokenUsageAnalysis:
    current_tokens: int
    max_tokens: int
    utilization_percentage: float
    needs_compression: bool
    tokens_to_save: int


@dataclass(frozen=True)
class CompressionResult:
    conversation_summary: str = ""
    recent_messages: tuple[Message, ...] = ()
    original_token_count: int = 0
    compressed_token_count: int = 0
    compression_ratio: float = 1.0
    was_compressed: bool = False


# ---------------------------------------------------------------------------
# Knowledge vectors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class KnowledgeItem:
    id: str
    content: str
    title: str = ""
    category: str = "general"
    source: str = ""
    tags: tuple[str, ...] = ()
    relevance_score: float | None = None


@dataclass(frozen=True)
class KnowledgeVector:
    """Cache initialization input: an item and its embedding."""
    item: KnowledgeItem
    vector: tuple[float, ...]


@dataclass
class CachedKnowledgeVector:
    """Cache entry. Mutable bookkeeping, owned by the cache only."""
    item: KnowledgeItem
    vector: tuple[float, ...]
    last_accessed: datetime = field(default_factory=_utcnow)
    access_count: int = 0
    access_order: int = 0


@dataclass(frozen=True)
class VectorSearchOptions:
    top_k: int | None = None
    min_similarity: float | None = None
    category_filter: str | None = None
    source_filter: str | None = None


@dataclass(frozen=True)
class VectorSearchResult:
    item: KnowledgeItem
    similarity: float


@dataclass(frozen=True)
class CacheInitResult:
    vectors_loaded: int
    vectors_evicted: int
    memory_usage_kb: int
    time_ms: float


@dataclass(frozen=True)
class VectorCacheStats:
    total_vectors: int
    max_vectors: int
    utilization_percentage: float
    memory_usage_kb: int
    memory_limit_kb: int
    memory_utilization_percentage: float
    searches_performed: int
    cache_hits: int
    cache_hit_rate: float
    evictions_performed: int
    initialized_at: datetime | None


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class CompressionConfig:
    token_threshold_percentage: float = 85.0
    max_token_limit: int = 16_000
    recent_turns_to_preserve: int = 6
    summary_instruction_prompt: str | None = None


@dataclass
class EntityConfig:
    default_confidence: float = 0.8
    confidence_threshold: float = 0.7
    enable_deduplication: bool = True


@dataclass
class RelevanceConfig:
    adaptive_decay: bool = False
    max_messages: int = 20
    max_tokens: int | None = None


@dataclass
class VectorCacheConfig:
    max_vectors: int = 10_000
    eviction_policy: str = "lru"  # "lru", "lfu", "fifo", "none"
    eviction_batch_size: int = 0  # 0 = evict exactly the overflow
    default_threshold: float = 0.15
    default_limit: int = 5
    max_memory_kb: int = 50 * 1024


@dataclass
class MemoryConfig:
    version: str = "1.0"
    token_counter: str = "estimate"
    compression: CompressionConfig = field(default_factory=CompressionConfig)
    entities: EntityConfig = field(default_factory=EntityConfig)
    relevance: RelevanceConfig = field(default_factory=RelevanceConfig)
    vector_cache: VectorCacheConfig = field(default_factory=VectorCacheConfig)
