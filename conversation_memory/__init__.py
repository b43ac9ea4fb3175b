"""conversation-memory: bounded, relevance-ranked working memory for conversational agents."""

from .config import load_config
from .core.compactor import CompressionCoordinator
from .core.entity_accumulator import EntityAccumulator
from .core.entity_strategies import entity_quality
from .core.monitor import analyze_token_usage
from .core.relevance import RelevanceScorer
from .core.retention import RetentionPlanner
from .core.vector_cache import VectorKnowledgeCache
from .types import (
    AccumulatedEntities,
    CompressionConfig,
    CompressionResult,
    ConfigurationError,
    ConversationMemoryError,
    EntityCorrections,
    EntityMergeContext,
    ExtractedEntities,
    KnowledgeItem,
    MemoryConfig,
    Message,
    PreconditionError,
    ScoringContext,
)

__version__ = "0.1.0"

__all__ = [
    "CompressionCoordinator",
    "EntityAccumulator",
    "RelevanceScorer",
    "RetentionPlanner",
    "VectorKnowledgeCache",
    "analyze_token_usage",
    "entity_quality",
    "load_config",
    "AccumulatedEntities",
    "CompressionConfig",
    "CompressionResult",
    "ConfigurationError",
    "ConversationMemoryError",
    "EntityCorrections",
    "EntityMergeContext",
    "ExtractedEntities",
    "KnowledgeItem",
    "MemoryConfig",
    "Message",
    "PreconditionError",
    "ScoringContext",
]
