"""VectorKnowledgeCache: in-memory knowledge embeddings with eviction.

One cache instance serves one organization / chatbot configuration.
Vectors are loaded once with ``initialize`` and queried many times.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from datetime import datetime, timezone
from typing import Iterable, Sequence, Union

from ..config import EVICTION_POLICIES
from ..types import (
    CachedKnowledgeVector,
    CacheInitResult,
    ConfigurationError,
    KnowledgeItem,
    KnowledgeVector,
    PreconditionError,
    VectorCacheConfig,
    VectorCacheStats,
    VectorSearchOptions,
    VectorSearchResult,
)
from .math_utils import cosine_similarity

logger = logging.getLogger(__name__)

VectorInput = Union[KnowledgeVector, tuple[KnowledgeItem, Sequence[float]]]

BYTES_PER_FLOAT = 8


class VectorKnowledgeCache:
    """Cosine-similarity search over a bounded set of knowledge vectors.

    Thread-safe: every read and write of the internal table happens under
    ``self._lock``.
    """

    def __init__(
        self,
        organization_id: str,
        chatbot_config_id: str,
        config: VectorCacheConfig | None = None,
    ) -> None:
        if not organization_id or not chatbot_config_id:
            raise ConfigurationError(
                "Organization ID and chatbot config ID are required",
                field="organization_id" if not organization_id else "chatbot_config_id",
                value=organization_id or chatbot_config_id,
            )
        self.organization_id = organization_id
        self.chatbot_config_id = chatbot_config_id
        self.config = config or VectorCacheConfig()
        if self.config.max_vectors < 1:
            raise ConfigurationError(
                "max_vectors must be >= 1", field="max_vectors", value=self.config.max_vectors,
            )
        if self.config.max_memory_kb < 1:
            raise ConfigurationError(
                "max_memory_kb must be >= 1", field="max_memory_kb", value=self.config.max_memory_kb,
            )
        if self.config.eviction_policy not in EVICTION_POLICIES:
            raise ConfigurationError(
                f"Unknown eviction policy: {self.config.eviction_policy}",
                field="eviction_policy",
                value=self.config.eviction_policy,
            )
        self._lock = threading.Lock()
        self._entries: dict[str, CachedKnowledgeVector] = {}
        self._initialized = False
        self._initialized_at: datetime | None = None
        self._searches = 0
        self._hits = 0
        self._evictions = 0
        self._tick = 0

    def cache_key(self, item_id: str) -> str:
        return f"{self.organization_id}_{self.chatbot_config_id}_{item_id}"

    def initialize(self, vectors: Iterable[VectorInput]) -> CacheInitResult:
        """Replace the cache contents with ``vectors``.

        Vectors are copied. If more vectors arrive than ``max_vectors``,
        the eviction policy trims the table.
        """
        start = time.perf_counter()
        with self._lock:
            self._reset()
            for item, vector in _unpack(vectors):
                self._put(item, vector)
            evicted = self._enforce_capacity()
            self._initialized = True
            self._initialized_at = datetime.now(timezone.utc)
            loaded = len(self._entries)
            memory_kb = self._memory_usage_kb()
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "Vector cache %s_%s initialized: %d vectors, %d evicted, %d KB in %.1fms",
            self.organization_id, self.chatbot_config_id, loaded, evicted, memory_kb, elapsed_ms,
        )
        return CacheInitResult(
            vectors_loaded=loaded,
            vectors_evicted=evicted,
            memory_usage_kb=memory_kb,
            time_ms=elapsed_ms,
        )

    def add_vectors(self, vectors: Iterable[VectorInput]) -> int:
        """Add or replace vectors in a ready cache. Returns number evicted."""
        with self._lock:
            self._require_initialized()
            for item, vector in _unpack(vectors):
                self._put(item, vector)
            evicted = self._enforce_capacity()
        if evicted:
            logger.info("Vector cache evicted %d vectors after add", evicted)
        return evicted

    def search_vectors(
        self,
        query: Sequence[float],
        options: VectorSearchOptions | None = None,
    ) -> list[VectorSearchResult]:
        options = options or VectorSearchOptions()
        top_k = options.top_k if options.top_k is not None else self.config.default_limit
        min_similarity = (
            options.min_similarity
            if options.min_similarity is not None
            else self.config.default_threshold
        )

        with self._lock:
            self._require_initialized()
            if not query:
                raise ConfigurationError("Query embedding cannot be empty", field="query", value=query)
            if top_k < 1:
                raise ConfigurationError("top_k must be >= 1", field="top_k", value=top_k)
            scored: list[tuple[float, CachedKnowledgeVector]] = []
            for entry in self._entries.values():
                if options.category_filter and entry.item.category != options.category_filter:
                    continue
                if options.source_filter and entry.item.source != options.source_filter:
                    continue
                similarity = cosine_similarity(query, entry.vector)
                if similarity >= min_similarity:
                    scored.append((similarity, entry))

            scored.sort(key=lambda pair: pair[0], reverse=True)
            top = scored[:top_k]

            self._searches += 1
            self._hits += 1
            now = datetime.now(timezone.utc)
            for _, entry in top:
                self._tick += 1
                entry.last_accessed = now
                entry.access_count += 1
                entry.access_order = self._tick

            results = [VectorSearchResult(item=entry.item, similarity=sim) for sim, entry in top]

        logger.debug("Vector search returned %d/%d candidates", len(results), len(scored))
        return results

    def get_vector(self, item_id: str) -> tuple[float, ...] | None:
        with self._lock:
            entry = self._entries.get(self.cache_key(item_id))
            return entry.vector if entry else None

    def clear(self) -> None:
        with self._lock:
            self._reset()
        logger.info("Vector cache %s_%s cleared", self.organization_id, self.chatbot_config_id)

    def is_ready(self) -> bool:
        with self._lock:
            return self._initialized and bool(self._entries)

    def get_cache_stats(self) -> VectorCacheStats:
        with self._lock:
            total = len(self._entries)
            memory_kb = self._memory_usage_kb()
            return VectorCacheStats(
                total_vectors=total,
                max_vectors=self.config.max_vectors,
                utilization_percentage=total / self.config.max_vectors * 100,
                memory_usage_kb=memory_kb,
                memory_limit_kb=self.config.max_memory_kb,
                memory_utilization_percentage=memory_kb / self.config.max_memory_kb * 100,
                searches_performed=self._searches,
                cache_hits=self._hits,
                cache_hit_rate=self._hits / self._searches * 100 if self._searches else 0.0,
                evictions_performed=self._evictions,
                initialized_at=self._initialized_at,
            )

    # -- internals (caller holds the lock) --

    def _reset(self) -> None:
        self._entries = {}
        self._initialized = False
        self._initialized_at = None
        self._searches = 0
        self._hits = 0
        self._evictions = 0
        self._tick = 0

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise PreconditionError(
                "Vector cache is not initialized",
                organization_id=self.organization_id,
                chatbot_config_id=self.chatbot_config_id,
            )

    def _put(self, item: KnowledgeItem, vector: Sequence[float]) -> None:
        if not vector:
            raise ConfigurationError(f"Vector for {item.id} is empty", field="vector", value=item.id)
        key = self.cache_key(item.id)
        copied = tuple(float(x) for x in vector)
        existing = self._entries.get(key)
        if existing is not None:
            existing.item = item
            existing.vector = copied
            return
        self._entries[key] = CachedKnowledgeVector(item=item, vector=copied)

    def _enforce_capacity(self) -> int:
        """Evict until both the vector count and the memory limit are met."""
        over_count = len(self._entries) > self.config.max_vectors
        over_memory = self._memory_usage_kb() > self.config.max_memory_kb
        if not (over_count or over_memory) or self.config.eviction_policy == "none":
            return 0
        if over_memory:
            logger.info(
                "Vector cache memory limit exceeded: %d KB > %d KB",
                self._memory_usage_kb(), self.config.max_memory_kb,
            )

        positions = {key: i for i, key in enumerate(self._entries)}
        policy = self.config.eviction_policy
        if policy == "lfu":
            order = lambda k: (self._entries[k].access_count, self._entries[k].access_order, positions[k])  # noqa: E731
        elif policy == "fifo":
            order = lambda k: positions[k]  # noqa: E731
        else:
            order = lambda k: (self._entries[k].access_order, positions[k])  # noqa: E731

        size = sum(_entry_bytes(e) for e in self._entries.values())
        limit_bytes = self.config.max_memory_kb * 1024
        count = 0
        for key in sorted(self._entries, key=order):
            within_limits = (
                len(self._entries) <= self.config.max_vectors and size <= limit_bytes
            )
            if within_limits and count >= self.config.eviction_batch_size:
                break
            size -= _entry_bytes(self._entries.pop(key))
            count += 1

        self._evictions += count
        logger.debug("Evicted %d vectors (%s)", count, policy)
        return count

    def _memory_usage_kb(self) -> int:
        return math.ceil(sum(_entry_bytes(e) for e in self._entries.values()) / 1024)


def _entry_bytes(entry: CachedKnowledgeVector) -> int:
    return len(entry.vector) * BYTES_PER_FLOAT + len(entry.item.content) + len(entry.item.title)


def _unpack(vectors: Iterable[VectorInput]) -> Iterable[tuple[KnowledgeItem, Sequence[float]]]:
    for entry in vectors:
        if isinstance(entry, KnowledgeVector):
            yield entry.item, entry.vector
        else:
            item, vector = entry
            yield item, vector
