"""Configuration loading, validation, and defaults."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .types import (
    CompressionConfig,
    ConfigurationError,
    EntityConfig,
    MemoryConfig,
    RelevanceConfig,
    VectorCacheConfig,
)

CONFIG_FILENAMES = [
    "conversation-memory.yaml",
    "conversation-memory.yml",
    "conversation-memory.json",
]

EVICTION_POLICIES = ("lru", "lfu", "fifo", "none")

MIN_THRESHOLD_PERCENTAGE = 50
MAX_THRESHOLD_PERCENTAGE = 95


def _discover_config() -> Path | None:
    """Search CWD then parent dirs up to home for a config file."""
    cwd = Path.cwd()
    home = Path.home()
    search = cwd
    while True:
        for name in CONFIG_FILENAMES:
            candidate = search / name
            if candidate.is_file():
                return candidate
        if search == home or search == search.parent:
            break
        search = search.parent
    return None


def _build_config(raw: dict[str, Any]) -> MemoryConfig:
    """Build a MemoryConfig from a raw dict."""
    compression_raw = raw.get("compression", {})
    compression = CompressionConfig(
        token_threshold_percentage=compression_raw.get("token_threshold_percentage", 85.0),
        max_token_limit=compression_raw.get("max_token_limit", 16_000),
        recent_turns_to_preserve=compression_raw.get("recent_turns_to_preserve", 6),
        summary_instruction_prompt=compression_raw.get("summary_instruction_prompt"),
    )

    entities_raw = raw.get("entities", {})
    entities = EntityConfig(
        default_confidence=entities_raw.get("default_confidence", 0.8),
        confidence_threshold=entities_raw.get("confidence_threshold", 0.7),
        enable_deduplication=entities_raw.get("enable_deduplication", True),
    )

    relevance_raw = raw.get("relevance", {})
    relevance = RelevanceConfig(
        adaptive_decay=relevance_raw.get("adaptive_decay", False),
        max_messages=relevance_raw.get("max_messages", 20),
        max_tokens=relevance_raw.get("max_tokens"),
    )

    cache_raw = raw.get("vector_cache", {})
    vector_cache = VectorCacheConfig(
        max_vectors=cache_raw.get("max_vectors", 10_000),
        eviction_policy=cache_raw.get("eviction_policy", "lru"),
        eviction_batch_size=cache_raw.get("eviction_batch_size", 0),
        default_threshold=cache_raw.get("default_threshold", 0.15),
        default_limit=cache_raw.get("default_limit", 5),
        max_memory_kb=cache_raw.get("max_memory_kb", 50 * 1024),
    )

    return MemoryConfig(
        version=str(raw.get("version", "1.0")),
        token_counter=raw.get("token_counter", "estimate"),
        compression=compression,
        entities=entities,
        relevance=relevance,
        vector_cache=vector_cache,
    )


def validate_compression_config(config: CompressionConfig) -> list[str]:
    errors: list[str] = []
    threshold = config.token_threshold_percentage
    if not MIN_THRESHOLD_PERCENTAGE <= threshold <= MAX_THRESHOLD_PERCENTAGE:
        errors.append(
            f"Token threshold must be between {MIN_THRESHOLD_PERCENTAGE}% "
            f"and {MAX_THRESHOLD_PERCENTAGE}% (got {threshold})"
        )
    if config.recent_turns_to_preserve < 1:
        errors.append("Must preserve at least 1 recent conversation turn")
    if config.max_token_limit <= 0:
        errors.append(f"max_token_limit must be > 0 (got {config.max_token_limit})")
    return errors


def validate_config(config: MemoryConfig) -> list[str]:
    """Validate a config. Returns list of error strings (empty = valid)."""
    errors = validate_compression_config(config.compression)

    for name in ("default_confidence", "confidence_threshold"):
        value = getattr(config.entities, name)
        if not 0.0 <= value <= 1.0:
            errors.append(f"entities.{name} must be between 0 and 1 (got {value})")

    if config.relevance.max_messages < 1:
        errors.append("relevance.max_messages must be >= 1")
    if config.relevance.max_tokens is not None and config.relevance.max_tokens <= 0:
        errors.append("relevance.max_tokens must be > 0 when set")

    cache = config.vector_cache
    if cache.max_vectors < 1:
        errors.append("vector_cache.max_vectors must be >= 1")
    if cache.eviction_policy not in EVICTION_POLICIES:
        errors.append(
            f"vector_cache.eviction_policy '{cache.eviction_policy}' "
            f"must be one of: {', '.join(EVICTION_POLICIES)}"
        )
    if cache.eviction_batch_size < 0:
        errors.append("vector_cache.eviction_batch_size must be >= 0")
    if not -1.0 <= cache.default_threshold <= 1.0:
        errors.append("vector_cache.default_threshold must be between -1 and 1")
    if cache.default_limit < 1:
        errors.append("vector_cache.default_limit must be >= 1")
    if cache.max_memory_kb < 1:
        errors.append(f"vector_cache.max_memory_kb must be >= 1 (got {cache.max_memory_kb})")

    mode = config.token_counter
    if mode not in ("estimate", "tiktoken") and not mode.startswith("callable:"):
        errors.append(f"Unknown token_counter mode: {mode}")

    return errors


def require_valid(config: MemoryConfig) -> MemoryConfig:
    """Raise ConfigurationError for the first problem, or return the config."""
    errors = validate_config(config)
    if errors:
        raise ConfigurationError(errors[0], field="config", value=len(errors), errors=errors)
    return config


def load_config(
    config_path: str | Path | None = None,
    config_dict: dict | None = None,
) -> MemoryConfig:
    """Load config from dict, explicit path, or auto-discover."""
    if config_dict is not None:
        return _build_config(config_dict)

    if config_path is not None:
        path = Path(config_path)
    else:
        path = _discover_config()

    if path is None:
        # Return defaults
        return _build_config({})

    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    text = path.read_text()
    if path.suffix == ".json":
        raw = json.loads(text)
    else:
        raw = yaml.safe_load(text) or {}

    return _build_config(raw)
