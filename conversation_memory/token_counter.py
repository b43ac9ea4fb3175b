"""Token counting utilities."""

from __future__ import annotations

import math
from typing import Callable, Iterable

from .types import ConfigurationError, Message

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Rough estimate: ceil(chars / 4). Empty text is zero tokens."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_message_tokens(
    messages: Iterable[Message],
    token_counter: Callable[[str], int] | None = None,
) -> int:
    """Sum of per-message estimates (not an estimate of the concatenation)."""
    counter = token_counter or estimate_tokens
    return sum(counter(m.content) for m in messages)


def create_token_counter(mode: str = "estimate") -> Callable[[str], int]:
    """Factory for token counters.

    Modes:
        "estimate" - ceil(len(text) / 4) (zero deps)
        "tiktoken" - requires tiktoken package
        "callable:module.path:func" - custom callable
    """
    if mode == "estimate":
        return estimate_tokens

    if mode == "tiktoken":
        try:
            import tiktoken
            enc = tiktoken.encoding_for_model("gpt-4")
            return lambda text: len(enc.encode(text)) if text else 0
        except ImportError:
            raise ImportError(
                "tiktoken not installed. Install with: pip install conversation-memory[tiktoken]"
            )

    if mode.startswith("callable:"):
        # Format: callable:module.path:func_name
        parts = mode[len("callable:"):].rsplit(":", 1)
        if len(parts) != 2:
            raise ConfigurationError(
                f"Invalid callable mode: {mode}. Expected callable:module:func",
                field="token_counter",
                value=mode,
            )
        module_path, func_name = parts
        import importlib
        mod = importlib.import_module(module_path)
        return getattr(mod, func_name)

    raise ConfigurationError(
        f"Unknown token counter mode: {mode}", field="token_counter", value=mode,
    )
