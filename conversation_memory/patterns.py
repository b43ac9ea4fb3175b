"""Regex patterns for intent and conversation-phase detection.

Kept in a standalone module to avoid circular imports between types.py
and classifiers/keyword.py.
"""

# Ordered ladder: the first intent whose pattern matches wins ties.
DEFAULT_INTENT_PATTERNS: list[tuple[str, list[str]]] = [
    ("greeting", [r"\b(?:hello|hi|hey)\b", r"\bgood (?:morning|afternoon|evening)\b"]),
    ("faq_pricing", [r"\b(?:price|pricing|cost|costs|budget)\b", r"\bhow much\b"]),
    ("demo_request", [r"\b(?:demo|demonstration)\b", r"\bshow me\b", r"\bsee it\b"]),
    ("booking_request", [r"\b(?:meeting|schedule|book|call|appointment)\b"]),
    ("faq_features", [r"\b(?:feature|features|capability|capabilities|function)\b", r"\bhow does\b"]),
    ("sales_inquiry", [r"\b(?:buy|purchase)\b", r"\bget started\b", r"\bsign up\b"]),
    ("support_request", [r"\b(?:help|support|problem|issue|trouble)\b"]),
    ("qualification", [r"\b(?:company|business|team|organization)\b"]),
    ("objection_handling", [r"\b(?:concern|concerned|worry|worried|but|however)\b", r"\bwhat if\b"]),
]

DEFAULT_FALLBACK_INTENT = "unknown"

DEFAULT_PHASE_KEYWORDS: dict[str, list[str]] = {
    "discovery": ["what", "how", "tell me", "explain", "understand"],
    "evaluation": ["compare", "vs", "versus", "better", "difference"],
    "qualification": ["price", "cost", "team", "budget", "timeline"],
    "closing": ["decide", "choose", "select", "go with", "purchase"],
    "objection_handling": ["but", "however", "concern", "worry", "problem"],
}

DEFAULT_PHASE = "discovery"

# Entity value normalization for deduplication and removal matching.
NON_WORD_PATTERN = r"[^\w\s]|_"
WHITESPACE_PATTERN = r"\s+"
