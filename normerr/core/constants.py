from __future__ import annotations

from typing import FrozenSet, Tuple

# Traversal bounds.
MAX_DEPTH: int = 8
MAX_DEPTH_LIMIT: int = 1000
MAX_PROPERTIES: int = 1000
MAX_ARRAY_LENGTH: int = 10000

# Arrays/objects longer than this are summarized by the text renderer.
MAX_INLINE_ITEMS: int = 3

DEFAULT_NAME: str = "Error"
AGGREGATE_NAME: str = "AggregateError"

CIRCULAR_MARKER: str = "[Circular]"

TRUNCATED_KEY: str = "_truncated"

STANDARD_KEYS: Tuple[str, ...] = ("name", "message", "cause", "errors", "stack")

# Keys that corrupt method/prototype behaviour when copied naively.
DANGEROUS_KEYS: FrozenSet[str] = frozenset(
    {
        "__proto__",
        "constructor",
        "prototype",
        "toString",
        "toJSON",
        "valueOf",
        "__defineGetter__",
        "__defineSetter__",
    }
)


def depth_marker(max_depth: int) -> str:
    return f"[Max depth of {max_depth} reached]"


def property_truncation_note(found: int, limit: int) -> str:
    return f"Property count ({found}) exceeds limit ({limit}), showing first {limit}"


def array_truncation_note(found: int, limit: int) -> str:
    return f"Array length ({found}) exceeds limit ({limit}), showing first {limit}"


def sequence_truncation_key(field: str) -> str:
    """Parent-level key that annotates a truncated sequence stored under ``field``."""
    return f"{TRUNCATED_KEY}_{field}"
