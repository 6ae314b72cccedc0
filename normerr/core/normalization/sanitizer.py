from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from normerr.core.constants import property_truncation_note
from normerr.core.errors.normalized import NormalizedError, is_reserved_key
from normerr.utils.json_safe import is_json_native, safe_str, to_jsonable

log = logging.getLogger("normerr.normalization")


def sanitize_key(key: Any) -> str:
    """Stringify any non-string key."""
    if isinstance(key, str):
        return key
    if isinstance(key, tuple):
        return "(" + ", ".join(safe_str(k) for k in key) + ")"
    return safe_str(key)


def sanitize_scalar(value: Any) -> Any:
    """Return a JSON-native (or base64-record) form of a leaf value."""
    if is_json_native(value):
        return value
    converted = to_jsonable(value)
    if is_json_native(converted) or isinstance(converted, dict):
        return converted
    return safe_str(converted)


class PropertySelection:
    """Outcome of select_properties: the kept pairs plus counts for annotation."""

    __slots__ = ("items", "found", "limit")

    def __init__(self, items: List[Tuple[str, Any]], found: int, limit: int) -> None:
        self.items = items
        self.found = found
        self.limit = limit

    @property
    def truncated(self) -> bool:
        return self.found > self.limit

    @property
    def note(self) -> str:
        return property_truncation_note(self.found, self.limit)


def select_properties(
    items: Iterable[Tuple[Any, Any]],
    limit: int,
    *,
    exclude: Sequence[str] = (),
    target: Optional[type] = NormalizedError,
) -> PropertySelection:
    """Filter and cap key/value pairs for copying.

    Rules, applied in enumeration order:
    - keys are stringified; the first occurrence of a stringified key wins
    - excluded and reserved keys (see is_reserved_key) are dropped; pass
      ``target=None`` for plain mappings, where only dangerous keys apply
    - callable values are dropped
    - at most ``limit`` pairs are kept; ``found`` counts every eligible pair

    Security notes:
    - Bounded: work after the limit is only counting.

    Time:  O(n)
    Space: O(min(n, limit))
    """

    kept: List[Tuple[str, Any]] = []
    seen = set()
    found = 0
    for raw_key, value in items:
        key = sanitize_key(raw_key)
        if key in seen or key in exclude or is_reserved_key(key, target):
            continue
        if callable(value):
            continue
        seen.add(key)
        found += 1
        if len(kept) < limit:
            kept.append((key, value))

    if found > limit:
        log.warning("Property count (%d) exceeds limit (%d), truncating", found, limit)
    return PropertySelection(kept, found, limit)
