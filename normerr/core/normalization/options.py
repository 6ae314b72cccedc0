from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

from normerr.core.constants import MAX_ARRAY_LENGTH, MAX_DEPTH, MAX_DEPTH_LIMIT, MAX_PROPERTIES

from .exceptions import NormalizeOptionRangeError, NormalizeOptionTypeError
from .subclassing import ErrorRegistry

# camelCase option spellings, accepted by from_value.
_CAMEL_CASE: Dict[str, str] = {
    "maxDepth": "max_depth",
    "maxProperties": "max_properties",
    "maxArrayLength": "max_array_length",
    "includeNonEnumerable": "include_non_enumerable",
    "enableSubclassing": "enable_subclassing",
    "useCauseError": "use_cause_error",
    "useAggregateError": "use_aggregate_error",
    "originalStack": "original_stack",
    "patchToString": "patch_to_string",
}

_BOOL_FIELDS = (
    "include_non_enumerable",
    "enable_subclassing",
    "use_cause_error",
    "use_aggregate_error",
    "patch_to_string",
)


def _require_int(name: str, value: Any) -> int:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise NormalizeOptionTypeError(f"{name} must be an integer, got: {type(value).__name__}")
    return value


@dataclass(frozen=True)
class NormalizeOptions:
    """
    Immutable configuration for a single normalize_error call.

    Security invariants
    - Validated eagerly in __post_init__, before any traversal starts
    - Wrong types raise NormalizeOptionTypeError (a TypeError)
    - Out-of-range values raise NormalizeOptionRangeError (a ValueError)
    """

    max_depth: int = MAX_DEPTH
    max_properties: int = MAX_PROPERTIES
    max_array_length: int = MAX_ARRAY_LENGTH
    include_non_enumerable: bool = False
    enable_subclassing: bool = False
    use_cause_error: bool = True
    use_aggregate_error: bool = True
    original_stack: Optional[str] = None
    patch_to_string: bool = False
    registry: Optional[ErrorRegistry] = None

    def __post_init__(self) -> None:
        depth = _require_int("max_depth", self.max_depth)
        if depth < 1 or depth > MAX_DEPTH_LIMIT:
            raise NormalizeOptionRangeError(f"max_depth must be between 1 and {MAX_DEPTH_LIMIT}, got: {depth}")

        for name in ("max_properties", "max_array_length"):
            value = _require_int(name, getattr(self, name))
            if value < 0:
                raise NormalizeOptionRangeError(f"{name} must be >= 0, got: {value}")

        for name in _BOOL_FIELDS:
            if not isinstance(getattr(self, name), bool):
                raise NormalizeOptionTypeError(f"{name} must be a bool, got: {type(getattr(self, name)).__name__}")

        if self.original_stack is not None and not isinstance(self.original_stack, str):
            raise NormalizeOptionTypeError("original_stack must be a string")

        if self.registry is not None and not isinstance(self.registry, ErrorRegistry):
            raise NormalizeOptionTypeError("registry must be an ErrorRegistry")

    @classmethod
    def from_value(cls, options: Any = None) -> "NormalizeOptions":
        """Coerce None, an instance, or a mapping (snake_case or camelCase keys)."""

        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if not isinstance(options, Mapping):
            raise NormalizeOptionTypeError(
                f"options must be a NormalizeOptions or a mapping, got: {type(options).__name__}"
            )

        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in options.items():
            name = _CAMEL_CASE.get(key, key)
            if name not in known:
                raise NormalizeOptionTypeError(f"unknown option: {key!r}")
            kwargs[name] = value
        return cls(**kwargs)
