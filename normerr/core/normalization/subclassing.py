from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from normerr.core.errors.normalized import NormalizedError

log = logging.getLogger("normerr.normalization")


@dataclass
class ErrorRegistry:
    """In-memory name -> constructor registry used for subclass reconstruction.

    Registration is permissive; whether a registrant can actually produce a
    NormalizedError is only checked when constructing (see resolve_subclass).

    - register: O(1) average
    - get / try_get: O(1) average
    - names: O(n)
    """

    _types: Dict[str, Callable[..., Any]] = field(default_factory=dict, init=False, repr=False)

    def register(self, name: str, ctor: Callable[..., Any]) -> None:
        """Register a constructor under an error name."""
        if not isinstance(name, str) or not name:
            raise TypeError("error name must be a non-empty string")
        if name in self._types:
            raise RuntimeError(f"Duplicate error name: {name}")
        self._types[name] = ctor

    def register_class(self, cls: type) -> type:
        """Register a class under its own ``__name__``; usable as a decorator."""
        self.register(cls.__name__, cls)
        return cls

    def get(self, name: str) -> Callable[..., Any]:
        return self._types[name]

    def try_get(self, name: str) -> Optional[Callable[..., Any]]:
        return self._types.get(name)

    def names(self) -> List[str]:
        """List registered names in insertion order."""
        return list(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    @classmethod
    def from_types(cls, types: Iterable[type]) -> "ErrorRegistry":
        registry = cls()
        for t in types:
            registry.register_class(t)
        return registry


def resolve_subclass(name: str, message: str, registry: Optional[ErrorRegistry]) -> Optional[NormalizedError]:
    """Try to build the registered subtype for ``name``.

    Returns None (caller falls back to the base type) when there is no
    registry entry, the registrant is not a NormalizedError subclass, or the
    constructor raises or returns something else. Never raises.
    """

    if registry is None:
        return None
    ctor = registry.try_get(name)
    if ctor is None:
        return None
    if not (isinstance(ctor, type) and issubclass(ctor, NormalizedError)):
        log.debug("registrant for %r is not a NormalizedError subclass; using base type", name)
        return None

    try:
        instance = ctor(message)
    except Exception:
        log.debug("constructor for %r raised; using base type", name, exc_info=True)
        return None

    if not isinstance(instance, NormalizedError):
        log.debug("constructor for %r returned %s; using base type", name, type(instance).__name__)
        return None
    return instance
