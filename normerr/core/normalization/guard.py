from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Set

from .options import NormalizeOptions


@dataclass
class TraversalContext:
    """
    Call-scoped traversal state for one normalize_error call.

    Responsibilities
    - Track the identities of the ancestors currently being descended
    - Answer depth and cycle questions against the active options

    Invariants
    - Only the active path is tracked: an identity is pushed on descent and
      popped on every exit, so a value shared by two sibling branches is not
      reported as circular
    - Identity, never equality, decides cycles
    - Never shared between calls
    """

    options: NormalizeOptions
    _stack: List[int] = field(default_factory=list, init=False, repr=False)
    _active: Set[int] = field(default_factory=set, init=False, repr=False)

    def depth_exceeded(self, depth: int) -> bool:
        return depth >= self.options.max_depth

    def is_circular(self, value: Any) -> bool:
        return id(value) in self._active

    @property
    def ancestors(self) -> List[int]:
        return list(self._stack)

    @contextmanager
    def descend(self, value: Any) -> Iterator[None]:
        """Keep ``value`` on the ancestor stack for the duration of the block."""
        ident = id(value)
        self._stack.append(ident)
        self._active.add(ident)
        try:
            yield
        finally:
            self._stack.pop()
            self._active.discard(ident)
