"""Error normalization for normerr.

Normalization maps arbitrary thrown values (exceptions, error-like mappings and
objects, primitives, callables, lists of errors) into a canonical
``NormalizedError`` tree.

Security notes:
- Never assume inputs are well-formed or benign.
- Traversal is bounded in depth, breadth and length, and cycle-safe.
- Reserved keys are never copied onto results.
"""

from .normalizer import normalize_error
from .options import NormalizeOptions
from .exceptions import NormalizeConfigError, NormalizeOptionTypeError, NormalizeOptionRangeError
from .subclassing import ErrorRegistry, resolve_subclass
from .classifier import ValueKind, classify, is_error_shaped
from .guard import TraversalContext
from .sanitizer import PropertySelection, select_properties
from .aggregate import AggregateMode, AggregateResolution, resolve_errors

__all__ = [
    "normalize_error",
    "NormalizeOptions",
    "NormalizeConfigError",
    "NormalizeOptionTypeError",
    "NormalizeOptionRangeError",
    "ErrorRegistry",
    "resolve_subclass",
    "ValueKind",
    "classify",
    "is_error_shaped",
    "TraversalContext",
    "PropertySelection",
    "select_properties",
    "AggregateMode",
    "AggregateResolution",
    "resolve_errors",
]
