from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from normerr.core.constants import TRUNCATED_KEY, array_truncation_note
from normerr.core.errors.normalized import NormalizedError

from .classifier import is_error_shaped, is_unwalked_iterable
from .guard import TraversalContext
from .sanitizer import select_properties

log = logging.getLogger("normerr.normalization")

# (value, depth, context) -> node; supplied by the shape normalizer.
NodeNormalizer = Callable[[Any, int, TraversalContext], NormalizedError]


class AggregateMode(str, Enum):
    NONE = "none"
    ARRAY = "array"
    MAPPING = "mapping"
    SINGLE = "single"


@dataclass(frozen=True)
class AggregateResolution:
    """Resolved ``errors`` field.

    ``note`` is the truncation annotation for an ARRAY, to be attached to the
    parent node. MAPPING notes already live inside ``errors``.
    """

    mode: AggregateMode
    errors: Union[List[NormalizedError], Dict[str, Union[NormalizedError, str]], None] = None
    note: Optional[str] = None


def resolve_errors(raw: Any, depth: int, ctx: TraversalContext, normalize: NodeNormalizer) -> AggregateResolution:
    """Turn an arbitrary ``errors`` value into the canonical multi-error shape.

    - list/tuple -> ordered list, capped at max_array_length, note for parent
    - plain mapping -> str-keyed dict, capped at max_properties, note inside
    - other iterables (sets, generators, views ...) -> empty dict, not iterated
    - any other non-None value -> one-element list (single aggregate)

    Children are normalized at ``depth + 1``.
    """

    if raw is None:
        return AggregateResolution(AggregateMode.NONE)

    if isinstance(raw, (list, tuple)):
        return _resolve_array(raw, depth, ctx, normalize)

    if isinstance(raw, Mapping) and not is_error_shaped(raw):
        return _resolve_mapping(raw, depth, ctx, normalize)

    if is_unwalked_iterable(raw) and not is_error_shaped(raw):
        return AggregateResolution(AggregateMode.MAPPING, {})

    return AggregateResolution(AggregateMode.SINGLE, [normalize(raw, depth + 1, ctx)])


def _resolve_array(raw: Any, depth: int, ctx: TraversalContext, normalize: NodeNormalizer) -> AggregateResolution:
    limit = ctx.options.max_array_length
    if ctx.is_circular(raw):
        # The errors list is one of its own ancestors.
        return AggregateResolution(AggregateMode.ARRAY, [normalize(raw, depth + 1, ctx)])

    note = None
    if len(raw) > limit:
        log.warning("Errors array length (%d) exceeds limit (%d), truncating", len(raw), limit)
        note = array_truncation_note(len(raw), limit)

    with ctx.descend(raw):
        errors = [normalize(item, depth + 1, ctx) for item in raw[:limit]]
    return AggregateResolution(AggregateMode.ARRAY, errors, note)


def _resolve_mapping(raw: Mapping, depth: int, ctx: TraversalContext, normalize: NodeNormalizer) -> AggregateResolution:
    try:
        items = list(raw.items())
    except RecursionError:
        raise
    except Exception:
        items = []

    selection = select_properties(items, ctx.options.max_properties, target=None)
    errors: Dict[str, Union[NormalizedError, str]] = {}
    with ctx.descend(raw):
        for key, value in selection.items:
            errors[key] = normalize(value, depth + 1, ctx)
    if selection.truncated:
        if TRUNCATED_KEY in errors:
            log.warning("Key %r already present, dropping note: %s", TRUNCATED_KEY, selection.note)
        else:
            errors[TRUNCATED_KEY] = selection.note
    return AggregateResolution(AggregateMode.MAPPING, errors)
