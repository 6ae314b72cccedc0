from __future__ import annotations

import logging
from itertools import islice
from typing import Any, Dict, List, Optional, Tuple

from normerr.core.constants import (
    AGGREGATE_NAME,
    CIRCULAR_MARKER,
    DEFAULT_NAME,
    STANDARD_KEYS,
    TRUNCATED_KEY,
    array_truncation_note,
    depth_marker,
    sequence_truncation_key,
)
from normerr.core.errors.normalized import NormalizedError, NormalizedErrorGroup, is_reserved_key
from normerr.utils.json_safe import safe_str

from .aggregate import AggregateMode, AggregateResolution, resolve_errors
from .classifier import (
    ValueKind,
    classify,
    function_source,
    is_error_shaped,
    is_function,
    is_primitive,
    read_extra_items,
    read_fields,
)
from .guard import TraversalContext
from .options import NormalizeOptions
from .sanitizer import sanitize_scalar, select_properties
from .subclassing import resolve_subclass

log = logging.getLogger("normerr.normalization")

# Returned by _normalize_value for entries that must not be copied (callables).
_SKIP = object()

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def normalize_error(value: Any, options: Any = None) -> NormalizedError:
    """Normalize any value into a fresh NormalizedError.

    ``options`` may be a NormalizeOptions, a mapping of option names (snake_case
    or camelCase), or None. Options are validated before any
    traversal; invalid options raise NormalizeOptionTypeError /
    NormalizeOptionRangeError.

    Security notes:
    - Treat all inputs as attacker-controlled: cycles, hostile mappings,
      oversized collections and reserved keys are all bounded or dropped.
    - Apart from option validation this never raises.

    Time:  O(n) in the number of visited values (bounded by the limits)
    Space: O(d) traversal state, d <= max_depth
    """

    opts = NormalizeOptions.from_value(options)
    ctx = TraversalContext(opts)

    err = _normalize_node(value, 0, ctx)

    if opts.original_stack is not None:
        err.__dict__["stack"] = opts.original_stack
    if opts.patch_to_string:
        err.patch_to_string()
    return err


# --- nodes ---


def _leaf(message: str) -> NormalizedError:
    return NormalizedError(message)


def _primitive_message(value: Any) -> str:
    if value is None:
        return "Unknown error (None)"
    if isinstance(value, str):
        return value
    return safe_str(value)


def _normalize_node(value: Any, depth: int, ctx: TraversalContext) -> NormalizedError:
    if ctx.depth_exceeded(depth):
        return _leaf(depth_marker(ctx.options.max_depth))

    kind = classify(value)
    if kind is ValueKind.PRIMITIVE:
        return _leaf(_primitive_message(value))
    if kind is ValueKind.FUNCTION:
        return _leaf(function_source(value))
    if ctx.is_circular(value):
        return _leaf(CIRCULAR_MARKER)

    try:
        if kind is ValueKind.ARRAY:
            # The aggregate resolver keeps the list itself on the ancestor stack.
            fields = {"name": AGGREGATE_NAME, "message": AGGREGATE_NAME, "errors": value}
            return _build(value, kind, fields, depth, ctx)
        with ctx.descend(value):
            return _build(value, kind, read_fields(value, kind), depth, ctx)
    except RecursionError:
        return _leaf(_recursion_marker(ctx, depth))


def _build(value: Any, kind: ValueKind, fields: Dict[str, Any], depth: int, ctx: TraversalContext) -> NormalizedError:
    cause: Optional[NormalizedError] = None
    if fields.get("cause") is not None:
        cause = _normalize_node(fields["cause"], depth + 1, ctx)

    resolution = resolve_errors(fields.get("errors"), depth, ctx, _normalize_node)

    # Single-value errors always read as an aggregate of one.
    if resolution.mode is AggregateMode.SINGLE:
        name = _resolve_text(fields.get("name")) or AGGREGATE_NAME
        message = AGGREGATE_NAME
    else:
        name = _resolve_text(fields.get("name")) or DEFAULT_NAME
        message = _resolve_text(fields.get("message"))

    items = read_extra_items(value, kind, ctx.options.include_non_enumerable)
    metadata = _normalize_metadata(items, depth, ctx)
    if resolution.note is not None:
        _annotate(metadata, sequence_truncation_key("errors"), resolution.note)

    stack = fields.get("stack")
    return _assemble(
        name,
        message,
        cause,
        resolution,
        metadata,
        stack if isinstance(stack, str) else None,
        ctx,
    )


def _assemble(
    name: str,
    message: str,
    cause: Optional[NormalizedError],
    resolution: AggregateResolution,
    metadata: Dict[str, Any],
    stack: Optional[str],
    ctx: TraversalContext,
) -> NormalizedError:
    opts = ctx.options
    errors = resolution.errors

    if opts.enable_subclassing:
        candidate = resolve_subclass(name, message, opts.registry)
        if candidate is not None:
            try:
                return _populate(candidate, name, message, cause, errors, metadata, stack, opts)
            except Exception:
                log.debug("populating %s failed; using base type", type(candidate).__name__, exc_info=True)

    err: Optional[NormalizedError] = None
    if name == AGGREGATE_NAME and opts.use_aggregate_error and isinstance(errors, list) and errors:
        try:
            err = NormalizedErrorGroup(message, errors)
        except (TypeError, ValueError):
            log.debug("native aggregate construction failed; attaching errors manually", exc_info=True)
    if err is None:
        err = NormalizedError(message)
    return _populate(err, name, message, cause, errors, metadata, stack, opts)


def _populate(
    err: NormalizedError,
    name: str,
    message: str,
    cause: Optional[NormalizedError],
    errors: Any,
    metadata: Dict[str, Any],
    stack: Optional[str],
    opts: NormalizeOptions,
) -> NormalizedError:
    # Plain assignment so a registered subtype that refuses writes is detected.
    err.name = name
    err.message = message
    if stack is not None:
        err.stack = stack

    if cause is not None:
        if opts.use_cause_error:
            err.__cause__ = cause
        else:
            err.cause = cause

    # Native groups already carry their errors in .exceptions.
    if errors is not None and not isinstance(err, NormalizedErrorGroup):
        err.errors = errors

    target = type(err)
    for key, item in metadata.items():
        if not is_reserved_key(key, target):
            setattr(err, key, item)
    return err


def _resolve_text(raw: Any) -> str:
    """Coerce a raw name/message to text.

    Error-shaped values contribute their own message (else their name); other
    non-strings fall back to a generic ``[object <Kind>]`` tag.
    """

    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    if is_primitive(raw):
        return safe_str(raw)
    if is_function(raw):
        return "[object Function]"
    if is_error_shaped(raw):
        inner = read_fields(raw, classify(raw))
        for key in ("message", "name"):
            text = inner.get(key)
            if text is not None:
                return text if isinstance(text, str) else _generic_tag(text)
    return _generic_tag(raw)


def _generic_tag(value: Any) -> str:
    if is_primitive(value):
        return safe_str(value)
    if is_function(value):
        return "[object Function]"
    if isinstance(value, (list, tuple)):
        return "[object Array]"
    return "[object Object]"


# --- metadata ---


def _recursion_marker(ctx: TraversalContext, depth: int) -> str:
    log.warning("Interpreter recursion limit reached at depth %d, truncating", depth)
    return depth_marker(ctx.options.max_depth)


def _annotate(out: Dict[str, Any], key: str, note: str) -> None:
    """Attach a truncation note unless the caller already owns ``key``."""
    if key in out:
        log.warning("Key %r already present, dropping note: %s", key, note)
        return
    out[key] = note


def _normalize_metadata(items: List[Tuple[Any, Any]], depth: int, ctx: TraversalContext) -> Dict[str, Any]:
    selection = select_properties(items, ctx.options.max_properties, exclude=STANDARD_KEYS)
    out: Dict[str, Any] = {}
    for key, item in selection.items:
        _store(out, key, item, depth + 1, ctx)
    if selection.truncated:
        _annotate(out, TRUNCATED_KEY, selection.note)
    return out


def _store(out: Dict[str, Any], key: str, value: Any, depth: int, ctx: TraversalContext) -> None:
    """Normalize ``value`` into ``out[key]``; sequence notes go on ``out``.

    An interpreter recursion overflow only replaces this one slot.
    """
    try:
        if isinstance(value, _SEQUENCE_TYPES):
            items, note = _normalize_sequence(value, depth, ctx)
            out[key] = items
            if note is not None:
                _annotate(out, sequence_truncation_key(key), note)
            return
        result = _normalize_value(value, depth, ctx)
    except RecursionError:
        out[key] = _recursion_marker(ctx, depth)
        return

    if result is not _SKIP:
        out[key] = result


def _normalize_value(value: Any, depth: int, ctx: TraversalContext) -> Any:
    """Normalize a metadata value into plain data (or a node for error-shaped values).

    Primitives are kept at any depth; containers beyond max_depth and cycles
    collapse to the string markers.
    """

    if isinstance(value, _SEQUENCE_TYPES):
        items, note = _normalize_sequence(value, depth, ctx)
        if note is not None and isinstance(items, list):
            # No parent key to hang the note on.
            items.append(note)
        return items

    kind = classify(value)
    if kind is ValueKind.PRIMITIVE:
        return sanitize_scalar(value)
    if kind is ValueKind.FUNCTION:
        return _SKIP
    if ctx.depth_exceeded(depth):
        return depth_marker(ctx.options.max_depth)
    if ctx.is_circular(value):
        return CIRCULAR_MARKER
    if kind in (ValueKind.NORMALIZED, ValueKind.ERROR_LIKE):
        return _normalize_node(value, depth, ctx)

    items = read_extra_items(value, kind, ctx.options.include_non_enumerable)
    selection = select_properties(items, ctx.options.max_properties, target=None)
    out: Dict[str, Any] = {}
    with ctx.descend(value):
        for key, item in selection.items:
            _store(out, key, item, depth + 1, ctx)
    if selection.truncated:
        _annotate(out, TRUNCATED_KEY, selection.note)
    return out


def _normalize_sequence(value: Any, depth: int, ctx: TraversalContext) -> Tuple[Any, Optional[str]]:
    if ctx.depth_exceeded(depth):
        return depth_marker(ctx.options.max_depth), None
    if ctx.is_circular(value):
        return CIRCULAR_MARKER, None

    limit = ctx.options.max_array_length
    note = None
    if len(value) > limit:
        log.warning("Array length (%d) exceeds limit (%d), truncating", len(value), limit)
        note = array_truncation_note(len(value), limit)

    out: List[Any] = []
    with ctx.descend(value):
        for item in islice(value, limit):
            try:
                result = _normalize_value(item, depth + 1, ctx)
            except RecursionError:
                result = _recursion_marker(ctx, depth + 1)
            if result is not _SKIP:
                out.append(result)
    return out, note
