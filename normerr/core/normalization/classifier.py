from __future__ import annotations

import functools
import inspect
import traceback
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from pathlib import PurePath
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from normerr.core.constants import STANDARD_KEYS
from normerr.core.errors.normalized import NormalizedError
from normerr.utils.json_safe import safe_str


class ValueKind(str, Enum):
    """
    Closed set of shapes the normalizer dispatches on.

    Using str Enum keeps log lines and test assertions readable.
    """

    NORMALIZED = "normalized"
    ARRAY = "array"
    PRIMITIVE = "primitive"
    FUNCTION = "function"
    ERROR_LIKE = "error_like"
    PLAIN_OBJECT = "plain_object"


_PRIMITIVE_TYPES = (
    str,
    bytes,
    bytearray,
    bool,
    int,
    float,
    complex,
    Decimal,
    Fraction,
    Enum,
    datetime,
    date,
    time,
    timedelta,
    UUID,
    PurePath,
)


def is_primitive(value: Any) -> bool:
    return value is None or isinstance(value, _PRIMITIVE_TYPES)


def is_function(value: Any) -> bool:
    return inspect.isroutine(value) or inspect.isclass(value) or isinstance(value, functools.partial)


def own_attributes(value: Any) -> Optional[Dict[str, Any]]:
    """Return the instance ``__dict__`` of ``value`` or None if it has none."""
    try:
        attrs = object.__getattribute__(value, "__dict__")
    except RecursionError:
        raise
    except Exception:
        return None
    return attrs if isinstance(attrs, dict) else None


def _has_standard_key(keys: Any) -> bool:
    try:
        return any(k in keys for k in STANDARD_KEYS)
    except RecursionError:
        raise
    except Exception:
        return False


def is_error_shaped(value: Any) -> bool:
    """True for exceptions and for mappings/objects carrying a standard error key."""
    if isinstance(value, BaseException):
        return True
    if isinstance(value, Mapping):
        return _has_standard_key(value)
    if is_primitive(value) or is_function(value) or isinstance(value, (list, tuple)):
        return False
    attrs = own_attributes(value)
    return attrs is not None and _has_standard_key(attrs)


def classify(value: Any) -> ValueKind:
    """Map a runtime value to its ValueKind.

    Order matters: normalized errors first, then sequences, primitives and
    callables, then error-shaped values, then anything with keys.

    Time:  O(1)
    Space: O(1)
    """

    if isinstance(value, NormalizedError):
        return ValueKind.NORMALIZED
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if is_primitive(value):
        return ValueKind.PRIMITIVE
    if is_function(value):
        return ValueKind.FUNCTION
    if is_error_shaped(value):
        return ValueKind.ERROR_LIKE
    if isinstance(value, Mapping) or own_attributes(value) is not None:
        return ValueKind.PLAIN_OBJECT
    # Sets, slotted objects, generators and the like have no keys to walk.
    return ValueKind.PRIMITIVE


def is_unwalked_iterable(value: Any) -> bool:
    """Iterable collections that are neither sequences of errors nor mappings."""
    if isinstance(value, (str, bytes, bytearray, list, tuple, Mapping, BaseException)):
        return False
    return isinstance(value, Iterable)


def function_source(fn: Any) -> str:
    """Source text of a callable, falling back to its repr."""
    try:
        return inspect.getsource(fn).strip()
    except Exception:
        # Builtins, REPL-defined and C-level callables have no retrievable source.
        return safe_str(fn)


def _exception_stack(exc: BaseException) -> Optional[str]:
    if exc.__traceback__ is None:
        return None
    try:
        return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__, chain=False))
    except Exception:
        return None


def _exception_message(exc: BaseException) -> Any:
    if isinstance(exc, BaseExceptionGroup):
        return exc.message
    return safe_str(exc)


def _exception_cause(exc: BaseException) -> Any:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__context__ is not None and not exc.__suppress_context__:
        return exc.__context__
    return None


def read_fields(value: Any, kind: ValueKind) -> Dict[str, Any]:
    """Read the standard error fields that are present on ``value``.

    Keys of the returned dict are a subset of STANDARD_KEYS; a key is only
    present when the source actually provides it.

    Security notes:
    - Reads never raise; a mapping whose lookups fail contributes nothing.
    """

    if kind is ValueKind.NORMALIZED:
        out: Dict[str, Any] = {"name": value.name, "message": value.message}
        for key in ("cause", "errors", "stack"):
            field_value = getattr(value, key, None)
            if field_value is not None:
                out[key] = field_value
        return out

    if isinstance(value, Mapping):
        out = {}
        for key in STANDARD_KEYS:
            try:
                if key in value:
                    out[key] = value[key]
            except RecursionError:
                raise
            except Exception:
                continue
        return out

    attrs = own_attributes(value) or {}
    out = {key: attrs[key] for key in STANDARD_KEYS if key in attrs}

    if isinstance(value, BaseException):
        out.setdefault("name", type(value).__name__)
        if "message" not in out:
            out["message"] = _exception_message(value)
        if "cause" not in out:
            cause = _exception_cause(value)
            if cause is not None:
                out["cause"] = cause
        if "errors" not in out and isinstance(value, BaseExceptionGroup):
            out["errors"] = list(value.exceptions)
        if "stack" not in out:
            stack = _exception_stack(value)
            if stack is not None:
                out["stack"] = stack
    return out


def read_extra_items(value: Any, kind: ValueKind, include_non_enumerable: bool) -> List[Tuple[Any, Any]]:
    """Own key/value pairs other than the standard fields, in enumeration order.

    For attribute-based sources, single-underscore names count as
    non-enumerable and are skipped unless ``include_non_enumerable``.
    Exception notes (``__notes__``) surface as ``notes``.
    """

    if kind is ValueKind.NORMALIZED:
        return list(value.metadata.items())

    items: List[Tuple[Any, Any]] = []
    if isinstance(value, Mapping):
        try:
            for key, item in value.items():
                if isinstance(key, str) and key in STANDARD_KEYS:
                    continue
                items.append((key, item))
        except RecursionError:
            raise
        except Exception:
            # Keep whatever was enumerated before the mapping failed.
            pass
        return items

    for key, item in list((own_attributes(value) or {}).items()):
        if key in STANDARD_KEYS:
            continue
        if key == "__notes__" and isinstance(value, BaseException):
            items.append(("notes", item))
            continue
        if key.startswith("_") and not key.startswith("__") and not include_non_enumerable:
            continue
        items.append((key, item))
    return items
