from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Set

from normerr.core.constants import (
    CIRCULAR_MARKER,
    DEFAULT_NAME,
    MAX_INLINE_ITEMS,
    depth_marker,
)
from normerr.utils.json_safe import is_json_native, safe_str, to_jsonable

from .normalized import NormalizedError

log = logging.getLogger("normerr.errors")

_INDENT = "  "


def _header(err: BaseException) -> str:
    name, message = _name_and_message(err)
    return f"{name}: {message}" if message else name


def _name_and_message(err: BaseException) -> tuple:
    if isinstance(err, NormalizedError):
        return err.name, err.message
    return type(err).__name__ or DEFAULT_NAME, safe_str(err)


def _safe_header(err: Any) -> str:
    try:
        return _header(err)
    except Exception:
        return DEFAULT_NAME


def _resolve_depth(err: Any, max_depth: Optional[int]) -> int:
    if isinstance(max_depth, int) and not isinstance(max_depth, bool) and max_depth > 0:
        return max_depth
    return getattr(type(err), "default_max_depth", NormalizedError.default_max_depth)


# --- text ---


def render_text(err: BaseException, *, max_depth: Optional[int] = None, include_stack: bool = True) -> str:
    """Render an error as readable multi-line text.

    Output order: header, stack (root only), ``[cause]``, ``[errors]``, metadata.

    Security notes:
    - Never raises; any internal fault degrades to the bare header.
    - Arrays/objects with more than MAX_INLINE_ITEMS entries are summarized.

    Time:  O(n) in the size of the rendered tree
    Space: O(d) for the active path, d = tree depth
    """

    try:
        return _TextRenderer(_resolve_depth(err, max_depth), include_stack).node(err, 0)
    except Exception:
        log.debug("text rendering degraded", exc_info=True)
        return _safe_header(err)


class _TextRenderer:
    def __init__(self, max_depth: int, include_stack: bool) -> None:
        self.max_depth = max_depth
        self.include_stack = include_stack
        self.path: Set[int] = set()

    def node(self, err: BaseException, depth: int) -> str:
        indent = _INDENT * depth
        if depth >= self.max_depth:
            return f"{indent}{depth_marker(self.max_depth)}"
        if id(err) in self.path:
            return f"{indent}{CIRCULAR_MARKER}"

        self.path.add(id(err))
        try:
            header = _header(err)
            lines = [f"{indent}{header}"]

            if not isinstance(err, NormalizedError):
                return lines[0]

            stack = err.stack
            if depth == 0 and self.include_stack and isinstance(stack, str):
                for frame in stack.splitlines():
                    frame = frame.strip()
                    if frame and frame != header:
                        lines.append(f"{indent}{_INDENT}{frame}")

            cause = err.cause
            if cause is not None:
                lines.append(f"{indent}{_INDENT}[cause]: {self.value(cause, depth + 1).lstrip()}")

            errors = err.errors
            if errors is not None:
                lines.append(f"{indent}{_INDENT}[errors]: {self.errors(errors, depth + 1)}")

            for key, value in err.metadata.items():
                lines.append(f"{indent}{_INDENT}{safe_str(key)}: {self.value(value, depth + 1).lstrip()}")

            return "\n".join(lines)
        finally:
            self.path.discard(id(err))

    def errors(self, errors: Any, depth: int) -> str:
        indent = _INDENT * depth
        if depth >= self.max_depth:
            return depth_marker(self.max_depth)

        if isinstance(errors, (list, tuple)):
            if not errors:
                return "[]"
            items = [
                f"{indent}{_INDENT}[{idx}]: {self.value(item, depth).strip()}"
                for idx, item in enumerate(errors)
            ]
            return "[\n" + "\n".join(items) + f"\n{indent}]"

        if isinstance(errors, Mapping):
            if not errors:
                return "{}"
            items = [
                f"{indent}{_INDENT}{safe_str(key)}: {self.value(item, depth).strip()}"
                for key, item in errors.items()
            ]
            return "{\n" + "\n".join(items) + f"\n{indent}}}"

        return self.value(errors, depth)

    def value(self, value: Any, depth: int) -> str:
        if isinstance(value, BaseException):
            return self.node(value, depth)
        if depth >= self.max_depth:
            return depth_marker(self.max_depth)

        if value is None or isinstance(value, (bool, int, float)):
            return safe_str(value)
        if isinstance(value, str):
            return f"'{value}'"

        if isinstance(value, (list, tuple, set, frozenset)):
            if id(value) in self.path:
                return CIRCULAR_MARKER
            if not value:
                return "[]"
            if len(value) > MAX_INLINE_ITEMS:
                return f"[{type(value).__name__}({len(value)})]"
            self.path.add(id(value))
            try:
                return "[" + ", ".join(self.value(v, depth + 1).strip() for v in value) + "]"
            finally:
                self.path.discard(id(value))

        if isinstance(value, Mapping):
            if id(value) in self.path:
                return CIRCULAR_MARKER
            if not value:
                return "{}"
            if len(value) > MAX_INLINE_ITEMS:
                return f"[{type(value).__name__}({len(value)})]"
            self.path.add(id(value))
            try:
                pairs = [f"{safe_str(k)}: {self.value(v, depth + 1).strip()}" for k, v in value.items()]
                return "{ " + ", ".join(pairs) + " }"
            finally:
                self.path.discard(id(value))

        return safe_str(to_jsonable(value))


# --- json ---


def render_json(err: BaseException, *, max_depth: Optional[int] = None) -> Dict[str, Any]:
    """Return a plain, ``json.dumps``-safe dict for ``err``.

    Shape: ``{name, message, stack?, cause?, errors?, **metadata}``.

    Security notes:
    - Never raises; faults degrade to ``{"name", "message"}``.
    - Keys are always strings; leaves are always JSON-native.

    """

    try:
        return _JsonRenderer(_resolve_depth(err, max_depth)).node(err, 0)
    except Exception:
        log.debug("json rendering degraded", exc_info=True)
        try:
            name, message = _name_and_message(err)
            return {"name": safe_str(name), "message": safe_str(message)}
        except Exception:
            return {"name": DEFAULT_NAME, "message": ""}


class _JsonRenderer:
    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self.path: Set[int] = set()

    def node(self, err: BaseException, depth: int) -> Dict[str, Any]:
        name, message = _name_and_message(err)
        if depth >= self.max_depth:
            return {"name": name, "message": depth_marker(self.max_depth)}
        if id(err) in self.path:
            return {"name": name, "message": CIRCULAR_MARKER}

        out: Dict[str, Any] = {"name": name, "message": message}
        if not isinstance(err, NormalizedError):
            return out

        self.path.add(id(err))
        try:
            if isinstance(err.stack, str):
                out["stack"] = err.stack

            cause = err.cause
            if cause is not None:
                out["cause"] = self._child(cause, depth + 1)

            errors = err.errors
            if isinstance(errors, (list, tuple)):
                out["errors"] = [self._child(item, depth + 1) for item in errors]
            elif isinstance(errors, Mapping):
                out["errors"] = {
                    safe_str(key): item if isinstance(item, str) else self._child(item, depth + 1)
                    for key, item in errors.items()
                }
            elif errors is not None:
                out["errors"] = [self._child(errors, depth + 1)]

            for key, value in err.metadata.items():
                out[safe_str(key)] = self.value(value, depth + 1)
            return out
        finally:
            self.path.discard(id(err))

    def _child(self, value: Any, depth: int) -> Dict[str, Any]:
        if isinstance(value, BaseException):
            return self.node(value, depth)
        # Hand-built trees may carry raw values where nodes are expected.
        return {"name": DEFAULT_NAME, "message": safe_str(self.value(value, depth))}

    def value(self, value: Any, depth: int) -> Any:
        if isinstance(value, BaseException):
            return self.node(value, depth)
        if depth >= self.max_depth:
            return depth_marker(self.max_depth)
        if is_json_native(value):
            return value

        if isinstance(value, (list, tuple, set, frozenset)):
            if id(value) in self.path:
                return CIRCULAR_MARKER
            self.path.add(id(value))
            try:
                items: List[Any] = [self.value(v, depth + 1) for v in value]
                return items
            finally:
                self.path.discard(id(value))

        if isinstance(value, Mapping):
            if id(value) in self.path:
                return CIRCULAR_MARKER
            self.path.add(id(value))
            try:
                return {safe_str(k): self.value(v, depth + 1) for k, v in value.items()}
            finally:
                self.path.discard(id(value))

        converted = to_jsonable(value)
        if is_json_native(converted) or isinstance(converted, dict):
            return converted
        return safe_str(converted)
