"""Canonical error type for normerr.

``NormalizedError`` is what ``normalize_error`` returns: a real exception
with string ``name``/``message``, an optional cause chain and sub-errors, and
flat metadata. Rendering (``to_string``/``to_json``) never raises.
"""

from .normalized import NormalizedError, NormalizedErrorGroup, is_reserved_key
from .payload import ErrorPayload
from .rendering import render_json, render_text

__all__ = [
    "NormalizedError",
    "NormalizedErrorGroup",
    "is_reserved_key",
    "ErrorPayload",
    "render_text",
    "render_json",
]
