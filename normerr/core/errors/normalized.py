from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from normerr.core.constants import DANGEROUS_KEYS, DEFAULT_NAME, MAX_DEPTH_LIMIT, STANDARD_KEYS
from normerr.utils.json_safe import safe_str

if TYPE_CHECKING:
    from .payload import ErrorPayload

# Own attribute marking instances whose ``str()`` renders the full error.
# A dunder name, so it is never copied from input data.
_FULL_STR_FLAG = "__normerr_full_str__"


@lru_cache(maxsize=None)
def _class_attributes(cls: type) -> frozenset:
    return frozenset(dir(cls))


def is_dangerous_key(key: str) -> bool:
    """Prototype-era dangerous names and every dunder name."""
    return key in DANGEROUS_KEYS or (key.startswith("__") and key.endswith("__"))


def is_reserved_key(key: str, target: Optional[type] = None) -> bool:
    """Return True if ``key`` must never become an own data attribute of ``target``.

    On top of the dangerous keys, every attribute the target class already
    defines is reserved, so ``to_json`` and friends can't be shadowed by
    instance data. Without a target only the dangerous keys apply.
    """

    if is_dangerous_key(key):
        return True
    if target is None:
        return False
    return key in _class_attributes(target) and key not in STANDARD_KEYS


class NormalizedError(Exception):
    """
    Canonical error produced by ``normalize_error``.

    Layout
    - name / message / stack are own attributes (always strings for the first two)
    - cause is either chained natively (``__cause__``) or an own attribute
    - errors is an ordered list or a str-keyed mapping, never both
    - every other own attribute is metadata

    Security invariants
    - Reserved keys (dangerous names, dunders, class attributes) are never stored
    - Callables are never stored as metadata
    - ``to_string`` / ``to_json`` never raise
    """

    # Renderer bound. Normalized trees are already depth-bounded at construction.
    default_max_depth: int = MAX_DEPTH_LIMIT

    def __init__(
        self,
        message: str = "",
        *,
        name: Optional[str] = None,
        cause: Any = None,
        errors: Any = None,
        stack: Optional[str] = None,
        **metadata: Any,
    ) -> None:
        message = message if isinstance(message, str) else safe_str(message)
        super().__init__(message)

        own = self.__dict__
        own["name"] = name if isinstance(name, str) and name else DEFAULT_NAME
        own["message"] = message
        if isinstance(stack, str):
            own["stack"] = stack

        if isinstance(cause, BaseException):
            self.__cause__ = cause
        elif cause is not None:
            own["cause"] = cause

        if errors is not None:
            own["errors"] = errors

        for key, value in metadata.items():
            if callable(value) or is_reserved_key(key, type(self)):
                continue
            own[key] = value

    # --- canonical fields ---

    @property
    def name(self) -> str:
        return self.__dict__.get("name") or DEFAULT_NAME

    @name.setter
    def name(self, value: Any) -> None:
        text = value if isinstance(value, str) else safe_str(value)
        self.__dict__["name"] = text or DEFAULT_NAME

    @property
    def message(self) -> str:
        return self.__dict__.get("message", "")

    @message.setter
    def message(self, value: Any) -> None:
        self.__dict__["message"] = value if isinstance(value, str) else safe_str(value)

    @property
    def stack(self) -> Optional[str]:
        return self.__dict__.get("stack")

    @stack.setter
    def stack(self, value: Optional[str]) -> None:
        if value is None:
            self.__dict__.pop("stack", None)
        else:
            self.__dict__["stack"] = value if isinstance(value, str) else safe_str(value)

    @property
    def cause(self) -> Any:
        """The manually attached cause, else the natively chained one."""
        if "cause" in self.__dict__:
            return self.__dict__["cause"]
        return self.__cause__

    @cause.setter
    def cause(self, value: Any) -> None:
        self.__dict__["cause"] = value

    @property
    def errors(self) -> Union[List[Any], Dict[str, Any], None]:
        if "errors" in self.__dict__:
            return self.__dict__["errors"]
        if isinstance(self, BaseExceptionGroup):
            return list(self.exceptions)
        return None

    @errors.setter
    def errors(self, value: Any) -> None:
        self.__dict__["errors"] = value

    @property
    def metadata(self) -> Dict[str, Any]:
        """Fresh dict of every own attribute that is not a canonical field."""
        return {k: v for k, v in self.__dict__.items() if k not in STANDARD_KEYS and k != _FULL_STR_FLAG}

    # --- rendering ---

    def to_string(self, max_depth: Optional[int] = None, *, include_stack: bool = True) -> str:
        # Lazy import keeps the renderer free to import this module.
        from .rendering import render_text

        return render_text(self, max_depth=max_depth, include_stack=include_stack)

    def to_json(self, max_depth: Optional[int] = None) -> Dict[str, Any]:
        from .rendering import render_json

        return render_json(self, max_depth=max_depth)

    def to_payload(self) -> "ErrorPayload":
        """Return ``to_json()`` validated into the typed ``ErrorPayload`` model."""
        from .payload import ErrorPayload

        return ErrorPayload.model_validate(self.to_json())

    def patch_to_string(self) -> "NormalizedError":
        """Make ``str(self)`` return the full ``to_string()`` rendering."""
        self.__dict__[_FULL_STR_FLAG] = True
        return self

    def __str__(self) -> str:
        if self.__dict__.get(_FULL_STR_FLAG):
            return self.to_string()
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, message={self.message!r})"


class NormalizedErrorGroup(NormalizedError, ExceptionGroup):
    """Native aggregate form: sub-errors live in ``ExceptionGroup.exceptions``.

    Construction follows ``ExceptionGroup`` rules: ``errors`` must be a
    non-empty sequence of exceptions, otherwise TypeError/ValueError is raised
    and callers fall back to a plain ``NormalizedError``.
    """

    def __new__(cls, message: str, errors: Sequence[BaseException], **kwargs: Any):
        return super().__new__(cls, message, errors)

    def __init__(self, message: str, errors: Sequence[BaseException], **kwargs: Any) -> None:
        NormalizedError.__init__(self, message, **kwargs)

    def derive(self, excs: Sequence[BaseException]) -> "NormalizedErrorGroup":
        return NormalizedErrorGroup(self.message, excs, name=self.name)
