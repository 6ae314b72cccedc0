from __future__ import annotations

import base64
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, time
from enum import Enum
from pathlib import PurePath
from typing import Any, Mapping


def safe_str(obj: Any) -> str:
    """``str(obj)`` that never raises.

    Security notes:
    - ``__str__`` is caller code and may raise or return a non-string.
    """
    try:
        text = str(obj)
        if isinstance(text, str):
            return text
    except Exception:
        pass
    try:
        return repr(obj)
    except Exception:
        return f"<unprintable {type(obj).__name__}>"


def is_json_native(obj: Any) -> bool:
    return obj is None or isinstance(obj, (str, int, float, bool))


def to_jsonable(obj: Any) -> Any:
    """
    Convert a leaf value to a JSON-serializable equivalent.

    Security considerations:
    - bytes are base64-encoded to avoid binary injection / encoding issues.
    - does NOT execute or import anything dynamically.
    - unknown types collapse to their string form; this never raises.

    """
    if is_json_native(obj):
        return obj

    # datetime/date/time -> ISO 8601
    if isinstance(obj, (datetime, date, time)):
        # keep timezone info if present
        return obj.isoformat()

    if isinstance(obj, PurePath):
        return str(obj)

    # bytes -> base64 string
    if isinstance(obj, (bytes, bytearray)):
        return {"__bytes_b64__": base64.b64encode(bytes(obj)).decode("ascii")}

    if isinstance(obj, Enum):
        return obj.value if is_json_native(obj.value) else safe_str(obj)

    if is_dataclass(obj) and not isinstance(obj, type):
        try:
            return to_jsonable(asdict(obj))
        except Exception:
            return safe_str(obj)

    if isinstance(obj, Mapping):
        return {safe_str(k): to_jsonable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(x) for x in obj]

    # fallback: string representation
    return safe_str(obj)
