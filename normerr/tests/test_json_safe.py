import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum

from normerr.utils.json_safe import is_json_native, safe_str, to_jsonable


class Color(Enum):
    RED = "red"


@dataclass
class Point:
    x: int
    y: int


class Broken:
    def __str__(self):
        raise ValueError("broken")


def test_safe_str_never_raises():
    assert safe_str(1) == "1"
    assert safe_str(Broken()).startswith("<")


def test_to_jsonable_converts_common_leaves():
    assert to_jsonable(datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)) == "2024-05-06T07:08:09+00:00"
    assert to_jsonable(date(2024, 5, 6)) == "2024-05-06"
    assert to_jsonable(b"\x00\x01") == {"__bytes_b64__": "AAE="}
    assert to_jsonable(Color.RED) == "red"
    assert to_jsonable(Point(1, 2)) == {"x": 1, "y": 2}
    assert to_jsonable({1: (1, 2)}) == {"1": [1, 2]}


def test_to_jsonable_output_is_serializable():
    value = {"when": datetime(2024, 1, 1), "raw": b"x", "nested": [Point(0, 0), {3}]}
    json.dumps(to_jsonable(value))


def test_is_json_native():
    assert is_json_native(None)
    assert is_json_native("s")
    assert not is_json_native(b"s")
    assert not is_json_native([])
