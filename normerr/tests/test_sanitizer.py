import logging
from datetime import datetime

from normerr.core.constants import STANDARD_KEYS
from normerr.core.normalization import select_properties
from normerr.core.normalization.sanitizer import sanitize_key, sanitize_scalar


def test_select_properties_filters_and_stringifies_keys():
    items = [
        ("a", 1),
        (1, 2),
        ("1", 3),
        ("__proto__", 4),
        ("constructor", 5),
        ("fn", lambda: 0),
        ("to_json", 6),
        ("name", "x"),
    ]

    sel = select_properties(items, 10, exclude=STANDARD_KEYS)

    assert sel.items == [("a", 1), ("1", 2)]
    assert sel.found == 2
    assert sel.truncated is False


def test_plain_mappings_only_drop_dangerous_keys():
    sel = select_properties([("to_json", 1), ("__class__", 2), ("valueOf", 3)], 10, target=None)
    assert sel.items == [("to_json", 1)]


def test_select_properties_keeps_first_n_and_warns(caplog):
    items = [(f"k{i}", i) for i in range(5)]

    with caplog.at_level(logging.WARNING, logger="normerr.normalization"):
        sel = select_properties(items, 3)

    assert [k for k, _ in sel.items] == ["k0", "k1", "k2"]
    assert sel.found == 5
    assert sel.truncated is True
    assert sel.note == "Property count (5) exceeds limit (3), showing first 3"
    assert "exceeds limit" in caplog.text


def test_sanitize_key_and_scalar():
    assert sanitize_key("x") == "x"
    assert sanitize_key(7) == "7"
    assert sanitize_key((1, "a")) == "(1, a)"

    assert sanitize_scalar(5) == 5
    assert sanitize_scalar(b"hi") == {"__bytes_b64__": "aGk="}
    assert sanitize_scalar(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05"
    assert sanitize_scalar(3 + 4j) == "(3+4j)"
