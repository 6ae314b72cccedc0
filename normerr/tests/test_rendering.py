import json

from normerr.core.errors import ErrorPayload, NormalizedError
from normerr.core.normalization import normalize_error


class Unprintable:
    def __str__(self):
        raise RuntimeError("no str")

    def __repr__(self):
        raise RuntimeError("no repr")


def _sample():
    return normalize_error(
        {
            "message": "outer",
            "cause": {"message": "inner"},
            "errors": ["a"],
            "code": "E1",
            "count": 2,
        }
    )


def test_to_string_layout():
    assert _sample().to_string() == (
        "Error: outer\n"
        "  [cause]: Error: inner\n"
        "  [errors]: [\n"
        "    [0]: Error: a\n"
        "  ]\n"
        "  code: 'E1'\n"
        "  count: 2"
    )


def test_header_without_message():
    assert NormalizedError().to_string() == "Error"
    assert NormalizedError("boom", name="TypeError").to_string() == "TypeError: boom"


def test_stack_lines_render_at_the_root():
    err = NormalizedError("boom", stack="Error: boom\n    at a\n    at b")

    assert err.to_string() == "Error: boom\n  at a\n  at b"
    assert err.to_string(include_stack=False) == "Error: boom"


def test_long_containers_are_summarized():
    err = NormalizedError("m", items=[1, 2, 3, 4], short=[1, 2], opts={"a": 1, "b": 2, "c": 3, "d": 4})
    text = err.to_string()

    assert "items: [list(4)]" in text
    assert "short: [1, 2]" in text
    assert "opts: [dict(4)]" in text


def test_to_json_shape():
    data = _sample().to_json()

    assert data == {
        "name": "Error",
        "message": "outer",
        "cause": {"name": "Error", "message": "inner"},
        "errors": [{"name": "Error", "message": "a"}],
        "code": "E1",
        "count": 2,
    }
    json.dumps(data)


def test_to_json_respects_max_depth():
    data = _sample().to_json(max_depth=1)
    assert data["cause"] == {"name": "Error", "message": "[Max depth of 1 reached]"}


def test_native_group_renders_its_exceptions():
    data = normalize_error(["a", "b"]).to_json()

    assert data["name"] == "AggregateError"
    assert data["errors"] == [{"name": "Error", "message": "a"}, {"name": "Error", "message": "b"}]


def test_hand_built_cycles_render_markers():
    a = NormalizedError("a")
    b = NormalizedError("b", cause=a)
    a.__cause__ = b

    assert "[Circular]" in a.to_string()
    data = a.to_json()
    assert data["cause"]["cause"]["message"] == "[Circular]"
    json.dumps(data)


def test_renderers_never_raise_on_hostile_values():
    err = NormalizedError("m", thing=Unprintable())

    assert "thing: <unprintable Unprintable>" in err.to_string()
    assert err.to_json()["thing"] == "<unprintable Unprintable>"
    json.dumps(err.to_json())


def test_payload_validates_json_output():
    payload = _sample().to_payload()

    assert isinstance(payload, ErrorPayload)
    assert payload.message == "outer"
    assert payload.cause.message == "inner"
    assert payload.errors[0].message == "a"
    assert payload.model_extra["code"] == "E1"


def test_payload_accepts_mapping_errors():
    payload = normalize_error({"errors": {"x": "bad"}}).to_payload()
    assert payload.errors["x"].message == "bad"


def test_patch_to_string_switches_str():
    err = NormalizedError("m", code=1)
    assert str(err) == "m"

    assert err.patch_to_string() is err
    assert str(err) == "Error: m\n  code: 1"


def test_patch_flag_is_not_metadata_or_copied():
    err = NormalizedError("m").patch_to_string()

    assert err.metadata == {}
    assert err.to_json() == {"name": "Error", "message": "m"}
    assert str(normalize_error(err)) == "m"
