from normerr.core.errors import NormalizedError
from normerr.core.normalization import normalize_error


class CodedError(Exception):
    def __init__(self, message, code):
        super().__init__(message)
        self.code = code


class UnprintableError(Exception):
    def __str__(self):
        raise RuntimeError("no str")


def _raise_chain():
    try:
        raise KeyError("k")
    except KeyError as exc:
        raise ValueError("bad value") from exc


def test_exception_chain_and_traceback():
    try:
        _raise_chain()
    except ValueError as exc:
        err = normalize_error(exc)

    assert err.name == "ValueError"
    assert err.message == "bad value"
    assert err.cause.name == "KeyError"
    assert err.cause.message == "'k'"
    assert "Traceback" in err.stack
    assert "_raise_chain" in err.stack


def test_implicit_context_is_used_unless_suppressed():
    try:
        try:
            raise KeyError("k")
        except KeyError:
            raise ValueError("during handling")
    except ValueError as exc:
        implicit = normalize_error(exc)

    try:
        try:
            raise KeyError("k")
        except KeyError:
            raise ValueError("suppressed") from None
    except ValueError as exc:
        suppressed = normalize_error(exc)

    assert implicit.cause.name == "KeyError"
    assert suppressed.cause is None


def test_exception_attributes_and_notes_become_metadata():
    exc = CodedError("boom", 42)
    exc.add_note("retry later")

    err = normalize_error(exc)

    assert err.name == "CodedError"
    assert err.message == "boom"
    assert err.code == 42
    assert err.notes == ["retry later"]
    assert err.stack is None


def test_exception_group_becomes_aggregate():
    group = ExceptionGroup("many", [ValueError("a"), TypeError("b")])

    err = normalize_error(group)

    assert err.name == "ExceptionGroup"
    assert err.message == "many"
    assert [e.name for e in err.errors] == ["ValueError", "TypeError"]
    assert [e.message for e in err.errors] == ["a", "b"]


def test_unprintable_exception_still_normalizes():
    err = normalize_error(UnprintableError())

    assert err.name == "UnprintableError"
    assert isinstance(err.message, str)
    assert isinstance(err.to_string(), str)


def test_normalized_error_input_is_copied():
    source = NormalizedError("outer", name="Custom", cause=NormalizedError("inner"), code=5)

    err = normalize_error(source)

    assert err is not source
    assert err.name == "Custom"
    assert err.cause.message == "inner"
    assert err.cause is not source.cause
    assert err.code == 5
