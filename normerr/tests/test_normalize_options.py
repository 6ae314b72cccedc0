import pytest

from normerr.core.normalization import (
    ErrorRegistry,
    NormalizeConfigError,
    NormalizeOptionRangeError,
    NormalizeOptions,
    NormalizeOptionTypeError,
    normalize_error,
)


def test_default_options_match_documented_limits():
    opts = NormalizeOptions()

    assert opts.max_depth == 8
    assert opts.max_properties == 1000
    assert opts.max_array_length == 10000
    assert opts.include_non_enumerable is False
    assert opts.enable_subclassing is False
    assert opts.use_cause_error is True
    assert opts.use_aggregate_error is True
    assert opts.original_stack is None
    assert opts.patch_to_string is False


def test_options_are_immutable():
    opts = NormalizeOptions()
    with pytest.raises(Exception):
        opts.max_depth = 3


def test_from_value_accepts_snake_and_camel_case_keys():
    opts = NormalizeOptions.from_value({"maxDepth": 3, "use_cause_error": False, "maxArrayLength": 5})

    assert opts.max_depth == 3
    assert opts.use_cause_error is False
    assert opts.max_array_length == 5

    same = NormalizeOptions(max_depth=2)
    assert NormalizeOptions.from_value(same) is same
    assert NormalizeOptions.from_value(None) == NormalizeOptions()


def test_wrong_types_are_rejected():
    with pytest.raises(NormalizeOptionTypeError):
        NormalizeOptions(max_depth=1.5)

    # bool is not accepted where an integer is expected
    with pytest.raises(TypeError):
        NormalizeOptions(max_properties=True)

    with pytest.raises(TypeError):
        NormalizeOptions(include_non_enumerable=1)

    with pytest.raises(TypeError):
        NormalizeOptions(original_stack=123)

    with pytest.raises(TypeError):
        NormalizeOptions(registry={"Name": object})

    with pytest.raises(TypeError):
        NormalizeOptions.from_value({"bogus": 1})

    with pytest.raises(TypeError):
        NormalizeOptions.from_value("maxDepth=3")


def test_out_of_range_values_are_rejected():
    for bad in (0, -1, 1001):
        with pytest.raises(NormalizeOptionRangeError):
            NormalizeOptions(max_depth=bad)

    with pytest.raises(ValueError):
        NormalizeOptions(max_properties=-1)

    with pytest.raises(ValueError):
        NormalizeOptions(max_array_length=-5)

    assert NormalizeOptions(max_depth=1).max_depth == 1
    assert NormalizeOptions(max_depth=1000).max_depth == 1000
    assert NormalizeOptions(max_properties=0, max_array_length=0).max_properties == 0


def test_invalid_options_raise_from_normalize_error():
    with pytest.raises(NormalizeConfigError):
        normalize_error({"message": "x"}, {"maxDepth": 0})

    with pytest.raises(NormalizeOptionTypeError):
        normalize_error({"message": "x"}, {"maxDepth": "8"})


def test_registry_option_accepts_error_registry():
    registry = ErrorRegistry()
    opts = NormalizeOptions.from_value({"enableSubclassing": True, "registry": registry})
    assert opts.registry is registry
