import pytest

from normerr.core.normalization import NormalizeOptions, TraversalContext


def test_depth_bound_uses_options():
    ctx = TraversalContext(NormalizeOptions(max_depth=2))

    assert ctx.depth_exceeded(1) is False
    assert ctx.depth_exceeded(2) is True


def test_descend_tracks_only_the_active_path():
    ctx = TraversalContext(NormalizeOptions())
    outer, inner = {}, {}

    with ctx.descend(outer):
        assert ctx.is_circular(outer)
        with ctx.descend(inner):
            assert ctx.ancestors == [id(outer), id(inner)]
        assert not ctx.is_circular(inner)

    assert ctx.ancestors == []
    assert not ctx.is_circular(outer)


def test_descend_pops_on_error():
    ctx = TraversalContext(NormalizeOptions())
    value = {}

    with pytest.raises(RuntimeError):
        with ctx.descend(value):
            raise RuntimeError("boom")

    assert not ctx.is_circular(value)


def test_cycles_are_identity_based():
    ctx = TraversalContext(NormalizeOptions())
    a = {"k": 1}

    with ctx.descend(a):
        assert not ctx.is_circular({"k": 1})
