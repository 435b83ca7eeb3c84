"""Unit tests for the context merge model."""

from __future__ import annotations

from types import MappingProxyType

import pytest

from safefn.context import EMPTY_CONTEXT, freeze, merge_context


@pytest.mark.unit
class TestFreeze:
    def test_none_gives_empty_context(self):
        assert freeze(None) is EMPTY_CONTEXT

    def test_returns_mappingproxy(self):
        assert isinstance(freeze({"a": 1}), MappingProxyType)

    def test_snapshot_is_decoupled_from_source_dict(self):
        source = {"a": 1}
        frozen = freeze(source)
        source["a"] = 2
        source["b"] = 3
        assert frozen == {"a": 1}

    def test_frozen_mapping_rejects_writes(self):
        with pytest.raises(TypeError):
            freeze({"a": 1})["a"] = 2  # type: ignore[index]

    def test_non_mapping_rejected(self):
        with pytest.raises(TypeError, match="mapping"):
            freeze(["a"])  # type: ignore[arg-type]


@pytest.mark.unit
class TestMergeContext:
    def test_fragment_wins_on_conflict(self):
        merged = merge_context(freeze({"x": 1, "y": 1}), {"x": 2})
        assert merged == {"x": 2, "y": 1}

    def test_none_fragment_returns_same_object(self):
        base = freeze({"x": 1})
        assert merge_context(base, None) is base

    def test_empty_fragment_returns_same_object(self):
        base = freeze({"x": 1})
        assert merge_context(base, {}) is base

    def test_plain_dict_base_is_frozen(self):
        merged = merge_context({"x": 1}, None)
        assert isinstance(merged, MappingProxyType)

    def test_base_is_not_mutated(self):
        base = freeze({"x": 1})
        merge_context(base, {"x": 2, "y": 3})
        assert base == {"x": 1}

    def test_merge_is_shallow(self):
        nested = {"inner": {"a": 1}}
        merged = merge_context(freeze({"n": {"b": 2}}), {"n": nested["inner"]})
        assert merged["n"] == {"a": 1}

    def test_non_mapping_fragment_rejected(self):
        with pytest.raises(TypeError, match="fragment"):
            merge_context(EMPTY_CONTEXT, [("x", 1)])  # type: ignore[arg-type]
