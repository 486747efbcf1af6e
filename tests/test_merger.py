"""Tests for deep merging of values mappings."""

from pathlib import Path

from chartscan.loader import load_values
from chartscan.merger import merge, merge_all
from chartscan.values import MappingValue, from_plain, to_plain


def _m(data: dict) -> MappingValue:
    return from_plain(data)


class TestMerge:
    """Test merge(target, source)."""

    def test_later_source_overrides_nested_leaf(self):
        """Values file B applied after A wins at the leaf, keeps A's siblings."""
        merged = merge_all([
            _m({"service": {"port": 80}}),
            _m({"service": {"port": 8080, "name": "web"}}),
        ])
        assert to_plain(merged) == {"service": {"port": 8080, "name": "web"}}

    def test_keeps_keys_not_overridden(self):
        target = _m({"a": 1, "nested": {"x": 1, "y": 2}})
        merge(target, _m({"b": 2, "nested": {"y": 3}}))
        assert to_plain(target) == {"a": 1, "b": 2, "nested": {"x": 1, "y": 3}}

    def test_merge_is_not_commutative(self):
        a = {"replicas": 1, "image": {"tag": "v1"}}
        b = {"replicas": 3, "image": {"tag": "v2"}}

        ab = merge_all([_m(a), _m(b)])
        ba = merge_all([_m(b), _m(a)])

        assert to_plain(ab) == {"replicas": 3, "image": {"tag": "v2"}}
        assert to_plain(ba) == {"replicas": 1, "image": {"tag": "v1"}}
        assert ab != ba

    def test_sequences_are_replaced_not_merged(self):
        merged = merge_all([_m({"hosts": ["a", "b", "c"]}), _m({"hosts": ["z"]})])
        assert to_plain(merged) == {"hosts": ["z"]}

    def test_mapping_and_scalar_replace_each_other(self):
        merged = merge_all([_m({"x": {"deep": 1}, "y": 5}), _m({"x": "flat", "y": {"deep": 2}})])
        assert to_plain(merged) == {"x": "flat", "y": {"deep": 2}}

    def test_null_overrides_value(self):
        merged = merge_all([_m({"resources": {"limits": "1"}}), _m({"resources": None})])
        assert to_plain(merged) == {"resources": None}

    def test_source_is_not_mutated(self):
        source = _m({"service": {"port": 80}})
        target = _m({"service": {"port": 1, "name": "x"}})
        merge(target, source)
        assert to_plain(source) == {"service": {"port": 80}}

    def test_no_aliasing_with_source(self):
        """Changing the source after the merge must not leak into the result."""
        source = _m({"service": {"port": 80}, "hosts": ["a"]})
        merged = merge_all([source])

        source.get("service").entries["port"] = from_plain(9999)
        source.get("hosts").items.append(from_plain("b"))

        assert to_plain(merged) == {"service": {"port": 80}, "hosts": ["a"]}

    def test_merge_all_of_nothing_is_empty(self):
        assert merge_all([]) == MappingValue()

    def test_merge_loaded_files(self, tmp_path: Path):
        base = tmp_path / "values.yaml"
        base.write_text("service:\n  port: 80\n")
        prod = tmp_path / "values-prod.yaml"
        prod.write_text("service:\n  port: 8080\n  name: web\n")

        merged = merge_all([load_values(base), load_values(prod)])

        assert to_plain(merged) == {"service": {"port": 8080, "name": "web"}}
