"""Tests for resolving value references."""

from pathlib import Path

import pytest

from chartscan.loader import load_values
from chartscan.models import ValueReference
from chartscan.resolver import check_references, format_undefined, resolve
from chartscan.values import MappingValue, from_plain


def _ref(name: str, line: int = 1) -> ValueReference:
    return ValueReference(name=name, file="templates/t.yaml", line=line, full_text=f"{{{{ .Values.{name} }}}}")


@pytest.fixture
def values() -> MappingValue:
    return from_plain({
        "image": {"repository": "x", "tag": None},
        "hosts": ["a", "b"],
        "replicaCount": 1,
    })


class TestResolve:
    """Test resolve(reference, merged)."""

    @pytest.mark.parametrize("name", ["image", "image.repository", "replicaCount", "hosts"])
    def test_defined_paths(self, values, name):
        assert resolve(_ref(name), values) is True

    def test_null_leaf_counts_as_defined(self, values):
        assert resolve(_ref("image.tag"), values) is True

    @pytest.mark.parametrize("name", ["missing", "image.digest", "image.repository.deeper", "replicaCount.x"])
    def test_undefined_paths(self, values, name):
        assert resolve(_ref(name), values) is False

    def test_index_syntax_is_a_literal_key(self, values):
        """hosts[0] is looked up as a key named 'hosts[0]', not as a list index."""
        assert resolve(_ref("hosts[0]"), values) is False
        assert resolve(_ref("hosts[0]"), from_plain({"hosts[0]": "a"})) is True

    def test_empty_name_is_unresolved(self, values):
        assert resolve(_ref(""), values) is False

    def test_empty_segment_is_unresolved(self, values):
        assert resolve(_ref("image..tag"), values) is False

    def test_resolve_is_idempotent(self, values):
        ref = _ref("image.tag")
        assert resolve(ref, values) == resolve(ref, values)
        ref = _ref("image.digest")
        assert resolve(ref, values) == resolve(ref, values)

    def test_round_trip_with_loaded_file(self, tmp_path: Path):
        path = tmp_path / "values.yaml"
        path.write_text("service:\n  ports:\n    http: 80\n")
        ref = _ref("service.ports.http")

        assert resolve(ref, load_values(path)) is True

        path.write_text("service:\n  ports: {}\n")
        assert resolve(ref, load_values(path)) is False

    @pytest.mark.parametrize("name", ["feature.on", "feature.off", "true", "toggles.yes"])
    def test_boolean_looking_keys_resolve_as_written(self, tmp_path: Path, name):
        path = tmp_path / "values.yaml"
        path.write_text("true: 1\nfeature:\n  on: yes\n  off: no\ntoggles:\n  yes: true\n")

        assert resolve(_ref(name), load_values(path)) is True


class TestCheckReferences:
    """Test diagnostics for unresolved references."""

    def test_diagnostic_format(self):
        ref = ValueReference(name="image.tag", file="charts/web/templates/d.yaml", line=12, full_text="")
        assert format_undefined(ref) == (
            "Undefined value: 'image.tag' referenced in charts/web/templates/d.yaml at line 12"
        )

    def test_only_unresolved_in_input_order(self):
        refs = [_ref("image.tag", 3), _ref("a", 1), _ref("image.repository", 2), _ref("a", 7)]
        values = from_plain({"image": {"repository": "x"}})

        assert check_references(refs, values) == [
            "Undefined value: 'image.tag' referenced in templates/t.yaml at line 3",
            "Undefined value: 'a' referenced in templates/t.yaml at line 1",
            "Undefined value: 'a' referenced in templates/t.yaml at line 7",
        ]
