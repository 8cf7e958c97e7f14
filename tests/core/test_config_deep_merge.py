"""Tests for _deep_merge helper function.

Settings files are deep-merged over the defaults before validation.
"""

from confchain.core.config import _deep_merge


class TestDeepMergeScalars:
    """Tests for _deep_merge with scalar values."""

    def test_scalar_override(self) -> None:
        """Override scalar values replace base values."""
        base = {"max_sweeps": 1000, "max_include_depth": 64}
        override = {"max_sweeps": 10}
        result = _deep_merge(base, override)
        assert result["max_sweeps"] == 10
        assert result["max_include_depth"] == 64

    def test_override_keys_added(self) -> None:
        """Keys only in override are added."""
        result = _deep_merge({"existing": "value"}, {"new_key": "new_value"})
        assert result == {"existing": "value", "new_key": "new_value"}

    def test_base_not_modified(self) -> None:
        """Original base dict is not modified."""
        base = {"key": "original"}
        _deep_merge(base, {"key": "override"})
        assert base["key"] == "original"

    def test_override_list_not_shared(self) -> None:
        """Lists from override are deep copied, not shared with result."""
        override = {"items": [{"name": "foo"}]}
        result = _deep_merge({}, override)

        result["items"].append({"name": "bar"})

        assert len(override["items"]) == 1


class TestDeepMergeNested:
    """Tests for _deep_merge with nested dictionaries and lists."""

    def test_nested_dict_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"a": {"b": {"c": "base", "d": "kept"}}}
        override = {"a": {"b": {"c": "new"}}}
        result = _deep_merge(base, override)
        assert result["a"]["b"] == {"c": "new", "d": "kept"}

    def test_list_replaced_not_appended(self) -> None:
        """Override list completely replaces base list."""
        result = _deep_merge({"items": [1, 2, 3]}, {"items": [4, 5]})
        assert result["items"] == [4, 5]

    def test_dict_replaced_by_scalar(self) -> None:
        """A scalar in override replaces a dict in base."""
        result = _deep_merge({"a": {"b": 1}}, {"a": 2})
        assert result["a"] == 2
