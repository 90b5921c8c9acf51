"""Tests for nested path access inside payloads."""

import pytest

from quickdoc.core.exceptions import TypeMismatchError
from quickdoc.database.codec import (
    MISSING,
    ValueKind,
    extract,
    inject,
    kind_of,
    remove,
    sort_key,
)


class TestKindOf:
    """Test value classification."""

    def test_variants(self):
        assert kind_of(MISSING) is ValueKind.ABSENT
        assert kind_of({"a": 1}) is ValueKind.MAPPING
        assert kind_of([1, 2]) is ValueKind.SEQUENCE
        assert kind_of("text") is ValueKind.SCALAR
        assert kind_of(None) is ValueKind.SCALAR

    def test_missing_is_falsy_singleton(self):
        assert not MISSING
        assert repr(MISSING) == "MISSING"


class TestExtract:
    """Test reading values at a path."""

    def test_empty_path_returns_whole_payload(self, sample_profile):
        assert extract(sample_profile, ()) == sample_profile

    def test_nested_mapping_lookup(self, sample_profile):
        assert extract(sample_profile, ("preferences", "theme")) == "dark"

    def test_sequence_index_lookup(self, sample_profile):
        assert extract(sample_profile, ("tags", "1")) == "beta"

    def test_missing_intermediate_is_absent_not_error(self, sample_profile):
        """Test that walking through missing or scalar values yields MISSING."""
        assert extract(sample_profile, ("nope", "deeper")) is MISSING
        assert extract(sample_profile, ("name", "first")) is MISSING
        assert extract(sample_profile, ("tags", "9")) is MISSING
        assert extract(None, ("a",)) is MISSING

    def test_stored_none_is_returned(self):
        assert extract({"a": None}, ("a",)) is None


class TestInject:
    """Test writing values at a path."""

    def test_empty_path_replaces_payload(self, sample_profile):
        assert inject(sample_profile, (), 5) == 5

    def test_materializes_missing_containers(self):
        assert inject(MISSING, ("a", "b", "c"), 1) == {"a": {"b": {"c": 1}}}
        assert inject(None, ("a",), 1) == {"a": 1}

    def test_leaves_siblings_untouched(self, sample_profile):
        updated = inject(sample_profile, ("preferences", "theme"), "light")

        assert updated["preferences"] == {"theme": "light", "language": "en", "notifications": True}
        assert updated["name"] == "Ada"
        # Input is not mutated
        assert sample_profile["preferences"]["theme"] == "dark"

    def test_writes_into_sequence_by_index(self):
        assert inject({"l": [1, 2, 3]}, ("l", "1"), 20) == {"l": [1, 20, 3]}

    def test_writing_through_scalar_raises(self):
        with pytest.raises(TypeMismatchError):
            inject({"name": "Ada"}, ("name", "first"), "A")

    def test_out_of_range_sequence_index_raises(self):
        with pytest.raises(TypeMismatchError):
            inject({"l": [1]}, ("l", "5"), 0)


class TestRemove:
    """Test removing values at a path."""

    def test_removes_leaf_and_keeps_siblings(self, sample_profile):
        updated, removed = remove(sample_profile, ("preferences", "language"))

        assert removed is True
        assert updated["preferences"] == {"theme": "dark", "notifications": True}
        assert "language" in sample_profile["preferences"]

    def test_missing_leaf_reports_nothing_removed(self, sample_profile):
        updated, removed = remove(sample_profile, ("preferences", "font"))

        assert removed is False
        assert updated == sample_profile

    def test_removes_sequence_element(self):
        updated, removed = remove({"l": ["a", "b"]}, ("l", "0"))

        assert removed is True
        assert updated == {"l": ["b"]}

    def test_removing_last_key_keeps_empty_container(self):
        updated, removed = remove({"only": 1}, ("only",))

        assert removed is True
        assert updated == {}

    def test_empty_path_is_rejected(self):
        with pytest.raises(ValueError):
            remove({"a": 1}, ())


class TestSortKey:
    """Test the ordering used by all(sort=...)."""

    def test_numbers_sort_before_missing(self):
        values = [3, MISSING, 1, None, 2]
        assert sorted(values, key=sort_key)[:3] == [1, 2, 3]

    def test_mixed_types_do_not_raise(self):
        values = ["b", 2, {"x": 1}, "a", 1.5]
        assert sorted(values, key=sort_key)[:4] == [1.5, 2, "a", "b"]
