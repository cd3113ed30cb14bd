"""
Tests for dynamic-field key consistency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import pytest

from recordsheet.application.flattener import flatten
from recordsheet.application.map_keys import MapKeyTracker, are_all_map_keys_same
from recordsheet.domain import InconsistentMapKeysError


@dataclass
class Inner:
    labels: dict[str, str] = field(metadata={"xlsx": "label"})


@dataclass
class Row:
    id: int = field(metadata={"xlsx": "id"})
    scores: Optional[dict[str, int]] = field(metadata={"xlsx": "score"})
    inner: Inner = field(metadata={"xlsx": "inner"})


def make_row(scores, labels=None):
    return Row(1, scores, Inner(labels or {"x": "1"}))


class TestAreAllMapKeysSame:
    """Key-set comparison helper."""

    def test_same_keys_any_order(self):
        assert are_all_map_keys_same([{"a": 1, "b": 2}, {"b": 3, "a": 4}])

    def test_different_keys(self):
        assert not are_all_map_keys_same([{"a": 1}, {"b": 1}])

    def test_subset_is_different(self):
        assert not are_all_map_keys_same([{"a": 1, "b": 2}, {"a": 1}])

    def test_empty_and_none(self):
        assert are_all_map_keys_same([])
        assert are_all_map_keys_same([None, {}])


class TestMapKeyTracker:
    """Per-field key tracking across a collection."""

    def test_tracks_every_dynamic_field(self):
        tracker = MapKeyTracker(flatten(make_row({"a": 1})))
        assert tracker.field_names == ["scores", "inner.labels"]

    def test_consistent_collection_passes(self):
        rows = [make_row({"a": 1, "b": 2}), make_row({"b": 5, "a": 6})]
        tracker = MapKeyTracker(flatten(rows[0]))
        for row in rows:
            tracker.observe(row)
        tracker.validate()

    def test_diverging_record_reported(self):
        rows = [make_row({"a": 1, "b": 2}), make_row({"a": 3}), make_row({"c": 1})]
        tracker = MapKeyTracker(flatten(rows[0]))
        for row in rows:
            tracker.observe(row)

        with pytest.raises(InconsistentMapKeysError) as exc_info:
            tracker.validate()

        error = exc_info.value
        assert error.field == "scores"
        assert error.row == 1
        assert error.expected == frozenset({"a", "b"})
        assert error.actual == frozenset({"a"})
        assert "consistent keys" in str(error)

    def test_nested_map_field(self):
        rows = [make_row({"a": 1}, {"x": "1"}), make_row({"a": 1}, {"y": "2"})]
        tracker = MapKeyTracker(flatten(rows[0]))
        for row in rows:
            tracker.observe(row)

        with pytest.raises(InconsistentMapKeysError) as exc_info:
            tracker.validate()
        assert exc_info.value.field == "inner.labels"

    def test_absent_map_after_present_one(self):
        rows = [make_row({"a": 1}), make_row(None)]
        tracker = MapKeyTracker(flatten(rows[0]))
        for row in rows:
            tracker.observe(row)

        with pytest.raises(InconsistentMapKeysError):
            tracker.validate()
