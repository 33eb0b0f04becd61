"""Tests for the parameter reactivity tracker."""

from dataclasses import dataclass

from core.params import ParameterTracker, freeze
from schemas.ops import IncidentFilter, MetricsFilter


@dataclass
class Window:
    start: int
    end: int


# ── freeze ────────────────────────────────────────────────────────────────────

class TestFreeze:
    def test_dict_key_order_does_not_matter(self):
        assert freeze({"severity": "high", "status": "open"}) == freeze({"status": "open", "severity": "high"})

    def test_equal_models_freeze_equal(self):
        assert freeze(IncidentFilter(severity="high")) == freeze(IncidentFilter(severity="high"))

    def test_models_of_different_types_differ(self):
        # Both have every field None, but they are different parameter shapes.
        assert freeze(IncidentFilter()) != freeze(MetricsFilter())

    def test_nested_lists_become_tuples(self):
        assert freeze({"ids": [1, 2]}) == (("ids", (1, 2)),)

    def test_keys_of_different_types_differ(self):
        assert freeze({1: "a"}) != freeze({"1": "a"})
        assert freeze({1: "a", "b": 2}) == freeze({"b": 2, 1: "a"})

    def test_dataclass_compared_by_fields(self):
        assert freeze(Window(1, 2)) == freeze(Window(1, 2))
        assert freeze(Window(1, 2)) != freeze(Window(1, 3))

    def test_snapshot_unaffected_by_later_mutation(self):
        params = {"component": "kernel"}
        frozen = freeze(params)
        params["component"] = "driver"
        assert frozen == (("component", "kernel"),)


# ── ParameterTracker ──────────────────────────────────────────────────────────

class TestParameterTracker:
    def test_first_observation_triggers(self):
        tracker = ParameterTracker()
        assert tracker.observe(IncidentFilter()) is True

    def test_none_is_a_valid_first_value(self):
        tracker = ParameterTracker()
        assert tracker.observe(None) is True
        assert tracker.observe(None) is False

    def test_recomputed_equal_object_does_not_trigger(self):
        tracker = ParameterTracker()
        tracker.observe(IncidentFilter(severity="critical", status="open"))
        assert tracker.observe(IncidentFilter(severity="critical", status="open")) is False

    def test_structural_change_triggers(self):
        tracker = ParameterTracker()
        tracker.observe({"component": "kernel"})
        assert tracker.observe({"component": "driver"}) is True
        assert tracker.last_sent == {"component": "driver"}

    def test_compares_against_last_sent_not_last_observed(self):
        # A -> A (ignored) -> B (sent) -> A (sent again: differs from B).
        tracker = ParameterTracker()
        results = [tracker.observe(p) for p in ("A", "A", "B", "A")]
        assert results == [True, False, True, True]

    def test_last_sent_is_none_before_first_send(self):
        tracker = ParameterTracker()
        assert tracker.has_sent is False
        assert tracker.last_sent is None

    def test_last_sent_unaffected_by_caller_mutation(self):
        tracker = ParameterTracker()
        params = {"component": "kernel"}
        tracker.observe(params)
        params["component"] = "driver"
        assert tracker.last_sent == {"component": "kernel"}
        assert tracker.observe(params) is True
