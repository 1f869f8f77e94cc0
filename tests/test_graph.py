"""
Tests for transition graph construction and duration statistics.
"""

import math

import pytest

from process_analytics.mining import (
    DurationStats,
    GraphAccumulator,
    build_graph,
    reconstruct_cases,
)

from conftest import make_event


class TestDurationStats:
    """Tests for DurationStats."""

    def test_empty(self):
        stats = DurationStats()

        assert stats.count == 0
        assert stats.avg_ms == 0.0
        assert stats.std_ms == 0.0
        assert stats.min_ms is None

    def test_add(self):
        stats = DurationStats()
        for sample in (10, 20, 30, 40):
            stats.add(sample)

        assert stats.count == 4
        assert stats.total_ms == 100
        assert stats.avg_ms == 25.0
        assert stats.min_ms == 10
        assert stats.max_ms == 40
        assert stats.std_ms == pytest.approx(math.sqrt(500 / 3))

    def test_merge_matches_single_pass(self):
        """Merging partial stats gives the same figures as one accumulator."""
        samples = [5, 17, 3, 99, 42, 42, 8]
        single = DurationStats()
        for s in samples:
            single.add(s)

        left, right = DurationStats(), DurationStats()
        for s in samples[:3]:
            left.add(s)
        for s in samples[3:]:
            right.add(s)
        merged = left.merge(right)

        assert merged.count == single.count
        assert merged.avg_ms == single.avg_ms
        assert merged.min_ms == single.min_ms
        assert merged.max_ms == single.max_ms
        assert merged.std_ms == pytest.approx(single.std_ms)

    def test_merge_with_empty(self):
        stats = DurationStats()
        stats.add(7)
        merged = stats.merge(DurationStats())

        assert merged.count == 1
        assert merged.min_ms == 7
        assert merged.max_ms == 7


class TestGraphBuilder:
    """Tests for GraphAccumulator and build_graph."""

    def test_simple_pipeline(self, pipeline_events):
        """Dwell time is attributed to the state being left."""
        process_map = build_graph(reconstruct_cases(pipeline_events).cases).to_process_map()

        new = process_map.node("new")
        reviewed = process_map.node("reviewed")
        approved = process_map.node("approved")

        assert new.entries == 1 and new.avg_duration_ms == 60_000
        assert reviewed.entries == 1 and reviewed.avg_duration_ms == 540_000
        assert approved.entries == 1
        assert approved.sample_count == 0
        assert approved.avg_duration_ms == 0.0

    def test_edges(self, pipeline_events):
        process_map = build_graph(reconstruct_cases(pipeline_events).cases).to_process_map()

        assert [e.key for e in process_map.edges] == [("new", "reviewed"), ("reviewed", "approved")]
        edge = process_map.edge("reviewed", "approved")
        assert edge.count == 1
        assert edge.avg_duration_ms == 540_000
        assert process_map.edge("approved", "new") is None

    def test_totals(self, divergent_events):
        process_map = build_graph(reconstruct_cases(divergent_events).cases).to_process_map()

        assert process_map.total_cases == 2
        assert process_map.total_events == 6
        assert process_map.node("new").entries == 2
        assert process_map.node("new").min_duration_ms == 1_000
        assert process_map.node("new").max_duration_ms == 3_000

    def test_repeated_states(self):
        """Re-entering a state counts as another entry and self-loops are edges."""
        events = [
            make_event("A", "review", 0),
            make_event("A", "review", 100),
            make_event("A", "rework", 300),
            make_event("A", "review", 600),
        ]
        process_map = build_graph(reconstruct_cases(events).cases).to_process_map()

        assert process_map.node("review").entries == 3
        assert process_map.edge("review", "review").count == 1
        assert process_map.edge("rework", "review").avg_duration_ms == 300

    def test_durations_non_negative(self, mixed_events):
        process_map = build_graph(reconstruct_cases(reversed(mixed_events)).cases).to_process_map()

        for node in process_map.nodes:
            assert node.min_duration_ms >= 0
            assert node.avg_duration_ms >= 0
        for edge in process_map.edges:
            assert edge.min_duration_ms >= 0

    def test_nodes_sorted_by_state(self, mixed_events):
        process_map = build_graph(reconstruct_cases(mixed_events).cases).to_process_map()
        states = [n.state for n in process_map.nodes]

        assert states == sorted(states)

    def test_empty(self):
        process_map = GraphAccumulator().to_process_map()

        assert process_map.nodes == ()
        assert process_map.edges == ()
        assert process_map.total_cases == 0

    def test_merge_leaves_inputs_untouched(self, divergent_events):
        cases = reconstruct_cases(divergent_events).cases
        left = GraphAccumulator()
        left.add_case(cases["A"])
        right = GraphAccumulator()
        right.add_case(cases["B"])

        merged = left.merge(right)

        assert merged.case_count == 2
        assert left.case_count == 1
        assert left.node_stats["new"].count == 1
