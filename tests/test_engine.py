"""
Tests for the engine facade and public entry points.
"""

from datetime import timedelta

import pytest

from process_analytics import (
    AnalyticsConfig,
    ConfigurationError,
    ProcessAnalyticsEngine,
    build_process_map,
    detect_stuck_cases,
    evaluate_compliance,
    mine_variants,
)
from process_analytics.mining import BottleneckSeverity

from conftest import at


class TestPublicFunctions:
    """Tests for the module-level entry points."""

    def test_build_process_map(self, pipeline_events):
        process_map = build_process_map(pipeline_events)

        assert process_map.node("new").avg_duration_ms == 60_000
        assert process_map.node("reviewed").avg_duration_ms == 540_000
        assert process_map.node("reviewed").bottleneck_score == 0.8
        assert process_map.node("reviewed").severity == BottleneckSeverity.CRITICAL
        assert process_map.get_bottlenecks()[0].state == "reviewed"
        assert process_map.node("approved").sample_count == 0

    def test_build_process_map_accepts_raw_records(self, raw_event_records):
        process_map = build_process_map(raw_event_records)

        assert process_map.total_cases == 2
        assert process_map.edge("open", "closed").avg_duration_ms == 3_600_000

    def test_mine_variants(self, divergent_events):
        variants = mine_variants(divergent_events)

        assert len(variants) == 2
        assert sum(v.count for v in variants) == 2

    def test_detect_stuck_cases(self, pipeline_events):
        config = AnalyticsConfig(staleness_threshold=timedelta(minutes=10))
        report = detect_stuck_cases(pipeline_events, config, now=at(600_000 + 10 * 60_000 + 1))

        assert [c.case_id for c in report.stuck_cases] == ["A"]

    def test_evaluate_compliance(self, sample_violations):
        stats = evaluate_compliance(sample_violations)

        assert stats.breached == 4
        assert stats.at_risk == 0
        assert stats.on_track == 6

    def test_evaluate_compliance_raw_records(self):
        records = [
            {"id": "v1", "processDefinitionId": "d", "escalationLevel": 2, "createdAt": "2024-01-01T09:00:00Z"},
            {"id": "v2", "processDefinitionId": "d", "escalationLevel": "high", "createdAt": "2024-01-01T09:00:00Z"},
        ]
        stats = evaluate_compliance(records)

        assert stats.breached == 1
        assert stats.at_risk == 1

    def test_invalid_config_raises(self, pipeline_events):
        with pytest.raises(ConfigurationError):
            build_process_map(pipeline_events, AnalyticsConfig(shard_count=0))

    def test_empty_input(self):
        process_map = build_process_map([])

        assert process_map.nodes == ()
        assert mine_variants([]) == []
        assert evaluate_compliance([]).total == 0


class TestProcessAnalyticsEngine:
    """Tests for ProcessAnalyticsEngine.run."""

    def test_run(self, mixed_events, sample_violations, sample_definitions):
        engine = ProcessAnalyticsEngine(AnalyticsConfig(shard_count=3, terminal_states=frozenset({"resolved"})))
        snapshot = engine.run(mixed_events, sample_violations, sample_definitions, now=at(10 * 24 * 3_600_000))

        assert snapshot.process_map.total_cases == 24
        assert snapshot.variants.total_cases == 24
        assert snapshot.stuck.excluded_terminal > 0
        assert all(c.state != "resolved" for c in snapshot.stuck.stuck_cases)
        assert snapshot.compliance.stats.breached == 4
        assert snapshot.generated_at == at(10 * 24 * 3_600_000)

    def test_sharded_run_matches_single(self, mixed_events):
        now = at(24 * 3_600_000)
        single = ProcessAnalyticsEngine().run(mixed_events, now=now)
        sharded = ProcessAnalyticsEngine(AnalyticsConfig(shard_count=4)).run(mixed_events, now=now)

        assert [n.bottleneck_score for n in single.process_map.nodes] == pytest.approx(
            [n.bottleneck_score for n in sharded.process_map.nodes]
        )
        assert single.variants.variants == sharded.variants.variants
        assert single.stuck.stuck_cases == sharded.stuck.stuck_cases

    def test_snapshot_to_dict(self, pipeline_events):
        snapshot = ProcessAnalyticsEngine().run(pipeline_events, now=at(0))
        result = snapshot.to_dict()

        assert result["metadata"]["engine_version"]
        assert result["metadata"]["config"]["staleness_threshold_hours"] == 24
        assert result["process_map"]["total_cases"] == 1
        assert result["reconstruction"]["accepted_events"] == 3

    def test_reconstruction_report_in_snapshot(self, raw_event_records):
        snapshot = ProcessAnalyticsEngine().run(raw_event_records, now=at(0))

        assert snapshot.reconstruction.skipped == {"missing_case_id": 1, "invalid_timestamp": 1}
