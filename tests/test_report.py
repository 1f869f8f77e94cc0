"""
Tests for report generation.
"""

import json

import pytest

from process_analytics import AnalyticsConfig, ProcessAnalyticsEngine
from process_analytics.report import (
    ReportGenerator,
    generate_json_report,
    generate_markdown_report,
)

from conftest import at


@pytest.fixture
def snapshot(mixed_events, sample_violations, sample_definitions):
    engine = ProcessAnalyticsEngine(AnalyticsConfig(terminal_states=frozenset({"resolved"})))
    return engine.run(mixed_events, sample_violations, sample_definitions, now=at(7 * 24 * 3_600_000))


class TestReportGenerator:
    """Tests for ReportGenerator."""

    def test_unsupported_format(self):
        with pytest.raises(ValueError):
            ReportGenerator(output_format="xml")

    def test_json_report(self, snapshot):
        report = json.loads(generate_json_report(snapshot))

        assert report["summary"]["total_cases"] == 24
        assert report["summary"]["sla_breached"] == 4
        assert report["metadata"]["config"]["terminal_states"] == ["resolved"]
        assert report["variants"]["variants"][0]["member_case_ids"]
        assert report["compliance"]["stats"]["breached_rate"] == 40.0

    def test_json_matches_snapshot(self, snapshot):
        """The JSON report is the snapshot's own dict plus a summary."""
        report = json.loads(generate_json_report(snapshot))
        expected = json.loads(json.dumps(snapshot.to_dict()))

        assert {k: v for k, v in report.items() if k != "summary"} == expected
        for node in report["process_map"]["nodes"]:
            assert 0.0 <= node["bottleneck_score"] <= 1.0

    def test_json_without_case_ids(self, snapshot):
        report = json.loads(ReportGenerator(include_case_ids=False).generate(snapshot))

        assert "member_case_ids" not in report["variants"]["variants"][0]
        assert "stuck_cases" not in report["stuck_cases"]

    def test_markdown_report(self, snapshot):
        content = generate_markdown_report(snapshot)

        assert content.startswith("# Process Analytics Report")
        for heading in ("## Summary", "## Bottlenecks", "## Transitions", "## Variants",
                        "## Stuck Cases", "## SLA Compliance"):
            assert heading in content
        assert "| v-active-0 | def-support | triaged | 3 | breached |" in content

    def test_markdown_limits_variants(self, snapshot):
        content = ReportGenerator(output_format="markdown", max_variants=1).generate(snapshot)
        variant_section = content.split("## Variants")[1].split("## Stuck Cases")[0]

        assert variant_section.count("`") == 2

    def test_empty_snapshot(self):
        snapshot = ProcessAnalyticsEngine().run([], now=at(0))
        content = generate_markdown_report(snapshot)

        assert "_No states observed._" in content
        assert "_No variants._" in content
        assert json.loads(generate_json_report(snapshot))["summary"]["total_cases"] == 0
