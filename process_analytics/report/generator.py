"""
Report Generator Module for process analytics snapshots.

Generates output in various formats:
- JSON for programmatic use
- Markdown for human reading

Includes timestamp, version, and the configuration the run used.
"""

import json
from typing import Any, Dict, List

from .. import __version__
from ..engine import AnalyticsSnapshot
from ..mining.models import BottleneckSeverity
from ..timestamps import format_duration_ms

SUPPORTED_FORMATS = ('json', 'markdown')


class ReportGenerator:
    """
    Renders an AnalyticsSnapshot as JSON or Markdown.
    """

    def __init__(
        self,
        output_format: str = "json",
        max_variants: int = 10,
        include_case_ids: bool = True,
    ):
        """
        Initialize the report generator.

        Args:
            output_format: Output format ('json' or 'markdown')
            max_variants: Variants listed in the Markdown report
            include_case_ids: Include member and stuck case ids in JSON
        """
        if output_format not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {output_format}. Use 'json' or 'markdown'."
            )
        self.output_format = output_format
        self.max_variants = max_variants
        self.include_case_ids = include_case_ids

    def generate(self, snapshot: AnalyticsSnapshot) -> str:
        """
        Generate a report from a snapshot.

        Args:
            snapshot: Result of ProcessAnalyticsEngine.run

        Returns:
            Formatted report string
        """
        if self.output_format == 'markdown':
            return self._generate_markdown(snapshot)
        else:
            return self._generate_json(snapshot)

    def _generate_json(self, snapshot: AnalyticsSnapshot) -> str:
        report = snapshot.to_dict()
        report['summary'] = self._generate_summary(snapshot)
        if not self.include_case_ids:
            report['variants'] = snapshot.variants.to_dict(include_members=False)
            report['stuck_cases'] = snapshot.stuck.to_dict(include_case_ids=False)
        return json.dumps(report, indent=2)

    def _generate_markdown(self, snapshot: AnalyticsSnapshot) -> str:
        lines: List[str] = []
        summary = self._generate_summary(snapshot)

        lines.append("# Process Analytics Report")
        lines.append("")
        lines.append(f"**Generated**: {snapshot.generated_at.isoformat()}")
        lines.append(f"**Version**: {__version__}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        lines.append(f"- **Cases**: {summary['total_cases']}")
        lines.append(f"- **Events**: {summary['total_events']}")
        lines.append(f"- **Skipped Records**: {summary['skipped_records']}")
        lines.append(f"- **States**: {summary['states']}")
        lines.append(f"- **Variants**: {summary['distinct_variants']}")
        lines.append(f"- **Stuck Cases**: {summary['stuck_cases']}")
        lines.append(f"- **SLA Breached**: {summary['sla_breached']}")
        lines.append("")

        if snapshot.variants.high_variability:
            lines.append(
                f"> **High variability**: the most common path covers only "
                f"{snapshot.variants.top_variant_share:.0%} of cases."
            )
            lines.append("")

        lines.append("## Bottlenecks")
        lines.append("")
        lines.extend(self._bottleneck_table(snapshot))
        lines.append("")

        lines.append("## Transitions")
        lines.append("")
        if snapshot.process_map.edges:
            lines.append("| From | To | Count | Avg Duration |")
            lines.append("|------|----|------:|-------------:|")
            for edge in sorted(snapshot.process_map.edges, key=lambda e: -e.count):
                lines.append(
                    f"| {edge.from_state} | {edge.to_state} | {edge.count} | "
                    f"{format_duration_ms(edge.avg_duration_ms)} |"
                )
        else:
            lines.append("_No transitions observed._")
        lines.append("")

        lines.append("## Variants")
        lines.append("")
        for rank, variant in enumerate(snapshot.variants.variants[:self.max_variants], start=1):
            lines.append(
                f"{rank}. `{' -> '.join(variant.path)}`: {variant.count} cases "
                f"({variant.share:.0%}), avg {format_duration_ms(variant.avg_duration_ms)}"
            )
        if not snapshot.variants.variants:
            lines.append("_No variants._")
        lines.append("")

        lines.append("## Stuck Cases")
        lines.append("")
        stuck = snapshot.stuck
        lines.append(
            f"Threshold: {format_duration_ms(stuck.threshold.total_seconds() * 1000)}, "
            f"{stuck.total_stuck} of {stuck.cases_evaluated} cases stuck."
        )
        lines.append("")
        for state, count in stuck.counts_by_state.items():
            lines.append(f"- **{state}**: {count}")
        lines.append("")

        lines.append("## SLA Compliance")
        lines.append("")
        stats = snapshot.compliance.stats
        lines.append(f"- **Total**: {stats.total}")
        lines.append(f"- **On Track**: {stats.on_track} ({stats.on_track_rate:.1f}%)")
        lines.append(f"- **At Risk**: {stats.at_risk} ({stats.at_risk_rate:.1f}%)")
        lines.append(f"- **Breached**: {stats.breached} ({stats.breached_rate:.1f}%)")
        mttr = snapshot.compliance.mean_time_to_resolve_ms
        if mttr is not None:
            lines.append(f"- **Mean Time to Resolve**: {format_duration_ms(mttr)}")
        lines.append("")

        breach_level = snapshot.config.compliance.breach_escalation_level
        if snapshot.compliance.active:
            lines.append("| Violation | Definition | Node | Level | Status |")
            lines.append("|-----------|------------|------|------:|--------|")
            for violation in snapshot.compliance.active:
                status = snapshot.compliance.status_of(violation, breach_level)
                lines.append(
                    f"| {violation.id} | {violation.process_definition_id} | {violation.node_id} | "
                    f"{violation.escalation_level} | {status.value} |"
                )
            lines.append("")

        return '\n'.join(lines)

    def _bottleneck_table(self, snapshot: AnalyticsSnapshot) -> List[str]:
        nodes = sorted(snapshot.process_map.nodes, key=lambda n: (-n.bottleneck_score, n.state))
        if not nodes:
            return ["_No states observed._"]
        rows = [
            "| State | Entries | Avg Dwell | Max Dwell | Score | Severity |",
            "|-------|--------:|----------:|----------:|------:|----------|",
        ]
        for node in nodes:
            rows.append(
                f"| {node.state} | {node.entries} | {format_duration_ms(node.avg_duration_ms)} | "
                f"{format_duration_ms(node.max_duration_ms)} | {node.bottleneck_score:.2f} | "
                f"{node.severity.value} |"
            )
        return rows

    def _generate_summary(self, snapshot: AnalyticsSnapshot) -> Dict[str, Any]:
        """Generate report summary."""
        process_map = snapshot.process_map
        critical = [n.state for n in process_map.nodes if n.severity == BottleneckSeverity.CRITICAL]
        return {
            'total_cases': process_map.total_cases,
            'total_events': process_map.total_events,
            'skipped_records': snapshot.reconstruction.total_skipped,
            'states': len(process_map.nodes),
            'transitions': len(process_map.edges),
            'critical_states': critical,
            'distinct_variants': snapshot.variants.distinct_variants,
            'high_variability': snapshot.variants.high_variability,
            'stuck_cases': snapshot.stuck.total_stuck,
            'sla_breached': snapshot.compliance.stats.breached,
            'sla_at_risk': snapshot.compliance.stats.at_risk,
        }


def generate_json_report(snapshot: AnalyticsSnapshot) -> str:
    """Convenience function for JSON report generation."""
    return ReportGenerator(output_format='json').generate(snapshot)


def generate_markdown_report(snapshot: AnalyticsSnapshot) -> str:
    """Convenience function for Markdown report generation."""
    return ReportGenerator(output_format='markdown').generate(snapshot)
