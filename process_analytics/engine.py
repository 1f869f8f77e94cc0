"""
Engine facade: the public entry points of the analytics core.

Each call is a synchronous batch computation over an in-memory snapshot of
events and violations. Nothing is cached between calls and no result is
ever mutated, so a failed or repeated run cannot affect earlier snapshots.

Public functions:
- build_process_map(events, config) -> ProcessMap
- mine_variants(events, config) -> list of Variant
- detect_stuck_cases(events, config, now) -> StuckCaseReport
- evaluate_compliance(violations, definitions, config) -> ComplianceStats

``ProcessAnalyticsEngine.run`` computes all of them in one pass and returns
an ``AnalyticsSnapshot``.
"""

import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from . import __version__
from .config import AnalyticsConfig, resolve_config
from .ingest.adapters import coerce_definitions, coerce_events, coerce_violations
from .mining.bottleneck import score_process_map
from .mining.cases import ReconstructionReport
from .mining.models import ProcessEvent, ProcessMap, Variant
from .mining.sharding import ShardResult, run_sharded
from .mining.stuck import StuckCaseReport
from .mining.variants import VariantReport, summarize_variants
from .sla.compliance import ComplianceEvaluator
from .sla.models import ComplianceReport, ComplianceStats, ProcessDefinition, SLAViolation
from .timestamps import to_utc

logger = logging.getLogger(__name__)

EventInput = Iterable[Union[ProcessEvent, Mapping[str, Any]]]
ViolationInput = Iterable[Union[SLAViolation, Mapping[str, Any]]]
DefinitionInput = Optional[Iterable[Union[ProcessDefinition, Mapping[str, Any]]]]


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """
    Read-only result of one engine run.

    Attributes:
        process_map: Scored state nodes and transition edges
        variants: Ranked variants and the variability signal
        stuck: Stuck-case report
        compliance: SLA compliance report
        reconstruction: Per-record skip and duplicate counts
        generated_at: When the run happened
        config: Configuration the run used
    """
    process_map: ProcessMap
    variants: VariantReport
    stuck: StuckCaseReport
    compliance: ComplianceReport
    reconstruction: ReconstructionReport
    generated_at: datetime
    config: AnalyticsConfig = field(default_factory=AnalyticsConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metadata": {
                "generated_at": self.generated_at.isoformat(),
                "engine_version": __version__,
                "config": self.config.to_dict(),
            },
            "reconstruction": self.reconstruction.to_dict(),
            "process_map": self.process_map.to_dict(),
            "variants": self.variants.to_dict(),
            "stuck_cases": self.stuck.to_dict(),
            "compliance": self.compliance.to_dict(),
        }


class ProcessAnalyticsEngine:
    """
    Runs every analysis over one snapshot of inputs.

    Example:
        engine = ProcessAnalyticsEngine(AnalyticsConfig(shard_count=4))
        snapshot = engine.run(events, violations, definitions)

        for node in snapshot.process_map.get_bottlenecks():
            print(node.state, node.severity.value)
    """

    def __init__(self, config: Optional[AnalyticsConfig] = None, executor: Optional[Executor] = None):
        """
        Args:
            config: Engine configuration; defaults are used when omitted
            executor: Optional executor used to fold shards concurrently
        """
        self.config = resolve_config(config)
        self.executor = executor

    def fold(self, events: EventInput, now: Optional[datetime] = None) -> ShardResult:
        """Shard, reconstruct and fold events into merged accumulators."""
        config = self.config
        return run_sharded(
            coerce_events(events),
            now=_resolve_now(now),
            staleness_threshold=config.staleness_threshold,
            terminal_states=config.terminal_states,
            strict_dedupe=config.strict_dedupe,
            shard_count=config.shard_count,
            executor=self.executor,
        )

    def run(
        self,
        events: EventInput,
        violations: ViolationInput = (),
        definitions: DefinitionInput = None,
        now: Optional[datetime] = None,
        monitored_cases: Optional[int] = None,
    ) -> AnalyticsSnapshot:
        """
        Compute the full analytics snapshot.

        Args:
            events: Process events (canonical or raw mappings)
            violations: SLA violations (canonical or raw mappings)
            definitions: Process-definition catalogue
            now: Reference time for stuck detection; defaults to the
                current UTC time
            monitored_cases: Total monitored cases for the compliance
                on-track figure, if known

        Returns:
            AnalyticsSnapshot
        """
        now = _resolve_now(now)
        folded = self.fold(events, now=now)

        process_map = score_process_map(folded.graph.to_process_map(), self.config.bottleneck)
        variant_report = summarize_variants(
            folded.variants.to_variants(), folded.variants.total_cases, self.config.variants
        )
        compliance = ComplianceEvaluator(self.config.compliance).evaluate(
            coerce_violations(violations),
            coerce_definitions(definitions),
            monitored_cases=monitored_cases,
        )

        snapshot = AnalyticsSnapshot(
            process_map=process_map,
            variants=variant_report,
            stuck=folded.stuck.to_report(),
            compliance=compliance,
            reconstruction=folded.report,
            generated_at=now,
            config=self.config,
        )
        logger.info(
            f"Analyzed {process_map.total_cases} cases ({process_map.total_events} events): "
            f"{len(process_map.nodes)} states, {variant_report.distinct_variants} variants, "
            f"{snapshot.stuck.total_stuck} stuck, {folded.report.total_skipped} records skipped"
        )
        return snapshot


def _resolve_now(now: Optional[datetime]) -> datetime:
    return to_utc(now) if now is not None else datetime.now(timezone.utc)


def build_process_map(events: EventInput, config: Optional[AnalyticsConfig] = None) -> ProcessMap:
    """Scored process map (state nodes and transition edges) for ``events``."""
    engine = ProcessAnalyticsEngine(config)
    folded = engine.fold(events)
    return score_process_map(folded.graph.to_process_map(), engine.config.bottleneck)


def mine_variants(events: EventInput, config: Optional[AnalyticsConfig] = None) -> List[Variant]:
    """Distinct state paths of ``events``, most frequent first."""
    return ProcessAnalyticsEngine(config).fold(events).variants.to_variants()


def detect_stuck_cases(
    events: EventInput,
    config: Optional[AnalyticsConfig] = None,
    now: Optional[datetime] = None,
) -> StuckCaseReport:
    """Cases whose last event is older than the configured staleness threshold."""
    return ProcessAnalyticsEngine(config).fold(events, now=now).stuck.to_report()


def evaluate_compliance(
    violations: ViolationInput,
    definitions: DefinitionInput = None,
    config: Optional[AnalyticsConfig] = None,
    monitored_cases: Optional[int] = None,
) -> ComplianceStats:
    """Compliance counts and rates for an SLA-violation feed."""
    config = resolve_config(config)
    report = ComplianceEvaluator(config.compliance).evaluate(
        coerce_violations(violations),
        coerce_definitions(definitions),
        monitored_cases=monitored_cases,
    )
    return report.stats
