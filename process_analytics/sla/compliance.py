"""
SLA compliance evaluation over an externally supplied violation feed.

Violations are partitioned into active (``resolved_at`` is None) and
resolved. Active violations escalated to at least the configured breach
level count as breached; the other active ones are at risk.

The evaluator never sees the full case universe. By default ``total`` is
the number of violations considered and every resolved violation counts
as back on track. When the caller knows how many cases are monitored it
passes ``monitored_cases`` and ``on_track`` becomes
``monitored_cases - active``.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Collection, Iterable, Mapping, Optional, Union

from ..config import ComplianceConfig
from ..exceptions import ConfigurationError
from .models import ComplianceReport, ComplianceStats, ProcessDefinition, SLAViolation

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

Catalogue = Union[Mapping[str, ProcessDefinition], Iterable[ProcessDefinition]]


def index_definitions(definitions: Optional[Catalogue]) -> Mapping[str, ProcessDefinition]:
    """Accept a catalogue as a mapping or an iterable and key it by id."""
    if definitions is None:
        return {}
    if isinstance(definitions, Mapping):
        return dict(definitions)
    return {d.id: d for d in definitions}


class ComplianceEvaluator:
    """
    Aggregates SLA violations into compliance statistics.

    Example:
        evaluator = ComplianceEvaluator(ComplianceConfig(breach_escalation_level=2))
        report = evaluator.evaluate(violations, definitions)
        print(report.stats.breached_rate)
    """

    def __init__(self, config: ComplianceConfig = ComplianceConfig()):
        config.validate()
        self.config = config

    def evaluate(
        self,
        violations: Iterable[SLAViolation],
        definitions: Optional[Catalogue] = None,
        monitored_cases: Optional[int] = None,
        definition_ids: Optional[Collection[str]] = None,
        entity_type: Optional[str] = None,
    ) -> ComplianceReport:
        """
        Evaluate a violation feed.

        Args:
            violations: Violations from the SLA feed
            definitions: Process-definition catalogue, used for labels and
                for the entity type filter
            monitored_cases: Total cases under monitoring, if known
            definition_ids: Only consider violations of these definitions
            entity_type: Only consider violations whose definition tracks
                this entity type

        Returns:
            ComplianceReport with stats, partitions and breakdowns
        """
        catalogue = index_definitions(definitions)
        selected = self._filter(list(violations), catalogue, definition_ids, entity_type)

        active = [v for v in selected if v.is_active]
        resolved = [v for v in selected if not v.is_active]

        breach_level = self.config.breach_escalation_level
        breached = sum(1 for v in active if v.escalation_level >= breach_level)
        at_risk = len(active) - breached

        if monitored_cases is None:
            total = len(selected)
        else:
            if monitored_cases < len(active):
                raise ConfigurationError(
                    f"monitored_cases ({monitored_cases}) is smaller than the number "
                    f"of active violations ({len(active)})"
                )
            total = monitored_cases

        stats = ComplianceStats(
            total=total,
            on_track=total - len(active),
            at_risk=at_risk,
            breached=breached,
        )

        resolution_times = [v.resolution_ms for v in resolved if v.resolution_ms is not None]
        mean_ttr = sum(resolution_times) / len(resolution_times) if resolution_times else None

        unknown = {v.process_definition_id for v in selected} - set(catalogue)
        if catalogue and unknown:
            logger.warning(f"Violations reference unknown process definitions: {sorted(unknown)}")

        report = ComplianceReport(
            stats=stats,
            active=tuple(sorted(
                active, key=lambda v: (-v.escalation_level, v.created_at or _EPOCH, v.id)
            )),
            resolved=tuple(sorted(
                resolved, key=lambda v: (v.resolved_at, v.id), reverse=True
            )),
            by_violation_type=dict(sorted(Counter(v.violation_type or "unspecified" for v in selected).items())),
            by_definition=dict(sorted(Counter(
                self._label(v.process_definition_id, catalogue) for v in selected
            ).items())),
            by_escalation_level=dict(sorted(Counter(v.escalation_level for v in active).items())),
            mean_time_to_resolve_ms=mean_ttr,
        )

        logger.info(
            f"Compliance: {stats.breached} breached, {stats.at_risk} at risk, "
            f"{stats.on_track} on track of {stats.total}"
        )
        return report

    def _filter(self, violations, catalogue, definition_ids, entity_type):
        if definition_ids is not None:
            wanted = set(definition_ids)
            violations = [v for v in violations if v.process_definition_id in wanted]
        if entity_type is not None:
            violations = [
                v for v in violations
                if v.process_definition_id in catalogue
                and catalogue[v.process_definition_id].entity_type == entity_type
            ]
        return violations

    @staticmethod
    def _label(definition_id: str, catalogue: Mapping[str, ProcessDefinition]) -> str:
        definition = catalogue.get(definition_id)
        return definition.label if definition else definition_id
