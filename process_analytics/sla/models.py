"""
Data model for SLA compliance evaluation.

``SLAViolation`` and ``ProcessDefinition`` arrive from external
collaborators (the violation feed and the process-definition catalogue).
The remaining classes are the evaluator's immutable outputs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from ..timestamps import parse_timestamp


class ComplianceStatus(Enum):
    """Classification of a single violation."""

    BREACHED = "breached"
    AT_RISK = "at_risk"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class SLAViolation:
    """
    An externally detected breach or near-breach of a timing commitment.

    Attributes:
        id: Violation identifier
        process_definition_id: Process definition the SLA belongs to
        node_id: Node (step) of the definition that was late
        violation_type: Free-form type label (e.g. "response", "resolution")
        escalation_level: How far the violation has escalated, >= 0
        created_at: When the violation was raised
        resolved_at: When it was resolved; None while active
        exceeded_by: Human-readable overrun, e.g. "2h 15m"
    """
    id: str
    process_definition_id: str
    node_id: str = ""
    violation_type: str = ""
    escalation_level: int = 0
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    exceeded_by: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "created_at", parse_timestamp(self.created_at))
        object.__setattr__(self, "resolved_at", parse_timestamp(self.resolved_at))
        object.__setattr__(self, "escalation_level", int(self.escalation_level or 0))

    @property
    def is_active(self) -> bool:
        return self.resolved_at is None

    @property
    def resolution_ms(self) -> Optional[int]:
        """Milliseconds from creation to resolution, if both are known."""
        if self.created_at is None or self.resolved_at is None:
            return None
        return int((self.resolved_at - self.created_at).total_seconds() * 1000)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "process_definition_id": self.process_definition_id,
            "node_id": self.node_id,
            "violation_type": self.violation_type,
            "escalation_level": self.escalation_level,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "exceeded_by": self.exceeded_by,
        }


@dataclass(frozen=True)
class ProcessDefinition:
    """Catalogue entry used to label and filter violations."""
    id: str
    name: str = ""
    entity_type: str = ""
    sla_config: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def label(self) -> str:
        return self.name or self.id


@dataclass(frozen=True)
class ComplianceStats:
    """
    Violation-side compliance figures.

    Rates are percentages of ``total`` and are 0 when ``total`` is 0.
    """
    total: int = 0
    on_track: int = 0
    at_risk: int = 0
    breached: int = 0

    @property
    def on_track_rate(self) -> float:
        return self._rate(self.on_track)

    @property
    def at_risk_rate(self) -> float:
        return self._rate(self.at_risk)

    @property
    def breached_rate(self) -> float:
        return self._rate(self.breached)

    @property
    def active(self) -> int:
        return self.at_risk + self.breached

    def _rate(self, value: int) -> float:
        return round(value / self.total * 100.0, 2) if self.total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "on_track": self.on_track,
            "at_risk": self.at_risk,
            "breached": self.breached,
            "on_track_rate": self.on_track_rate,
            "at_risk_rate": self.at_risk_rate,
            "breached_rate": self.breached_rate,
        }


@dataclass(frozen=True)
class ComplianceReport:
    """
    Full output of one compliance evaluation.

    Attributes:
        stats: Headline counts and rates
        active: Unresolved violations, most escalated first (for alerting)
        resolved: Resolved violations, newest resolution first (for trends)
        by_violation_type: Violation counts per type
        by_definition: Violation counts per definition label
        by_escalation_level: Active violation counts per escalation level
        mean_time_to_resolve_ms: Mean creation-to-resolution time, or None
    """
    stats: ComplianceStats
    active: Tuple[SLAViolation, ...] = ()
    resolved: Tuple[SLAViolation, ...] = ()
    by_violation_type: Mapping[str, int] = field(default_factory=dict)
    by_definition: Mapping[str, int] = field(default_factory=dict)
    by_escalation_level: Mapping[int, int] = field(default_factory=dict)
    mean_time_to_resolve_ms: Optional[float] = None

    def status_of(self, violation: SLAViolation, breach_level: int) -> ComplianceStatus:
        if not violation.is_active:
            return ComplianceStatus.RESOLVED
        if violation.escalation_level >= breach_level:
            return ComplianceStatus.BREACHED
        return ComplianceStatus.AT_RISK

    def to_dict(self, include_violations: bool = True) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "stats": self.stats.to_dict(),
            "active_count": len(self.active),
            "resolved_count": len(self.resolved),
            "by_violation_type": dict(self.by_violation_type),
            "by_definition": dict(self.by_definition),
            "by_escalation_level": {str(k): v for k, v in self.by_escalation_level.items()},
            "mean_time_to_resolve_ms": self.mean_time_to_resolve_ms,
        }
        if include_violations:
            result["active"] = [v.to_dict() for v in self.active]
            result["resolved"] = [v.to_dict() for v in self.resolved]
        return result
