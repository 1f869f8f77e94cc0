"""
Data model for process mining.

``ProcessEvent`` is the single canonical event shape the engine works on;
translation from external record formats happens in ``ingest.adapters``.
``DurationStats`` is the streaming accumulator behind every duration figure.
The remaining classes are immutable report records produced by a run.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from ..timestamps import parse_timestamp


class BottleneckSeverity(Enum):
    """Severity tier derived from a state's bottleneck score."""

    CRITICAL = "critical"
    MODERATE = "moderate"
    LOW = "low"

    def __lt__(self, other: "BottleneckSeverity") -> bool:
        """Enable sorting by severity, most severe first."""
        order = {
            BottleneckSeverity.CRITICAL: 0,
            BottleneckSeverity.MODERATE: 1,
            BottleneckSeverity.LOW: 2,
        }
        return order[self] < order[other]


@dataclass(frozen=True)
class ProcessEvent:
    """
    One observed state-transition fact for a business case.

    Attributes:
        case_id: Identifier of the case (opportunity, invoice, workflow, ...)
        occurred_at: When the event happened, aware UTC. None when the
            source timestamp could not be parsed; such events are dropped
            during case reconstruction.
        entity_type: Kind of business entity the case tracks
        action: What happened (used as the state when to_state is absent)
        from_state: State before the event, if known
        to_state: State after the event, if known
        actor_type: Who or what triggered the event
        metadata: Opaque attributes carried through untouched
        raw_timestamp: The timestamp as received, kept for diagnostics
    """
    case_id: str
    occurred_at: Optional[datetime]
    entity_type: str = ""
    action: str = ""
    from_state: Optional[str] = None
    to_state: Optional[str] = None
    actor_type: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)
    raw_timestamp: Any = field(default=None, compare=False, hash=False, repr=False)

    def __post_init__(self):
        value = self.occurred_at
        if value is not None and self.raw_timestamp is None:
            object.__setattr__(self, "raw_timestamp", value)
        object.__setattr__(self, "occurred_at", parse_timestamp(value))

    @property
    def state(self) -> str:
        """Effective state label: ``to_state`` if present, else ``action``."""
        return self.to_state or self.action

    @property
    def dedupe_key(self) -> Tuple[str, Optional[datetime], str, Optional[str]]:
        """Fields that make two events exact duplicates of each other."""
        return (self.case_id, self.occurred_at, self.action, self.to_state)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case_id": self.case_id,
            "entity_type": self.entity_type,
            "action": self.action,
            "from_state": self.from_state,
            "to_state": self.to_state,
            "occurred_at": self.occurred_at.isoformat() if self.occurred_at else None,
            "actor_type": self.actor_type,
            "metadata": dict(self.metadata),
        }


class DurationStats:
    """
    Streaming duration statistics in milliseconds.

    Keeps count, an exact integer sum (so the mean does not depend on the
    order samples arrive in), running min/max and Welford's M2 term for the
    standard deviation. Raw samples are never stored.
    """

    __slots__ = ("count", "total_ms", "min_ms", "max_ms", "_mean", "_m2")

    def __init__(self):
        self.count = 0
        self.total_ms = 0
        self.min_ms: Optional[int] = None
        self.max_ms: Optional[int] = None
        self._mean = 0.0
        self._m2 = 0.0

    def add(self, ms: int) -> None:
        """Add one sample."""
        self.count += 1
        self.total_ms += ms
        self.min_ms = ms if self.min_ms is None else min(self.min_ms, ms)
        self.max_ms = ms if self.max_ms is None else max(self.max_ms, ms)
        delta = ms - self._mean
        self._mean += delta / self.count
        self._m2 += delta * (ms - self._mean)

    def merge(self, other: "DurationStats") -> "DurationStats":
        """Combine two accumulators into a new one (Chan et al. for M2)."""
        merged = DurationStats()
        merged.count = self.count + other.count
        merged.total_ms = self.total_ms + other.total_ms
        mins = [m for m in (self.min_ms, other.min_ms) if m is not None]
        maxs = [m for m in (self.max_ms, other.max_ms) if m is not None]
        merged.min_ms = min(mins) if mins else None
        merged.max_ms = max(maxs) if maxs else None
        if merged.count:
            delta = other._mean - self._mean
            merged._mean = merged.total_ms / merged.count
            merged._m2 = (
                self._m2 + other._m2
                + delta * delta * self.count * other.count / merged.count
            )
        return merged

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.count if self.count else 0.0

    @property
    def std_ms(self) -> float:
        if self.count < 2:
            return 0.0
        return math.sqrt(max(self._m2, 0.0) / (self.count - 1))

    def __repr__(self) -> str:
        return (
            f"DurationStats(count={self.count}, avg_ms={self.avg_ms:.1f}, "
            f"min_ms={self.min_ms}, max_ms={self.max_ms})"
        )


@dataclass(frozen=True)
class StateNode:
    """
    Aggregate over every occurrence of one state label.

    Durations are dwell times to the next event of the same case. A state
    that only ever appeared as the last event of its case has no samples
    and reports zero durations.
    """
    state: str
    entries: int
    sample_count: int = 0
    avg_duration_ms: float = 0.0
    min_duration_ms: int = 0
    max_duration_ms: int = 0
    std_duration_ms: float = 0.0
    bottleneck_score: float = 0.0
    severity: BottleneckSeverity = BottleneckSeverity.LOW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state,
            "entries": self.entries,
            "sample_count": self.sample_count,
            "avg_duration_ms": self.avg_duration_ms,
            "min_duration_ms": self.min_duration_ms,
            "max_duration_ms": self.max_duration_ms,
            "std_duration_ms": self.std_duration_ms,
            "bottleneck_score": self.bottleneck_score,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class TransitionEdge:
    """Aggregate over one directly-follows pair of states."""
    from_state: str
    to_state: str
    count: int
    avg_duration_ms: float = 0.0
    min_duration_ms: int = 0
    max_duration_ms: int = 0

    @property
    def key(self) -> Tuple[str, str]:
        return (self.from_state, self.to_state)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_state": self.from_state,
            "to_state": self.to_state,
            "count": self.count,
            "avg_duration_ms": self.avg_duration_ms,
            "min_duration_ms": self.min_duration_ms,
            "max_duration_ms": self.max_duration_ms,
        }


@dataclass(frozen=True)
class ProcessMap:
    """Nodes and edges of the discovered process, sorted by label."""
    nodes: Tuple[StateNode, ...] = ()
    edges: Tuple[TransitionEdge, ...] = ()
    total_cases: int = 0
    total_events: int = 0

    def node(self, state: str) -> Optional[StateNode]:
        for node in self.nodes:
            if node.state == state:
                return node
        return None

    def edge(self, from_state: str, to_state: str) -> Optional[TransitionEdge]:
        for edge in self.edges:
            if edge.key == (from_state, to_state):
                return edge
        return None

    def get_bottlenecks(
        self, min_severity: BottleneckSeverity = BottleneckSeverity.MODERATE
    ) -> Tuple[StateNode, ...]:
        """Nodes at or above ``min_severity``, highest score first."""
        selected = [
            n for n in self.nodes
            if n.severity == min_severity or n.severity < min_severity
        ]
        return tuple(sorted(selected, key=lambda n: (-n.bottleneck_score, n.state)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_cases": self.total_cases,
            "total_events": self.total_events,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass(frozen=True)
class Variant:
    """
    One distinct ordered path of states and the cases that followed it.

    Attributes:
        path: State labels in order, repeats retained
        count: Number of cases following exactly this path
        avg_duration_ms: Mean of (last event - first event) per member case
        member_case_ids: Member cases, sorted
        variant_id: Stable identifier derived from the path
        share: count as a fraction of all cases in the run
    """
    path: Tuple[str, ...]
    count: int
    avg_duration_ms: float
    member_case_ids: Tuple[str, ...]
    variant_id: str = ""
    share: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant_id": self.variant_id,
            "path": list(self.path),
            "count": self.count,
            "share": self.share,
            "avg_duration_ms": self.avg_duration_ms,
            "member_case_ids": list(self.member_case_ids),
        }
