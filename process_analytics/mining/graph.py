"""
Transition graph construction.

Walks each reconstructed case in order and accumulates per-state and
per-transition dwell-time statistics. The accumulator is purely additive,
so shards of cases can be folded independently and merged afterwards.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, Mapping, Tuple

from ..timestamps import duration_ms
from .cases import Case
from .models import DurationStats, ProcessMap, StateNode, TransitionEdge

logger = logging.getLogger(__name__)


class GraphAccumulator:
    """
    Per-state and per-transition statistics for a set of cases.

    For event i of a case, ``entries[state_i]`` is incremented. When a next
    event exists, the dwell time between the two is added to the state's
    duration stats and to the stats of the ``state_i -> state_i+1`` edge.
    The last event of a case only counts as an entry.
    """

    def __init__(self):
        self.entries: Counter = Counter()
        self.node_stats: Dict[str, DurationStats] = {}
        self.edge_stats: Dict[Tuple[str, str], DurationStats] = {}
        self.case_count = 0
        self.event_count = 0

    def add_case(self, events: Case) -> None:
        """Fold one chronologically ordered case into the accumulator."""
        if not events:
            return
        self.case_count += 1
        self.event_count += len(events)

        for current, following in zip(events, events[1:]):
            state = current.state
            self.entries[state] += 1
            dwell = duration_ms(current.occurred_at, following.occurred_at)
            self.node_stats.setdefault(state, DurationStats()).add(dwell)
            self.edge_stats.setdefault((state, following.state), DurationStats()).add(dwell)

        self.entries[events[-1].state] += 1

    def add_cases(self, cases: Iterable[Case]) -> "GraphAccumulator":
        for events in cases:
            self.add_case(events)
        return self

    def merge(self, other: "GraphAccumulator") -> "GraphAccumulator":
        """Return a new accumulator combining ``self`` and ``other``."""
        merged = GraphAccumulator()
        merged.entries = self.entries + other.entries
        merged.node_stats = _merge_stats(self.node_stats, other.node_stats)
        merged.edge_stats = _merge_stats(self.edge_stats, other.edge_stats)
        merged.case_count = self.case_count + other.case_count
        merged.event_count = self.event_count + other.event_count
        return merged

    def to_process_map(self) -> ProcessMap:
        """Materialize unscored nodes and edges, sorted by label."""
        nodes = []
        for state in sorted(self.entries):
            stats = self.node_stats.get(state) or DurationStats()
            nodes.append(StateNode(
                state=state,
                entries=self.entries[state],
                sample_count=stats.count,
                avg_duration_ms=stats.avg_ms,
                min_duration_ms=stats.min_ms or 0,
                max_duration_ms=stats.max_ms or 0,
                std_duration_ms=stats.std_ms,
            ))

        edges = []
        for (from_state, to_state) in sorted(self.edge_stats):
            stats = self.edge_stats[(from_state, to_state)]
            edges.append(TransitionEdge(
                from_state=from_state,
                to_state=to_state,
                count=stats.count,
                avg_duration_ms=stats.avg_ms,
                min_duration_ms=stats.min_ms or 0,
                max_duration_ms=stats.max_ms or 0,
            ))

        return ProcessMap(
            nodes=tuple(nodes),
            edges=tuple(edges),
            total_cases=self.case_count,
            total_events=self.event_count,
        )


def _merge_stats(left: Mapping, right: Mapping) -> Dict:
    merged: Dict = {}
    for key in set(left) | set(right):
        if key in left and key in right:
            merged[key] = left[key].merge(right[key])
        else:
            merged[key] = (left.get(key) or right.get(key)).merge(DurationStats())
    return merged


def build_graph(cases: Mapping[str, Case]) -> GraphAccumulator:
    """Fold every case of a reconstructed case set into a new accumulator."""
    accumulator = GraphAccumulator().add_cases(cases.values())
    logger.debug(
        f"Graph over {accumulator.case_count} cases: {len(accumulator.entries)} states, "
        f"{len(accumulator.edge_stats)} transitions"
    )
    return accumulator
