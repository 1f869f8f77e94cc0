"""
Stuck-case detection.

A case is stuck when its most recent event is older than the staleness
threshold: ``now - last.occurred_at > threshold``. A case sitting exactly
at the threshold is not stuck. Only the last event of each case matters,
so single-event cases are eligible too.

Terminal states are not excluded unless the caller configures them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Tuple

from ..timestamps import duration_ms, to_utc
from .cases import Case

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StuckCase:
    """A case whose last state has not changed within the threshold."""
    case_id: str
    state: str
    last_event_at: datetime
    age_ms: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case_id": self.case_id,
            "state": self.state,
            "last_event_at": self.last_event_at.isoformat(),
            "age_ms": self.age_ms,
        }


@dataclass(frozen=True)
class StuckCaseReport:
    """
    Stuck cases found in one run.

    Attributes:
        evaluated_at: The "now" the check was made against
        threshold: Staleness threshold used
        cases_evaluated: Cases considered (terminal ones excluded)
        excluded_terminal: Cases skipped because their last state is terminal
        stuck_cases: Offending cases, oldest first
    """
    evaluated_at: datetime
    threshold: timedelta
    cases_evaluated: int = 0
    excluded_terminal: int = 0
    stuck_cases: Tuple[StuckCase, ...] = ()

    @property
    def total_stuck(self) -> int:
        return len(self.stuck_cases)

    @property
    def counts_by_state(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for case in self.stuck_cases:
            counts[case.state] = counts.get(case.state, 0) + 1
        return dict(sorted(counts.items()))

    @property
    def case_ids_by_state(self) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {}
        for case in self.stuck_cases:
            grouped.setdefault(case.state, []).append(case.case_id)
        return {state: sorted(ids) for state, ids in sorted(grouped.items())}

    def to_dict(self, include_case_ids: bool = True) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "evaluated_at": self.evaluated_at.isoformat(),
            "threshold_ms": self.threshold // timedelta(milliseconds=1),
            "cases_evaluated": self.cases_evaluated,
            "excluded_terminal": self.excluded_terminal,
            "total_stuck": self.total_stuck,
            "counts_by_state": self.counts_by_state,
        }
        if include_case_ids:
            result["case_ids_by_state"] = self.case_ids_by_state
            result["stuck_cases"] = [c.to_dict() for c in self.stuck_cases]
        return result


class StuckAccumulator:
    """Collects stuck cases for one shard; merge combines shards."""

    def __init__(
        self,
        now: datetime,
        threshold: timedelta,
        terminal_states: FrozenSet[str] = frozenset(),
    ):
        self.now = to_utc(now)
        self.threshold = threshold
        self.terminal_states = frozenset(terminal_states)
        self.cases_evaluated = 0
        self.excluded_terminal = 0
        self.stuck: List[StuckCase] = []

    def add_case(self, case_id: str, events: Case) -> None:
        if not events:
            return
        last = events[-1]
        if last.state in self.terminal_states:
            self.excluded_terminal += 1
            return

        self.cases_evaluated += 1
        age = self.now - last.occurred_at
        if age > self.threshold:
            self.stuck.append(StuckCase(
                case_id=case_id,
                state=last.state,
                last_event_at=last.occurred_at,
                age_ms=duration_ms(last.occurred_at, self.now),
            ))

    def add_cases(self, cases: Mapping[str, Case]) -> "StuckAccumulator":
        for case_id, events in cases.items():
            self.add_case(case_id, events)
        return self

    def merge(self, other: "StuckAccumulator") -> "StuckAccumulator":
        if (self.now, self.threshold, self.terminal_states) != (
            other.now, other.threshold, other.terminal_states
        ):
            raise ValueError("Cannot merge stuck-case accumulators built with different settings")
        merged = StuckAccumulator(self.now, self.threshold, self.terminal_states)
        merged.cases_evaluated = self.cases_evaluated + other.cases_evaluated
        merged.excluded_terminal = self.excluded_terminal + other.excluded_terminal
        merged.stuck = self.stuck + other.stuck
        return merged

    def to_report(self) -> StuckCaseReport:
        ordered = sorted(self.stuck, key=lambda c: (-c.age_ms, c.case_id))
        if ordered:
            logger.info(f"{len(ordered)} of {self.cases_evaluated} cases stuck longer than {self.threshold}")
        return StuckCaseReport(
            evaluated_at=self.now,
            threshold=self.threshold,
            cases_evaluated=self.cases_evaluated,
            excluded_terminal=self.excluded_terminal,
            stuck_cases=tuple(ordered),
        )


def find_stuck_cases(
    cases: Mapping[str, Case],
    now: datetime,
    threshold: timedelta = timedelta(hours=24),
    terminal_states: Iterable[str] = (),
) -> StuckCaseReport:
    """Check every case of a reconstructed case set against the threshold."""
    accumulator = StuckAccumulator(now, threshold, frozenset(terminal_states))
    return accumulator.add_cases(cases).to_report()
