"""
Case reconstruction: group raw events into chronologically ordered cases.

Bad records never fail a run. An event without a case id, with an
unparsable timestamp or without any state label is dropped and counted;
exact duplicates are counted and, unless strict dedupe is requested, kept.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Set, Tuple

from .models import ProcessEvent

logger = logging.getLogger(__name__)

Case = Tuple[ProcessEvent, ...]


class SkipReason(Enum):
    """Why an input event was left out of reconstruction."""

    MISSING_CASE_ID = "missing_case_id"
    INVALID_TIMESTAMP = "invalid_timestamp"
    MISSING_STATE = "missing_state"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class ReconstructionReport:
    """
    Per-record outcome counts for one reconstruction.

    Attributes:
        input_events: Events received
        accepted_events: Events placed into a case
        skipped: Dropped events per SkipReason value
        duplicates_detected: Exact duplicates seen, whether kept or dropped
    """
    input_events: int = 0
    accepted_events: int = 0
    skipped: Mapping[str, int] = field(default_factory=dict)
    duplicates_detected: int = 0

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())

    def merge(self, other: "ReconstructionReport") -> "ReconstructionReport":
        return ReconstructionReport(
            input_events=self.input_events + other.input_events,
            accepted_events=self.accepted_events + other.accepted_events,
            skipped=dict(Counter(self.skipped) + Counter(other.skipped)),
            duplicates_detected=self.duplicates_detected + other.duplicates_detected,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_events": self.input_events,
            "accepted_events": self.accepted_events,
            "total_skipped": self.total_skipped,
            "skipped": dict(sorted(self.skipped.items())),
            "duplicates_detected": self.duplicates_detected,
        }


@dataclass(frozen=True)
class CaseSet:
    """Reconstructed cases keyed by case id, plus the reconstruction report."""
    cases: Mapping[str, Case]
    report: ReconstructionReport

    def __len__(self) -> int:
        return len(self.cases)


def reconstruct_cases(
    events: Iterable[ProcessEvent],
    strict_dedupe: bool = False,
) -> CaseSet:
    """
    Group events by case id and order each case by ``occurred_at``.

    Sorting is stable, so events with identical timestamps keep their input
    order.

    Args:
        events: Canonical events in any order
        strict_dedupe: Drop exact duplicates instead of only reporting them

    Returns:
        CaseSet with one ordered tuple of events per case
    """
    grouped: Dict[str, List[ProcessEvent]] = {}
    seen: Set[Tuple[Any, ...]] = set()
    skipped: Counter = Counter()
    input_events = 0
    duplicates = 0

    for event in events:
        input_events += 1

        if not event.case_id:
            skipped[SkipReason.MISSING_CASE_ID.value] += 1
            logger.warning(f"Dropping event without case id (action={event.action!r})")
            continue

        if event.occurred_at is None:
            skipped[SkipReason.INVALID_TIMESTAMP.value] += 1
            logger.warning(
                f"Dropping event for case {event.case_id}: "
                f"unparsable timestamp {event.raw_timestamp!r}"
            )
            continue

        if not event.state:
            skipped[SkipReason.MISSING_STATE.value] += 1
            logger.warning(f"Dropping event for case {event.case_id}: no state or action label")
            continue

        key = event.dedupe_key
        if key in seen:
            duplicates += 1
            if strict_dedupe:
                skipped[SkipReason.DUPLICATE.value] += 1
                logger.warning(
                    f"Dropping duplicate event for case {event.case_id} at "
                    f"{event.occurred_at.isoformat()} ({event.state})"
                )
                continue
            logger.warning(
                f"Duplicate event for case {event.case_id} at "
                f"{event.occurred_at.isoformat()} ({event.state}); keeping it"
            )
        else:
            seen.add(key)

        grouped.setdefault(event.case_id, []).append(event)

    cases = {
        case_id: tuple(sorted(case_events, key=lambda e: e.occurred_at))
        for case_id, case_events in grouped.items()
    }

    report = ReconstructionReport(
        input_events=input_events,
        accepted_events=sum(len(c) for c in cases.values()),
        skipped=dict(skipped),
        duplicates_detected=duplicates,
    )

    if report.total_skipped:
        logger.info(
            f"Reconstructed {len(cases)} cases from {input_events} events "
            f"({report.total_skipped} skipped)"
        )
    else:
        logger.debug(f"Reconstructed {len(cases)} cases from {input_events} events")

    return CaseSet(cases=cases, report=report)
