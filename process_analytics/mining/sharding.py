"""
Shard-and-merge execution of the mining fold.

Events are partitioned by a stable hash of their case id, so every case
lands wholly inside one shard. Each shard is reconstructed and folded into
additive accumulators (graph, variants, stuck cases, reconstruction
counts); ``merge_shard_results`` combines them using only sums, min/max
and unions. The merged result is the same for any shard count and any
merge order.

Duplicate detection is per case, so sharding by case id does not change
which events are flagged.
"""

import hashlib
import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import partial, reduce
from typing import FrozenSet, Iterable, List, Optional, Sequence

from .cases import ReconstructionReport, reconstruct_cases
from .graph import GraphAccumulator
from .models import ProcessEvent
from .stuck import StuckAccumulator
from .variants import VariantAccumulator

logger = logging.getLogger(__name__)


def shard_for(case_id: str, shard_count: int) -> int:
    """Shard index for a case id, stable across processes and runs."""
    digest = hashlib.md5(case_id.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") % shard_count


def shard_events(events: Iterable[ProcessEvent], shard_count: int) -> List[List[ProcessEvent]]:
    """
    Partition events into ``shard_count`` lists by case id hash.

    Relative input order is preserved inside each shard. Events without a
    case id go to shard 0 so the reconstructor can count them.
    """
    if shard_count < 1:
        raise ValueError(f"shard_count must be >= 1, got {shard_count}")
    shards: List[List[ProcessEvent]] = [[] for _ in range(shard_count)]
    for event in events:
        index = shard_for(event.case_id, shard_count) if event.case_id else 0
        shards[index].append(event)
    return shards


@dataclass
class ShardResult:
    """Partial accumulators for one shard (or a merge of several)."""
    graph: GraphAccumulator
    variants: VariantAccumulator
    stuck: StuckAccumulator
    report: ReconstructionReport

    def merge(self, other: "ShardResult") -> "ShardResult":
        return ShardResult(
            graph=self.graph.merge(other.graph),
            variants=self.variants.merge(other.variants),
            stuck=self.stuck.merge(other.stuck),
            report=self.report.merge(other.report),
        )


def fold_shard(
    events: Sequence[ProcessEvent],
    now: datetime,
    staleness_threshold: timedelta,
    terminal_states: FrozenSet[str] = frozenset(),
    strict_dedupe: bool = False,
) -> ShardResult:
    """Reconstruct the cases of one shard and fold them into accumulators."""
    case_set = reconstruct_cases(events, strict_dedupe=strict_dedupe)
    return ShardResult(
        graph=GraphAccumulator().add_cases(case_set.cases.values()),
        variants=VariantAccumulator().add_cases(case_set.cases),
        stuck=StuckAccumulator(now, staleness_threshold, terminal_states).add_cases(case_set.cases),
        report=case_set.report,
    )


def merge_shard_results(results: Sequence[ShardResult]) -> ShardResult:
    """Merge shard results; raises ValueError on an empty sequence."""
    if not results:
        raise ValueError("No shard results to merge")
    return reduce(lambda left, right: left.merge(right), results)


def run_sharded(
    events: Iterable[ProcessEvent],
    now: datetime,
    staleness_threshold: timedelta,
    terminal_states: FrozenSet[str] = frozenset(),
    strict_dedupe: bool = False,
    shard_count: int = 1,
    executor: Optional[Executor] = None,
) -> ShardResult:
    """
    Shard, fold and merge in one call.

    Args:
        events: Canonical events
        now: Reference time for stuck detection
        staleness_threshold: Stuck-case threshold
        terminal_states: States excluded from stuck accounting
        strict_dedupe: Drop exact duplicates
        shard_count: Number of shards
        executor: Optional executor to fold shards concurrently; shards are
            folded in-process when omitted

    Returns:
        The merged ShardResult
    """
    shards = shard_events(events, shard_count)
    fold = partial(
        fold_shard,
        now=now,
        staleness_threshold=staleness_threshold,
        terminal_states=frozenset(terminal_states),
        strict_dedupe=strict_dedupe,
    )

    if executor is not None and shard_count > 1:
        results = list(executor.map(fold, shards))
    else:
        results = [fold(shard) for shard in shards]

    logger.debug(f"Folded {shard_count} shards: {[len(s) for s in shards]} events each")
    return merge_shard_results(results)
