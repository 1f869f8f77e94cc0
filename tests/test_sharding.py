"""
Tests for shard-and-merge execution.

Splitting events by case into any number of shards, folding each shard and
merging the partial results must give the same aggregates as a single pass,
in any merge order.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from process_analytics.mining import (
    fold_shard,
    merge_shard_results,
    run_sharded,
    shard_events,
    shard_for,
)

from conftest import at, make_event

NOW = at(30 * 24 * 3_600_000)
THRESHOLD = timedelta(hours=24)


def _fold_all(shards):
    return [fold_shard(shard, now=NOW, staleness_threshold=THRESHOLD) for shard in shards]


def _assert_same(left, right):
    """Compare two merged results field by field."""
    left_map = left.graph.to_process_map()
    right_map = right.graph.to_process_map()

    assert left_map.total_cases == right_map.total_cases
    assert left_map.total_events == right_map.total_events
    assert [n.state for n in left_map.nodes] == [n.state for n in right_map.nodes]
    for a, b in zip(left_map.nodes, right_map.nodes):
        assert a.entries == b.entries
        assert a.sample_count == b.sample_count
        assert a.avg_duration_ms == b.avg_duration_ms
        assert a.min_duration_ms == b.min_duration_ms
        assert a.max_duration_ms == b.max_duration_ms
        assert a.std_duration_ms == pytest.approx(b.std_duration_ms)
    assert left_map.edges == right_map.edges

    assert left.variants.to_variants() == right.variants.to_variants()
    assert left.stuck.to_report() == right.stuck.to_report()
    assert left.report.to_dict() == right.report.to_dict()


class TestShardFor:
    """Tests for the case-hash partitioner."""

    def test_stable(self):
        assert shard_for("case-1", 7) == shard_for("case-1", 7)

    def test_in_range(self):
        for i in range(50):
            assert 0 <= shard_for(f"case-{i}", 3) < 3

    def test_case_stays_in_one_shard(self, mixed_events):
        shards = shard_events(mixed_events, 4)

        owners = {}
        for index, shard in enumerate(shards):
            for event in shard:
                assert owners.setdefault(event.case_id, index) == index
        assert sum(len(s) for s in shards) == len(mixed_events)

    def test_missing_case_id_goes_to_first_shard(self):
        shards = shard_events([make_event("", "x", 0)], 3)

        assert len(shards[0]) == 1

    def test_invalid_shard_count(self):
        with pytest.raises(ValueError):
            shard_events([], 0)


class TestMergeAssociativity:
    """Merged aggregates do not depend on shard count or merge order."""

    @pytest.mark.parametrize("shard_count", [2, 3, 7])
    def test_shard_counts_agree(self, mixed_events, shard_count):
        single = merge_shard_results(_fold_all(shard_events(mixed_events, 1)))
        sharded = merge_shard_results(_fold_all(shard_events(mixed_events, shard_count)))

        _assert_same(single, sharded)

    def test_merge_order_does_not_matter(self, mixed_events):
        results = _fold_all(shard_events(mixed_events, 5))

        forward = merge_shard_results(results)
        backward = merge_shard_results(list(reversed(results)))
        nested = results[0].merge(results[1].merge(results[2])).merge(results[3].merge(results[4]))

        _assert_same(forward, backward)
        _assert_same(forward, nested)

    def test_skip_counts_survive_sharding(self, mixed_events):
        noisy = mixed_events + [make_event("", "x", 0), make_event("case-000", "new", 0)]
        single = run_sharded(noisy, now=NOW, staleness_threshold=THRESHOLD)
        sharded = run_sharded(noisy, now=NOW, staleness_threshold=THRESHOLD, shard_count=4)

        assert sharded.report.to_dict() == single.report.to_dict()
        assert sharded.report.duplicates_detected == 1

    def test_executor(self, mixed_events):
        sequential = run_sharded(mixed_events, now=NOW, staleness_threshold=THRESHOLD, shard_count=3)
        with ThreadPoolExecutor(max_workers=3) as executor:
            concurrent = run_sharded(
                mixed_events, now=NOW, staleness_threshold=THRESHOLD, shard_count=3, executor=executor
            )

        _assert_same(sequential, concurrent)

    def test_empty_shards(self):
        """More shards than cases leaves some shards empty."""
        events = [make_event("only", "x", 0)]
        result = run_sharded(events, now=NOW, staleness_threshold=THRESHOLD, shard_count=7)

        assert result.graph.case_count == 1
        assert result.variants.total_cases == 1

    def test_merge_requires_results(self):
        with pytest.raises(ValueError):
            merge_shard_results([])
