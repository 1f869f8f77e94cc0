"""
Process Mining Module.

Derives process structure and performance indicators from per-case event
logs. All components are pure: they consume reconstructed cases and
produce immutable report records.

Key Components:
- reconstruct_cases: group and order raw events into cases
- GraphAccumulator: per-state and per-transition dwell statistics
- score_nodes: normalized bottleneck score and severity tier per state
- StuckAccumulator: cases idle in their last state beyond a threshold
- VariantAccumulator: distinct state paths ranked by frequency
- run_sharded: shard-by-case fold with an order-independent merge

Example Usage:
    from process_analytics.mining import reconstruct_cases, build_graph, score_process_map

    case_set = reconstruct_cases(events)
    process_map = score_process_map(build_graph(case_set.cases).to_process_map())

    for node in process_map.get_bottlenecks():
        print(node.state, node.bottleneck_score, node.severity.value)
"""

from .models import (
    BottleneckSeverity,
    DurationStats,
    ProcessEvent,
    ProcessMap,
    StateNode,
    TransitionEdge,
    Variant,
)

from .cases import (
    Case,
    CaseSet,
    ReconstructionReport,
    SkipReason,
    reconstruct_cases,
)

from .graph import (
    GraphAccumulator,
    build_graph,
)

from .bottleneck import (
    classify_score,
    score_nodes,
    score_process_map,
)

from .stuck import (
    StuckAccumulator,
    StuckCase,
    StuckCaseReport,
    find_stuck_cases,
)

from .variants import (
    VariantAccumulator,
    VariantReport,
    summarize_variants,
    variant_id_for,
)

from .sharding import (
    ShardResult,
    fold_shard,
    merge_shard_results,
    run_sharded,
    shard_events,
    shard_for,
)

__all__ = [
    # Models
    "BottleneckSeverity",
    "DurationStats",
    "ProcessEvent",
    "ProcessMap",
    "StateNode",
    "TransitionEdge",
    "Variant",
    # Cases
    "Case",
    "CaseSet",
    "ReconstructionReport",
    "SkipReason",
    "reconstruct_cases",
    # Graph
    "GraphAccumulator",
    "build_graph",
    # Bottlenecks
    "classify_score",
    "score_nodes",
    "score_process_map",
    # Stuck cases
    "StuckAccumulator",
    "StuckCase",
    "StuckCaseReport",
    "find_stuck_cases",
    # Variants
    "VariantAccumulator",
    "VariantReport",
    "summarize_variants",
    "variant_id_for",
    # Sharding
    "ShardResult",
    "fold_shard",
    "merge_shard_results",
    "run_sharded",
    "shard_events",
    "shard_for",
]
