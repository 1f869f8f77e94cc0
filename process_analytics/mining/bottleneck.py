"""
Bottleneck scoring for process states.

Each state gets a score in [0, 1] combining how slow it is relative to the
slowest state and how often it is visited:

    score = duration_weight * avg / max(avg) + frequency_weight * entries / sum(entries)

With the default weights (0.7 / 0.3) a rarely visited but very slow state
ranks above a frequent fast one. Scores map to tiers:

- Critical: score >= critical_threshold (default 0.8)
- Moderate: score >= moderate_threshold (default 0.5)
- Low: everything else
"""

import logging
from dataclasses import replace
from typing import Iterable, Tuple

import numpy as np

from ..config import BottleneckConfig
from .models import BottleneckSeverity, ProcessMap, StateNode

logger = logging.getLogger(__name__)

# Scores are rounded before tiering so exact tier boundaries classify upward
SCORE_DECIMALS = 9


def classify_score(score: float, config: BottleneckConfig) -> BottleneckSeverity:
    """Map a bottleneck score to its severity tier."""
    if score >= config.critical_threshold:
        return BottleneckSeverity.CRITICAL
    if score >= config.moderate_threshold:
        return BottleneckSeverity.MODERATE
    return BottleneckSeverity.LOW


def score_nodes(
    nodes: Iterable[StateNode],
    config: BottleneckConfig = BottleneckConfig(),
) -> Tuple[StateNode, ...]:
    """
    Return copies of ``nodes`` with ``bottleneck_score`` and ``severity`` set.

    When every state has a zero average duration there is nothing to rank,
    and all scores are 0.
    """
    nodes = tuple(nodes)
    if not nodes:
        return ()

    averages = np.array([n.avg_duration_ms for n in nodes], dtype=np.float64)
    entries = np.array([n.entries for n in nodes], dtype=np.float64)

    max_avg = averages.max()
    if max_avg <= 0:
        scores = np.zeros(len(nodes))
    else:
        duration_norm = averages / max_avg
        total_entries = entries.sum()
        frequency_norm = entries / total_entries if total_entries > 0 else np.zeros(len(nodes))
        scores = np.clip(
            config.duration_weight * duration_norm + config.frequency_weight * frequency_norm,
            0.0,
            1.0,
        )
        # 0.7 + 0.3 / 3 lands at 0.7999999999999999 without this
        scores = np.round(scores, SCORE_DECIMALS)

    scored = tuple(
        replace(node, bottleneck_score=float(score), severity=classify_score(float(score), config))
        for node, score in zip(nodes, scores)
    )

    critical = [n.state for n in scored if n.severity == BottleneckSeverity.CRITICAL]
    if critical:
        logger.info(f"Critical bottleneck states: {', '.join(critical)}")

    return scored


def score_process_map(
    process_map: ProcessMap,
    config: BottleneckConfig = BottleneckConfig(),
) -> ProcessMap:
    """Return a copy of ``process_map`` with scored nodes."""
    return replace(process_map, nodes=score_nodes(process_map.nodes, config))
