"""
Variant discovery: distinct ordered state paths across cases.

Cases are grouped by the exact tuple of their effective states, repeats
included. Tuples are compared element-wise, so state labels containing any
separator character can never collide. Variants are ranked by case count
(descending), then by path length, then lexicographically.

A high-variability warning is raised when there are more distinct variants
than ``max_variants`` and the most common variant covers less than
``min_top_variant_share`` of the cases: the process lacks a standard path.
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from ..config import VariantConfig
from ..timestamps import duration_ms
from .cases import Case
from .models import Variant

logger = logging.getLogger(__name__)

Path = Tuple[str, ...]

# Unit separator; only used to derive the display id, never for grouping
_ID_SEPARATOR = "\x1f"


def variant_id_for(path: Path) -> str:
    """Stable short identifier for a path."""
    digest = hashlib.sha1(_ID_SEPARATOR.join(path).encode("utf-8")).hexdigest()
    return f"var-{digest[:12]}"


class _VariantGroup:
    __slots__ = ("count", "total_duration_ms", "members")

    def __init__(self, count: int = 0, total_duration_ms: int = 0, members=None):
        self.count = count
        self.total_duration_ms = total_duration_ms
        self.members: List[str] = list(members or [])


class VariantAccumulator:
    """Groups cases by path; merge unions groups keyed by the same path."""

    def __init__(self):
        self.groups: Dict[Path, _VariantGroup] = {}
        self.total_cases = 0

    def add_case(self, case_id: str, events: Case) -> None:
        if not events:
            return
        path = tuple(e.state for e in events)
        case_duration = duration_ms(events[0].occurred_at, events[-1].occurred_at)

        group = self.groups.get(path)
        if group is None:
            group = self.groups[path] = _VariantGroup()
        group.count += 1
        group.total_duration_ms += case_duration
        group.members.append(case_id)
        self.total_cases += 1

    def add_cases(self, cases: Mapping[str, Case]) -> "VariantAccumulator":
        for case_id, events in cases.items():
            self.add_case(case_id, events)
        return self

    def merge(self, other: "VariantAccumulator") -> "VariantAccumulator":
        merged = VariantAccumulator()
        merged.total_cases = self.total_cases + other.total_cases
        for path in set(self.groups) | set(other.groups):
            left = self.groups.get(path) or _VariantGroup()
            right = other.groups.get(path) or _VariantGroup()
            merged.groups[path] = _VariantGroup(
                count=left.count + right.count,
                total_duration_ms=left.total_duration_ms + right.total_duration_ms,
                members=left.members + right.members,
            )
        return merged

    def to_variants(self) -> List[Variant]:
        variants = [
            Variant(
                path=path,
                count=group.count,
                avg_duration_ms=group.total_duration_ms / group.count,
                member_case_ids=tuple(sorted(group.members)),
                variant_id=variant_id_for(path),
                share=group.count / self.total_cases if self.total_cases else 0.0,
            )
            for path, group in self.groups.items()
        ]
        variants.sort(key=lambda v: (-v.count, len(v.path), v.path))
        return variants


@dataclass(frozen=True)
class VariantReport:
    """
    Ranked variants with the derived variability signal.

    Attributes:
        variants: Variants, most frequent first
        total_cases: Cases in the run
        top_variant_share: Share of cases following the most common variant
        high_variability: True when the process lacks a dominant path
    """
    variants: Tuple[Variant, ...]
    total_cases: int
    top_variant_share: float
    high_variability: bool

    @property
    def distinct_variants(self) -> int:
        return len(self.variants)

    def to_dict(self, include_members: bool = True) -> Dict[str, Any]:
        variants = [v.to_dict() for v in self.variants]
        if not include_members:
            for v in variants:
                v.pop("member_case_ids")
        return {
            "total_cases": self.total_cases,
            "distinct_variants": self.distinct_variants,
            "top_variant_share": self.top_variant_share,
            "high_variability": self.high_variability,
            "variants": variants,
        }


def summarize_variants(
    variants: List[Variant],
    total_cases: int,
    config: VariantConfig = VariantConfig(),
) -> VariantReport:
    """Compute the top-variant share and the high-variability flag."""
    top_share = variants[0].count / total_cases if variants and total_cases else 0.0
    high_variability = (
        len(variants) > config.max_variants
        and top_share < config.min_top_variant_share
    )
    if high_variability:
        logger.warning(
            f"High process variability: {len(variants)} variants across {total_cases} cases, "
            f"top variant covers {top_share:.0%}"
        )
    return VariantReport(
        variants=tuple(variants),
        total_cases=total_cases,
        top_variant_share=top_share,
        high_variability=high_variability,
    )
