"""
Configuration for the process analytics engine.

All thresholds that drive stuck-case detection, bottleneck tiers, variant
variability warnings and SLA breach classification live here, so a run is
reproducible independent of any UI. Every entry point validates its config
before touching the data.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import timedelta
from typing import Any, Dict, FrozenSet, Iterable, Optional

from .exceptions import ConfigurationError


def _require_number(owner: Any, *names: str, integer: bool = False) -> None:
    """Raise ConfigurationError unless every named attribute is numeric."""
    expected = int if integer else (int, float)
    for name in names:
        value = getattr(owner, name)
        if isinstance(value, bool) or not isinstance(value, expected):
            kind = "an integer" if integer else "a number"
            raise ConfigurationError(f"{name} must be {kind}, got {value!r}")


@dataclass(frozen=True)
class BottleneckConfig:
    """Weights and tier thresholds for bottleneck scoring."""

    duration_weight: float = 0.7
    frequency_weight: float = 0.3
    critical_threshold: float = 0.8
    moderate_threshold: float = 0.5

    def validate(self) -> None:
        _require_number(
            self, "duration_weight", "frequency_weight", "critical_threshold", "moderate_threshold"
        )
        if self.duration_weight < 0 or self.frequency_weight < 0:
            raise ConfigurationError(
                f"Bottleneck weights must be non-negative, got "
                f"duration={self.duration_weight}, frequency={self.frequency_weight}"
            )
        for name in ("critical_threshold", "moderate_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")
        if self.moderate_threshold > self.critical_threshold:
            raise ConfigurationError(
                f"moderate_threshold ({self.moderate_threshold}) cannot exceed "
                f"critical_threshold ({self.critical_threshold})"
            )


@dataclass(frozen=True)
class VariantConfig:
    """When to raise the high-variability warning."""

    max_variants: int = 5
    min_top_variant_share: float = 0.5

    def validate(self) -> None:
        _require_number(self, "max_variants", integer=True)
        _require_number(self, "min_top_variant_share")
        if self.max_variants < 0:
            raise ConfigurationError(f"max_variants must be >= 0, got {self.max_variants}")
        if not 0.0 <= self.min_top_variant_share <= 1.0:
            raise ConfigurationError(
                f"min_top_variant_share must be within [0, 1], got {self.min_top_variant_share}"
            )


@dataclass(frozen=True)
class ComplianceConfig:
    """
    SLA breach classification.

    An active violation whose escalation level is at or above
    ``breach_escalation_level`` counts as breached; any other active
    violation is at risk.
    """

    breach_escalation_level: int = 2

    def validate(self) -> None:
        _require_number(self, "breach_escalation_level", integer=True)
        if self.breach_escalation_level < 0:
            raise ConfigurationError(
                f"breach_escalation_level must be >= 0, got {self.breach_escalation_level}"
            )


@dataclass(frozen=True)
class AnalyticsConfig:
    """
    Top-level configuration passed into every engine entry point.

    Attributes:
        staleness_threshold: How long a case may sit in its last state
            before it is reported as stuck.
        terminal_states: State labels excluded from stuck accounting.
            Empty by default, so every case is eligible.
        strict_dedupe: Drop exact duplicate events instead of only
            reporting them.
        shard_count: Number of case-hash shards a run is split into.
        bottleneck: Scoring weights and severity tiers.
        variants: High-variability warning thresholds.
        compliance: SLA breach threshold.
    """

    staleness_threshold: timedelta = timedelta(hours=24)
    terminal_states: FrozenSet[str] = frozenset()
    strict_dedupe: bool = False
    shard_count: int = 1
    bottleneck: BottleneckConfig = field(default_factory=BottleneckConfig)
    variants: VariantConfig = field(default_factory=VariantConfig)
    compliance: ComplianceConfig = field(default_factory=ComplianceConfig)

    def validate(self) -> "AnalyticsConfig":
        """Raise ConfigurationError on the first invalid setting."""
        if not isinstance(self.staleness_threshold, timedelta):
            raise ConfigurationError(
                f"staleness_threshold must be a timedelta, got {self.staleness_threshold!r}"
            )
        _require_number(self, "shard_count", integer=True)
        if self.staleness_threshold < timedelta(0):
            raise ConfigurationError(
                f"staleness_threshold must not be negative, got {self.staleness_threshold}"
            )
        if self.shard_count < 1:
            raise ConfigurationError(f"shard_count must be >= 1, got {self.shard_count}")
        self.bottleneck.validate()
        self.variants.validate()
        self.compliance.validate()
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "staleness_threshold_hours": self.staleness_threshold.total_seconds() / 3600,
            "terminal_states": sorted(self.terminal_states),
            "strict_dedupe": self.strict_dedupe,
            "shard_count": self.shard_count,
            "bottleneck": asdict(self.bottleneck),
            "variants": asdict(self.variants),
            "compliance": asdict(self.compliance),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyticsConfig":
        """
        Build a config from a plain mapping (e.g. a JSON config file).

        Unknown keys are rejected so typos do not silently fall back to
        defaults.
        """
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration must be a mapping, got {type(data).__name__}"
            )
        known = {
            "staleness_threshold_hours", "terminal_states", "strict_dedupe",
            "shard_count", "bottleneck", "variants", "compliance",
        }
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")

        kwargs: Dict[str, Any] = {}
        try:
            if "staleness_threshold_hours" in data:
                kwargs["staleness_threshold"] = timedelta(
                    hours=float(data["staleness_threshold_hours"])
                )
            if "shard_count" in data:
                kwargs["shard_count"] = int(data["shard_count"])
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

        if "terminal_states" in data:
            states = data["terminal_states"] or ()
            if isinstance(states, str) or not all(isinstance(s, str) for s in states):
                raise ConfigurationError(
                    f"terminal_states must be a list of state labels, got {states!r}"
                )
            kwargs["terminal_states"] = frozenset(states)
        if "strict_dedupe" in data:
            if not isinstance(data["strict_dedupe"], bool):
                raise ConfigurationError(
                    f"strict_dedupe must be true or false, got {data['strict_dedupe']!r}"
                )
            kwargs["strict_dedupe"] = data["strict_dedupe"]

        try:
            if "bottleneck" in data:
                kwargs["bottleneck"] = BottleneckConfig(**data["bottleneck"])
            if "variants" in data:
                kwargs["variants"] = VariantConfig(**data["variants"])
            if "compliance" in data:
                kwargs["compliance"] = ComplianceConfig(**data["compliance"])
        except TypeError as e:
            raise ConfigurationError(f"Invalid nested configuration: {e}") from e

        return cls(**kwargs).validate()

    def with_overrides(
        self,
        staleness_hours: Optional[float] = None,
        terminal_states: Optional[Iterable[str]] = None,
        strict_dedupe: Optional[bool] = None,
        shard_count: Optional[int] = None,
        breach_escalation_level: Optional[int] = None,
    ) -> "AnalyticsConfig":
        """Return a copy with the given top-level settings replaced."""
        changes: Dict[str, Any] = {}
        if staleness_hours is not None:
            changes["staleness_threshold"] = timedelta(hours=staleness_hours)
        if terminal_states is not None:
            changes["terminal_states"] = frozenset(terminal_states)
        if strict_dedupe is not None:
            changes["strict_dedupe"] = strict_dedupe
        if shard_count is not None:
            changes["shard_count"] = shard_count
        if breach_escalation_level is not None:
            changes["compliance"] = ComplianceConfig(breach_escalation_level=breach_escalation_level)
        return replace(self, **changes).validate()


def resolve_config(config: Optional[AnalyticsConfig]) -> AnalyticsConfig:
    """Return a validated config, substituting defaults for None."""
    return (config or AnalyticsConfig()).validate()
