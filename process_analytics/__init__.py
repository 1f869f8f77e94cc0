"""
Process Analytics Engine

Ingests per-case state-transition events and derives a process map,
bottleneck indicators, execution variants, stuck cases and SLA compliance
aggregates. The engine is domain-agnostic over arbitrary state labels and
recomputes everything from a full snapshot on each run.
"""

__version__ = "0.1.0"
__author__ = "Process Analytics Team"

from .config import (  # noqa: E402
    AnalyticsConfig,
    BottleneckConfig,
    ComplianceConfig,
    VariantConfig,
)
from .exceptions import ConfigurationError, ProcessAnalyticsError  # noqa: E402
from .engine import (  # noqa: E402
    AnalyticsSnapshot,
    ProcessAnalyticsEngine,
    build_process_map,
    detect_stuck_cases,
    evaluate_compliance,
    mine_variants,
)

# Default configuration, as a plain dict in config-file shape
DEFAULT_CONFIG = AnalyticsConfig().to_dict()

__all__ = [
    "AnalyticsConfig",
    "AnalyticsSnapshot",
    "BottleneckConfig",
    "ComplianceConfig",
    "ConfigurationError",
    "DEFAULT_CONFIG",
    "ProcessAnalyticsEngine",
    "ProcessAnalyticsError",
    "VariantConfig",
    "build_process_map",
    "detect_stuck_cases",
    "evaluate_compliance",
    "mine_variants",
]
