"""
SLA Compliance Module.

Turns an externally detected SLA-violation feed into compliance rates and
active/resolved partitions. The process-definition catalogue is only used
for labeling and filtering.
"""

from .models import (
    ComplianceReport,
    ComplianceStats,
    ComplianceStatus,
    ProcessDefinition,
    SLAViolation,
)

from .compliance import (
    ComplianceEvaluator,
    index_definitions,
)

__all__ = [
    "ComplianceEvaluator",
    "ComplianceReport",
    "ComplianceStats",
    "ComplianceStatus",
    "ProcessDefinition",
    "SLAViolation",
    "index_definitions",
]
