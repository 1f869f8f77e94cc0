"""
Seeded synthetic event logs, SLA violations and definitions.
"""

from .config import PRESETS, GeneratorConfig, WorkflowTemplate, apply_preset
from .generator import OUTPUT_FILES, EventLogGenerator

__all__ = [
    "EventLogGenerator",
    "GeneratorConfig",
    "OUTPUT_FILES",
    "PRESETS",
    "WorkflowTemplate",
    "apply_preset",
]
