"""
Configuration settings for the synthetic event-log generator.

This module contains the configurable parameters for generating synthetic
case lifecycles, SLA violations and a process-definition catalogue with
realistic branching, dwell times and escalation patterns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass
class WorkflowTemplate:
    """A process and the weighted state paths its cases may follow."""

    definition_id: str
    name: str
    entity_type: str

    # State path -> relative weight
    paths: Dict[Tuple[str, ...], float] = field(default_factory=dict)

    # SLA target per state, in hours
    sla_hours: Dict[str, float] = field(default_factory=dict)


def _default_workflows() -> List[WorkflowTemplate]:
    return [
        WorkflowTemplate(
            definition_id="def-purchase-approval",
            name="Purchase Approval",
            entity_type="purchase_request",
            paths={
                ("submitted", "reviewed", "approved", "closed"): 0.55,
                ("submitted", "reviewed", "rework", "reviewed", "approved", "closed"): 0.20,
                ("submitted", "reviewed", "rejected", "closed"): 0.15,
                ("submitted", "escalated", "reviewed", "approved", "closed"): 0.10,
            },
            sla_hours={"submitted": 8, "reviewed": 24, "rework": 48, "escalated": 12},
        ),
        WorkflowTemplate(
            definition_id="def-support-ticket",
            name="Support Ticket",
            entity_type="ticket",
            paths={
                ("new", "triaged", "in_progress", "resolved"): 0.60,
                ("new", "triaged", "waiting_customer", "in_progress", "resolved"): 0.25,
                ("new", "triaged", "in_progress", "escalated", "in_progress", "resolved"): 0.15,
            },
            sla_hours={"new": 1, "triaged": 4, "in_progress": 24, "waiting_customer": 72},
        ),
    ]


@dataclass
class GeneratorConfig:
    """Main configuration for the synthetic data generator."""

    # Random seed for reproducibility
    seed: int = 42

    # Output counts
    num_cases: int = 500
    num_actors: int = 25

    # Date range for case start times
    start_date: str = "2024-01-01"
    end_date: str = "2024-12-31"

    workflows: List[WorkflowTemplate] = field(default_factory=_default_workflows)

    # Dwell time per state (in hours), lognormal around the mean
    timing: Dict[str, Any] = field(default_factory=lambda: {
        "default": {"mean": 6.0, "sigma": 0.8},
        "reviewed": {"mean": 18.0, "sigma": 0.9},
        "rework": {"mean": 30.0, "sigma": 0.7},
        "waiting_customer": {"mean": 48.0, "sigma": 1.0},
        "escalated": {"mean": 10.0, "sigma": 0.6},
        # Anomaly rates
        "delay_rate": 0.08,       # 8% of steps significantly delayed
        "delay_factor": (3.0, 8.0),
    })

    # Share of cases that stop partway through their path
    abandon_rate: float = 0.10

    # Actor types and their weights
    actor_types: Dict[str, float] = field(default_factory=lambda: {
        "user": 0.70,
        "system": 0.25,
        "integration": 0.05,
    })

    # Data quality noise: records with a missing case id or unparsable timestamp
    noise_rate: float = 0.01

    # SLA violations
    violation_types: Dict[str, float] = field(default_factory=lambda: {
        "response_time": 0.50,
        "resolution_time": 0.35,
        "escalation_timeout": 0.15,
    })
    escalation_levels: Dict[int, float] = field(default_factory=lambda: {
        0: 0.35,
        1: 0.30,
        2: 0.20,
        3: 0.15,
    })
    resolution_rate: float = 0.60


# Preset configurations for different scenarios
PRESETS = {
    "small": {"num_cases": 100, "num_actors": 10},
    "medium": {"num_cases": 500, "num_actors": 25},
    "large": {"num_cases": 5000, "num_actors": 60},
}


def apply_preset(config: GeneratorConfig, preset_name: str) -> GeneratorConfig:
    """Apply a preset configuration."""
    if preset_name not in PRESETS:
        raise ValueError(f"Unknown preset: {preset_name}. Available: {list(PRESETS.keys())}")

    preset = PRESETS[preset_name]
    for key, value in preset.items():
        setattr(config, key, value)

    return config
