"""
Synthetic Event-Log Generator

Generates realistic synthetic inputs for the analytics engine:
- Process events: one lifecycle per case, following weighted state paths
  with lognormal dwell times, occasional delays and abandoned cases
- SLA violations: raised when a case dwells in a state past its SLA target,
  resolved when the case moves on
- Process definitions: the catalogue the violations refer to

Records are emitted as plain JSON-ready dictionaries in the same shape the
loader reads, so a generated directory can be fed straight to ``analyze``.
"""

from __future__ import annotations

import json
import logging
import math
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from faker import Faker

from ..timestamps import format_duration_ms
from .config import GeneratorConfig, WorkflowTemplate

logger = logging.getLogger(__name__)

MS_PER_HOUR = 3_600_000

OUTPUT_FILES = {
    "events": "events.json",
    "violations": "violations.json",
    "definitions": "definitions.json",
}


def _iso(moment: datetime) -> str:
    """UTC ISO-8601 string with millisecond precision and a Z suffix."""
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class EventLogGenerator:
    """
    Synthetic data generator for process event logs.

    Generates complete case lifecycles across the configured workflows,
    the SLA violations those lifecycles would trigger and the definition
    catalogue, all reproducible from a single seed.
    """

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        output_dir: str = "sample_output",
    ):
        self.config = config or GeneratorConfig()
        self.output_dir = Path(output_dir)
        self.start_date = datetime.strptime(self.config.start_date, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        self.end_date = datetime.strptime(self.config.end_date, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        if self.end_date <= self.start_date:
            raise ValueError(f"end_date {self.config.end_date} must be after start_date {self.config.start_date}")
        self.date_range_days = (self.end_date - self.start_date).days

        # Initialize random generators with seed for reproducibility
        self.rng = np.random.default_rng(self.config.seed)
        self.faker = Faker()
        self.faker.seed_instance(self.config.seed)

        self.case_counter = 0
        self.violation_counter = 0

        self.actors: List[str] = []
        self.events: List[Dict[str, Any]] = []
        self.violations: List[Dict[str, Any]] = []
        self.definitions: List[Dict[str, Any]] = []

        # Statistics tracking
        self.stats: Counter = Counter()

    def _next_case_id(self, workflow: WorkflowTemplate) -> str:
        self.case_counter += 1
        return f"{workflow.entity_type}-{self.case_counter:06d}"

    def _next_violation_id(self) -> str:
        self.violation_counter += 1
        return f"viol-{self.violation_counter:06d}"

    def _random_start(self) -> datetime:
        """Random case start within the configured range, during working hours."""
        days = int(self.rng.integers(0, max(self.date_range_days, 1)))
        seconds = int(self.rng.integers(6 * 3600, 20 * 3600))
        millis = int(self.rng.integers(0, 1000))
        return self.start_date + timedelta(days=days, seconds=seconds, milliseconds=millis)

    def _weighted_index(self, weights: List[float]) -> int:
        """Index drawn from relative weights."""
        probabilities = np.array(weights, dtype=float)
        return int(self.rng.choice(len(weights), p=probabilities / probabilities.sum()))

    def _weighted_choice(self, options: Dict[Any, float]) -> Any:
        """Select a key from weighted options."""
        keys = list(options.keys())
        return keys[self._weighted_index(list(options.values()))]

    def _dwell_ms(self, state: str) -> int:
        """Time spent in ``state`` before the next transition."""
        timing = self.config.timing
        params = timing.get(state, timing["default"])
        sigma = params["sigma"]
        hours = self.rng.lognormal(mean=math.log(params["mean"]) - sigma ** 2 / 2, sigma=sigma)
        if self.rng.random() < timing["delay_rate"]:
            low, high = timing["delay_factor"]
            hours *= self.rng.uniform(low, high)
            self.stats["delayed_steps"] += 1
        return max(1, int(hours * MS_PER_HOUR))

    # =========================================================================
    # CATALOGUE
    # =========================================================================

    def generate_actors(self) -> None:
        """Generate named actors for event metadata."""
        self.actors = [self.faker.user_name() for _ in range(self.config.num_actors)]

    def generate_definitions(self) -> None:
        """Generate the process-definition catalogue."""
        self.definitions = [
            {
                "id": workflow.definition_id,
                "name": workflow.name,
                "entity_type": workflow.entity_type,
                "sla_config": {
                    "targets_hours": dict(workflow.sla_hours),
                    "owner": self.faker.company(),
                },
            }
            for workflow in self.config.workflows
        ]

    # =========================================================================
    # CASES
    # =========================================================================

    def _choose_path(self, workflow: WorkflowTemplate) -> Tuple[Tuple[str, ...], bool]:
        """Pick a path and truncate it when the case is abandoned."""
        paths = list(workflow.paths.keys())
        path = paths[self._weighted_index(list(workflow.paths.values()))]
        if len(path) > 1 and self.rng.random() < self.config.abandon_rate:
            cut = int(self.rng.integers(1, len(path)))
            self.stats["abandoned_cases"] += 1
            return path[:cut], False
        return path, True

    def _event_record(
        self,
        case_id: str,
        workflow: WorkflowTemplate,
        from_state: Optional[str],
        to_state: str,
        occurred_at: datetime,
    ) -> Dict[str, Any]:
        actor_type = self._weighted_choice(self.config.actor_types)
        metadata: Dict[str, Any] = {"definition_id": workflow.definition_id}
        if actor_type == "user" and self.actors:
            metadata["actor"] = self.actors[int(self.rng.integers(0, len(self.actors)))]
        return {
            "case_id": case_id,
            "entity_type": workflow.entity_type,
            "action": "create" if from_state is None else "transition",
            "from_state": from_state,
            "to_state": to_state,
            "occurred_at": _iso(occurred_at),
            "actor_type": actor_type,
            "metadata": metadata,
        }

    def _maybe_violation(
        self,
        workflow: WorkflowTemplate,
        state: str,
        entered_at: datetime,
        dwell_ms: Optional[int],
    ) -> None:
        """Raise a violation when the dwell in ``state`` exceeds its SLA target."""
        target_hours = workflow.sla_hours.get(state)
        if target_hours is None:
            return
        target_ms = int(target_hours * MS_PER_HOUR)
        if dwell_ms is None:
            # Case still sits in this state at the end of the generated window
            dwell_ms = int((self.end_date - entered_at).total_seconds() * 1000)
        if dwell_ms <= target_ms:
            return

        created_at = entered_at + timedelta(milliseconds=target_ms)
        resolved_at = None
        exited_at = entered_at + timedelta(milliseconds=dwell_ms)
        if exited_at < self.end_date and self.rng.random() < self.config.resolution_rate:
            resolved_at = _iso(exited_at)
            self.stats["resolved_violations"] += 1

        self.violations.append({
            "id": self._next_violation_id(),
            "process_definition_id": workflow.definition_id,
            "node_id": state,
            "violation_type": self._weighted_choice(self.config.violation_types),
            "escalation_level": int(self._weighted_choice(self.config.escalation_levels)),
            "created_at": _iso(created_at),
            "resolved_at": resolved_at,
            "exceeded_by": format_duration_ms(dwell_ms - target_ms),
        })

    def _inject_noise(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Corrupt a record the way real feeds occasionally do."""
        record = dict(record)
        if self.rng.random() < 0.5:
            record["case_id"] = None
        else:
            record["occurred_at"] = self.faker.word()
        self.stats["noisy_records"] += 1
        return record

    def generate_case(self, workflow: WorkflowTemplate) -> None:
        """Generate one case lifecycle and the violations it triggers."""
        case_id = self._next_case_id(workflow)
        path, completed = self._choose_path(workflow)
        moment = self._random_start()
        previous: Optional[str] = None

        for position, state in enumerate(path):
            if moment >= self.end_date:
                break
            record = self._event_record(case_id, workflow, previous, state, moment)
            if self.rng.random() < self.config.noise_rate:
                record = self._inject_noise(record)
            self.events.append(record)

            last = position == len(path) - 1
            if last and completed:
                break
            dwell = None if last else self._dwell_ms(state)
            self._maybe_violation(workflow, state, moment, dwell)
            if dwell is not None:
                moment += timedelta(milliseconds=dwell)
            previous = state

        self.stats["cases"] += 1

    def generate_cases(self) -> None:
        workflows = self.config.workflows
        for _ in range(self.config.num_cases):
            workflow = workflows[int(self.rng.integers(0, len(workflows)))]
            self.generate_case(workflow)

    def generate_all(self) -> Dict[str, List[Dict[str, Any]]]:
        """Generate the catalogue, the cases and their violations."""
        logger.info(f"Generating {self.config.num_cases} cases with seed {self.config.seed}")
        self.generate_actors()
        self.generate_definitions()
        self.generate_cases()
        logger.info(
            f"Generated {len(self.events)} events, {len(self.violations)} violations "
            f"({self.stats['abandoned_cases']} abandoned cases, {self.stats['noisy_records']} noisy records)"
        )
        return {
            "events": self.events,
            "violations": self.violations,
            "definitions": self.definitions,
        }

    def save_output(self) -> Dict[str, Path]:
        """Save all generated data to JSON files."""
        self.output_dir.mkdir(parents=True, exist_ok=True)

        data = {
            "events": self.events,
            "violations": self.violations,
            "definitions": self.definitions,
        }

        written = {}
        for data_type, filename in OUTPUT_FILES.items():
            filepath = self.output_dir / filename
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(data[data_type], f, indent=2)
            logger.info(f"Wrote {filepath} ({len(data[data_type])} records)")
            written[data_type] = filepath

        return written
