"""
Pytest configuration and fixtures for process analytics tests.
"""

import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from process_analytics.mining.models import ProcessEvent  # noqa: E402
from process_analytics.sla.models import ProcessDefinition, SLAViolation  # noqa: E402


BASE_TIME = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


def at(ms: int) -> datetime:
    """BASE_TIME plus ``ms`` milliseconds."""
    return BASE_TIME + timedelta(milliseconds=ms)


def make_event(case_id, state, ms, action="transition", **kwargs):
    """Event for ``case_id`` entering ``state`` ``ms`` milliseconds after BASE_TIME."""
    return ProcessEvent(
        case_id=case_id,
        occurred_at=at(ms),
        entity_type=kwargs.pop("entity_type", "request"),
        action=action,
        to_state=state,
        **kwargs,
    )


def make_case(case_id, states, step_ms=60_000, start_ms=0):
    """Events walking ``states`` in order, ``step_ms`` apart."""
    return [make_event(case_id, state, start_ms + i * step_ms) for i, state in enumerate(states)]


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def pipeline_events():
    """One case: new -> reviewed after 1 min -> approved after 9 more min."""
    return [
        make_event("A", "new", 0, action="create"),
        make_event("A", "reviewed", 60_000),
        make_event("A", "approved", 600_000),
    ]


@pytest.fixture
def divergent_events():
    """Two cases sharing a prefix, then diverging."""
    return [
        make_event("A", "new", 0),
        make_event("A", "reviewed", 1_000),
        make_event("A", "approved", 2_000),
        make_event("B", "new", 0),
        make_event("B", "reviewed", 3_000),
        make_event("B", "rejected", 9_000),
    ]


@pytest.fixture
def mixed_events():
    """A larger log with several paths, repeats and uneven dwell times."""
    events = []
    paths = [
        ("new", "triaged", "in_progress", "resolved"),
        ("new", "triaged", "in_progress", "resolved"),
        ("new", "triaged", "waiting", "in_progress", "resolved"),
        ("new", "triaged", "in_progress", "escalated", "in_progress", "resolved"),
        ("new", "triaged"),
        ("new",),
    ]
    for i in range(24):
        path = paths[i % len(paths)]
        step = 30_000 + (i * 7_919) % 500_000
        events.extend(make_case(f"case-{i:03d}", path, step_ms=step, start_ms=i * 11_000))
    return events


@pytest.fixture
def sample_violations():
    """Ten violations: four active at level 3, six resolved."""
    violations = []
    for i in range(4):
        violations.append(SLAViolation(
            id=f"v-active-{i}",
            process_definition_id="def-support",
            node_id="triaged",
            violation_type="response_time",
            escalation_level=3,
            created_at=at(i * 1_000),
        ))
    for i in range(6):
        violations.append(SLAViolation(
            id=f"v-resolved-{i}",
            process_definition_id="def-purchase",
            node_id="reviewed",
            violation_type="resolution_time",
            escalation_level=1,
            created_at=at(0),
            resolved_at=at((i + 1) * 60_000),
        ))
    return violations


@pytest.fixture
def sample_definitions():
    return [
        ProcessDefinition(id="def-support", name="Support Ticket", entity_type="ticket"),
        ProcessDefinition(id="def-purchase", name="Purchase Approval", entity_type="purchase_request"),
    ]


@pytest.fixture
def raw_event_records():
    """Raw records in the camelCase shape some event stores emit."""
    return [
        {"caseId": "X-1", "eventType": "create", "toState": "open", "occurredAt": "2024-01-01T09:00:00Z"},
        {"caseId": "X-1", "eventType": "transition", "fromState": "open", "toState": "closed",
         "occurredAt": "2024-01-01T10:00:00.000Z"},
        {"caseId": "X-2", "eventType": "create", "toState": "open", "occurredAt": 1704099600000},
        {"caseId": None, "eventType": "create", "toState": "open", "occurredAt": "2024-01-01T09:00:00Z"},
        {"caseId": "X-3", "eventType": "create", "toState": "open", "occurredAt": "not a date"},
    ]
