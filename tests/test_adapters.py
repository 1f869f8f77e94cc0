"""
Tests for record adapters, timestamp parsing and the JSON loader.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from process_analytics.ingest import (
    DataLoader,
    coerce_definitions,
    coerce_events,
    definition_from_record,
    event_from_record,
    load_inputs,
    violation_from_record,
)
from process_analytics.mining import ProcessEvent
from process_analytics.timestamps import duration_ms, format_duration_ms, parse_timestamp

from conftest import at


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    @pytest.mark.parametrize("value", [
        "2024-01-01T09:00:00Z",
        "2024-01-01T09:00:00.000Z",
        "2024-01-01T10:00:00+01:00",
        "2024-01-01 09:00:00",
        1704099600000,
        "1704099600000",
        " 1704099600000 ",
        datetime(2024, 1, 1, 9, 0, 0),
    ])
    def test_accepted_formats(self, value):
        assert parse_timestamp(value) == at(0)

    @pytest.mark.parametrize("value", [None, "", "soon", True, [], "2024-13-45", "9" * 20, "17040996OO000"])
    def test_rejected_values(self, value):
        assert parse_timestamp(value) is None

    def test_result_is_utc(self):
        parsed = parse_timestamp("2024-06-01T12:00:00-05:00")

        assert parsed.tzinfo == timezone.utc
        assert parsed.hour == 17


class TestDurations:
    """Tests for duration helpers."""

    def test_duration_ms(self):
        assert duration_ms(at(0), at(1_500)) == 1_500
        assert duration_ms(at(0), at(0) + timedelta(microseconds=999)) == 0

    @pytest.mark.parametrize("ms,expected", [
        (30_000, "30s"),
        (45 * 60_000, "45m"),
        (3.5 * 3_600_000, "3.5h"),
        (2 * 86_400_000, "2.0d"),
        (14 * 86_400_000, "2.0w"),
    ])
    def test_format_duration_ms(self, ms, expected):
        assert format_duration_ms(ms) == expected


class TestEventAdapter:
    """Tests for event_from_record."""

    def test_snake_case(self):
        event = event_from_record({
            "case_id": "A", "action": "create", "to_state": "open",
            "occurred_at": "2024-01-01T09:00:00Z", "metadata": {"k": "v"},
        })

        assert event.case_id == "A"
        assert event.state == "open"
        assert event.occurred_at == at(0)
        assert event.metadata == {"k": "v"}

    def test_epoch_string(self):
        event = event_from_record({
            "caseId": "A", "toState": "open", "occurredAt": "1704099660000",
        })

        assert event.occurred_at == at(60_000)

    def test_camel_case(self, raw_event_records):
        event = event_from_record(raw_event_records[1])

        assert event.case_id == "X-1"
        assert event.from_state == "open"
        assert event.to_state == "closed"
        assert event.action == "transition"

    def test_legacy_aliases(self):
        event = event_from_record({"entityId": 42, "activity": "approve", "timestamp": "2024-01-01 09:00:00"})

        assert event.case_id == "42"
        assert event.state == "approve"

    def test_bad_timestamp_kept_for_reporting(self):
        event = event_from_record({"case_id": "A", "to_state": "x", "occurred_at": "garbage"})

        assert event.occurred_at is None
        assert event.raw_timestamp == "garbage"

    def test_blank_strings_become_empty(self):
        event = event_from_record({"case_id": "  ", "to_state": " ", "occurred_at": 0})

        assert event.case_id == ""
        assert event.to_state is None

    def test_coerce_passes_canonical_events_through(self):
        event = ProcessEvent(case_id="A", occurred_at=at(0), to_state="x")

        assert coerce_events([event])[0] is event


class TestViolationAdapter:
    """Tests for violation_from_record."""

    def test_fields(self):
        violation = violation_from_record({
            "violationId": "v1", "definitionId": "d1", "nodeId": "review",
            "type": "response", "escalationLevel": "2",
            "createdAt": "2024-01-01T09:00:00Z", "resolvedAt": None, "exceededBy": "2h",
        })

        assert violation.id == "v1"
        assert violation.process_definition_id == "d1"
        assert violation.escalation_level == 2
        assert violation.is_active
        assert violation.exceeded_by == "2h"

    @pytest.mark.parametrize("level", ["urgent", -3])
    def test_bad_escalation_level_becomes_zero(self, level):
        violation = violation_from_record({"id": "v", "process_definition_id": "d", "escalation_level": level})

        assert violation.escalation_level == 0


class TestDefinitionAdapter:
    """Tests for definition adapters."""

    def test_fields(self):
        definition = definition_from_record({"definitionId": "d", "title": "Onboarding", "slaConfig": {"h": 4}})

        assert definition.id == "d"
        assert definition.label == "Onboarding"
        assert definition.sla_config == {"h": 4}

    def test_mapping_catalogue(self):
        definitions = coerce_definitions({"d1": {"id": "d1", "name": "One"}})

        assert [d.id for d in definitions] == ["d1"]

    def test_none(self):
        assert coerce_definitions(None) == []


class TestDataLoader:
    """Tests for DataLoader."""

    def test_load_all(self, tmp_path):
        (tmp_path / "events.json").write_text(json.dumps([
            {"case_id": "A", "to_state": "open", "occurred_at": "2024-01-01T09:00:00Z"},
        ]))
        (tmp_path / "sla_violations.json").write_text(json.dumps({
            "violations": [{"id": "v", "process_definition_id": "d", "escalation_level": 1}],
        }))
        (tmp_path / "definitions.json").write_text(json.dumps({
            "d": {"name": "Def", "entity_type": "ticket"},
        }))

        loaded = DataLoader().load_all(tmp_path)

        assert len(loaded.events) == 1
        assert len(loaded.violations) == 1
        assert loaded.definitions[0].id == "d"
        assert set(loaded.files) == {"events", "violations", "definitions"}
        assert loaded.warnings == []

    def test_missing_directory(self, tmp_path):
        loaded = load_inputs(str(tmp_path / "nope"))

        assert loaded.events == []
        assert loaded.warnings

    def test_invalid_json_reported(self, tmp_path):
        (tmp_path / "events.json").write_text("{not json")

        loaded = DataLoader().load_all(tmp_path)

        assert loaded.events == []
        assert any("events.json" in w for w in loaded.warnings)

    def test_falls_back_to_alternate_file_name(self, tmp_path):
        (tmp_path / "event_log.json").write_text(json.dumps({"data": [
            {"caseId": "A", "toState": "open", "occurredAt": "2024-01-01T09:00:00Z"},
        ]}))

        loaded = DataLoader().load_all(tmp_path)

        assert loaded.events[0].case_id == "A"
