"""
Adapters from external record shapes to the canonical engine types.

Event stores and APIs deliver the same facts under different names
(``case_id`` vs ``caseId``, ``node_id`` vs ``nodeId``, legacy aliases).
All of that translation happens here so the aggregation code only ever sees
``ProcessEvent``, ``SLAViolation`` and ``ProcessDefinition``.

Adapters never raise on a bad timestamp; the event keeps the raw value
and the case reconstructor reports and skips it.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..mining.models import ProcessEvent
from ..sla.models import ProcessDefinition, SLAViolation

logger = logging.getLogger(__name__)


# Field name mappings: canonical name -> accepted source names, in priority order
EVENT_FIELDS = {
    'case_id': ['case_id', 'caseId', 'entity_id', 'entityId', 'case'],
    'entity_type': ['entity_type', 'entityType'],
    'action': ['action', 'event_type', 'eventType', 'activity'],
    'from_state': ['from_state', 'fromState', 'previous_state', 'previousState'],
    'to_state': ['to_state', 'toState', 'new_state', 'newState', 'state'],
    'occurred_at': ['occurred_at', 'occurredAt', 'timestamp', 'created_at', 'createdAt', 'time'],
    'actor_type': ['actor_type', 'actorType'],
    'metadata': ['metadata', 'meta', 'attributes'],
}

VIOLATION_FIELDS = {
    'id': ['id', 'violation_id', 'violationId'],
    'process_definition_id': [
        'process_definition_id', 'processDefinitionId', 'definition_id', 'definitionId',
    ],
    'node_id': ['node_id', 'nodeId'],
    'violation_type': ['violation_type', 'violationType', 'type'],
    'escalation_level': ['escalation_level', 'escalationLevel'],
    'created_at': ['created_at', 'createdAt', 'detected_at', 'detectedAt'],
    'resolved_at': ['resolved_at', 'resolvedAt'],
    'exceeded_by': ['exceeded_by', 'exceededBy'],
}

DEFINITION_FIELDS = {
    'id': ['id', 'definition_id', 'definitionId'],
    'name': ['name', 'title'],
    'entity_type': ['entity_type', 'entityType'],
    'sla_config': ['sla_config', 'slaConfig', 'sla'],
}


def _pick(record: Mapping[str, Any], names: List[str]) -> Any:
    """First non-None value among the candidate field names."""
    for name in names:
        value = record.get(name)
        if value is not None:
            return value
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_record(record: Mapping[str, Any], fields: Mapping[str, List[str]]) -> Dict[str, Any]:
    """Map a raw record onto canonical field names."""
    return {name: _pick(record, candidates) for name, candidates in fields.items()}


def event_from_record(record: Mapping[str, Any]) -> ProcessEvent:
    """Build a ProcessEvent from a raw mapping."""
    fields = normalize_record(record, EVENT_FIELDS)
    metadata = fields['metadata']
    return ProcessEvent(
        case_id=_text(fields['case_id']) or "",
        occurred_at=fields['occurred_at'],
        entity_type=_text(fields['entity_type']) or "",
        action=_text(fields['action']) or "",
        from_state=_text(fields['from_state']),
        to_state=_text(fields['to_state']),
        actor_type=_text(fields['actor_type']),
        metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
    )


def violation_from_record(record: Mapping[str, Any]) -> SLAViolation:
    """Build an SLAViolation from a raw mapping."""
    fields = normalize_record(record, VIOLATION_FIELDS)
    level = fields['escalation_level']
    try:
        level = int(level) if level is not None else 0
    except (TypeError, ValueError):
        logger.warning(f"Violation {fields['id']}: non-numeric escalation level {level!r}, using 0")
        level = 0
    if level < 0:
        logger.warning(f"Violation {fields['id']}: negative escalation level {level}, using 0")
        level = 0

    return SLAViolation(
        id=_text(fields['id']) or "",
        process_definition_id=_text(fields['process_definition_id']) or "",
        node_id=_text(fields['node_id']) or "",
        violation_type=_text(fields['violation_type']) or "",
        escalation_level=level,
        created_at=fields['created_at'],
        resolved_at=fields['resolved_at'],
        exceeded_by=_text(fields['exceeded_by']),
    )


def definition_from_record(record: Mapping[str, Any]) -> ProcessDefinition:
    """Build a ProcessDefinition from a raw catalogue entry."""
    fields = normalize_record(record, DEFINITION_FIELDS)
    sla_config = fields['sla_config']
    return ProcessDefinition(
        id=_text(fields['id']) or "",
        name=_text(fields['name']) or "",
        entity_type=_text(fields['entity_type']) or "",
        sla_config=dict(sla_config) if isinstance(sla_config, Mapping) else {},
    )


def coerce_events(records: Iterable[Union[ProcessEvent, Mapping[str, Any]]]) -> List[ProcessEvent]:
    """Accept canonical events or raw mappings and return canonical events."""
    return [r if isinstance(r, ProcessEvent) else event_from_record(r) for r in records]


def coerce_violations(records: Iterable[Union[SLAViolation, Mapping[str, Any]]]) -> List[SLAViolation]:
    return [r if isinstance(r, SLAViolation) else violation_from_record(r) for r in records]


def coerce_definitions(
    records: Optional[Iterable[Union[ProcessDefinition, Mapping[str, Any]]]],
) -> List[ProcessDefinition]:
    if records is None:
        return []
    if isinstance(records, Mapping):
        records = records.values()
    return [r if isinstance(r, ProcessDefinition) else definition_from_record(r) for r in records]
