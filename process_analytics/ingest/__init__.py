"""
Ingestion: adapters from external record shapes and a JSON loader.
"""

from .adapters import (
    coerce_definitions,
    coerce_events,
    coerce_violations,
    definition_from_record,
    event_from_record,
    violation_from_record,
)

from .loader import (
    DataLoader,
    LoadResult,
    load_inputs,
)

__all__ = [
    "DataLoader",
    "LoadResult",
    "coerce_definitions",
    "coerce_events",
    "coerce_violations",
    "definition_from_record",
    "event_from_record",
    "load_inputs",
    "violation_from_record",
]
