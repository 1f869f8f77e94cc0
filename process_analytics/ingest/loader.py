"""
JSON loader for event logs, SLA-violation feeds and definition catalogues.

Used by the CLI harness. The engine itself never reads files; callers that
already hold records in memory pass them straight to the engine.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..mining.models import ProcessEvent
from ..sla.models import ProcessDefinition, SLAViolation
from .adapters import coerce_definitions, coerce_events, coerce_violations

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Records loaded from a data directory."""
    events: List[ProcessEvent] = field(default_factory=list)
    violations: List[SLAViolation] = field(default_factory=list)
    definitions: List[ProcessDefinition] = field(default_factory=list)
    files: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


class DataLoader:
    """Loads engine inputs from JSON files in a directory."""

    # Expected file names per data type, tried in order
    FILE_NAMES = {
        'events': ['events.json', 'process_events.json', 'event_log.json'],
        'violations': ['violations.json', 'sla_violations.json'],
        'definitions': ['definitions.json', 'process_definitions.json'],
    }

    # Keys under which a JSON object may wrap the record list
    WRAPPER_KEYS = ['events', 'process_events', 'violations', 'sla_violations',
                    'definitions', 'process_definitions', 'results', 'data', 'items']

    def __init__(self):
        self.loaded_files: Dict[str, str] = {}
        self.load_warnings: List[str] = []

    def load_all(self, data_dir: Path) -> LoadResult:
        """
        Load every available input from ``data_dir``.

        Missing files yield empty lists; unreadable files are reported as
        warnings.
        """
        data_dir = Path(data_dir)
        if not data_dir.exists():
            logger.error(f"Data directory not found: {data_dir}")
            return LoadResult(warnings=[f"Data directory not found: {data_dir}"])

        events = coerce_events(self._load_data_type(data_dir, 'events'))
        violations = coerce_violations(self._load_data_type(data_dir, 'violations'))
        definitions = coerce_definitions(self._load_data_type(data_dir, 'definitions'))

        return LoadResult(
            events=events,
            violations=violations,
            definitions=definitions,
            files=dict(self.loaded_files),
            warnings=list(self.load_warnings),
        )

    def load_file(self, file_path: Path) -> List[Dict[str, Any]]:
        """Load a list of records from one JSON file."""
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return self._unwrap(data)

    def _load_data_type(self, data_dir: Path, data_type: str) -> List[Dict[str, Any]]:
        for filename in self.FILE_NAMES.get(data_type, []):
            file_path = data_dir / filename
            if not file_path.exists():
                continue
            try:
                records = self.load_file(file_path)
            except json.JSONDecodeError as e:
                self.load_warnings.append(f"Failed to parse {filename}: {e}")
                logger.warning(f"Failed to parse {filename}: {e}")
                continue
            except OSError as e:
                self.load_warnings.append(f"Error loading {filename}: {e}")
                logger.warning(f"Error loading {filename}: {e}")
                continue

            self.loaded_files[data_type] = str(file_path)
            logger.info(f"Loaded {len(records)} {data_type} records from {filename}")
            return records

        logger.debug(f"No {data_type} file found in {data_dir}")
        return []

    def _unwrap(self, data: Any) -> List[Dict[str, Any]]:
        """Handle both a bare list and an object wrapping the list."""
        if isinstance(data, dict):
            for key in self.WRAPPER_KEYS:
                if key in data:
                    data = data[key]
                    break
            else:
                # Definitions are often keyed by id
                if data and all(isinstance(v, dict) for v in data.values()):
                    return [{'id': k, **v} for k, v in data.items()]
                return [data] if data else []

        if isinstance(data, dict):
            return [{'id': k, **v} for k, v in data.items() if isinstance(v, dict)]
        if not isinstance(data, list):
            return [data] if data else []
        return [r for r in data if isinstance(r, dict)]


def load_inputs(input_dir: str) -> LoadResult:
    """Convenience function to load all inputs from a directory."""
    return DataLoader().load_all(Path(input_dir))
