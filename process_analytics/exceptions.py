"""
Exception types raised by the process analytics engine.

Per-record problems (bad timestamps, missing case ids, duplicates) are never
raised; they are logged and counted in the reconstruction report. Only
configuration problems stop a run.
"""


class ProcessAnalyticsError(Exception):
    """Base class for engine errors."""


class ConfigurationError(ProcessAnalyticsError, ValueError):
    """Raised when a run is configured with invalid thresholds or weights."""
