"""
Timestamp parsing and duration helpers.

Every datetime that enters the engine is normalized to timezone-aware UTC so
events from mixed sources can be compared and subtracted safely.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

_ONE_MS = timedelta(milliseconds=1)

# Tried in order after ISO-8601 parsing fails
_FORMATS = [
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M:%S.%f',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M:%S.%f',
    '%Y-%m-%d',
    '%d.%m.%Y %H:%M:%S',
    '%d/%m/%Y %H:%M:%S',
    '%Y%m%d%H%M%S',
    '%Y%m%d',
]

# YYYYMMDD and YYYYMMDDHHMMSS
_COMPACT_DATE_LENGTHS = (8, 14)


def _from_epoch_ms(value: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.debug(f"Epoch value out of range: {value}")
        return None


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp into an aware UTC datetime.

    Accepts datetime objects, ISO-8601 strings (with ``Z`` or an offset),
    a handful of common date formats, and epoch milliseconds given as a
    number or a digit string.

    Returns:
        The parsed datetime, or None if the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return to_utc(value)

    if isinstance(value, (int, float)):
        return _from_epoch_ms(value)

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    # Digit strings are epoch milliseconds, except the compact date layouts
    if text.isascii() and text.isdigit() and len(text) not in _COMPACT_DATE_LENGTHS:
        return _from_epoch_ms(int(text))

    # fromisoformat only accepts a trailing Z from Python 3.11 onwards
    iso_text = text[:-1] + '+00:00' if text.endswith(('Z', 'z')) else text
    try:
        return to_utc(datetime.fromisoformat(iso_text))
    except ValueError:
        pass

    for fmt in _FORMATS:
        try:
            return to_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue

    logger.debug(f"Could not parse timestamp: {value!r}")
    return None


def duration_ms(start: datetime, end: datetime) -> int:
    """Whole milliseconds from ``start`` to ``end``."""
    return (end - start) // _ONE_MS


def format_duration_ms(ms: float) -> str:
    """Format a millisecond duration for display (e.g. ``45m``, ``3.5h``, ``2.0d``)."""
    hours = ms / 3_600_000
    if hours < 1:
        minutes = ms / 60_000
        if minutes < 1:
            return f"{ms / 1000:.0f}s"
        return f"{minutes:.0f}m"
    elif hours < 24:
        return f"{hours:.1f}h"
    else:
        days = hours / 24
        if days < 7:
            return f"{days:.1f}d"
        else:
            return f"{days / 7:.1f}w"
