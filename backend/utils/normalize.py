"""
Input Normalization Utilities
=============================

Single source of truth for normalization of scraped and operator inputs.
All parsing of table cell text and date/flag strings happens here.

Usage:
    from utils.normalize import parse_leading_float, to_snapshot_date, ValidationError

    rate = parse_leading_float("4.50%")      # 4.5
    date = to_snapshot_date("2024-03-01")    # '2024-03-01'
"""

import math
import re
from datetime import date, datetime, timezone
from typing import Optional, Union

# Leading float as accepted by a lenient number parser: "4.50%" -> 4.5
_LEADING_FLOAT_RE = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')

_SNAPSHOT_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


class ValidationError(ValueError):
    """Raised when input cannot be normalized to expected type."""

    def __init__(self, message: str, field: str = None, received_value=None):
        super().__init__(message)
        self.field = field
        self.received_value = received_value


def parse_leading_float(value: Optional[str]) -> Optional[float]:
    """
    Parse the leading numeric part of a cell string.

    Mirrors how the source tables are read by browsers: "4.50%" is 4.5,
    "5.25 (special)" is 5.25, while "n/a", "" and "-" have no value.

    Returns:
        Finite float, or None if nothing numeric leads the string
    """
    if value is None:
        return None
    match = _LEADING_FLOAT_RE.match(str(value).strip())
    if not match:
        return None
    try:
        result = float(match.group(0))
    except ValueError:
        return None
    if not math.isfinite(result):
        return None
    return result


def collapse_whitespace(value: Optional[str]) -> str:
    """Strip and collapse internal whitespace runs to single spaces."""
    if not value:
        return ''
    return ' '.join(value.split())


def to_title_format(value: Optional[str]) -> Optional[str]:
    """
    Upper-case the first character, keep the rest as-is.

    >>> to_title_format("airpoints card")
    'Airpoints card'
    """
    if not value:
        return value
    return value[0].upper() + value[1:]


def to_bool(
    value: Optional[str],
    *,
    default: bool = False,
    field: str = None
) -> bool:
    """
    Convert string to bool.

    Accepts (case-insensitive):
        True: 'true', '1', 'yes', 'on'
        False: 'false', '0', 'no', 'off'

    Raises:
        ValidationError: If value is not a recognized boolean string
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    lower = str(value).strip().lower()
    if lower in ("true", "1", "yes", "on"):
        return True
    if lower in ("false", "0", "no", "off"):
        return False
    raise ValidationError(
        f"Expected bool, got: {value!r}",
        field=field,
        received_value=value
    )


def to_snapshot_date(
    value: Union[str, date],
    *,
    field: str = 'date'
) -> str:
    """
    Normalize a calendar date to its YYYY-MM-DD string form.

    Snapshot dates are stored and compared as strings, so the
    string form must be zero-padded and strictly ISO.

    Raises:
        ValidationError: If value is not a valid calendar date
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str) or not _SNAPSHOT_DATE_RE.match(value):
        raise ValidationError(
            f"Expected date (YYYY-MM-DD), got {type(value).__name__}: {value!r}",
            field=field,
            received_value=value
        )
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(
            f"Invalid calendar date: {value!r}",
            field=field,
            received_value=value
        )
    return value


def to_iso_timestamp(value: datetime) -> str:
    """
    Format a datetime as ISO-8601 UTC with millisecond precision and 'Z'.

    Naive datetimes are assumed to already be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def utc_now() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)
