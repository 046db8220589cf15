"""
Utility modules for the backend.
"""
from .normalize import (
    ValidationError,
    collapse_whitespace,
    parse_leading_float,
    to_bool,
    to_iso_timestamp,
    to_snapshot_date,
    to_title_format,
    utc_now,
)

__all__ = [
    'ValidationError',
    'collapse_whitespace',
    'parse_leading_float',
    'to_bool',
    'to_iso_timestamp',
    'to_snapshot_date',
    'to_title_format',
    'utc_now',
]
