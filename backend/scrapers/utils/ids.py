"""
Entity ID Generation

IDs are the public join key across historical snapshots, so they are
derived from content (kind + names) and never assigned.

Examples:
    generate_id(["institution", "ANZ"])                    -> "institution:anz"
    generate_id(["product", "ANZ", "Special LVR <80%"])    -> "product:anz:special-lvr-less-than-80"
    generate_id(["rate", "ANZ", "Standard", "6 months"])   -> "rate:anz:standard:6-months"
"""
import re
from typing import Sequence

from constants import ID_KINDS


class InvalidIdError(ValueError):
    """Raised when a generated ID has an unknown kind or an empty remainder."""
    pass


def slugify_part(part: str) -> str:
    """
    Normalize a single ID part.

    Angle brackets become words because downstream validators reject
    them outright ("<80%" -> "less-than-80").
    """
    s = str(part).lower().strip()
    s = s.replace('<', 'less-than-').replace('>', 'greater-than-')
    s = re.sub(r'\s+', '-', s)
    s = re.sub(r'[^\w-]+', '', s)
    s = re.sub(r'--+', '-', s)
    return s


def generate_id(parts: Sequence[str]) -> str:
    """
    Generate a deterministic, kind-prefixed ID from name parts.

    Args:
        parts: [kind, *names] where kind is one of ID_KINDS

    Returns:
        "<kind>:<slug>:<slug>..." with empty slugs dropped

    Raises:
        InvalidIdError: If the result does not start with a known kind,
            or the kind has no non-empty remainder
    """
    if not parts:
        raise InvalidIdError("Cannot generate an ID from no parts")

    kind = str(parts[0])
    value = ':'.join(slug for slug in (slugify_part(p) for p in parts) if slug)

    if not any(value.startswith(candidate) for candidate in ID_KINDS):
        raise InvalidIdError(
            f"The generated ID must start with one of the following prefixes: "
            f"{', '.join(ID_KINDS)} (got {value!r})"
        )

    prefix = f"{kind}:"
    if not value.startswith(prefix) or len(value) <= len(prefix):
        raise InvalidIdError(
            f"Generated ID {value!r} does not match expected prefix {kind!r}"
        )

    return value

