"""
Consistent JSON Hashing for Change Detection

Provides deterministic serialization and hashing of RatesDocuments for:
- Payload hashes stored alongside snapshots and aggregates
- Structural equality checks between scrapes
"""
import hashlib
import json
from typing import Any


def normalize_json_for_hash(data: Any) -> Any:
    """
    Normalize JSON data for consistent hashing.

    - Sorts dictionary keys
    - Preserves list order and None values (null and missing differ)

    Args:
        data: JSON-serializable data

    Returns:
        Normalized data structure
    """
    if isinstance(data, dict):
        return {
            str(k): normalize_json_for_hash(v)
            for k, v in sorted(data.items())
        }

    if isinstance(data, (list, tuple)):
        return [normalize_json_for_hash(item) for item in data]

    return data


def canonical_json(data: Any) -> str:
    """
    Serialize data to its canonical JSON string.

    Two values serialize identically iff they are structurally equal
    with the same list ordering.
    """
    normalized = normalize_json_for_hash(data)
    return json.dumps(
        normalized,
        sort_keys=True,
        separators=(',', ':'),
        ensure_ascii=False,
        allow_nan=False,
    )


def compute_json_hash(data: Any) -> str:
    """
    Compute SHA256 hash of JSON data.

    Args:
        data: JSON-serializable data

    Returns:
        64-character hex SHA256 hash
    """
    return hashlib.sha256(canonical_json(data).encode('utf-8')).hexdigest()
