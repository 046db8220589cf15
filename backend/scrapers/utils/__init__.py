"""Scraper utility functions."""

from .hashing import canonical_json, compute_json_hash, normalize_json_for_hash
from .ids import InvalidIdError, generate_id, slugify_part

__all__ = [
    "canonical_json",
    "compute_json_hash",
    "normalize_json_for_hash",
    "InvalidIdError",
    "generate_id",
    "slugify_part",
]
