"""
Change Detection - Compares a fresh scrape against the stored latest.

Two documents are unchanged only when their data arrays serialize
identically; pure reordering counts as a change.

A false "changed" only costs an extra write; a false "unchanged" would
silently stop the time series. Comparison is therefore exact.
"""
from typing import Any, Dict

from scrapers.utils.hashing import canonical_json


def has_data_changed(new_document: Dict[str, Any], old_document: Dict[str, Any]) -> bool:
    """
    Check whether two RatesDocuments differ in their data arrays.

    lastUpdated and type are ignored; list order is significant.
    """
    return canonical_json(new_document.get('data')) != canonical_json(old_document.get('data'))
