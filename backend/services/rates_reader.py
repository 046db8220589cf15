"""
Rates Reader - validated read access for the API layer

Every payload coming out of the store is re-validated against its
RatesDocument schema (or the DailyAggregate schema), so a corrupted row
surfaces as DocumentValidationError instead of leaking to clients.

Usage:
    from services.rates_reader import RatesReader

    reader = RatesReader(store)
    document = reader.load_latest_data('mortgage-rates')
    series = reader.load_time_series_data('mortgage-rates', '2024-01-01', '2024-01-31')
"""
import logging
from typing import Any, Dict, List, Optional

from constants import DATA_TYPES, is_data_type
from schemas.rates import Invalid, parse_document, validate_aggregate
from services.errors import DocumentValidationError, NoDataFoundError
from utils.normalize import ValidationError, to_snapshot_date

logger = logging.getLogger(__name__)


def _require_data_type(data_type: str):
    if not is_data_type(data_type):
        raise ValidationError(
            f"Unknown data type {data_type!r}, expected one of {DATA_TYPES}",
            field='dataType',
            received_value=data_type,
        )


def _require_range(start_date: str, end_date: str):
    start = to_snapshot_date(start_date, field='startDate')
    end = to_snapshot_date(end_date, field='endDate')
    if start > end:
        raise ValidationError(
            f"startDate {start} is after endDate {end}",
            field='startDate',
            received_value=start_date,
        )
    return start, end


class RatesReader:
    """Read protocol over a SnapshotStore."""

    def __init__(self, store):
        self.store = store

    def load_latest_data(self, data_type: str) -> Dict[str, Any]:
        """
        Current latest RatesDocument.

        Raises:
            NoDataFoundError: If nothing was ever accepted for data_type
            DocumentValidationError: If the stored payload is invalid
        """
        _require_data_type(data_type)
        snapshot = self.store.get(data_type)
        if snapshot is None:
            raise NoDataFoundError(data_type)
        return parse_document(data_type, snapshot.payload)

    def load_historical_data(self, data_type: str, date: str) -> Optional[Dict[str, Any]]:
        """RatesDocument stored for a date, or None."""
        _require_data_type(data_type)
        date = to_snapshot_date(date)
        snapshot = self.store.get_historical(data_type, date)
        if snapshot is None:
            return None
        return parse_document(data_type, snapshot.payload)

    def get_available_dates(self, data_type: str) -> List[str]:
        _require_data_type(data_type)
        return self.store.list_dates(data_type)

    def load_time_series_data(
        self,
        data_type: str,
        start_date: str,
        end_date: str,
    ) -> Dict[str, Dict[str, Any]]:
        """RatesDocuments keyed by date, inclusive range."""
        _require_data_type(data_type)
        start, end = _require_range(start_date, end_date)
        series = self.store.get_time_series(data_type, start, end)
        return {
            date: parse_document(data_type, snapshot.payload)
            for date, snapshot in series.items()
        }

    def load_aggregate_by_date(self, data_type: str, date: str) -> Optional[Dict[str, Any]]:
        _require_data_type(data_type)
        date = to_snapshot_date(date)
        aggregate = self.store.get_aggregate_by_date(data_type, date)
        if aggregate is None:
            return None
        return self._checked_aggregate(data_type, date, aggregate)

    def load_aggregate_time_series(
        self,
        data_type: str,
        start_date: str,
        end_date: str,
    ) -> Dict[str, Dict[str, Any]]:
        _require_data_type(data_type)
        start, end = _require_range(start_date, end_date)
        series = self.store.get_aggregate_time_series(data_type, start, end)
        return {
            date: self._checked_aggregate(data_type, date, aggregate)
            for date, aggregate in series.items()
        }

    @staticmethod
    def _checked_aggregate(data_type: str, date: str, aggregate: Any) -> Dict[str, Any]:
        outcome = validate_aggregate(aggregate)
        if isinstance(outcome, Invalid):
            logger.error(f"Invalid stored aggregate for {data_type} on {date}: {outcome.reasons[:3]}")
            raise DocumentValidationError(
                f"Invalid aggregate payload for {data_type} on {date}",
                reasons=outcome.reasons,
            )
        return outcome.document
