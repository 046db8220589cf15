"""
Rates Pipeline Exceptions

Each pipeline stage raises its own error class so the ingestion engine can
report which stage failed without string matching.

    RatesPipelineError
    ├── FetchError               network / HTTP failure fetching a source page
    ├── DocumentValidationError  extracted document failed structural validation
    └── StoreError
        ├── IngestAuthError      ingest secret mismatch
        ├── IngestConfigError    ingest secret not configured
        └── StoreWriteError      transaction failed and was rolled back

    NoDataFoundError             read found nothing for the requested key
"""
from typing import List, Optional


class RatesPipelineError(Exception):
    """Base exception for rates pipeline errors."""
    pass


class FetchError(RatesPipelineError):
    """Fetching a source page failed after retries."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DocumentValidationError(RatesPipelineError):
    """Extracted document failed structural validation."""

    def __init__(self, message: str, reasons: Optional[List[str]] = None):
        super().__init__(message)
        self.reasons = reasons or []


class StoreError(RatesPipelineError):
    """Base exception for snapshot store errors."""
    pass


class IngestAuthError(StoreError):
    """Caller-supplied ingest secret does not match the configured one."""
    pass


class IngestConfigError(StoreError):
    """No ingest secret is configured, so writes are disabled."""
    pass


class StoreWriteError(StoreError):
    """Write transaction failed; nothing was persisted."""
    pass


class NoDataFoundError(RatesPipelineError):
    """No stored data for the requested data type (and date)."""

    def __init__(self, data_type: str, date: Optional[str] = None):
        if date:
            message = f"No {data_type} data found for {date}"
        else:
            message = f"No {data_type} data found"
        super().__init__(message)
        self.data_type = data_type
        self.date = date
