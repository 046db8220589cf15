# RatesDocument Schema Package
from .rates import (
    DOCUMENT_MODELS,
    DailyAggregateModel,
    Invalid,
    Ok,
    ValidationOutcome,
    parse_document,
    validate_aggregate,
    validate_document,
)

__all__ = [
    'DOCUMENT_MODELS',
    'DailyAggregateModel',
    'Invalid',
    'Ok',
    'ValidationOutcome',
    'parse_document',
    'validate_aggregate',
    'validate_document',
]
