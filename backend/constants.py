"""
Centralized Constants - SINGLE SOURCE OF TRUTH

Data types, model type names and the mortgage term vocabulary used across
the scrapers, schemas and ingestion services.

DO NOT duplicate these definitions in other files.

Reference: interest.co.nz borrowing tables
- mortgage-rates: /borrowing
- personal-loan-rates: /borrowing/personal-loan
- car-loan-rates: /borrowing/car-loan
- credit-card-rates: /borrowing/credit-cards
"""
from typing import Dict, List

# =============================================================================
# DATA TYPES
# =============================================================================

MORTGAGE_RATES = 'mortgage-rates'
PERSONAL_LOAN_RATES = 'personal-loan-rates'
CAR_LOAN_RATES = 'car-loan-rates'
CREDIT_CARD_RATES = 'credit-card-rates'

DATA_TYPES: List[str] = [
    MORTGAGE_RATES,
    PERSONAL_LOAN_RATES,
    CAR_LOAN_RATES,
    CREDIT_CARD_RATES,
]

# Model type literal stored in RatesDocument.type
MODEL_TYPE_BY_DATA_TYPE: Dict[str, str] = {
    MORTGAGE_RATES: 'MortgageRates',
    PERSONAL_LOAN_RATES: 'PersonalLoanRates',
    CAR_LOAN_RATES: 'CarLoanRates',
    CREDIT_CARD_RATES: 'CreditCardRates',
}


def is_data_type(value: str) -> bool:
    """Check if a string is one of the supported data types."""
    return value in DATA_TYPES


def model_type_for_data_type(data_type: str) -> str:
    """
    Get the RatesDocument type literal for a data type.

    Args:
        data_type: One of DATA_TYPES

    Returns:
        Model type name (e.g. 'MortgageRates')

    Raises:
        ValueError: If data_type is not supported
    """
    try:
        return MODEL_TYPE_BY_DATA_TYPE[data_type]
    except KeyError:
        raise ValueError(f"Unknown data type: {data_type!r}. Expected one of {DATA_TYPES}")


# =============================================================================
# MORTGAGE TERMS (closed vocabulary)
# =============================================================================

TERM_VARIABLE_FLOATING = 'Variable floating'

RATE_TERMS: List[str] = [
    TERM_VARIABLE_FLOATING,
    '6 months',
    '18 months',
    '1 year',
    '2 years',
    '3 years',
    '4 years',
    '5 years',
]


def is_rate_term(term: str) -> bool:
    """Check if a term belongs to the closed mortgage term vocabulary."""
    return term in RATE_TERMS


# =============================================================================
# ENTITY KINDS (ID prefixes)
# =============================================================================

ID_KINDS: List[str] = ['institution', 'product', 'rate', 'issuer', 'plan']
