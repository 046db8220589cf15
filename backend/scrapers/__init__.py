"""
Rates Scraping Package

Table scrapers for the interest.co.nz borrowing pages:
- Fold-based row extraction into Entity -> Product -> Rate documents
- One adapter per table layout
- Retrying page client
"""

from constants import (
    CAR_LOAN_RATES,
    CREDIT_CARD_RATES,
    MORTGAGE_RATES,
    PERSONAL_LOAN_RATES,
)
from .base import BaseRatesScraper, ExtractionState, TableRow
from .adapters.mortgage_rates import MortgageRatesScraper
from .adapters.loan_rates import CarLoanRatesScraper, PersonalLoanRatesScraper
from .adapters.credit_card_rates import CreditCardRatesScraper
from .interest_client import InterestScraperClient

SCRAPERS = {
    MORTGAGE_RATES: MortgageRatesScraper,
    PERSONAL_LOAN_RATES: PersonalLoanRatesScraper,
    CAR_LOAN_RATES: CarLoanRatesScraper,
    CREDIT_CARD_RATES: CreditCardRatesScraper,
}


def get_scraper(data_type: str, client=None) -> BaseRatesScraper:
    """
    Get the scraper for a data type.

    Raises:
        ValueError: If data_type has no scraper
    """
    try:
        scraper_cls = SCRAPERS[data_type]
    except KeyError:
        raise ValueError(f"No scraper for data type {data_type!r}")
    return scraper_cls(client=client)


__all__ = [
    "BaseRatesScraper",
    "ExtractionState",
    "TableRow",
    "MortgageRatesScraper",
    "PersonalLoanRatesScraper",
    "CarLoanRatesScraper",
    "CreditCardRatesScraper",
    "InterestScraperClient",
    "SCRAPERS",
    "get_scraper",
]
