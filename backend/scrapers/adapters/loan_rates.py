"""
Personal and Car Loan Rates Adapters

Both tables share one layout:
    [institution] [product] [Plan] [Notes] [Interest rate %]

so a single scraper serves both pages, parameterized by data type.
"""
import logging
from typing import Any, Dict, List

from constants import CAR_LOAN_RATES, PERSONAL_LOAN_RATES
from utils.normalize import parse_leading_float, to_title_format
from ..base import BaseRatesScraper, TableRow, with_product
from ..utils.ids import generate_id

logger = logging.getLogger(__name__)

PLAN_COLUMN = 2
CONDITION_COLUMN = 3
RATE_COLUMN = 4


def _rate_sort_key(rate: Dict[str, Any]) -> str:
    return rate['id']


class LoanRatesScraper(BaseRatesScraper):
    """Scraper for the personal and car loan rate tables."""

    ENTITY_KIND = "institution"
    CHILDREN_KEY = "products"
    TABLE_COLUMN_HEADERS = [
        "Plan",
        "Notes",
        "Interest rate %",
    ]

    def normalize_product_name(self, name: str) -> str:
        return to_title_format(super().normalize_product_name(name))

    def extract_row(self, entity: Dict[str, Any], row: TableRow) -> Dict[str, Any]:
        product_name = self.normalize_product_name(row.text(1))
        rates = self.rates_for_row(entity['name'], product_name, row)
        return with_product(entity, product_name, rates, _rate_sort_key)

    def rates_for_row(
        self,
        institution_name: str,
        product_name: str,
        row: TableRow,
    ) -> List[Dict[str, Any]]:
        """One rate per row, only when the rate cell holds a number."""
        rate_text = row.text(RATE_COLUMN)
        if not rate_text:
            return []
        value = parse_leading_float(rate_text)
        if value is None:
            logger.debug(
                f"[{self.DATA_TYPE}] Unparseable rate {rate_text!r} for "
                f"{institution_name}/{product_name}"
            )
            return []

        plan = to_title_format(row.text(PLAN_COLUMN))
        condition = to_title_format(row.text(CONDITION_COLUMN))
        return [{
            'id': generate_id(['rate', institution_name, product_name, plan, condition]),
            'plan': plan or None,
            'condition': condition or None,
            'rate': value,
        }]


class PersonalLoanRatesScraper(LoanRatesScraper):
    """Scraper for interest.co.nz/borrowing/personal-loan."""
    DATA_TYPE = PERSONAL_LOAN_RATES


class CarLoanRatesScraper(LoanRatesScraper):
    """Scraper for interest.co.nz/borrowing/car-loan."""
    DATA_TYPE = CAR_LOAN_RATES
