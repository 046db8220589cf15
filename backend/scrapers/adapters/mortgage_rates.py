"""
Mortgage Rates Adapter - interest.co.nz/borrowing

Table layout:
    [institution] [product] [Variable floating] [6 months] [1 year] ... [5 years]

Some rows carry an ad-hoc term in a cell marked 'special-line' that spans
several columns, e.g. "18 months = 5.25". Those are recovered by pattern
and merged into the same product as the row's regular rates.
"""
import re
import logging
from typing import Any, Dict, List, Optional

from constants import MORTGAGE_RATES, is_rate_term
from utils.normalize import parse_leading_float
from ..base import BaseRatesScraper, TableRow, with_product
from ..utils.ids import generate_id

logger = logging.getLogger(__name__)

SPECIAL_LINE_CLASS = "special-line"
SPECIAL_LINE_RE = re.compile(r'(\d+ months) = (.+)')

_MONTHS_RE = re.compile(r'(\d+) months?')
_YEARS_RE = re.compile(r'(\d+) years?')

# First rate column; columns 0 and 1 hold institution and product
RATE_COLUMN_OFFSET = 2


def term_in_months(term: str) -> Optional[int]:
    """
    Derive the number of months from a term label.

    >>> term_in_months("18 months")
    18
    >>> term_in_months("2 years")
    24
    >>> term_in_months("Variable floating") is None
    True
    """
    match = _MONTHS_RE.search(term)
    if match:
        return int(match.group(1))
    match = _YEARS_RE.search(term)
    if match:
        return int(match.group(1)) * 12
    return None


def parse_special_line(text: str) -> Optional[Dict[str, str]]:
    """Split a special-line cell into its term and rate text."""
    match = SPECIAL_LINE_RE.search(text.replace('\n', '').replace('\r', '').strip())
    if not match:
        return None
    return {'term': match.group(1), 'rate': match.group(2)}


def _rate_sort_key(rate: Dict[str, Any]) -> int:
    # Unknown terms (floating) sort with 0; sorted() keeps ties stable
    return rate['termInMonths'] or 0


class MortgageRatesScraper(BaseRatesScraper):
    """Scraper for the mortgage rate table."""

    DATA_TYPE = MORTGAGE_RATES
    ENTITY_KIND = "institution"
    CHILDREN_KEY = "products"
    TABLE_COLUMN_HEADERS = [
        "Variable floating",
        "6 months",
        "1 year",
        "2 years",
        "3 years",
        "4 years",
        "5 years",
    ]
    SPECIAL_PRODUCT_NAMES = [
        "Special LVR under 80%",
        "Special - Classic",
        "Special LVR <80%",
        "Special LVR < 80%",
    ]

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
        """
        Read every rate cell of a row.

        Cells that are empty, unparseable or map to a term outside the
        closed vocabulary produce nothing.
        """
        if not product_name:
            return []

        rates = []
        for index in range(RATE_COLUMN_OFFSET, len(row.cells)):
            if row.has_class(index, SPECIAL_LINE_CLASS):
                special = parse_special_line(row.cells[index].get_text())
                if special is None:
                    continue
                term, rate_text = special['term'], special['rate']
            else:
                header_index = index - RATE_COLUMN_OFFSET
                if header_index >= len(self.TABLE_COLUMN_HEADERS):
                    continue
                term = self.TABLE_COLUMN_HEADERS[header_index]
                rate_text = row.text(index)

            if not rate_text or not is_rate_term(term):
                continue
            value = parse_leading_float(rate_text)
            if value is None:
                logger.debug(
                    f"[{self.DATA_TYPE}] Unparseable rate {rate_text!r} for "
                    f"{institution_name}/{product_name}/{term}"
                )
                continue
            rates.append(self.as_rate(institution_name, product_name, term, value))
        return rates

    @staticmethod
    def as_rate(institution_name: str, product_name: str, term: str, value: float) -> Dict[str, Any]:
        return {
            'id': generate_id(['rate', institution_name, product_name, term]),
            'term': term,
            'termInMonths': term_in_months(term),
            'rate': value,
        }
