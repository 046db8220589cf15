"""
Credit Card Rates Adapter - interest.co.nz/borrowing/credit-cards

Table layout:
    [issuer] [plan] [Interest free period] [Fee primary $] [Balance transfer %]
    [Balance transfer period] [Cash Adv %] [Purchases %]

Every row (primary or continuation) is one plan of the current issuer.
"""
import re
from typing import Any, Dict, Optional

from constants import CREDIT_CARD_RATES
from utils.normalize import parse_leading_float, to_title_format
from ..base import BaseRatesScraper, TableRow
from ..utils.ids import generate_id

# Known upstream spellings, applied in order
PLAN_NAME_FIXES = [
    (re.compile(r'airpoint ', re.IGNORECASE), "Airpoints "),
    (re.compile(r'onesmart', re.IGNORECASE), "OneSmart"),
    (re.compile(re.escape("FarmersCard")), "Farmers Finance Card"),
    (re.compile(re.escape("Warehose")), "Warehouse"),
]

BALANCE_TRANSFER_PERIOD_FIXES = [
    ("mths", "months"),
    ("bal tsfrd", "balance transferred"),
]


def parse_optional_number(text: str) -> Optional[float]:
    """Leading float of a cell; missing, unparseable and zero all become None."""
    value = parse_leading_float(text)
    if not value:
        return None
    return value


def normalize_plan_name(name: str) -> str:
    for pattern, replacement in PLAN_NAME_FIXES:
        name = pattern.sub(replacement, name, count=1)
    return to_title_format(name)


def normalize_balance_transfer_period(text: str) -> Optional[str]:
    for old, new in BALANCE_TRANSFER_PERIOD_FIXES:
        text = text.replace(old, new, 1)
    return to_title_format(text) or None


class CreditCardRatesScraper(BaseRatesScraper):
    """Scraper for the credit card table; issuers own plans, plans are leaves."""

    DATA_TYPE = CREDIT_CARD_RATES
    ENTITY_KIND = "issuer"
    CHILDREN_KEY = "plans"
    TABLE_COLUMN_HEADERS = [
        "Plan",
        "Interest free period",
        "Fee primary $",
        "Balance transfer %",
        "Balance transfer period",
        "Cash Adv %",
        "Purchases %",
    ]

    def extract_row(self, entity: Dict[str, Any], row: TableRow) -> Dict[str, Any]:
        plan = self.as_plan(entity['name'], row)
        return {**entity, 'plans': list(entity['plans']) + [plan]}

    def as_plan(self, issuer_name: str, row: TableRow) -> Dict[str, Any]:
        plan_name = normalize_plan_name(row.text(1))
        return {
            'id': generate_id(['plan', issuer_name, plan_name]),
            'name': plan_name,
            'interestFreePeriodInMonths': parse_optional_number(row.text(2)),
            'primaryFeeNZD': parse_optional_number(row.text(3)),
            'balanceTransferRate': parse_optional_number(row.text(4)),
            'balanceTransferPeriod': normalize_balance_transfer_period(row.text(5)),
            'cashAdvanceRate': parse_optional_number(row.text(6)),
            'purchaseRate': parse_optional_number(row.text(7)),
        }
