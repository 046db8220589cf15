"""
Tests for the interest.co.nz table scrapers.

HTML is built inline with factories.table_row() so each test shows the
exact rows it feeds the fold.
"""

import pytest
from unittest.mock import Mock

from constants import CAR_LOAN_RATES, CREDIT_CARD_RATES, MORTGAGE_RATES, PERSONAL_LOAN_RATES
from schemas.rates import Ok, validate_document
from scrapers import SCRAPERS, get_scraper
from scrapers.adapters.credit_card_rates import (
    CreditCardRatesScraper,
    normalize_balance_transfer_period,
    normalize_plan_name,
    parse_optional_number,
)
from scrapers.adapters.loan_rates import CarLoanRatesScraper, PersonalLoanRatesScraper
from scrapers.adapters.mortgage_rates import (
    MortgageRatesScraper,
    parse_special_line,
    term_in_months,
)
from scrapers.base import ExtractionState, parse_table_rows

from factories import rates_page, table_row

SPECIAL = {'class': 'special-line'}


def logo(name):
    return ("", {'alt': name})


@pytest.fixture
def anz_page():
    return rates_page([
        table_row([logo("ANZ"), "Special LVR &lt;80%", "", "6.19", "6.35"], primary=True),
        table_row(["", "Standard", "4.50", "5.10", "", "n/a"]),
    ])


# =============================================================================
# Row parsing
# =============================================================================

class TestParseTableRows:
    """Tests for parse_table_rows()."""

    def test_primary_flag(self, anz_page):
        rows = parse_table_rows(anz_page)
        assert [r.is_primary for r in rows] == [True, False]

    def test_header_rows_ignored(self, anz_page):
        rows = parse_table_rows(anz_page)
        assert len(rows) == 2

    def test_text_out_of_range_is_empty(self, anz_page):
        rows = parse_table_rows(anz_page)
        assert rows[1].text(1) == "Standard"
        assert rows[1].text(42) == ""

    def test_no_table(self):
        assert parse_table_rows("<html><body><p>Maintenance</p></body></html>") == []


# =============================================================================
# Mortgage
# =============================================================================

class TestTermInMonths:
    def test_months(self):
        assert term_in_months("6 months") == 6
        assert term_in_months("18 months") == 18

    def test_years(self):
        assert term_in_months("1 year") == 12
        assert term_in_months("5 years") == 60

    def test_floating(self):
        assert term_in_months("Variable floating") is None


class TestParseSpecialLine:
    def test_match(self):
        assert parse_special_line("18 months = 5.25") == {'term': '18 months', 'rate': '5.25'}

    def test_line_breaks_removed(self):
        assert parse_special_line("\n18 months = 5.25\r\n") == {'term': '18 months', 'rate': '5.25'}

    def test_no_match(self):
        assert parse_special_line("Call for rates") is None


class TestMortgageRatesScraper:
    """Tests for MortgageRatesScraper extraction."""

    def test_anz_scenario(self, anz_page):
        """Logo primary row plus continuation row builds one institution."""
        entities = MortgageRatesScraper().extract(anz_page)

        assert len(entities) == 1
        anz = entities[0]
        assert anz['id'] == "institution:anz"
        assert anz['name'] == "ANZ"

        products = {p['name']: p for p in anz['products']}
        assert set(products) == {"Special", "Standard"}

        standard = products["Standard"]
        assert standard['id'] == "product:anz:standard"
        assert standard['rates'] == [
            {
                'id': "rate:anz:standard:variable-floating",
                'term': "Variable floating",
                'termInMonths': None,
                'rate': 4.5,
            },
            {
                'id': "rate:anz:standard:6-months",
                'term': "6 months",
                'termInMonths': 6,
                'rate': 5.1,
            },
        ]

    def test_special_variants_collapse(self, anz_page):
        anz = MortgageRatesScraper().extract(anz_page)[0]
        special = next(p for p in anz['products'] if p['name'] == "Special")
        assert special['id'] == "product:anz:special"
        assert [r['term'] for r in special['rates']] == ["6 months", "1 year"]

    def test_special_line_merged_into_product(self):
        page = rates_page([
            table_row([logo("ASB"), "Standard", "4.50", "5.10", ("18 months = 5.25", SPECIAL)], primary=True),
        ])
        asb = MortgageRatesScraper().extract(page)[0]

        assert len(asb['products']) == 1
        rates = asb['products'][0]['rates']
        assert [r['termInMonths'] for r in rates] == [None, 6, 18]
        assert rates[-1] == {
            'id': "rate:asb:standard:18-months",
            'term': "18 months",
            'termInMonths': 18,
            'rate': 5.25,
        }

    def test_unparseable_cells_skipped(self):
        page = rates_page([
            table_row([logo("BNZ"), "Standard", "n/a", "-", "6.05"], primary=True),
        ])
        rates = MortgageRatesScraper().extract(page)[0]['products'][0]['rates']
        assert [r['term'] for r in rates] == ["1 year"]
        assert rates[0]['rate'] == 6.05

    def test_text_name_when_no_logo(self):
        page = rates_page([
            table_row(["  Co-operative\n Bank ", "Standard", "4.99"], primary=True),
        ])
        entity = MortgageRatesScraper().extract(page)[0]
        assert entity['name'] == "Co-operative Bank"
        assert entity['id'] == "institution:co-operative-bank"

    def test_empty_alt_falls_back_to_text(self):
        page = rates_page([
            table_row([("Kiwibank", {'alt': ' '}), "Standard", "4.99"], primary=True),
        ])
        assert MortgageRatesScraper().extract(page)[0]['name'] == "Kiwibank"

    def test_rows_before_first_primary_discarded(self):
        page = rates_page([
            table_row(["", "Orphan", "9.99"]),
            table_row([logo("TSB"), "Standard", "4.79"], primary=True),
        ])
        entities = MortgageRatesScraper().extract(page)
        assert [e['name'] for e in entities] == ["TSB"]
        assert [p['name'] for p in entities[0]['products']] == ["Standard"]

    def test_unusable_name_detaches_until_next_primary(self):
        page = rates_page([
            table_row([logo("SBS"), "Standard", "4.79"], primary=True),
            table_row(["***", "Standard", "3.99"], primary=True),
            table_row(["", "Fixed", "3.89"]),
            table_row([logo("HSBC"), "Standard", "4.69"], primary=True),
        ])
        entities = MortgageRatesScraper().extract(page)

        assert [e['name'] for e in entities] == ["SBS", "HSBC"]
        # The detached continuation row did not leak into SBS
        assert [p['name'] for p in entities[0]['products']] == ["Standard"]

    def test_no_primary_rows_is_empty(self):
        page = rates_page([table_row(["", "Standard", "4.50"])])
        assert MortgageRatesScraper().extract(page) == []

    def test_extraction_is_deterministic(self, anz_page):
        scraper = MortgageRatesScraper()
        assert scraper.extract(anz_page) == scraper.extract(anz_page)

    def test_rate_order_independent_of_row_order(self):
        first = table_row(["", "Standard", "", "", "6.10"])
        second = table_row(["", "Standard", "4.50", "5.10"])
        primary = table_row([logo("ANZ"), "Floating", "4.99"], primary=True)

        scraper = MortgageRatesScraper()
        a = scraper.extract(rates_page([primary, first, second]))
        b = scraper.extract(rates_page([primary, second, first]))
        assert a == b

    def test_document_validates(self, anz_page):
        document = MortgageRatesScraper().build_document(anz_page, last_updated="2024-03-01T10:00:00.000Z")
        assert document['type'] == "MortgageRates"
        assert document['lastUpdated'] == "2024-03-01T10:00:00.000Z"
        assert isinstance(validate_document(MORTGAGE_RATES, document), Ok)

    def test_step_does_not_mutate_state(self, anz_page):
        scraper = MortgageRatesScraper()
        rows = parse_table_rows(anz_page)
        state = scraper.step(ExtractionState(), rows[0])
        before = state.entities[0]
        scraper.step(state, rows[1])
        assert state.entities[0] is before
        assert len(before['products']) == 1


# =============================================================================
# Loans
# =============================================================================

class TestLoanRatesScraper:
    """Tests for the personal / car loan scrapers."""

    @pytest.fixture
    def loan_page(self):
        return rates_page([
            table_row([logo("BNZ"), "personal loan", "Secured", "Min $5k", "12.95%"], primary=True),
            table_row(["", "personal loan", "", "", "14.5"]),
            table_row(["", "personal loan", "Unsecured", "", "n/a"]),
        ])

    def test_rates(self, loan_page):
        bnz = PersonalLoanRatesScraper().extract(loan_page)[0]
        product = bnz['products'][0]

        assert product['id'] == "product:bnz:personal-loan"
        assert product['name'] == "Personal loan"
        assert product['rates'] == [
            {'id': "rate:bnz:personal-loan", 'plan': None, 'condition': None, 'rate': 14.5},
            {
                'id': "rate:bnz:personal-loan:secured:min-5k",
                'plan': "Secured",
                'condition': "Min $5k",
                'rate': 12.95,
            },
        ]

    def test_plan_and_condition_title_formatted(self):
        page = rates_page([
            table_row([logo("Kiwibank"), "car loan", "secured", "min $5k", "9.9"], primary=True),
        ])

        rate = PersonalLoanRatesScraper().extract(page)[0]['products'][0]['rates'][0]

        assert rate['plan'] == "Secured"
        assert rate['condition'] == "Min $5k"
        assert rate['id'] == "rate:kiwibank:car-loan:secured:min-5k"

    def test_car_loan_document(self, loan_page):
        document = CarLoanRatesScraper().build_document(loan_page, last_updated="2024-03-01T10:00:00.000Z")
        assert document['type'] == "CarLoanRates"
        assert isinstance(validate_document(CAR_LOAN_RATES, document), Ok)

    def test_personal_loan_document(self, loan_page):
        document = PersonalLoanRatesScraper().build_document(loan_page)
        assert isinstance(validate_document(PERSONAL_LOAN_RATES, document), Ok)


# =============================================================================
# Credit cards
# =============================================================================

class TestCreditCardHelpers:
    def test_plan_name_fixes(self):
        assert normalize_plan_name("airpoint Platinum") == "Airpoints Platinum"
        assert normalize_plan_name("onesmart card") == "OneSmart card"
        assert normalize_plan_name("FarmersCard") == "Farmers Finance Card"
        assert normalize_plan_name("Warehose Card") == "Warehouse Card"

    def test_plan_name_title_format(self):
        assert normalize_plan_name("low rate") == "Low rate"

    def test_optional_number(self):
        assert parse_optional_number("20.95") == 20.95
        assert parse_optional_number("0") is None
        assert parse_optional_number("") is None
        assert parse_optional_number("Nil") is None

    def test_balance_transfer_period(self):
        assert normalize_balance_transfer_period("6 mths") == "6 months"
        assert normalize_balance_transfer_period("life of bal tsfrd") == "Life of balance transferred"
        assert normalize_balance_transfer_period("") is None


class TestCreditCardRatesScraper:
    """Tests for CreditCardRatesScraper."""

    @pytest.fixture
    def card_page(self):
        return rates_page([
            table_row(
                [logo("American Express"), "airpoint Platinum", "1.5", "0", "5.99", "6 mths", "22.95", "20.95"],
                primary=True,
            ),
            table_row(["", "Low Rate", "", "$30", "", "", "13.49", "13.49"]),
        ])

    def test_plans(self, card_page):
        issuer = CreditCardRatesScraper().extract(card_page)[0]

        assert issuer['id'] == "issuer:american-express"
        assert set(issuer) == {'id', 'name', 'plans'}
        assert issuer['plans'][0] == {
            'id': "plan:american-express:airpoints-platinum",
            'name': "Airpoints Platinum",
            'interestFreePeriodInMonths': 1.5,
            'primaryFeeNZD': None,
            'balanceTransferRate': 5.99,
            'balanceTransferPeriod': "6 months",
            'cashAdvanceRate': 22.95,
            'purchaseRate': 20.95,
        }

    def test_missing_values_are_none(self, card_page):
        plan = CreditCardRatesScraper().extract(card_page)[0]['plans'][1]
        assert plan['interestFreePeriodInMonths'] is None
        assert plan['primaryFeeNZD'] is None   # "$30" has no leading number
        assert plan['balanceTransferPeriod'] is None

    def test_every_row_is_a_plan(self, card_page):
        issuer = CreditCardRatesScraper().extract(card_page)[0]
        assert len(issuer['plans']) == 2

    def test_document_validates(self, card_page):
        document = CreditCardRatesScraper().build_document(card_page)
        assert isinstance(validate_document(CREDIT_CARD_RATES, document), Ok)


# =============================================================================
# Registry
# =============================================================================

class TestGetScraper:
    def test_every_data_type_registered(self):
        for data_type, scraper_cls in SCRAPERS.items():
            assert scraper_cls.DATA_TYPE == data_type
            assert isinstance(get_scraper(data_type), scraper_cls)

    def test_unknown_data_type(self):
        with pytest.raises(ValueError):
            get_scraper("savings-rates")

    def test_fetch_page_uses_client(self):
        client = Mock()
        client.get_page.return_value = "<html></html>"
        scraper = get_scraper(MORTGAGE_RATES, client=client)

        assert scraper.fetch_page() == "<html></html>"
        client.get_page.assert_called_once_with(MORTGAGE_RATES)

    def test_fetch_page_without_client(self):
        with pytest.raises(RuntimeError):
            get_scraper(MORTGAGE_RATES).fetch_page()
