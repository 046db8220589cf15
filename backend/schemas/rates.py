"""
RatesDocument schemas - structural validation of extracted payloads.

Extraction produces plain dicts; this module decides whether such a dict is
a well-formed RatesDocument for a given data type. It never repairs data.

Key features:
- extra='forbid': Undeclared fields are an error
- strict=True: No type coercion (a "4.5" string is not a rate)
- allow_inf_nan=False: Every rate is finite
- camelCase aliases: Field names match the stored JSON wire format

Usage:
    from schemas.rates import validate_document, Ok, Invalid

    outcome = validate_document('mortgage-rates', payload)
    if isinstance(outcome, Invalid):
        print(outcome.reasons)
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from constants import (
    CAR_LOAN_RATES,
    CREDIT_CARD_RATES,
    DATA_TYPES,
    MORTGAGE_RATES,
    PERSONAL_LOAN_RATES,
)
from services.errors import DocumentValidationError

RateTerm = Literal[
    "Variable floating",
    "6 months",
    "18 months",
    "1 year",
    "2 years",
    "3 years",
    "4 years",
    "5 years",
]


class RatesModel(BaseModel):
    """
    Base model for all RatesDocument parts.

    Invariant: a model that validates serializes back (by alias) to the
    same JSON that was validated.
    """
    model_config = ConfigDict(
        extra='forbid',
        strict=True,
        allow_inf_nan=False,
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Mortgage
# =============================================================================

class MortgageRate(RatesModel):
    id: str = Field(pattern=r'^rate:.+')
    term: RateTerm
    term_in_months: Optional[int]
    rate: float


class MortgageProduct(RatesModel):
    id: str = Field(pattern=r'^product:.+')
    name: str
    rates: List[MortgageRate]


class MortgageInstitution(RatesModel):
    id: str = Field(pattern=r'^institution:.+')
    name: str
    products: List[MortgageProduct]


class MortgageRatesDocument(RatesModel):
    type: Literal["MortgageRates"]
    data: List[MortgageInstitution]
    last_updated: str


# =============================================================================
# Personal / car loans
# =============================================================================

class LoanRate(RatesModel):
    id: str = Field(pattern=r'^rate:.+')
    plan: Optional[str]
    condition: Optional[str]
    rate: float


class LoanProduct(RatesModel):
    id: str = Field(pattern=r'^product:.+')
    name: str
    rates: List[LoanRate]


class LoanInstitution(RatesModel):
    id: str = Field(pattern=r'^institution:.+')
    name: str
    products: List[LoanProduct]


class PersonalLoanRatesDocument(RatesModel):
    type: Literal["PersonalLoanRates"]
    data: List[LoanInstitution]
    last_updated: str


class CarLoanRatesDocument(RatesModel):
    type: Literal["CarLoanRates"]
    data: List[LoanInstitution]
    last_updated: str


# =============================================================================
# Credit cards
# =============================================================================

class CreditCardPlan(RatesModel):
    id: str = Field(pattern=r'^plan:.+')
    name: str
    interest_free_period_in_months: Optional[float]
    primary_fee_nzd: Optional[float] = Field(alias='primaryFeeNZD')
    balance_transfer_rate: Optional[float]
    balance_transfer_period: Optional[str]
    cash_advance_rate: Optional[float]
    purchase_rate: Optional[float]


class CreditCardIssuer(RatesModel):
    id: str = Field(pattern=r'^issuer:.+')
    name: str
    plans: List[CreditCardPlan]


class CreditCardRatesDocument(RatesModel):
    type: Literal["CreditCardRates"]
    data: List[CreditCardIssuer]
    last_updated: str


DOCUMENT_MODELS: Dict[str, Type[RatesModel]] = {
    MORTGAGE_RATES: MortgageRatesDocument,
    PERSONAL_LOAN_RATES: PersonalLoanRatesDocument,
    CAR_LOAN_RATES: CarLoanRatesDocument,
    CREDIT_CARD_RATES: CreditCardRatesDocument,
}


# =============================================================================
# Daily aggregate
# =============================================================================

class Stats(RatesModel):
    min: Optional[float]
    max: Optional[float]
    avg: Optional[float]
    samples: int


class EntityStats(RatesModel):
    entity_id: str
    entity_name: str
    stats: Stats


class TermStats(RatesModel):
    term_in_months: int
    stats: Stats


class Totals(RatesModel):
    entities: int
    products: int
    rate_points: int


class DailyAggregateModel(RatesModel):
    data_type: Literal[
        "mortgage-rates",
        "personal-loan-rates",
        "car-loan-rates",
        "credit-card-rates",
    ]
    generated_at: str
    overall: Stats
    by_entity: List[EntityStats]
    by_term_in_months: List[TermStats]
    totals: Totals


# =============================================================================
# Tagged validation result
# =============================================================================

@dataclass(frozen=True)
class Ok:
    """Payload is valid; document is its normalized JSON form."""
    document: Dict[str, Any]


@dataclass(frozen=True)
class Invalid:
    """Payload is invalid; reasons are human-readable field errors."""
    reasons: List[str] = field(default_factory=list)


ValidationOutcome = Union[Ok, Invalid]


def _format_errors(exc: ValidationError) -> List[str]:
    reasons = []
    for err in exc.errors():
        location = '.'.join(str(part) for part in err['loc']) or '<root>'
        reasons.append(f"{location}: {err['msg']}")
    return reasons


def _validate(model: Type[RatesModel], payload: Any) -> ValidationOutcome:
    if not isinstance(payload, dict):
        return Invalid([f"<root>: expected an object, got {type(payload).__name__}"])
    try:
        parsed = model.model_validate(payload)
    except ValidationError as e:
        return Invalid(_format_errors(e))
    return Ok(parsed.model_dump(mode='json', by_alias=True))


def validate_document(data_type: str, payload: Any) -> ValidationOutcome:
    """
    Validate a RatesDocument payload for a data type.

    The document's type literal must match the data type.

    Returns:
        Ok(document) or Invalid(reasons)
    """
    model = DOCUMENT_MODELS.get(data_type)
    if model is None:
        return Invalid([f"dataType: unknown data type {data_type!r}, expected one of {DATA_TYPES}"])
    return _validate(model, payload)


def validate_aggregate(payload: Any) -> ValidationOutcome:
    """Validate a stored DailyAggregate payload."""
    return _validate(DailyAggregateModel, payload)


def parse_document(data_type: str, payload: Any) -> Dict[str, Any]:
    """
    Validate and return a RatesDocument, raising on failure.

    Raises:
        DocumentValidationError: With the field-level reasons attached
    """
    outcome = validate_document(data_type, payload)
    if isinstance(outcome, Invalid):
        raise DocumentValidationError(
            f"Invalid {data_type} document: {'; '.join(outcome.reasons[:5])}",
            reasons=outcome.reasons,
        )
    return outcome.document
