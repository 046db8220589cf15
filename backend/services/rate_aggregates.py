"""
Daily Rate Aggregates - Per-entity and per-term statistics for a snapshot.

Output shape (camelCase, stored as JSON):
    {
        "dataType": "mortgage-rates",
        "generatedAt": "2024-03-01T10:00:00.000Z",
        "overall": {"min": 4.49, "max": 8.95, "avg": 6.512345, "samples": 214},
        "byEntity": [{"entityId": "institution:anz", "entityName": "ANZ", "stats": {...}}],
        "byTermInMonths": [{"termInMonths": 6, "stats": {...}}],   # mortgage only
        "totals": {"entities": 18, "products": 40, "ratePoints": 214}
    }

Credit card issuers are sampled on purchase, cash-advance and
balance-transfer rates. Stats on no samples are all None with samples=0.
"""
import math
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from constants import CREDIT_CARD_RATES, MORTGAGE_RATES, model_type_for_data_type

STATS_PRECISION = 6

CREDIT_CARD_SAMPLE_FIELDS = ('purchaseRate', 'cashAdvanceRate', 'balanceTransferRate')


def is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def children_key(data_type: str) -> str:
    """Key holding an entity's products ('plans' for credit card issuers)."""
    return 'plans' if data_type == CREDIT_CARD_RATES else 'products'


def product_rate_values(data_type: str, product: Dict[str, Any]) -> List[float]:
    """Finite numeric samples contributed by one product or plan."""
    if data_type == CREDIT_CARD_RATES:
        candidates = [product.get(name) for name in CREDIT_CARD_SAMPLE_FIELDS]
    else:
        candidates = [rate.get('rate') for rate in product.get('rates', [])]
    return [value for value in candidates if is_finite_number(value)]


def ensure_document_type(data_type: str, document: Dict[str, Any]):
    """
    Raises:
        ValueError: If the document's type does not belong to data_type
    """
    expected = model_type_for_data_type(data_type)
    actual = document.get('type')
    if actual != expected:
        raise ValueError(
            f"Expected {expected} model for {data_type} data type, got {actual!r}"
        )


def summarize(values: Iterable[float]) -> Dict[str, Optional[float]]:
    """min/max/avg rounded to 6 dp; never divides by zero."""
    values = list(values)
    if not values:
        return {'min': None, 'max': None, 'avg': None, 'samples': 0}
    return {
        'min': round(min(values), STATS_PRECISION),
        'max': round(max(values), STATS_PRECISION),
        'avg': round(sum(values) / len(values), STATS_PRECISION),
        'samples': len(values),
    }


def compute_daily_aggregate(
    data_type: str,
    document: Dict[str, Any],
    generated_at: str,
) -> Dict[str, Any]:
    """
    Reduce a validated RatesDocument into its DailyAggregate.

    Args:
        data_type: Wire data type (e.g. 'mortgage-rates')
        document: RatesDocument dict
        generated_at: ISO timestamp recorded on the aggregate

    Raises:
        ValueError: If the document type does not match data_type
    """
    ensure_document_type(data_type, document)

    key = children_key(data_type)
    all_values: List[float] = []
    by_entity = []
    by_term: Dict[int, List[float]] = defaultdict(list)
    product_count = 0

    for entity in document.get('data', []):
        entity_values: List[float] = []

        for product in entity.get(key, []):
            product_count += 1
            entity_values.extend(product_rate_values(data_type, product))

            if data_type == MORTGAGE_RATES:
                for rate in product.get('rates', []):
                    term = rate.get('termInMonths')
                    if is_finite_number(rate.get('rate')) and isinstance(term, int):
                        by_term[term].append(rate['rate'])

        all_values.extend(entity_values)
        by_entity.append({
            'entityId': entity['id'],
            'entityName': entity['name'],
            'stats': summarize(entity_values),
        })

    return {
        'dataType': data_type,
        'generatedAt': generated_at,
        'overall': summarize(all_values),
        'byEntity': by_entity,
        'byTermInMonths': [
            {'termInMonths': term, 'stats': summarize(by_term[term])}
            for term in sorted(by_term)
        ],
        'totals': {
            'entities': len(document.get('data', [])),
            'products': product_count,
            'ratePoints': len(all_values),
        },
    }
