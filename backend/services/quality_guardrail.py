"""
Quality Guardrail - blocks suspicious scrapes from becoming the latest.

Checks, in order:
1. Payload type (and previous payload type, if any) matches the data type
2. Static floors: entities >= min_entities, rate points >= min_rate_points
3. Relative floor against the previous latest, rate points then entities:
   reject when previous > 0 and new < floor(previous * relative_drop_ratio)

The guardrail never mutates data. A failed check can be force-accepted by
the operator override; such results carry overridden=True.

Usage:
    from services.quality_guardrail import check_quality

    result = check_quality('mortgage-rates', new_doc, previous_doc, config)
    if not result.accepted:
        print(result.reason)
"""
import math
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from constants import model_type_for_data_type
from services.ingestion_config import IngestionConfig
from services.rate_aggregates import children_key, product_rate_values

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualitySummary:
    """Raw counts compared against the thresholds."""
    entities: int
    products: int
    rate_points: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class GuardrailResult:
    """Outcome of a quality check."""
    ok: bool
    reason: str
    overridden: bool = False
    summary: Optional[QualitySummary] = None
    previous_summary: Optional[QualitySummary] = None

    @property
    def accepted(self) -> bool:
        return self.ok or self.overridden

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': self.ok,
            'accepted': self.accepted,
            'overridden': self.overridden,
            'reason': self.reason,
            'summary': self.summary.to_dict() if self.summary else None,
            'previous_summary': self.previous_summary.to_dict() if self.previous_summary else None,
        }


def _matches_data_type(data_type: str, document: Dict[str, Any]) -> bool:
    return document.get('type') == model_type_for_data_type(data_type)


def summarize_dataset(data_type: str, document: Dict[str, Any]) -> QualitySummary:
    """
    Count entities, products and rate points of a document.

    Raises:
        ValueError: If the document type does not match data_type
    """
    if not _matches_data_type(data_type, document):
        raise ValueError(
            f"Model type {document.get('type')} does not match data type {data_type}"
        )

    key = children_key(data_type)
    entities = document.get('data', [])
    products = 0
    rate_points = 0
    for entity in entities:
        for product in entity.get(key, []):
            products += 1
            rate_points += len(product_rate_values(data_type, product))

    return QualitySummary(entities=len(entities), products=products, rate_points=rate_points)


def _evaluate(
    data_type: str,
    next_document: Dict[str, Any],
    previous_document: Optional[Dict[str, Any]],
    config: IngestionConfig,
) -> GuardrailResult:
    if not _matches_data_type(data_type, next_document):
        return GuardrailResult(
            ok=False,
            reason=(
                f"Quality guardrail failed: payload type {next_document.get('type')} "
                f"does not match {data_type}"
            ),
        )

    if previous_document is not None and not _matches_data_type(data_type, previous_document):
        return GuardrailResult(
            ok=False,
            reason=(
                f"Quality guardrail failed: previous payload type "
                f"{previous_document.get('type')} does not match {data_type}"
            ),
        )

    baseline = config.thresholds_for(data_type)
    summary = summarize_dataset(data_type, next_document)

    if summary.entities < baseline.min_entities:
        return GuardrailResult(
            ok=False,
            reason=(
                f"Quality guardrail failed: {data_type} has {summary.entities} entities "
                f"(minimum {baseline.min_entities})"
            ),
            summary=summary,
        )

    if summary.rate_points < baseline.min_rate_points:
        return GuardrailResult(
            ok=False,
            reason=(
                f"Quality guardrail failed: {data_type} has {summary.rate_points} rate points "
                f"(minimum {baseline.min_rate_points})"
            ),
            summary=summary,
        )

    if previous_document is None:
        return GuardrailResult(ok=True, reason="ok", summary=summary)

    previous = summarize_dataset(data_type, previous_document)
    ratio = config.relative_drop_ratio

    if previous.rate_points > 0 and summary.rate_points < math.floor(previous.rate_points * ratio):
        return GuardrailResult(
            ok=False,
            reason=(
                f"Quality guardrail failed: {data_type} rate points dropped from "
                f"{previous.rate_points} to {summary.rate_points}"
            ),
            summary=summary,
            previous_summary=previous,
        )

    if previous.entities > 0 and summary.entities < math.floor(previous.entities * ratio):
        return GuardrailResult(
            ok=False,
            reason=(
                f"Quality guardrail failed: {data_type} entities dropped from "
                f"{previous.entities} to {summary.entities}"
            ),
            summary=summary,
            previous_summary=previous,
        )

    return GuardrailResult(ok=True, reason="ok", summary=summary, previous_summary=previous)


def check_quality(
    data_type: str,
    next_document: Dict[str, Any],
    previous_document: Optional[Dict[str, Any]] = None,
    config: Optional[IngestionConfig] = None,
) -> GuardrailResult:
    """
    Run the quality guardrail.

    Args:
        data_type: Wire data type
        next_document: Freshly extracted, validated document
        previous_document: Current latest document, if any
        config: Thresholds and override flag (defaults when None)

    Returns:
        GuardrailResult; check .accepted for the final decision
    """
    config = config or IngestionConfig()
    result = _evaluate(data_type, next_document, previous_document, config)

    if result.ok:
        logger.info(f"ingest_guardrail data_type={data_type} outcome=pass")
        return result

    if config.allow_suspicious_data:
        logger.warning(
            f"ingest_guardrail data_type={data_type} outcome=overridden "
            f"reason=\"{result.reason}\" (ALLOW_SUSPICIOUS_DATA enabled)"
        )
        return GuardrailResult(
            ok=False,
            reason=result.reason,
            overridden=True,
            summary=result.summary,
            previous_summary=result.previous_summary,
        )

    logger.error(f"ingest_guardrail data_type={data_type} outcome=rejected reason=\"{result.reason}\"")
    return result
