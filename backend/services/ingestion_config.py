"""
Rates Ingestion Configuration - Environment-based settings and guardrail thresholds

Environment Variables:
    RATES_INGEST_SECRET: shared secret required by the snapshot store
        Writes are refused when unset (except in dry-run mode).

    ALLOW_SUSPICIOUS_DATA: 'true' or 'false' (default: 'false')
        Operator override to force-accept a payload that failed the
        quality guardrail. Logged distinctly from a normal pass.

    RATES_INGEST_DRY_RUN: 'true' or 'false' (default: 'false')
        Fetch, extract, validate and check quality, but don't write.

    RATES_QUALITY_CONFIG: path to a thresholds YAML file
        Default: services/quality_guardrails.yaml

Library code never reads the environment; it receives an IngestionConfig.
"""

import os
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from constants import (
    CAR_LOAN_RATES,
    CREDIT_CARD_RATES,
    DATA_TYPES,
    MORTGAGE_RATES,
    PERSONAL_LOAN_RATES,
)
from utils.normalize import to_bool

logger = logging.getLogger(__name__)


# =============================================================================
# Quality Thresholds
# =============================================================================

@dataclass(frozen=True)
class QualityThresholds:
    """Static floors for one data type."""
    min_entities: int
    min_rate_points: int


DEFAULT_QUALITY_THRESHOLDS: Dict[str, QualityThresholds] = {
    MORTGAGE_RATES: QualityThresholds(min_entities=8, min_rate_points=80),
    PERSONAL_LOAN_RATES: QualityThresholds(min_entities=6, min_rate_points=20),
    CAR_LOAN_RATES: QualityThresholds(min_entities=6, min_rate_points=20),
    CREDIT_CARD_RATES: QualityThresholds(min_entities=4, min_rate_points=25),
}

DEFAULT_RELATIVE_DROP_RATIO = 0.55


def default_quality_config_path() -> str:
    """Get default thresholds path."""
    return str(Path(__file__).parent / "quality_guardrails.yaml")


def load_quality_config(
    path: Optional[str] = None,
) -> Tuple[Dict[str, QualityThresholds], float]:
    """
    Load guardrail thresholds from YAML.

    Missing file, missing data types and missing keys fall back to the
    built-in defaults.

    Returns:
        (thresholds by data type, relative drop ratio)

    Raises:
        ValueError: If the file holds values of the wrong type
    """
    path = path or default_quality_config_path()
    try:
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
        logger.info(f"Loaded quality thresholds from {path}")
    except FileNotFoundError:
        logger.warning(f"Quality config not found at {path}, using defaults")
        raw = {}

    if not isinstance(raw, dict):
        raise ValueError(f"Quality config {path} must be a mapping, got {type(raw).__name__}")

    thresholds = dict(DEFAULT_QUALITY_THRESHOLDS)
    for data_type, entry in (raw.get("data_types") or {}).items():
        if data_type not in DATA_TYPES:
            logger.warning(f"Ignoring thresholds for unknown data type '{data_type}'")
            continue
        base = thresholds[data_type]
        entry = entry or {}
        thresholds[data_type] = QualityThresholds(
            min_entities=int(entry.get("min_entities", base.min_entities)),
            min_rate_points=int(entry.get("min_rate_points", base.min_rate_points)),
        )

    ratio = float(raw.get("relative_drop_ratio", DEFAULT_RELATIVE_DROP_RATIO))
    if not 0 < ratio <= 1:
        raise ValueError(f"relative_drop_ratio must be in (0, 1], got {ratio}")

    return thresholds, ratio


# =============================================================================
# Ingestion Config
# =============================================================================

@dataclass(frozen=True)
class IngestionConfig:
    """Explicit configuration threaded through guardrail and store calls."""
    ingest_secret: Optional[str] = None
    thresholds: Dict[str, QualityThresholds] = field(
        default_factory=lambda: dict(DEFAULT_QUALITY_THRESHOLDS)
    )
    relative_drop_ratio: float = DEFAULT_RELATIVE_DROP_RATIO
    allow_suspicious_data: bool = False
    dry_run: bool = False

    def thresholds_for(self, data_type: str) -> QualityThresholds:
        try:
            return self.thresholds[data_type]
        except KeyError:
            raise ValueError(f"No quality thresholds for data type {data_type!r}")

    def with_overrides(self, **changes: Any) -> "IngestionConfig":
        """Copy with some fields replaced (e.g. CLI flags)."""
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "IngestionConfig":
        """
        Build config from environment variables.

        Raises:
            ValidationError: If a boolean variable is not a boolean string
        """
        env = os.environ if environ is None else environ
        thresholds, ratio = load_quality_config(env.get("RATES_QUALITY_CONFIG"))
        return cls(
            ingest_secret=env.get("RATES_INGEST_SECRET") or None,
            thresholds=thresholds,
            relative_drop_ratio=ratio,
            allow_suspicious_data=to_bool(
                env.get("ALLOW_SUSPICIOUS_DATA"), field="ALLOW_SUSPICIOUS_DATA"
            ),
            dry_run=to_bool(env.get("RATES_INGEST_DRY_RUN"), field="RATES_INGEST_DRY_RUN"),
        )


# =============================================================================
# Validation
# =============================================================================

def validate_ingestion_config(config: IngestionConfig) -> Tuple[bool, Optional[str]]:
    """
    Validate ingestion configuration before starting.

    Returns:
        (is_valid, error_message)
    """
    if not config.dry_run and not config.ingest_secret:
        return False, "RATES_INGEST_SECRET environment variable not set"

    missing = [dt for dt in DATA_TYPES if dt not in config.thresholds]
    if missing:
        return False, f"Missing quality thresholds for: {', '.join(missing)}"

    return True, None


def load_config_from_env() -> Tuple[Optional[IngestionConfig], Optional[str]]:
    """
    Load config, converting bad environment values into an error message.

    Returns:
        (config, None) or (None, error_message)
    """
    try:
        return IngestionConfig.from_env(), None
    except ValueError as e:
        return None, str(e)


def log_ingestion_config(config: IngestionConfig):
    """Log current ingestion configuration (never the secret itself)."""
    logger.info("=" * 60)
    logger.info("Rates Ingestion Configuration")
    logger.info("=" * 60)
    logger.info(f"  Ingest secret:     {'set' if config.ingest_secret else 'NOT SET'}")
    logger.info(f"  Dry run:           {config.dry_run}")
    logger.info(f"  Allow suspicious:  {config.allow_suspicious_data}")
    logger.info(f"  Relative ratio:    {config.relative_drop_ratio}")
    for data_type, t in config.thresholds.items():
        logger.info(
            f"  {data_type:<20} min_entities={t.min_entities} "
            f"min_rate_points={t.min_rate_points}"
        )
    logger.info("=" * 60)
