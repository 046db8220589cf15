"""
Rates Ingestion Engine - Orchestrates one scrape-to-store run per data type

Workflow:
1. Validate configuration (ingest secret, thresholds)
2. Load the current latest document (failure = no previous data)
3. Fetch the source page
4. Extract and validate the RatesDocument
5. Compare against the latest; stop if unchanged
6. Run the quality guardrail against the latest
7. Compute the daily aggregate
8. Write snapshot + aggregate + latest pointer + audit row

Statuses:
- saved: Written to the store
- unchanged: Identical to the current latest, nothing written
- rejected: Quality guardrail refused the document (requires attention)
- failed: A stage errored (store failures require attention)
- dry_run: Everything up to the write succeeded, write skipped

Usage:
    from services.rates_ingestion import RatesIngestionEngine

    engine = RatesIngestionEngine('mortgage-rates', config, store, client)
    result = engine.run()
"""

import time
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from constants import DATA_TYPES
from models.rate_ingestion_run import RunStatus
from schemas.rates import Invalid, parse_document, validate_document
from scrapers import get_scraper
from services.change_detector import has_data_changed
from services.errors import FetchError, RatesPipelineError, StoreError
from services.ingestion_config import IngestionConfig, validate_ingestion_config
from services.quality_guardrail import check_quality, summarize_dataset
from services.rate_aggregates import compute_daily_aggregate
from services.snapshot_store import build_snapshot
from utils.normalize import to_iso_timestamp, utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# Result Types
# =============================================================================

class IngestStatus(str, Enum):
    SAVED = "saved"
    UNCHANGED = "unchanged"
    REJECTED = "rejected"
    FAILED = "failed"
    DRY_RUN = "dry_run"


@dataclass
class IngestionResult:
    """Result of one ingestion run."""
    data_type: str
    success: bool
    status: str
    error_stage: Optional[str] = None
    error_message: Optional[str] = None
    requires_attention: bool = False
    snapshot_date: Optional[str] = None
    latest_updated: bool = False
    guardrail_overridden: bool = False
    summary: Dict[str, Any] = field(default_factory=dict)
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# CLI exit codes
EXIT_OK = 0
EXIT_FAILED = 1
EXIT_REJECTED = 3


def exit_code_for(results: List[IngestionResult]) -> int:
    """Hard failures win over guardrail rejections; anything else is 0."""
    if any(r.status == IngestStatus.FAILED.value for r in results):
        return EXIT_FAILED
    if any(r.status == IngestStatus.REJECTED.value for r in results):
        return EXIT_REJECTED
    return EXIT_OK


def _log_stage(stage: str, data_type: str, outcome: str, **fields: Any):
    extra = ''.join(f" {k}={v}" for k, v in fields.items())
    level = logging.INFO if outcome in ('ok', 'skipped') else logging.WARNING
    logger.log(level, f"ingest_stage stage={stage} data_type={data_type} outcome={outcome}{extra}")


# =============================================================================
# Ingestion Engine
# =============================================================================

class RatesIngestionEngine:
    """
    Runs the pipeline for a single data type.

    Example:
        engine = RatesIngestionEngine('car-loan-rates', config, store, client)
        result = engine.run()
        if result.requires_attention:
            alert(result.error_message)
    """

    def __init__(
        self,
        data_type: str,
        config: IngestionConfig,
        store,
        client=None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            data_type: Wire data type to ingest
            config: Explicit ingestion configuration
            store: SnapshotStore (or compatible)
            client: InterestScraperClient; only needed when run() fetches
            clock: Returns current UTC time; injectable for tests
        """
        if data_type not in DATA_TYPES:
            raise ValueError(f"Unknown data type: {data_type!r}")
        self.data_type = data_type
        self.config = config
        self.store = store
        self.scraper = get_scraper(data_type, client=client)
        self._clock = clock

    def run(self, html: Optional[str] = None) -> IngestionResult:
        """
        Execute the pipeline.

        Args:
            html: Page content to use instead of fetching

        Returns:
            IngestionResult; never raises for pipeline errors
        """
        start = time.time()
        scraped_at = to_iso_timestamp(self._clock())
        snapshot_date = scraped_at.split('T')[0]

        logger.info("=" * 70)
        logger.info(f"RATES INGESTION - {self.data_type.upper()} - STARTING")
        logger.info("=" * 70)
        logger.info(f"  Scraped at:  {scraped_at}")
        logger.info(f"  Dry run:     {self.config.dry_run}")
        logger.info(f"  Override:    {self.config.allow_suspicious_data}")
        logger.info("=" * 70)

        result = self._run_stages(html, scraped_at, snapshot_date)
        result.duration_seconds = time.time() - start

        log = logger.info if result.success else logger.error
        log("=" * 70)
        log(f"RATES INGESTION - {self.data_type.upper()} - {result.status.upper()}")
        log("=" * 70)
        log(f"  Duration:    {result.duration_seconds:.1f}s")
        if result.summary:
            log(f"  Entities:    {result.summary.get('entities', 0)}")
            log(f"  Products:    {result.summary.get('products', 0)}")
            log(f"  Rate points: {result.summary.get('rate_points', 0)}")
        if result.error_message:
            log(f"  Error:       {result.error_message}")
            log(f"  Stage:       {result.error_stage}")
        log("=" * 70)

        return result

    def _failed(self, stage: str, error: Any, snapshot_date: str, **kwargs) -> IngestionResult:
        _log_stage(stage, self.data_type, 'failed', error=f"\"{error}\"")
        return IngestionResult(
            data_type=self.data_type,
            success=False,
            status=IngestStatus.FAILED.value,
            error_stage=stage,
            error_message=str(error),
            snapshot_date=snapshot_date,
            **kwargs,
        )

    def _run_stages(self, html: Optional[str], scraped_at: str, snapshot_date: str) -> IngestionResult:
        # 1. Configuration
        is_valid, error = validate_ingestion_config(self.config)
        if not is_valid:
            return self._failed('config', error, snapshot_date)
        _log_stage('config', self.data_type, 'ok')

        # 2. Current latest
        previous = self._load_previous()

        # 3. Fetch
        if html is None:
            try:
                html = self.scraper.fetch_page()
            except FetchError as e:
                return self._failed('fetch', e, snapshot_date)
            _log_stage('fetch', self.data_type, 'ok', chars=len(html))

        # 4. Extract and validate
        try:
            raw_document = self.scraper.build_document(html, last_updated=scraped_at)
        except (RatesPipelineError, ValueError) as e:
            return self._failed('validate', e, snapshot_date)

        outcome = validate_document(self.data_type, raw_document)
        if isinstance(outcome, Invalid):
            return self._failed(
                'validate',
                f"{len(outcome.reasons)} validation errors: {'; '.join(outcome.reasons[:5])}",
                snapshot_date,
            )
        document = outcome.document
        summary = summarize_dataset(self.data_type, document).to_dict()
        _log_stage('validate', self.data_type, 'ok', entities=summary['entities'],
                   rate_points=summary['rate_points'])

        # 5. Change detection
        if previous is not None and not has_data_changed(document, previous):
            _log_stage('change', self.data_type, 'skipped', reason='unchanged')
            self._record_run(RunStatus.SKIPPED, snapshot_date, scraped_at, reason="No changes detected")
            return IngestionResult(
                data_type=self.data_type,
                success=True,
                status=IngestStatus.UNCHANGED.value,
                snapshot_date=snapshot_date,
                summary=summary,
            )

        # 6. Quality guardrail
        guardrail = check_quality(self.data_type, document, previous, self.config)
        if not guardrail.accepted:
            _log_stage('guardrail', self.data_type, 'rejected', reason=f"\"{guardrail.reason}\"")
            self._record_run(RunStatus.FAILED, snapshot_date, scraped_at, reason=guardrail.reason)
            return IngestionResult(
                data_type=self.data_type,
                success=False,
                status=IngestStatus.REJECTED.value,
                error_stage='guardrail',
                error_message=guardrail.reason,
                requires_attention=True,
                snapshot_date=snapshot_date,
                summary=summary,
            )
        _log_stage('guardrail', self.data_type, 'overridden' if guardrail.overridden else 'ok')

        # 7. Aggregate
        aggregate = compute_daily_aggregate(self.data_type, document, scraped_at)

        if self.config.dry_run:
            _log_stage('store', self.data_type, 'skipped', reason='dry_run')
            return IngestionResult(
                data_type=self.data_type,
                success=True,
                status=IngestStatus.DRY_RUN.value,
                snapshot_date=snapshot_date,
                guardrail_overridden=guardrail.overridden,
                summary=summary,
            )

        # 8. Store
        snapshot = build_snapshot(self.data_type, document, aggregate, scraped_at)
        try:
            written = self.store.write(snapshot, aggregate, self.config.ingest_secret)
        except StoreError as e:
            return self._failed(
                'store', e, snapshot_date,
                requires_attention=True,
                guardrail_overridden=guardrail.overridden,
                summary=summary,
            )
        _log_stage('store', self.data_type, 'ok', latest_updated=written.latest_updated,
                   records=snapshot.record_count)

        return IngestionResult(
            data_type=self.data_type,
            success=True,
            status=IngestStatus.SAVED.value,
            snapshot_date=written.snapshot_date,
            latest_updated=written.latest_updated,
            guardrail_overridden=guardrail.overridden,
            summary=summary,
        )

    def _load_previous(self) -> Optional[Dict[str, Any]]:
        """Current latest document; any failure is treated as no previous data."""
        try:
            snapshot = self.store.get(self.data_type)
            if snapshot is None:
                _log_stage('load', self.data_type, 'ok', previous='none')
                return None
            document = parse_document(self.data_type, snapshot.payload)
        except Exception as e:
            logger.warning(
                f"ingest_stage stage=load data_type={self.data_type} outcome=failed "
                f"error=\"{e}\" (continuing without previous data)"
            )
            return None
        _log_stage('load', self.data_type, 'ok', previous=snapshot.snapshot_date)
        return document

    def _record_run(self, status: RunStatus, snapshot_date: str, scraped_at: str, reason: str):
        """Append a skipped/failed audit row; never fails the run."""
        if self.config.dry_run:
            return
        try:
            self.store.record_run(
                data_type=self.data_type,
                snapshot_date=snapshot_date,
                status=status,
                started_at=scraped_at,
                ingest_secret=self.config.ingest_secret,
                reason=reason,
            )
        except StoreError as e:
            logger.warning(f"Could not record {status.value} run for {self.data_type}: {e}")


def run_ingestion(
    data_types: List[str],
    config: IngestionConfig,
    store,
    client=None,
    html: Optional[str] = None,
) -> List[IngestionResult]:
    """Run the engine for each data type in order; one failure doesn't stop the rest."""
    results = []
    for data_type in data_types:
        engine = RatesIngestionEngine(data_type, config, store, client=client)
        results.append(engine.run(html=html))
    return results
