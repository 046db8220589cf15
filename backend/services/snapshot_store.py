"""
Snapshot Store - persisted history, latest pointer, aggregates and audit log

Write protocol (one database transaction):
1. Check the caller's ingest secret against the configured one
2. Upsert the RateSnapshot for (data_type, snapshot_date)
3. Upsert the DailyRateAggregate for the same key
4. Move the LatestRateData pointer if none exists or the new
   (snapshot_date, scraped_at) pair is >= the current one (string order),
   then delete any duplicate pointer rows for the data type
5. Append a 'success' RateIngestionRun

Any failure in 2-5 rolls the whole transaction back, so the snapshot and
the latest pointer can never disagree about a half-applied write.

Usage:
    from services.snapshot_store import SnapshotStore, build_snapshot

    store = SnapshotStore(config)
    snapshot = build_snapshot('mortgage-rates', document, aggregate, scraped_at)
    result = store.write(snapshot, aggregate, config.ingest_secret)
"""

import hmac
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from constants import model_type_for_data_type
from models.database import db
from models.daily_rate_aggregate import DailyRateAggregate
from models.latest_rate_data import LatestRateData
from models.rate_ingestion_run import RateIngestionRun, RunStatus
from models.rate_snapshot import RateSnapshot
from scrapers.utils.hashing import compute_json_hash
from services.errors import IngestAuthError, IngestConfigError, StoreWriteError
from services.ingestion_config import IngestionConfig
from utils.normalize import to_iso_timestamp, to_snapshot_date, utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# Values
# =============================================================================

@dataclass(frozen=True)
class Snapshot:
    """One stored RatesDocument with its bookkeeping fields."""
    data_type: str
    model_type: str
    snapshot_date: str
    payload: Dict[str, Any]
    payload_hash: str
    record_count: int
    scraped_at: str
    source_last_updated: str

    def to_dict(self) -> Dict[str, Any]:
        """Wire format (camelCase)."""
        return {
            'dataType': self.data_type,
            'modelType': self.model_type,
            'snapshotDate': self.snapshot_date,
            'payload': self.payload,
            'payloadHash': self.payload_hash,
            'recordCount': self.record_count,
            'scrapedAt': self.scraped_at,
            'sourceLastUpdated': self.source_last_updated,
        }

    @classmethod
    def from_row(cls, row) -> "Snapshot":
        return cls(
            data_type=row.data_type,
            model_type=row.model_type,
            snapshot_date=row.snapshot_date,
            payload=row.payload,
            payload_hash=row.payload_hash,
            record_count=row.record_count,
            scraped_at=row.scraped_at,
            source_last_updated=row.source_last_updated,
        )


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a successful store write."""
    accepted: bool
    latest_updated: bool
    snapshot_date: str
    status: str = "ok"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_snapshot(
    data_type: str,
    document: Dict[str, Any],
    aggregate: Dict[str, Any],
    scraped_at: str,
) -> Snapshot:
    """
    Assemble the Snapshot for a validated document.

    snapshot_date is the UTC calendar date of scraped_at. record_count is
    the aggregate's rate point total. source_last_updated falls back to
    scraped_at when the document carries no lastUpdated.
    """
    snapshot_date = to_snapshot_date(scraped_at.split('T')[0], field='scraped_at')
    return Snapshot(
        data_type=data_type,
        model_type=model_type_for_data_type(data_type),
        snapshot_date=snapshot_date,
        payload=document,
        payload_hash=compute_json_hash(document),
        record_count=aggregate['totals']['ratePoints'],
        scraped_at=scraped_at,
        source_last_updated=document.get('lastUpdated') or scraped_at,
    )


def _in_range(date: str, start_date: str, end_date: str) -> bool:
    return start_date <= date <= end_date


# =============================================================================
# Store
# =============================================================================

class SnapshotStore:
    """
    SQLAlchemy-backed snapshot store.

    Reads are side-effect free. Writes require the configured ingest secret.
    """

    def __init__(
        self,
        config: IngestionConfig,
        session=None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            config: Holds the configured ingest secret
            session: SQLAlchemy session (default: db.session)
            clock: Returns the current UTC time; injectable for tests
        """
        self.config = config
        self._session = session
        self._clock = clock

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _now(self) -> str:
        return to_iso_timestamp(self._clock())

    # =========================================================================
    # Authentication
    # =========================================================================

    def assert_ingest_secret(self, ingest_secret: Optional[str]):
        """
        Raises:
            IngestConfigError: If no secret is configured
            IngestAuthError: If the supplied secret does not match
        """
        expected = self.config.ingest_secret
        if not expected:
            raise IngestConfigError("Ingest secret is not configured")
        if not ingest_secret or not hmac.compare_digest(
            ingest_secret.encode('utf-8'), expected.encode('utf-8')
        ):
            raise IngestAuthError("Invalid ingest secret")

    # =========================================================================
    # Write protocol
    # =========================================================================

    def write(
        self,
        snapshot: Snapshot,
        aggregate: Dict[str, Any],
        ingest_secret: Optional[str],
    ) -> WriteResult:
        """
        Persist a snapshot and its aggregate, moving the latest pointer if newer.

        Raises:
            IngestConfigError / IngestAuthError: Before anything is written
            StoreWriteError: If the transaction failed (rolled back)
        """
        self.assert_ingest_secret(ingest_secret)

        session = self.session
        now = self._now()

        try:
            self._upsert_snapshot(snapshot)
            self._upsert_aggregate(snapshot, aggregate, now)
            latest_updated = self._update_latest(snapshot, now)
            session.add(RateIngestionRun(
                data_type=snapshot.data_type,
                snapshot_date=snapshot.snapshot_date,
                status=RunStatus.SUCCESS.value,
                started_at=snapshot.scraped_at,
                finished_at=now,
                payload_hash=snapshot.payload_hash,
            ))
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(
                f"store_write data_type={snapshot.data_type} "
                f"snapshot_date={snapshot.snapshot_date} outcome=rolled_back error=\"{e}\""
            )
            raise StoreWriteError(f"Failed to write {snapshot.data_type} snapshot: {e}") from e

        logger.info(
            f"store_write data_type={snapshot.data_type} snapshot_date={snapshot.snapshot_date} "
            f"latest_updated={latest_updated} records={snapshot.record_count}"
        )
        return WriteResult(
            accepted=True,
            latest_updated=latest_updated,
            snapshot_date=snapshot.snapshot_date,
        )

    def _upsert_snapshot(self, snapshot: Snapshot):
        row = self.session.query(RateSnapshot).filter_by(
            data_type=snapshot.data_type,
            snapshot_date=snapshot.snapshot_date,
        ).first()
        if row is None:
            row = RateSnapshot()
            self.session.add(row)
        row.apply(snapshot)

    def _upsert_aggregate(self, snapshot: Snapshot, aggregate: Dict[str, Any], now: str):
        row = self.session.query(DailyRateAggregate).filter_by(
            data_type=snapshot.data_type,
            snapshot_date=snapshot.snapshot_date,
        ).first()
        if row is None:
            row = DailyRateAggregate(
                data_type=snapshot.data_type,
                snapshot_date=snapshot.snapshot_date,
            )
            self.session.add(row)
        row.aggregate = aggregate
        row.payload_hash = snapshot.payload_hash
        row.generated_at = now

    def _update_latest(self, snapshot: Snapshot, now: str) -> bool:
        rows = self.session.query(LatestRateData).filter_by(
            data_type=snapshot.data_type,
        ).all()
        rows.sort(key=lambda r: r.sort_key, reverse=True)

        latest_updated = False
        if not rows:
            row = LatestRateData()
            row.apply(snapshot, updated_at=now)
            self.session.add(row)
            latest_updated = True
        elif (snapshot.snapshot_date, snapshot.scraped_at) >= rows[0].sort_key:
            rows[0].apply(snapshot, updated_at=now)
            latest_updated = True
        else:
            logger.warning(
                f"store_write data_type={snapshot.data_type} latest_unchanged "
                f"incoming={snapshot.snapshot_date}/{snapshot.scraped_at} "
                f"current={rows[0].snapshot_date}/{rows[0].scraped_at}"
            )

        for duplicate in rows[1:]:
            logger.warning(
                f"store_write data_type={snapshot.data_type} pruning duplicate latest "
                f"snapshot_date={duplicate.snapshot_date}"
            )
            self.session.delete(duplicate)

        return latest_updated

    def record_run(
        self,
        data_type: str,
        snapshot_date: str,
        status: RunStatus,
        started_at: str,
        ingest_secret: Optional[str],
        payload_hash: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Append a non-success audit row (skipped / failed).

        Raises:
            IngestConfigError / IngestAuthError: Before anything is written
            StoreWriteError: If the insert failed (rolled back)
        """
        self.assert_ingest_secret(ingest_secret)
        run = RateIngestionRun(
            data_type=data_type,
            snapshot_date=snapshot_date,
            status=RunStatus(status).value,
            started_at=started_at,
            finished_at=self._now(),
            payload_hash=payload_hash,
            reason=reason,
        )
        try:
            self.session.add(run)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            raise StoreWriteError(f"Failed to record {data_type} ingestion run: {e}") from e
        return run.to_dict()

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, data_type: str) -> Optional[Snapshot]:
        """Current latest snapshot, or None. Tolerates transient duplicates."""
        rows = self.session.query(LatestRateData).filter_by(data_type=data_type).all()
        if not rows:
            return None
        return Snapshot.from_row(max(rows, key=lambda r: r.sort_key))

    def get_historical(self, data_type: str, date: str) -> Optional[Snapshot]:
        row = self.session.query(RateSnapshot).filter_by(
            data_type=data_type,
            snapshot_date=date,
        ).first()
        return Snapshot.from_row(row) if row else None

    def list_dates(self, data_type: str) -> List[str]:
        """Distinct snapshot dates, ascending."""
        rows = self.session.query(RateSnapshot.snapshot_date).filter_by(
            data_type=data_type,
        ).all()
        return sorted({row[0] for row in rows})

    def get_time_series(self, data_type: str, start_date: str, end_date: str) -> Dict[str, Snapshot]:
        """Snapshots keyed by date for start_date <= date <= end_date."""
        rows = self.session.query(RateSnapshot).filter_by(data_type=data_type).all()
        return {
            row.snapshot_date: Snapshot.from_row(row)
            for row in sorted(rows, key=lambda r: r.snapshot_date)
            if _in_range(row.snapshot_date, start_date, end_date)
        }

    def get_aggregate_by_date(self, data_type: str, date: str) -> Optional[Dict[str, Any]]:
        row = self.session.query(DailyRateAggregate).filter_by(
            data_type=data_type,
            snapshot_date=date,
        ).first()
        return row.aggregate if row else None

    def get_aggregate_time_series(
        self,
        data_type: str,
        start_date: str,
        end_date: str,
    ) -> Dict[str, Dict[str, Any]]:
        """Aggregates keyed by date for start_date <= date <= end_date."""
        rows = self.session.query(DailyRateAggregate).filter_by(data_type=data_type).all()
        return {
            row.snapshot_date: row.aggregate
            for row in sorted(rows, key=lambda r: r.snapshot_date)
            if _in_range(row.snapshot_date, start_date, end_date)
        }

    def list_runs(self, data_type: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent audit rows for a data type."""
        rows = (
            self.session.query(RateIngestionRun)
            .filter_by(data_type=data_type)
            .order_by(RateIngestionRun.id.desc())
            .limit(limit)
            .all()
        )
        return [row.to_dict() for row in rows]
