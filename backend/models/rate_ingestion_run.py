"""
RateIngestionRun Model - append-only audit log of ingestion outcomes

Rows are inserted once and never updated:
- success: snapshot, aggregate and (maybe) latest were written
- skipped: scrape was identical to the stored latest
- failed: scrape was rejected by the quality guardrail
"""
from enum import Enum

from models.database import db


class RunStatus(str, Enum):
    """Terminal status of an ingestion run."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class RateIngestionRun(db.Model):
    """Audit record for one ingestion attempt."""

    __tablename__ = "rate_ingestion_runs"

    id = db.Column(db.Integer, primary_key=True)

    data_type = db.Column(db.String(32), nullable=False, index=True)
    snapshot_date = db.Column(db.String(10), nullable=False)
    status = db.Column(db.String(16), nullable=False, index=True)

    started_at = db.Column(db.String(32), nullable=False)
    finished_at = db.Column(db.String(32), nullable=False)
    payload_hash = db.Column(db.String(64))
    reason = db.Column(db.Text)

    __table_args__ = (
        db.Index("ix_rate_ingestion_runs_type_date", "data_type", "snapshot_date"),
        db.CheckConstraint(
            "status IN ('success', 'skipped', 'failed')",
            name="rate_ingestion_runs_status_check",
        ),
    )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "dataType": self.data_type,
            "snapshotDate": self.snapshot_date,
            "status": self.status,
            "startedAt": self.started_at,
            "finishedAt": self.finished_at,
            "payloadHash": self.payload_hash,
            "reason": self.reason,
        }

    def __repr__(self):
        return f"<RateIngestionRun {self.data_type} {self.snapshot_date} {self.status}>"
