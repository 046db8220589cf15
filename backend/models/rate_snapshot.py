"""
RateSnapshot Model - Daily history of scraped RatesDocuments

One row per (data_type, snapshot_date). A second ingestion on the same day
replaces the row's fields in place rather than appending.

Dates and timestamps are stored as ISO strings: the latest-pointer rule
compares (snapshot_date, scraped_at) lexically.
"""
from models.database import db


class RateSnapshot(db.Model):
    __tablename__ = 'rate_snapshots'

    id = db.Column(db.Integer, primary_key=True)

    # Identity
    data_type = db.Column(db.String(32), nullable=False)       # mortgage-rates, ...
    model_type = db.Column(db.String(32), nullable=False)      # MortgageRates, ...
    snapshot_date = db.Column(db.String(10), nullable=False)   # YYYY-MM-DD

    # Content
    payload = db.Column(db.JSON, nullable=False)
    payload_hash = db.Column(db.String(64), nullable=False)
    record_count = db.Column(db.Integer, nullable=False, default=0)

    # Timing (ISO-8601 UTC, 'Z' suffix)
    scraped_at = db.Column(db.String(32), nullable=False)
    source_last_updated = db.Column(db.String(32), nullable=False)

    __table_args__ = (
        db.UniqueConstraint('data_type', 'snapshot_date', name='uq_rate_snapshots_type_date'),
        db.Index('ix_rate_snapshots_type_date', 'data_type', 'snapshot_date'),
    )

    def apply(self, snapshot):
        """Copy fields from a Snapshot value onto this row."""
        self.data_type = snapshot.data_type
        self.model_type = snapshot.model_type
        self.snapshot_date = snapshot.snapshot_date
        self.payload = snapshot.payload
        self.payload_hash = snapshot.payload_hash
        self.record_count = snapshot.record_count
        self.scraped_at = snapshot.scraped_at
        self.source_last_updated = snapshot.source_last_updated

    def to_dict(self):
        """Convert to dictionary (wire format)."""
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

    def __repr__(self):
        return f"<RateSnapshot {self.data_type} {self.snapshot_date}>"
