"""
LatestRateData Model - current-truth pointer per data type

Zero or one row per data_type is the steady state. data_type is indexed
but deliberately not unique: interleaved writers can leave a transient
duplicate, which the next successful write prunes.
"""
from models.database import db


class LatestRateData(db.Model):
    __tablename__ = 'latest_rate_data'

    id = db.Column(db.Integer, primary_key=True)

    data_type = db.Column(db.String(32), nullable=False, index=True)
    model_type = db.Column(db.String(32), nullable=False)
    snapshot_date = db.Column(db.String(10), nullable=False)

    payload = db.Column(db.JSON, nullable=False)
    payload_hash = db.Column(db.String(64), nullable=False)
    record_count = db.Column(db.Integer, nullable=False, default=0)

    scraped_at = db.Column(db.String(32), nullable=False)
    source_last_updated = db.Column(db.String(32), nullable=False)
    updated_at = db.Column(db.String(32), nullable=False)

    @property
    def sort_key(self):
        """(snapshot_date, scraped_at), compared as strings."""
        return (self.snapshot_date, self.scraped_at)

    def apply(self, snapshot, updated_at: str):
        """Point this row at a newly accepted snapshot."""
        self.data_type = snapshot.data_type
        self.model_type = snapshot.model_type
        self.snapshot_date = snapshot.snapshot_date
        self.payload = snapshot.payload
        self.payload_hash = snapshot.payload_hash
        self.record_count = snapshot.record_count
        self.scraped_at = snapshot.scraped_at
        self.source_last_updated = snapshot.source_last_updated
        self.updated_at = updated_at

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
            'updatedAt': self.updated_at,
        }

    def __repr__(self):
        return f"<LatestRateData {self.data_type} {self.snapshot_date} {self.scraped_at}>"
