"""
DailyRateAggregate Model - statistics derived from one snapshot

Recomputed and replaced whenever its snapshot is (re)written.
"""
from models.database import db


class DailyRateAggregate(db.Model):
    __tablename__ = 'daily_rate_aggregates'

    id = db.Column(db.Integer, primary_key=True)

    data_type = db.Column(db.String(32), nullable=False)
    snapshot_date = db.Column(db.String(10), nullable=False)

    # {dataType, generatedAt, overall, byEntity, byTermInMonths, totals}
    aggregate = db.Column(db.JSON, nullable=False)
    payload_hash = db.Column(db.String(64), nullable=False)
    generated_at = db.Column(db.String(32), nullable=False)

    __table_args__ = (
        db.UniqueConstraint('data_type', 'snapshot_date', name='uq_daily_rate_aggregates_type_date'),
        db.Index('ix_daily_rate_aggregates_type_date', 'data_type', 'snapshot_date'),
    )

    def to_dict(self):
        return {
            'dataType': self.data_type,
            'snapshotDate': self.snapshot_date,
            'aggregate': self.aggregate,
            'payloadHash': self.payload_hash,
            'generatedAt': self.generated_at,
        }

    def __repr__(self):
        return f"<DailyRateAggregate {self.data_type} {self.snapshot_date}>"
