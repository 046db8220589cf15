"""
Models package - SQLAlchemy models
"""
from models.database import db
from models.rate_snapshot import RateSnapshot
from models.latest_rate_data import LatestRateData
from models.daily_rate_aggregate import DailyRateAggregate
from models.rate_ingestion_run import RateIngestionRun, RunStatus

__all__ = [
    'db',
    'RateSnapshot',
    'LatestRateData',
    'DailyRateAggregate',
    'RateIngestionRun',
    'RunStatus',
]
