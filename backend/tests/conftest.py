"""
Root pytest configuration for backend tests.

Provides:
- Shared fixtures (app with in-memory SQLite, ingestion config, store)
- Builders live in factories.py
"""

import sys
from pathlib import Path

# Add backend directory to Python path so imports like
# `from services.snapshot_store import ...` and `from utils.normalize import ...` work
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest

from factories import TEST_SECRET, make_mortgage_document


# =============================================================================
# Flask app / database
# =============================================================================

@pytest.fixture
def app():
    """Create test Flask application backed by in-memory SQLite."""
    from app import create_app
    from models.database import db

    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SQLALCHEMY_ENGINE_OPTIONS': {},
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def ingestion_config():
    """Config with a secret and the default thresholds."""
    from services.ingestion_config import IngestionConfig
    return IngestionConfig(ingest_secret=TEST_SECRET)

@pytest.fixture
def store(app, ingestion_config):
    """SnapshotStore bound to the test database."""
    from services.snapshot_store import SnapshotStore
    return SnapshotStore(ingestion_config)

@pytest.fixture
def mortgage_document():
    return make_mortgage_document()
