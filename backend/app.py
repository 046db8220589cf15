"""
Flask application factory.

The app only hosts the database for the ingestion pipeline and the CLI;
HTTP routes live in a separate service.
"""
import logging

from flask import Flask

from config import Config, get_database_url
from models.database import db

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    """
    Create the Flask app and bind the database.

    Args:
        test_config: Optional mapping of config overrides (tests pass an
            in-memory SQLite URI and empty engine options)
    """
    app = Flask(__name__)
    app.config.from_object(Config)

    if test_config:
        app.config.update(test_config)

    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        app.config['SQLALCHEMY_DATABASE_URI'] = get_database_url()

    db.init_app(app)

    # Register models with the metadata
    import models  # noqa: F401

    logger.debug("App created with database bound")
    return app
