import os
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse
from dotenv import load_dotenv

load_dotenv()


def get_database_url():
    """
    Get and validate DATABASE_URL for PostgreSQL.

    PostgreSQL is required outside tests; tests pass their own
    SQLALCHEMY_DATABASE_URI to create_app() and never call this.

    For cloud PostgreSQL, automatically adds sslmode=require if missing.
    """
    database_url = os.getenv('DATABASE_URL')

    if not database_url:
        raise RuntimeError("DATABASE_URL is required (PostgreSQL).")

    valid_prefixes = ('postgresql://', 'postgresql+psycopg2://', 'postgres://')
    if not database_url.startswith(valid_prefixes):
        raise RuntimeError(f"DATABASE_URL must be a PostgreSQL URL, got {database_url[:20]}...")

    # SQLAlchemy requires postgresql://
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)

    parsed = urlparse(database_url)
    is_localhost = parsed.hostname in ('localhost', '127.0.0.1', None)

    if not is_localhost:
        query_params = parse_qs(parsed.query)
        if 'sslmode' not in query_params:
            query_params['sslmode'] = ['require']
            new_query = urlencode(query_params, doseq=True)
            database_url = urlunparse((
                parsed.scheme, parsed.netloc, parsed.path,
                parsed.params, new_query, parsed.fragment
            ))

    return database_url


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key')
    DEBUG = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'

    # Resolved in create_app() unless overridden
    SQLALCHEMY_DATABASE_URI = None
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Connection pool settings for remote databases
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,      # Verify connection is alive before using
        'pool_recycle': 300,        # Recycle connections every 5 minutes
        'pool_timeout': 60,
        'pool_size': 5,
        'max_overflow': 10,
        'connect_args': {
            'connect_timeout': 30,
            'options': '-c statement_timeout=300000',  # 5 min query timeout
        }
    }
