from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
import logging
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from config import DATABASE_URL

logger = logging.getLogger(__name__)


def get_database_url():
    return DATABASE_URL


def build_engine(db_url: str):
    """Create an engine; server databases get a sized connection pool."""
    if db_url.startswith('sqlite'):
        return create_engine(db_url, echo=False)

    return create_engine(
        db_url,
        poolclass=QueuePool,
        pool_size=20,
        max_overflow=20,
        pool_timeout=60,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=False               # Set to True for SQL debugging if needed
    )


def build_session_factory(bind):
    # Listings returned from ingest() stay readable after their session closes
    return sessionmaker(bind=bind, expire_on_commit=False)


# Create engine once
engine = build_engine(get_database_url())

# Create session factory
SessionFactory = build_session_factory(engine)


@retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True
)
def get_db_session(factory=None):
    """Open a session with a live connection, retrying transient connect failures"""
    session = (factory or SessionFactory)()
    try:
        session.connection()
    except OperationalError as e:
        session.close()
        logger.error(f"Error creating database session: {e}")
        raise
    return session


def initialize_database(bind=None):
    """Create any missing tables"""
    from .models import Base

    Base.metadata.create_all(bind or engine)
    logger.info("Database tables initialized successfully")
