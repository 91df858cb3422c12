import logging
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from engigrow.core.config import settings
from engigrow.core.errors import StorageFailure

logger = logging.getLogger(__name__)


def build_engine(database_url: str):
    """Create an engine for the given URL.

    SQLite connections are shared with FastAPI's worker threads, so the
    same-thread check is turned off for them.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


# Create database engine - manages connection pool
engine = build_engine(settings.DATABASE_URL)

# Create session factory - each request gets a new session
# autocommit=False: Changes require explicit commit
# autoflush=False: Don't auto-flush before queries
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all database models
Base = declarative_base()


def get_db():
    """
    Dependency for getting database session.

    This is a FastAPI dependency that provides a database session to route handlers.
    The session is automatically closed after the request completes (via finally block).
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        # Always close session, even if request raises an exception
        db.close()


def commit_or_raise(db: Session, action: str) -> None:
    """Commit the session, turning driver errors into StorageFailure.

    The session is rolled back first so it stays usable for the caller.
    """
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error while trying to {action}: {str(e)}")
        raise StorageFailure(f"Database error: {str(e)}")
