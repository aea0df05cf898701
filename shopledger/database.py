# shopledger/database.py
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from shopledger.core.config import settings
from shopledger.errors import Conflict

logger = logging.getLogger(__name__)


def build_engine(url: str = None, echo: bool = None, busy_timeout: float = None):
    url = url or settings.DATABASE_URL
    if busy_timeout is None:
        busy_timeout = settings.SQLITE_BUSY_TIMEOUT
    connect_args = {}
    if url.startswith("sqlite"):
        # check_same_thread=False is required because FastAPI serves sync routes from a threadpool
        connect_args = {"check_same_thread": False, "timeout": busy_timeout}

    engine = create_engine(
        url,
        echo=settings.SQL_ECHO if echo is None else echo,
        connect_args=connect_args,
    )

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Every model inherits from this Base
Base = declarative_base()


# Request dependency: one session per request
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session):
    """
    Transaction boundary for one ledger operation.
    Commits on success; any exception rolls back every change made inside,
    stock reservations included.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity error, transaction rolled back: %s", exc.orig)
        raise Conflict(f"Duplicate or conflicting record: {exc.orig}") from exc
    except OperationalError as exc:
        db.rollback()
        # SQLite gave up waiting for another writer (busy timeout)
        if "locked" not in str(exc.orig):
            raise
        logger.warning("Database busy, transaction rolled back: %s", exc.orig)
        raise Conflict("The record is being changed by another request, try again") from exc
    except Exception:
        db.rollback()
        raise
