"""
Record store database wiring (SQLAlchemy)

PostgreSQL is the production store; a sqlite URL works for local runs.
Engine and session factory are built lazily from settings and shared by all
requests until reset_engine() drops them.
"""
import psycopg
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from hourledger.config import get_settings


class Base(DeclarativeBase):
    """Declarative base of the ledger tables"""
    pass


_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def build_engine(url: str) -> Engine:
    """
    Engine for a record store URL.

    sqlite connections are shared across the worker threads FastAPI runs
    sync endpoints on; PostgreSQL connections are pinged before reuse.
    """
    if _is_sqlite(url):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings().get_sqlalchemy_url())
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)
    return _SessionLocal


def reset_engine() -> None:
    """Dispose the shared engine; the next get_engine() reads settings again."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_db() -> Session:
    """
    FastAPI dependency: one session per request, closed when the request ends

    Usage:
        @router.get("/students/{student_id}/hours")
        def get_hours(student_id: int, db: Session = Depends(get_db)):
            ...
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> None:
    """
    Readiness check: one round trip to the record store.

    PostgreSQL is checked with a raw psycopg connection (3s timeout) so a
    stuck pool cannot hide an unreachable server; sqlite goes through the
    shared engine.

    Raises:
        psycopg.OperationalError: PostgreSQL unreachable
        sqlalchemy.exc.OperationalError: sqlite file unusable
    """
    settings = get_settings()
    if _is_sqlite(settings.DATABASE_URL):
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return
    with psycopg.connect(settings.DATABASE_URL, connect_timeout=3) as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1;")
            cur.fetchone()
