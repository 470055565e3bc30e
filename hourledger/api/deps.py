"""
FastAPI dependencies (DB session, record store, cache, calendar, clock)
"""
from datetime import date

from fastapi import Depends
from sqlalchemy.orm import Session

from hourledger.application.summary_cache import InMemorySummaryCache, get_summary_cache
from hourledger.config import get_settings
from hourledger.infrastructure.calendar.google import GoogleCalendarProvider
from hourledger.infrastructure.db.record_store import SqlRecordStore
from hourledger.infrastructure.db.session import get_db as _get_db
from hourledger.utils.dates import today_local


# Re-exported so routers and tests override a single name
get_db = _get_db


def get_record_store(db: Session = Depends(get_db)) -> SqlRecordStore:
    return SqlRecordStore(db)


def get_cache() -> InMemorySummaryCache:
    return get_summary_cache()


def get_calendar() -> GoogleCalendarProvider:
    return GoogleCalendarProvider.from_settings()


def get_today() -> date:
    """Current day in the configured timezone; overridden in tests."""
    return today_local(get_settings().TIMEZONE)
