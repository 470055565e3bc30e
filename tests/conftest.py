"""
Pytest fixtures for testing
"""
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from hourledger.infrastructure.db.session import Base
from hourledger.infrastructure.db.models import (
    CoachModel, StudentModel, StudentLinkModel, PaymentModel, CheckinModel,
)
from hourledger.application.summary_cache import InMemorySummaryCache


@pytest.fixture
def db_engine():
    """Create in-memory SQLite engine for tests"""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def summary_cache(clock):
    return InMemorySummaryCache(ttl_seconds=60, clock=clock)


class FakeCalendar:
    """Calendar provider returning a fixed list and recording requested ranges"""

    def __init__(self, events=None):
        self.events = list(events or [])
        self.calls: list[tuple[date, date]] = []

    def list_events(self, range_start: date, range_end: date):
        self.calls.append((range_start, range_end))
        return [e for e in self.events if range_start <= e.date <= range_end]


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def seed(db_session):
    """
    Row factories for the record store tables

    Usage:
        coach = seed.coach("Andy")
        student = seed.student("Amy", coach_id=coach.id)
        seed.payment(student.id, date(2026, 1, 1), hours=10, price=1000)
        seed.checkin(student.id, date(2026, 1, 5), "10:00-11:00")
    """
    class _Seed:
        def coach(self, name: str) -> CoachModel:
            row = CoachModel(name=name)
            db_session.add(row)
            db_session.commit()
            return row

        def student(self, name: str, coach_id: int | None = None) -> StudentModel:
            row = StudentModel(name=name, coach_id=coach_id)
            db_session.add(row)
            db_session.commit()
            return row

        def link(self, student_id: int, related_student_id: int) -> StudentLinkModel:
            row = StudentLinkModel(student_id=student_id, related_student_id=related_student_id)
            db_session.add(row)
            db_session.commit()
            return row

        def payment(
            self,
            student_id: int,
            purchase_date: date,
            hours: float,
            price: float,
            paid_amount: float | None = None,
            status: str = "paid",
            effective_date: date | None = None,
            coach_id: int | None = None,
            is_session_payment: bool = False,
        ) -> PaymentModel:
            if paid_amount is None:
                paid_amount = hours * price if status == "paid" else 0
            row = PaymentModel(
                student_id=student_id,
                coach_id=coach_id,
                purchase_date=purchase_date,
                effective_date=effective_date or purchase_date,
                purchased_hours=hours,
                price_per_hour=price,
                paid_amount=paid_amount,
                status=status,
                is_session_payment=is_session_payment,
            )
            db_session.add(row)
            db_session.commit()
            return row

        def checkin(
            self,
            student_id: int,
            class_date: date,
            time_slot: str = "10:00-11:00",
            coach_id: int | None = None,
        ) -> CheckinModel:
            row = CheckinModel(
                student_id=student_id,
                coach_id=coach_id,
                class_date=class_date,
                time_slot=time_slot,
            )
            db_session.add(row)
            db_session.commit()
            return row

    return _Seed()
