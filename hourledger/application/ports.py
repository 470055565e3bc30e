"""
Collaborator interfaces the ledger use cases depend on

Implementations: infrastructure.db.record_store.SqlRecordStore,
infrastructure.calendar.google.GoogleCalendarProvider,
application.summary_cache.InMemorySummaryCache.
"""
from datetime import date
from decimal import Decimal
from typing import Iterable, Protocol

from hourledger.domain.calendar_event import CalendarEvent
from hourledger.domain.checkin import Checkin
from hourledger.domain.payment import Payment
from hourledger.domain.student import Coach, Student
from hourledger.domain.summary import HoursSummary


class RecordStore(Protocol):
    def get_student(self, student_id: int) -> Student | None: ...

    def get_coach(self, coach_id: int) -> Coach | None: ...

    def list_students_by_coach(self, coach_id: int) -> list[Student]: ...

    def list_linked_student_ids(self, student_id: int) -> list[int]:
        """Students linked to this one in either direction of a pool link."""
        ...

    def list_payments(self, student_ids: int | Iterable[int]) -> list[Payment]: ...

    def list_checkins(self, student_ids: int | Iterable[int]) -> list[Checkin]: ...

    def get_payment(self, payment_id: int) -> Payment | None: ...

    def add_payment(self, payment: Payment) -> Payment: ...

    def update_payment_amount(self, payment_id: int, paid_amount: Decimal, status: str) -> None: ...


class CalendarProvider(Protocol):
    def list_events(self, range_start: date, range_end: date) -> list[CalendarEvent]: ...


class SummaryCache(Protocol):
    def get(self, student_id: int) -> HoursSummary | None: ...

    def set(self, student_id: int, summary: HoursSummary) -> None: ...

    def evict(self, student_id: int) -> None: ...

    def clear(self) -> None: ...
