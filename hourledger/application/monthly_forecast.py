"""
Monthly coach rollup: scheduled / executed / collected / pending figures and
the renewal forecast for one coach and month.

Inputs are fetched once per call (students, the payments and checkins of
every pool member, calendar events covering both the month and the forecast
horizon); everything after that is pure computation over the fetched data.
Amounts stay exact Decimals until the result is assembled, then are rounded to
integers.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from hourledger.application.ports import CalendarProvider, RecordStore
from hourledger.domain.bucket import build_ledger
from hourledger.domain.calendar_event import CalendarEvent
from hourledger.domain.checkin import Checkin
from hourledger.domain.errors import CoachNotFoundError
from hourledger.domain.historical_stats import find_historical_month
from hourledger.domain.payment import Payment, latest_payment
from hourledger.domain.renewal import RenewalCycle, cycles_for_month, simulate_renewal_cycles
from hourledger.domain.summary import summarize
from hourledger.domain.student import (
    Coach, Student, group_by_student, resolve_pool_owner, resolve_price_per_hour,
)
from hourledger.utils.dates import add_months, in_month, month_bounds
from hourledger.utils.money import ZERO, amount_for_hours, round_amount, round_hours

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenewalForecastEntry:
    student_id: int
    student_name: str
    renewal_date: date
    expiry_date: date | None
    is_paid: bool
    expected_hours: float
    expected_amount: int
    paid_amount: int
    remaining_hours: float = 0.0  # left in the pool's ledger now
    is_estimated: bool = False  # dated past the last scheduled class


@dataclass(frozen=True)
class RenewalForecast:
    student_count: int = 0
    expected_amount: int = 0
    students: list[RenewalForecastEntry] = field(default_factory=list)


@dataclass(frozen=True)
class StudentMonthRow:
    student_id: int
    student_name: str
    checked_in_classes: int
    executed_hours: float
    executed_revenue: int
    collected_amount: int


@dataclass(frozen=True)
class MonthlyForecast:
    coach_id: int
    coach_name: str
    year: int
    month: int
    scheduled_classes: int
    checked_in_classes: int
    estimated_revenue: int
    executed_revenue: int
    collected_amount: int
    pending_amount: int
    renewal_forecast: RenewalForecast
    scheduled_hours: float = 0.0
    student_rows: list[StudentMonthRow] = field(default_factory=list)
    is_historical: bool = False


class MonthlyForecastService:
    def __init__(
        self,
        store: RecordStore,
        calendar: CalendarProvider,
        today: date,
        horizon_months: int = 4,
    ) -> None:
        self._store = store
        self._calendar = calendar
        self._today = today
        self._horizon_months = horizon_months

    def compute(self, coach_id: int, year: int, month: int) -> MonthlyForecast:
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month: {month}")
        coach = self._store.get_coach(coach_id)
        if coach is None:
            raise CoachNotFoundError(coach_id)

        historical = find_historical_month(coach.name, year, month)
        if historical is not None:
            logger.info("Monthly forecast %s %d-%02d served from historical table", coach.name, year, month)
            return MonthlyForecast(
                coach_id=coach.id,
                coach_name=coach.name,
                year=year,
                month=month,
                scheduled_classes=0,
                checked_in_classes=historical.checked_in,
                estimated_revenue=0,
                executed_revenue=historical.executed_revenue,
                collected_amount=historical.collected,
                pending_amount=0,
                renewal_forecast=RenewalForecast(),
                is_historical=True,
            )

        students = self._store.list_students_by_coach(coach_id)
        member_ids = _all_member_ids(students)
        payments = self._store.list_payments(member_ids) if member_ids else []
        checkins = self._store.list_checkins(member_ids) if member_ids else []
        events = self._fetch_events(year, month)
        horizon_end = add_months(self._today, self._horizon_months)

        return _MonthlyRollup(
            coach=coach,
            year=year,
            month=month,
            today=self._today,
            horizon_end=horizon_end,
            students=students,
            payments=payments,
            checkins=checkins,
            events=events,
        ).build()

    def _fetch_events(self, year: int, month: int) -> list[CalendarEvent]:
        month_start, month_end = month_bounds(year, month)
        horizon_end = add_months(self._today, self._horizon_months)
        range_start = min(month_start, self._today)
        range_end = max(month_end, horizon_end)
        return self._calendar.list_events(range_start, range_end)


def _all_member_ids(students: list[Student]) -> list[int]:
    ids: list[int] = []
    for student in students:
        for sid in (student.id, *student.related_student_ids):
            if sid not in ids:
                ids.append(sid)
    return ids


class _MonthlyRollup:
    """One coach-month over already-fetched records."""

    def __init__(
        self,
        coach: Coach,
        year: int,
        month: int,
        today: date,
        horizon_end: date,
        students: list[Student],
        payments: list[Payment],
        checkins: list[Checkin],
        events: list[CalendarEvent],
    ) -> None:
        self.coach = coach
        self.year = year
        self.month = month
        self.today = today
        self.horizon_end = horizon_end
        self.students = students
        self.students_by_id = {s.id: s for s in students}
        self.payments_by_student = group_by_student(payments)
        self.checkins_by_student = group_by_student(checkins)
        self.checked_in_dates = {(c.student_id, c.class_date) for c in checkins}

        # name matching: an event belongs to the student whose name equals its summary
        student_by_name = {s.name.strip(): s for s in students}
        self.events_by_student: dict[int, list[CalendarEvent]] = {}
        for event in events:
            student = student_by_name.get(event.attendee_name)
            if student is not None:
                self.events_by_student.setdefault(student.id, []).append(event)

    def build(self) -> MonthlyForecast:
        scheduled_classes = 0
        scheduled_minutes = 0.0
        estimated_revenue = ZERO
        checked_in_classes = 0
        executed_revenue = ZERO
        collected = ZERO
        pending = ZERO
        rows: list[StudentMonthRow] = []

        for student in self.students:
            own_payments = self.payments_by_student.get(student.id, [])
            month_checkins = [
                c for c in self.checkins_by_student.get(student.id, [])
                if in_month(c.class_date, self.year, self.month)
            ]
            month_events = [
                e for e in self.events_by_student.get(student.id, [])
                if in_month(e.date, self.year, self.month)
            ]
            if not own_payments and not month_checkins and not month_events:
                continue

            price = resolve_price_per_hour(student, self.students_by_id, self.payments_by_student)
            month_payments = [
                p for p in own_payments
                if in_month(p.purchase_date, self.year, self.month)
                or in_month(p.effective_date, self.year, self.month)
            ]

            event_minutes = sum(max(e.duration_minutes, 0) for e in month_events)
            checkin_minutes = sum(c.consumed_minutes for c in month_checkins)
            student_executed = amount_for_hours(checkin_minutes / 60, price)
            student_collected = sum((p.paid_amount for p in month_payments), ZERO)

            scheduled_classes += len(month_events)
            scheduled_minutes += event_minutes
            estimated_revenue += amount_for_hours(event_minutes / 60, price)
            checked_in_classes += len(month_checkins)
            executed_revenue += student_executed
            collected += student_collected
            pending += sum((p.outstanding_amount for p in month_payments), ZERO)

            if month_checkins or month_payments:
                rows.append(StudentMonthRow(
                    student_id=student.id,
                    student_name=student.name,
                    checked_in_classes=len(month_checkins),
                    executed_hours=round_hours(checkin_minutes / 60),
                    executed_revenue=round_amount(student_executed),
                    collected_amount=round_amount(student_collected),
                ))

        forecast = MonthlyForecast(
            coach_id=self.coach.id,
            coach_name=self.coach.name,
            year=self.year,
            month=self.month,
            scheduled_classes=scheduled_classes,
            checked_in_classes=checked_in_classes,
            estimated_revenue=round_amount(estimated_revenue),
            executed_revenue=round_amount(executed_revenue),
            collected_amount=round_amount(collected),
            pending_amount=round_amount(pending),
            renewal_forecast=self._renewal_forecast(),
            scheduled_hours=round_hours(scheduled_minutes / 60),
            student_rows=rows,
        )
        logger.info(
            "Monthly forecast %s %d-%02d: %d scheduled, %d checked in, %d renewal(s)",
            self.coach.name, self.year, self.month, forecast.scheduled_classes,
            forecast.checked_in_classes, forecast.renewal_forecast.student_count,
        )
        return forecast

    # ── Renewals ──────────────────────────────────────────────────────────────

    def _pools(self) -> dict[int, list[int]]:
        """owner id -> member ids, over every coach student that has a funded pool"""
        pools: dict[int, list[int]] = {}
        for student in self.students:
            pool = resolve_pool_owner(student.id, student.related_student_ids, self.payments_by_student)
            if not self.payments_by_student.get(pool.owner_id):
                continue
            members = pools.setdefault(pool.owner_id, [])
            for member_id in pool.member_ids:
                if member_id not in members:
                    members.append(member_id)
        return pools

    def _renewal_cycles(self, owner_id: int, member_ids: list[int]) -> tuple[list[RenewalCycle], float]:
        """The pool's renewals in the month, and the hours left in its ledger today."""
        owner_payments = self.payments_by_student[owner_id]
        pool_checkins = [c for m in member_ids for c in self.checkins_by_student.get(m, [])]
        allocation = build_ledger(owner_payments, pool_checkins)
        remaining_hours = summarize(allocation).remaining_hours

        future_events = [
            e
            for m in member_ids
            for e in self.events_by_student.get(m, [])
            if self.today <= e.date <= self.horizon_end and (m, e.date) not in self.checked_in_dates
        ]
        price = latest_payment(owner_payments).price_per_hour
        cycles = simulate_renewal_cycles(
            owner_id, allocation, future_events, price, self.year, self.month,
        )
        return cycles_for_month(cycles, self.year, self.month), remaining_hours

    def _renewal_forecast(self) -> RenewalForecast:
        cycles: list[RenewalCycle] = []
        remaining_by_owner: dict[int, float] = {}
        for owner_id, member_ids in self._pools().items():
            pool_cycles, remaining_by_owner[owner_id] = self._renewal_cycles(owner_id, member_ids)
            cycles.extend(pool_cycles)

        entries = [
            RenewalForecastEntry(
                student_id=c.student_id,
                student_name=self._student_name(c.student_id),
                renewal_date=c.renewal_date,
                expiry_date=c.expiry_date,
                is_paid=c.is_paid,
                expected_hours=round_hours(c.expected_hours),
                expected_amount=round_amount(c.expected_amount),
                paid_amount=round_amount(c.paid_amount),
                remaining_hours=remaining_by_owner.get(c.student_id, 0.0),
                is_estimated=c.is_estimated,
            )
            for c in sorted(cycles, key=lambda c: (c.renewal_date, c.student_id))
        ]
        return RenewalForecast(
            student_count=len({c.student_id for c in cycles}),
            expected_amount=round_amount(sum((c.expected_amount for c in cycles), ZERO)),
            students=entries,
        )

    def _student_name(self, student_id: int) -> str:
        student = self.students_by_id.get(student_id)
        return student.name if student is not None else ""
