"""
Renewal cycle simulation

Predicts, for one pool owner, when each bucket of hours runs out and what the
next purchase looks like: an actual later payment (paid cycle) or a projected
one (unpaid cycle).

Buckets are walked as a small state machine over their phase:

  PAST       buckets before the active one; each hands over to the next
             bucket, which is a renewal that already happened
  ACTIVE     the bucket currently being consumed; future calendar classes are
             played forward until it (and any pre-paid successors) run out.
             When the calendar ends first, the renewal is estimated from the
             pace of the bucket's classes
  EXHAUSTED  every bucket is used up; one projected renewal from the last one
  PAYMENT    purchases effective in the target month that no phase above
             accounted for, one cycle per bucket and effective date

The paid renewal dates emitted by the first three phases form the captured
set the PAYMENT phase checks, so a purchase is never reported twice.

Cycles are returned un-merged; cycles_for_month() does the per-month filtering.
"""
import math
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal

from hourledger.domain.bucket import AllocationResult, Bucket
from hourledger.domain.calendar_event import CalendarEvent, sort_events
from hourledger.domain.payment import Payment, latest_payment
from hourledger.utils.dates import in_month
from hourledger.utils.money import ZERO, amount_for_hours

PHASE_PAST = "PAST"
PHASE_ACTIVE = "ACTIVE"
PHASE_EXHAUSTED = "EXHAUSTED"
PHASE_PAYMENT = "PAYMENT"


@dataclass(frozen=True)
class RenewalCycle:
    student_id: int
    expiry_date: date | None  # None: pre-paid bucket not reached by the simulation
    renewal_date: date
    is_paid: bool
    expected_hours: float
    expected_amount: Decimal
    paid_amount: Decimal
    phase: str
    # projected past the last scheduled class
    is_estimated: bool = False


class RenewalCycleSimulator:
    """
    Args:
        student_id: pool owner the ledger belongs to
        allocation: buckets and overflow after FIFO allocation
        future_events: scheduled classes not yet checked in (any order)
        price_per_hour: price used to value projected (unpaid) renewals
        per_session: bill per class instead of per block; defaults to the
            kind of the latest payment
    """

    def __init__(
        self,
        student_id: int,
        allocation: AllocationResult,
        future_events: list[CalendarEvent],
        price_per_hour: Decimal,
        per_session: bool | None = None,
    ) -> None:
        self.student_id = student_id
        self.buckets = allocation.buckets
        self.overflow = allocation.overflow
        self.active_index = allocation.active_index
        self.events = sort_events(future_events)
        self.price_per_hour = price_per_hour
        if per_session is None:
            latest = latest_payment([p for b in self.buckets for p in b.payments])
            per_session = bool(latest and latest.is_session_payment)
        self.per_session = per_session

        self._cycles: list[RenewalCycle] = []
        self._emitted_dates: set[date] = set()

    def run(self, year: int, month: int) -> list[RenewalCycle]:
        if not self.buckets:
            return []

        handlers = {
            PHASE_PAST: self._handle_past,
            PHASE_ACTIVE: self._handle_active,
            PHASE_EXHAUSTED: self._handle_exhausted,
        }
        for phase, idx in self._phase_plan():
            handlers[phase](idx)
        self._handle_payments(year, month)
        return list(self._cycles)

    def _phase_plan(self):
        for idx in range(min(self.active_index, len(self.buckets))):
            yield PHASE_PAST, idx
        if self.active_index < len(self.buckets):
            yield PHASE_ACTIVE, self.active_index
        else:
            yield PHASE_EXHAUSTED, len(self.buckets) - 1

    # ── Phase handlers ────────────────────────────────────────────────────────

    def _handle_past(self, idx: int) -> None:
        bucket = self.buckets[idx]
        if not bucket.checkins or idx + 1 >= len(self.buckets):
            return
        self._emit_paid(idx + 1, expiry_date=bucket.last_checkin_date, phase=PHASE_PAST)

    def _handle_active(self, idx: int) -> None:
        current = idx
        remaining = self.buckets[current].remaining_minutes

        for pos, event in enumerate(self.events):
            remaining -= max(event.duration_minutes, 0)
            while remaining <= 0:
                nxt = current + 1
                if nxt >= len(self.buckets):
                    self._emit_unpaid(
                        basis=self.buckets[current],
                        expiry_date=event.date,
                        renewal_date=event.date,
                        unpaid_sessions=[(e.date, e.duration_minutes) for e in self.events[pos + 1:]],
                        phase=PHASE_ACTIVE,
                    )
                    return
                self._emit_paid(nxt, expiry_date=event.date, phase=PHASE_ACTIVE)
                current = nxt
                remaining += self.buckets[current].capacity_minutes

        if current + 1 < len(self.buckets):
            self._emit_paid(current + 1, expiry_date=None, phase=PHASE_ACTIVE)
        elif not self.per_session:
            self._emit_estimated(self.buckets[current], remaining)

    def _handle_exhausted(self, idx: int) -> None:
        last = self.buckets[idx]
        expiry = self._last_allocated_date() or last.payment_date

        unpaid_sessions = [(c.class_date, c.duration_minutes) for c in self.overflow]
        unpaid_sessions += [(e.date, e.duration_minutes) for e in self.events]
        renewal = unpaid_sessions[0][0] if unpaid_sessions else expiry

        self._emit_unpaid(
            basis=last,
            expiry_date=expiry,
            renewal_date=renewal,
            unpaid_sessions=unpaid_sessions,
            phase=PHASE_EXHAUSTED,
        )

    def _handle_payments(self, year: int, month: int) -> None:
        captured = set(self._emitted_dates)
        for bucket in self.buckets:
            by_date: dict[date, list[Payment]] = {}
            for payment in bucket.payments:
                by_date.setdefault(payment.display_date, []).append(payment)
            for renewal, group in by_date.items():
                if not in_month(renewal, year, month) or renewal in captured:
                    continue
                self._add(self._purchase(renewal, group))

    # ── Emitters ──────────────────────────────────────────────────────────────

    def _purchase(self, renewal_date: date, payments: list[Payment]) -> RenewalCycle:
        """Paid cycle for the payments of one bucket sharing an effective date."""
        paid = sum((p.paid_amount for p in payments), ZERO)
        if all(p.is_fully_paid for p in payments):
            amount = paid
        else:
            amount = sum((p.formula_total for p in payments), ZERO)
        return RenewalCycle(
            student_id=self.student_id,
            expiry_date=None,
            renewal_date=renewal_date,
            is_paid=True,
            expected_hours=max(sum(p.purchased_hours for p in payments), 0.0),
            expected_amount=amount,
            paid_amount=paid,
            phase=PHASE_PAYMENT,
        )

    def _emit_paid(self, next_idx: int, expiry_date: date | None, phase: str) -> None:
        nxt = self.buckets[next_idx]
        self._add(RenewalCycle(
            student_id=self.student_id,
            expiry_date=expiry_date,
            renewal_date=nxt.effective_date,
            is_paid=True,
            # raw hours: carry-over must not inflate what was bought
            expected_hours=nxt.raw_purchased_hours,
            expected_amount=nxt.renewal_amount,
            paid_amount=nxt.paid_amount,
            phase=phase,
        ))

    def _emit_unpaid(
        self,
        basis: Bucket,
        expiry_date: date,
        renewal_date: date,
        unpaid_sessions: list[tuple[date, float]],
        phase: str,
    ) -> None:
        if self.per_session:
            for session_date, minutes in unpaid_sessions:
                hours = max(minutes, 0) / 60
                self._add(self._unpaid(expiry_date, session_date, hours, phase))
            return
        hours = basis.raw_purchased_hours
        self._add(self._unpaid(expiry_date, renewal_date, hours, phase))

    def _emit_estimated(self, bucket: Bucket, remaining: float) -> None:
        """
        The calendar runs out before the bucket does. Keep the pace of the
        bucket's classes (checked in and scheduled) going past the last
        scheduled class until the remaining minutes are used.
        """
        if not self.events or remaining <= 0:
            return
        sessions = [(c.class_date, c.consumed_minutes) for c in bucket.checkins]
        sessions += [(e.date, max(e.duration_minutes, 0)) for e in self.events]
        first = min(d for d, _ in sessions)
        last = max(d for d, _ in sessions)
        minutes = sum(m for _, m in sessions)
        span_days = (last - first).days
        if span_days <= 0 or minutes <= 0:
            return

        renewal = last + timedelta(days=math.ceil(remaining * span_days / minutes))
        cycle = self._unpaid(renewal, renewal, bucket.raw_purchased_hours, PHASE_ACTIVE)
        self._add(replace(cycle, is_estimated=True))

    def _unpaid(self, expiry_date: date, renewal_date: date, hours: float, phase: str) -> RenewalCycle:
        return RenewalCycle(
            student_id=self.student_id,
            expiry_date=expiry_date,
            renewal_date=renewal_date,
            is_paid=False,
            expected_hours=hours,
            expected_amount=amount_for_hours(hours, self.price_per_hour),
            paid_amount=ZERO,
            phase=phase,
        )

    def _add(self, cycle: RenewalCycle) -> None:
        self._cycles.append(cycle)
        if cycle.is_paid:
            self._emitted_dates.add(cycle.renewal_date)

    def _last_allocated_date(self) -> date | None:
        dates = [b.last_checkin_date for b in self.buckets if b.checkins]
        return max(dates) if dates else None


def simulate_renewal_cycles(
    student_id: int,
    allocation: AllocationResult,
    future_events: list[CalendarEvent],
    price_per_hour: Decimal,
    year: int,
    month: int,
    per_session: bool | None = None,
) -> list[RenewalCycle]:
    """Run every phase for one ledger; see RenewalCycleSimulator."""
    simulator = RenewalCycleSimulator(
        student_id, allocation, future_events, price_per_hour, per_session=per_session,
    )
    return simulator.run(year, month)


def cycles_for_month(cycles: list[RenewalCycle], year: int, month: int) -> list[RenewalCycle]:
    """
    Caller-side view of one month:
      - keep cycles renewing in the month;
      - drop an unpaid cycle when a paid one renews the same student on the same date;
      - merge each student's remaining unpaid cycles into one (hours and amounts
        summed, earliest dates kept).
    """
    monthly = [c for c in cycles if in_month(c.renewal_date, year, month)]
    paid_keys = {(c.student_id, c.renewal_date) for c in monthly if c.is_paid}

    result: list[RenewalCycle] = []
    unpaid_by_student: dict[int, RenewalCycle] = {}
    for cycle in monthly:
        if cycle.is_paid:
            result.append(cycle)
            continue
        if (cycle.student_id, cycle.renewal_date) in paid_keys:
            continue
        merged = unpaid_by_student.get(cycle.student_id)
        if merged is None:
            unpaid_by_student[cycle.student_id] = cycle
            continue
        unpaid_by_student[cycle.student_id] = replace(
            merged,
            renewal_date=min(merged.renewal_date, cycle.renewal_date),
            expiry_date=_earliest(merged.expiry_date, cycle.expiry_date),
            expected_hours=merged.expected_hours + cycle.expected_hours,
            expected_amount=merged.expected_amount + cycle.expected_amount,
            is_estimated=merged.is_estimated or cycle.is_estimated,
        )

    result.extend(unpaid_by_student.values())
    result.sort(key=lambda c: (c.renewal_date, c.student_id, not c.is_paid))
    return result


def _earliest(a: date | None, b: date | None) -> date | None:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)
