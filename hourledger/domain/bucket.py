"""
Hour buckets and FIFO allocation of checkins

A bucket is every payment sharing one purchase date, merged into a single
block of purchased hours. Checkins consume the oldest bucket first.

Buckets are derived state: they are rebuilt from the raw payments and
checkins on every computation and never persisted.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from hourledger.domain.checkin import Checkin, sort_checkins
from hourledger.domain.payment import Payment
from hourledger.utils.money import ZERO

logger = logging.getLogger(__name__)


@dataclass
class Bucket:
    """
    purchased_hours grows when an older bucket carries its leftover forward;
    raw_purchased_hours keeps what was actually bought on this date.
    """
    payment_date: date
    purchased_hours: float
    raw_purchased_hours: float
    payments: list[Payment] = field(default_factory=list)
    checkins: list[Checkin] = field(default_factory=list)
    consumed_minutes: float = 0.0

    @property
    def capacity_minutes(self) -> float:
        return self.purchased_hours * 60

    @property
    def remaining_minutes(self) -> float:
        return self.capacity_minutes - self.consumed_minutes

    @property
    def is_exhausted(self) -> bool:
        return self.consumed_minutes >= self.capacity_minutes

    @property
    def effective_date(self) -> date:
        """Display date of the bucket's first payment."""
        if self.payments:
            return self.payments[0].display_date
        return self.payment_date

    @property
    def is_fully_paid(self) -> bool:
        return bool(self.payments) and all(p.is_fully_paid for p in self.payments)

    @property
    def paid_amount(self) -> Decimal:
        return sum((p.paid_amount for p in self.payments), ZERO)

    @property
    def formula_total(self) -> Decimal:
        return sum((p.formula_total for p in self.payments), ZERO)

    @property
    def renewal_amount(self) -> Decimal:
        """What this bucket's purchase is worth: cash received if settled, else the formula total."""
        return self.paid_amount if self.is_fully_paid else self.formula_total

    @property
    def last_checkin_date(self) -> date | None:
        if not self.checkins:
            return None
        return self.checkins[-1].class_date


@dataclass
class AllocationResult:
    buckets: list[Bucket]
    overflow: list[Checkin]

    @property
    def active_index(self) -> int:
        """First bucket with capacity left, or len(buckets) when all are used up."""
        for idx, bucket in enumerate(self.buckets):
            if not bucket.is_exhausted:
                return idx
        return len(self.buckets)

    @property
    def active_bucket(self) -> Bucket | None:
        idx = self.active_index
        return self.buckets[idx] if idx < len(self.buckets) else None

    @property
    def allocated_checkins(self) -> list[Checkin]:
        return [c for bucket in self.buckets for c in bucket.checkins]


def build_buckets(payments: list[Payment]) -> list[Bucket]:
    """
    One bucket per unique purchase date, ascending.

    A date whose payments sum to zero or less becomes a zero-capacity bucket,
    which counts as exhausted from the start.
    """
    by_date: dict[date, list[Payment]] = {}
    for payment in payments:
        by_date.setdefault(payment.purchase_date, []).append(payment)

    buckets = []
    for payment_date in sorted(by_date):
        group = by_date[payment_date]
        hours = sum(p.purchased_hours for p in group)
        if hours <= 0:
            logger.warning(
                "Non-positive purchased hours (%s) on %s for student_id=%s, bucket has no capacity",
                hours, payment_date, group[0].student_id,
            )
            hours = 0.0
        buckets.append(Bucket(
            payment_date=payment_date,
            purchased_hours=hours,
            raw_purchased_hours=hours,
            payments=list(group),
        ))
    return buckets


def allocate_checkins(buckets: list[Bucket], checkins: list[Checkin]) -> AllocationResult:
    """
    Assign checkins to buckets oldest-first.

    For each checkin (ascending by class date):
      1. skip buckets that are already used up;
      2. while the class date has reached the next bucket's purchase date:
         if the current bucket still fits the whole class, stay; otherwise
         move its leftover minutes into the next bucket, close it and advance;
      3. append the checkin to the current bucket, or to overflow when no
         bucket is left.

    A checkin is never split. The cursor only moves forward. Mutates and
    returns the given buckets.
    """
    overflow: list[Checkin] = []
    idx = 0
    last = len(buckets) - 1

    for checkin in sort_checkins(checkins):
        minutes = checkin.consumed_minutes
        if checkin.duration_minutes <= 0:
            logger.warning(
                "Checkin id=%s on %s has non-positive duration %s, allocating without consumption",
                checkin.id, checkin.class_date, checkin.duration_minutes,
            )

        while idx <= last and buckets[idx].is_exhausted:
            idx += 1

        while idx < last and checkin.class_date >= buckets[idx + 1].payment_date:
            current = buckets[idx]
            remaining = current.remaining_minutes
            if remaining >= minutes:
                break
            if remaining > 0:
                buckets[idx + 1].purchased_hours += remaining / 60
            current.consumed_minutes = current.capacity_minutes
            idx += 1

        if idx > last:
            overflow.append(checkin)
        else:
            buckets[idx].checkins.append(checkin)
            buckets[idx].consumed_minutes += minutes

    return AllocationResult(buckets=buckets, overflow=overflow)


def build_ledger(payments: list[Payment], checkins: list[Checkin]) -> AllocationResult:
    """Bucket the payments and allocate the checkins in one step."""
    return allocate_checkins(build_buckets(payments), checkins)


def lesson_numbers(result: AllocationResult) -> dict[int, int]:
    """
    checkin id -> 1-based position within its bucket (overflow numbered on its own)
    """
    numbers: dict[int, int] = {}
    for bucket in result.buckets:
        for position, checkin in enumerate(bucket.checkins, start=1):
            if checkin.id is not None:
                numbers[checkin.id] = position
    for position, checkin in enumerate(result.overflow, start=1):
        if checkin.id is not None:
            numbers[checkin.id] = position
    return numbers
