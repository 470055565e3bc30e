"""
Hours summary and overflow report over an allocated ledger
"""
from dataclasses import dataclass, field
from datetime import date

from hourledger.domain.bucket import AllocationResult, lesson_numbers
from hourledger.domain.checkin import Checkin
from hourledger.utils.money import round_hours


@dataclass(frozen=True)
class HoursSummary:
    purchased_hours: float
    completed_hours: float
    remaining_hours: float
    overflow_hours: float = 0.0


@dataclass(frozen=True)
class OverflowReport:
    has_overflow: bool
    overflow_boundary_date: date | None
    paid_checkins: list[Checkin] = field(default_factory=list)
    unpaid_checkins: list[Checkin] = field(default_factory=list)
    lesson_numbers: dict[int, int] = field(default_factory=dict)  # checkin id -> position in its bucket


def summarize(result: AllocationResult) -> HoursSummary:
    """
    purchased = hours of the active bucket and every bucket after it
    completed = minutes used in the active bucket + all overflow minutes
    remaining = purchased - minutes used in the active bucket

    Overflow is reported on its own instead of pushing remaining below zero.
    """
    active_idx = result.active_index
    purchased_hours = sum(b.purchased_hours for b in result.buckets[active_idx:])
    active = result.active_bucket
    active_minutes = active.consumed_minutes if active is not None else 0.0
    overflow_minutes = sum(c.consumed_minutes for c in result.overflow)
    completed_minutes = active_minutes + overflow_minutes

    return HoursSummary(
        purchased_hours=round_hours(purchased_hours),
        completed_hours=round_hours(completed_minutes / 60),
        remaining_hours=round_hours(purchased_hours - active_minutes / 60),
        overflow_hours=round_hours(overflow_minutes / 60),
    )


def overflow_report(result: AllocationResult) -> OverflowReport:
    """Split checkins into covered (paid) and uncovered (unpaid) ones."""
    unpaid = list(result.overflow)
    return OverflowReport(
        has_overflow=bool(unpaid),
        overflow_boundary_date=unpaid[0].class_date if unpaid else None,
        paid_checkins=result.allocated_checkins,
        unpaid_checkins=unpaid,
        lesson_numbers=lesson_numbers(result),
    )
