"""
Tests for the hours summary and overflow report
"""
from datetime import date, timedelta

from hourledger.domain.bucket import build_ledger
from hourledger.domain.checkin import Checkin
from hourledger.domain.payment import Payment
from hourledger.domain.summary import summarize, overflow_report


def _pay(purchase_date: date, hours: float) -> Payment:
    return Payment(id=None, student_id=1, purchase_date=purchase_date, purchased_hours=hours, price_per_hour=1000)


def _ten_hour_classes(count: int) -> list[Checkin]:
    return [
        Checkin(id=i + 1, student_id=1, class_date=date(2026, 1, 2) + timedelta(days=i), duration_minutes=60)
        for i in range(count)
    ]


def test_ten_classes_use_up_ten_hours_without_overflow():
    """10h and ten one-hour classes: nothing left, nothing owed"""
    result = build_ledger([_pay(date(2026, 1, 1), 10)], _ten_hour_classes(10))

    summary = summarize(result)
    report = overflow_report(result)

    assert summary.remaining_hours == 0
    assert summary.overflow_hours == 0
    assert report.has_overflow is False
    assert report.overflow_boundary_date is None
    assert len(report.paid_checkins) == 10


def test_eleventh_class_overflows():
    """The class after the purchased hours run out is reported as unpaid"""
    result = build_ledger([_pay(date(2026, 1, 1), 10)], _ten_hour_classes(11))

    summary = summarize(result)
    report = overflow_report(result)

    assert report.has_overflow is True
    assert report.overflow_boundary_date == date(2026, 1, 12)
    assert [c.id for c in report.unpaid_checkins] == [11]
    assert summary.remaining_hours == 0
    assert summary.overflow_hours == 1.0
    assert summary.completed_hours == 1.0


def test_summary_counts_active_and_future_buckets():
    """purchased covers the active bucket onward; completed is the active bucket's usage"""
    result = build_ledger(
        [_pay(date(2026, 1, 1), 2), _pay(date(2026, 1, 20), 10), _pay(date(2026, 3, 1), 5)],
        [
            Checkin(id=1, student_id=1, class_date=date(2026, 1, 5), duration_minutes=60),
            Checkin(id=2, student_id=1, class_date=date(2026, 1, 10), duration_minutes=60),
            Checkin(id=3, student_id=1, class_date=date(2026, 1, 22), duration_minutes=90),
        ],
    )

    summary = summarize(result)

    assert summary.purchased_hours == 15
    assert summary.completed_hours == 1.5
    assert summary.remaining_hours == 13.5
    assert summary.overflow_hours == 0


def test_summary_includes_carried_over_hours():
    """Carry-over shows up in the active bucket's purchased hours"""
    result = build_ledger(
        [_pay(date(2026, 1, 1), 1.5), _pay(date(2026, 1, 10), 10)],
        [
            Checkin(id=1, student_id=1, class_date=date(2026, 1, 5), duration_minutes=60),
            Checkin(id=2, student_id=1, class_date=date(2026, 1, 12), duration_minutes=60),
        ],
    )

    summary = summarize(result)

    assert summary.purchased_hours == 10.5
    assert summary.completed_hours == 1.0
    assert summary.remaining_hours == 9.5


def test_empty_ledger_summary_is_zero():
    """No payments and no checkins"""
    summary = summarize(build_ledger([], []))

    assert summary.purchased_hours == 0
    assert summary.completed_hours == 0
    assert summary.remaining_hours == 0
    assert summary.overflow_hours == 0


def test_summary_rounds_to_one_decimal():
    """Reported hours are rounded half up to one decimal"""
    result = build_ledger(
        [_pay(date(2026, 1, 1), 10)],
        [Checkin(id=1, student_id=1, class_date=date(2026, 1, 2), duration_minutes=45)],
    )

    summary = summarize(result)

    assert summary.completed_hours == 0.8
    assert summary.remaining_hours == 9.3


def test_overflow_report_lesson_numbers():
    """Paid lessons are numbered within their bucket"""
    result = build_ledger([_pay(date(2026, 1, 1), 2)], _ten_hour_classes(3))

    report = overflow_report(result)

    assert report.lesson_numbers[1] == 1
    assert report.lesson_numbers[2] == 2
    assert report.lesson_numbers[3] == 1  # first overflow lesson
