"""
Tests for renewal cycle simulation and the per-month view
"""
from datetime import date, timedelta

from hourledger.domain.bucket import build_ledger
from hourledger.domain.calendar_event import CalendarEvent
from hourledger.domain.checkin import Checkin
from hourledger.domain.payment import Payment
from hourledger.domain.renewal import (
    RenewalCycle, simulate_renewal_cycles, cycles_for_month,
    PHASE_PAST, PHASE_ACTIVE, PHASE_EXHAUSTED, PHASE_PAYMENT,
)

PRICE = 1000


def _pay(purchase_date: date, hours: float, status: str = "paid", paid: float | None = None,
         is_session_payment: bool = False) -> Payment:
    if paid is None:
        paid = hours * PRICE if status == "paid" else 0.0
    return Payment(
        id=None,
        student_id=1,
        purchase_date=purchase_date,
        purchased_hours=hours,
        price_per_hour=PRICE,
        paid_amount=paid,
        status=status,
        is_session_payment=is_session_payment,
    )


def _ci(checkin_id: int, class_date: date) -> Checkin:
    return Checkin(id=checkin_id, student_id=1, class_date=class_date, duration_minutes=60)


def _event(d: date) -> CalendarEvent:
    return CalendarEvent(date=d, start_time="10:00", end_time="11:00", summary="Amy")


def test_renewal_after_last_class_is_one_paid_cycle():
    """10h bought last month used up by ten classes, next 10h bought on the last class day"""
    checkins = [_ci(i + 1, date(2026, 1, 2) + timedelta(days=i)) for i in range(10)]
    allocation = build_ledger([_pay(date(2025, 12, 31), 10), _pay(date(2026, 1, 11), 10)], checkins)

    cycles = simulate_renewal_cycles(1, allocation, [], PRICE, 2026, 1)
    january = cycles_for_month(cycles, 2026, 1)

    paid = [c for c in january if c.is_paid]
    assert len(paid) == 1
    assert paid[0].renewal_date == date(2026, 1, 11)
    assert paid[0].expiry_date == date(2026, 1, 11)
    assert paid[0].expected_hours == 10
    assert paid[0].phase == PHASE_PAST
    assert not [c for c in january if not c.is_paid]


def test_past_cycle_uses_raw_hours_not_carried_over():
    """Carry-over does not inflate the renewal's expected hours"""
    allocation = build_ledger(
        [_pay(date(2026, 1, 1), 1.5), _pay(date(2026, 1, 10), 10)],
        [_ci(1, date(2026, 1, 5)), _ci(2, date(2026, 1, 12))],
    )

    cycles = simulate_renewal_cycles(1, allocation, [], PRICE, 2026, 1)

    past = [c for c in cycles if c.phase == PHASE_PAST]
    assert len(past) == 1
    assert past[0].expected_hours == 10
    assert past[0].expected_amount == 10 * PRICE


def test_active_bucket_projects_unpaid_renewal():
    """Future classes drain the active bucket; the draining class dates the renewal"""
    checkins = [_ci(i + 1, date(2026, 1, 2) + timedelta(days=i)) for i in range(8)]
    allocation = build_ledger([_pay(date(2026, 1, 1), 10)], checkins)
    events = [_event(date(2026, 1, 20)), _event(date(2026, 1, 27)), _event(date(2026, 2, 3))]

    cycles = simulate_renewal_cycles(1, allocation, events, PRICE, 2026, 1)

    unpaid = [c for c in cycles if not c.is_paid]
    assert len(unpaid) == 1
    assert unpaid[0].phase == PHASE_ACTIVE
    assert unpaid[0].renewal_date == date(2026, 1, 27)
    assert unpaid[0].expiry_date == date(2026, 1, 27)
    assert unpaid[0].expected_hours == 10
    assert unpaid[0].expected_amount == 10 * PRICE
    assert unpaid[0].paid_amount == 0


def test_active_bucket_own_payment_reported_in_its_month():
    """A still-active bucket's first payment counts as a renewal in its month"""
    allocation = build_ledger([_pay(date(2026, 1, 1), 10)], [_ci(1, date(2026, 1, 2))])

    cycles = simulate_renewal_cycles(1, allocation, [], PRICE, 2026, 1)

    assert [(c.phase, c.renewal_date, c.is_paid) for c in cycles] == [
        (PHASE_PAYMENT, date(2026, 1, 1), True),
    ]


def test_same_day_payments_reported_as_one_purchase():
    """Two payments on one day are one renewal worth their combined hours"""
    allocation = build_ledger(
        [_pay(date(2026, 3, 1), 5), _pay(date(2026, 3, 1), 5)],
        [_ci(1, date(2026, 3, 2))],
    )

    cycles = simulate_renewal_cycles(1, allocation, [], PRICE, 2026, 3)
    march = cycles_for_month(cycles, 2026, 3)

    assert [(c.renewal_date, c.expected_hours, c.expected_amount, c.paid_amount) for c in march] == [
        (date(2026, 3, 1), 10, 10 * PRICE, 10 * PRICE),
    ]


def test_used_up_purchase_still_reported_in_its_month():
    """A purchase consumed within its own month is a paid renewal next to the projected one"""
    allocation = build_ledger(
        [_pay(date(2026, 3, 1), 2)],
        [_ci(1, date(2026, 3, 2)), _ci(2, date(2026, 3, 3))],
    )

    cycles = simulate_renewal_cycles(1, allocation, [], PRICE, 2026, 3)
    march = cycles_for_month(cycles, 2026, 3)

    assert [(c.renewal_date, c.is_paid, c.expected_hours) for c in march] == [
        (date(2026, 3, 1), True, 2),
        (date(2026, 3, 3), False, 2),
    ]
    assert march[0].phase == PHASE_PAYMENT


def test_calendar_ending_before_bucket_gives_estimated_renewal():
    """Hours left after the last scheduled class are projected at the same pace"""
    allocation = build_ledger(
        [_pay(date(2026, 1, 1), 10)],
        [_ci(1, date(2026, 1, 6)), _ci(2, date(2026, 1, 13))],
    )
    events = [_event(date(2026, 1, 20)), _event(date(2026, 1, 27))]

    cycles = simulate_renewal_cycles(1, allocation, events, PRICE, 2026, 2)

    unpaid = [c for c in cycles if not c.is_paid]
    assert len(unpaid) == 1
    # 240 min over 21 days; 360 min left after 1/27 -> 32 more days
    assert unpaid[0].renewal_date == date(2026, 2, 28)
    assert unpaid[0].is_estimated
    assert unpaid[0].phase == PHASE_ACTIVE
    assert unpaid[0].expected_hours == 10
    assert unpaid[0].expected_amount == 10 * PRICE

    february = cycles_for_month(cycles, 2026, 2)
    assert [(c.renewal_date, c.is_estimated) for c in february] == [(date(2026, 2, 28), True)]


def test_no_estimate_without_scheduled_classes():
    """Nothing on the calendar: no pace to extend, no projected renewal"""
    allocation = build_ledger(
        [_pay(date(2026, 1, 1), 10)],
        [_ci(1, date(2026, 1, 6)), _ci(2, date(2026, 1, 13))],
    )

    cycles = simulate_renewal_cycles(1, allocation, [], PRICE, 2026, 1)

    assert [c for c in cycles if not c.is_paid] == []


def test_drained_bucket_is_not_estimated():
    allocation = build_ledger([_pay(date(2026, 1, 1), 2)], [_ci(1, date(2026, 1, 6))])

    cycles = simulate_renewal_cycles(1, allocation, [_event(date(2026, 1, 13))], PRICE, 2026, 1)

    unpaid = [c for c in cycles if not c.is_paid]
    assert [(c.renewal_date, c.is_estimated) for c in unpaid] == [(date(2026, 1, 13), False)]


def test_active_simulation_chains_through_prepaid_buckets():
    """A pre-paid later bucket is reached before any unpaid renewal is projected"""
    allocation = build_ledger(
        [_pay(date(2026, 1, 1), 2), _pay(date(2026, 1, 15), 2)],
        [_ci(1, date(2026, 1, 5))],
    )
    events = [_event(date(2026, 1, 20) + timedelta(days=7 * i)) for i in range(4)]

    cycles = simulate_renewal_cycles(1, allocation, events, PRICE, 2026, 1)

    active = [c for c in cycles if c.phase == PHASE_ACTIVE]
    assert [(c.is_paid, c.renewal_date, c.expiry_date) for c in active] == [
        (True, date(2026, 1, 15), date(2026, 1, 20)),
        (False, date(2026, 2, 3), date(2026, 2, 3)),
    ]

    january = cycles_for_month(cycles, 2026, 1)
    assert [(c.renewal_date, c.is_paid) for c in january] == [
        (date(2026, 1, 1), True),
        (date(2026, 1, 15), True),
    ]
    february = cycles_for_month(cycles, 2026, 2)
    assert [(c.renewal_date, c.is_paid, c.expected_hours) for c in february] == [
        (date(2026, 2, 3), False, 2),
    ]


def test_prepaid_bucket_not_reached_has_no_expiry():
    """A later pre-paid bucket the future classes never reach is still reported"""
    allocation = build_ledger(
        [_pay(date(2026, 1, 1), 10), _pay(date(2026, 1, 15), 10)],
        [_ci(1, date(2026, 1, 5))],
    )

    cycles = simulate_renewal_cycles(1, allocation, [_event(date(2026, 1, 20))], PRICE, 2026, 1)

    active = [c for c in cycles if c.phase == PHASE_ACTIVE]
    assert len(active) == 1
    assert active[0].is_paid
    assert active[0].expiry_date is None
    assert active[0].renewal_date == date(2026, 1, 15)


def test_exhausted_ledger_renews_at_first_unpaid_class():
    """All hours used: renewal is the first overflow class, expiry the last covered one"""
    allocation = build_ledger(
        [_pay(date(2026, 1, 1), 2)],
        [_ci(1, date(2026, 1, 5)), _ci(2, date(2026, 1, 12)), _ci(3, date(2026, 1, 19))],
    )
    events = [_event(date(2026, 1, 26)), _event(date(2026, 2, 2))]

    cycles = simulate_renewal_cycles(1, allocation, events, PRICE, 2026, 1)

    exhausted = [c for c in cycles if c.phase == PHASE_EXHAUSTED]
    assert len(exhausted) == 1
    cycle = exhausted[0]
    assert cycle.is_paid is False
    assert cycle.expiry_date == date(2026, 1, 12)
    assert cycle.renewal_date == date(2026, 1, 19)
    assert cycle.expected_hours == 2
    assert cycle.expected_amount == 2 * PRICE


def test_exhausted_without_pending_classes_renews_at_expiry():
    """Nothing scheduled and nothing owed: renewal falls on the expiry date"""
    allocation = build_ledger([_pay(date(2026, 1, 1), 1)], [_ci(1, date(2026, 1, 5))])

    cycles = simulate_renewal_cycles(1, allocation, [], PRICE, 2026, 1)

    unpaid = [c for c in cycles if not c.is_paid]
    assert len(unpaid) == 1
    assert unpaid[0].renewal_date == date(2026, 1, 5)
    assert unpaid[0].expiry_date == date(2026, 1, 5)


def test_per_session_billing_projects_one_cycle_per_class():
    """Per-session students renew class by class"""
    allocation = build_ledger(
        [_pay(date(2026, 1, 1), 2, is_session_payment=True)],
        [_ci(1, date(2026, 1, 5)), _ci(2, date(2026, 1, 12)), _ci(3, date(2026, 1, 19))],
    )
    events = [_event(date(2026, 1, 26)), _event(date(2026, 2, 2))]

    cycles = simulate_renewal_cycles(1, allocation, events, PRICE, 2026, 1)

    unpaid = [c for c in cycles if not c.is_paid]
    assert [c.renewal_date for c in unpaid] == [date(2026, 1, 19), date(2026, 1, 26), date(2026, 2, 2)]
    assert all(c.expected_hours == 1 for c in unpaid)

    january = cycles_for_month(cycles, 2026, 1)
    assert [(c.renewal_date, c.is_paid) for c in january] == [
        (date(2026, 1, 1), True),
        (date(2026, 1, 19), False),
    ]
    assert january[1].expected_hours == 2
    assert january[1].expected_amount == 2 * PRICE

    february = cycles_for_month(cycles, 2026, 2)
    assert [(c.renewal_date, c.expected_hours) for c in february] == [(date(2026, 2, 2), 1)]


def test_unpaid_payment_renewal_amount_is_formula_total():
    """An unsettled later purchase is valued at hours x price"""
    allocation = build_ledger(
        [_pay(date(2026, 1, 1), 1), _pay(date(2026, 1, 10), 5, status="partial", paid=1000)],
        [_ci(1, date(2026, 1, 5))],
    )

    cycles = simulate_renewal_cycles(1, allocation, [], PRICE, 2026, 1)

    past = [c for c in cycles if c.phase == PHASE_PAST]
    assert past[0].expected_amount == 5 * PRICE
    assert past[0].paid_amount == 1000


def test_no_buckets_no_cycles():
    assert simulate_renewal_cycles(1, build_ledger([], []), [_event(date(2026, 1, 5))], PRICE, 2026, 1) == []


def test_unpaid_cycle_on_paid_date_is_dropped():
    """A paid renewal wins over an unpaid projection on the same day"""
    paid = RenewalCycle(1, date(2026, 3, 1), date(2026, 3, 2), True, 10, 10000, 10000, PHASE_PAST)
    unpaid = RenewalCycle(1, date(2026, 3, 1), date(2026, 3, 2), False, 10, 10000, 0, PHASE_ACTIVE)
    other = RenewalCycle(2, date(2026, 3, 1), date(2026, 3, 2), False, 5, 5000, 0, PHASE_ACTIVE)

    result = cycles_for_month([unpaid, paid, other], 2026, 3)

    assert [(c.student_id, c.is_paid) for c in result] == [(1, True), (2, False)]


def test_cycles_outside_month_are_filtered():
    cycles = [
        RenewalCycle(1, None, date(2026, 2, 28), True, 10, 10000, 10000, PHASE_PAYMENT),
        RenewalCycle(1, None, date(2026, 3, 1), True, 10, 10000, 10000, PHASE_PAYMENT),
        RenewalCycle(1, None, date(2026, 4, 1), True, 10, 10000, 10000, PHASE_PAYMENT),
    ]

    result = cycles_for_month(cycles, 2026, 3)

    assert [c.renewal_date for c in result] == [date(2026, 3, 1)]


def test_merged_unpaid_cycle_keeps_earliest_dates():
    cycles = [
        RenewalCycle(1, date(2026, 3, 10), date(2026, 3, 20), False, 1, 1000, 0, PHASE_EXHAUSTED),
        RenewalCycle(1, date(2026, 3, 10), date(2026, 3, 6), False, 1.5, 1500, 0, PHASE_EXHAUSTED),
    ]

    result = cycles_for_month(cycles, 2026, 3)

    assert len(result) == 1
    assert result[0].renewal_date == date(2026, 3, 6)
    assert result[0].expiry_date == date(2026, 3, 10)
    assert result[0].expected_hours == 2.5
    assert result[0].expected_amount == 2500
