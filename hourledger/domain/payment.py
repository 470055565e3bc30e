"""
Payment domain entity - one purchase of a block of hours
"""
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from hourledger.utils.money import ZERO, amount_for_hours, to_decimal

PAYMENT_STATUS_PAID = "paid"
PAYMENT_STATUS_PARTIAL = "partial"
PAYMENT_STATUS_UNPAID = "unpaid"

PAYMENT_STATUSES = (PAYMENT_STATUS_PAID, PAYMENT_STATUS_PARTIAL, PAYMENT_STATUS_UNPAID)


@dataclass(frozen=True)
class Payment:
    """
    Payment record as returned by the record store

    purchase_date is the bucket key (the period the purchase belongs to);
    effective_date is the day money actually changed hands and is what
    reports display. The two usually match but may differ for back-dated
    purchases.

    Money fields are held as Decimal whatever numeric type they are built
    from. Only paid_amount and status change after creation; a change
    produces a new Payment via with_amount_recorded().
    """
    id: int | None
    student_id: int
    purchase_date: date
    purchased_hours: float
    price_per_hour: Decimal
    paid_amount: Decimal = ZERO
    status: str = PAYMENT_STATUS_UNPAID
    effective_date: date | None = None
    total_amount: Decimal | None = None
    coach_id: int | None = None
    is_session_payment: bool = False

    def __post_init__(self):
        object.__setattr__(self, "price_per_hour", to_decimal(self.price_per_hour))
        object.__setattr__(self, "paid_amount", to_decimal(self.paid_amount))
        if self.total_amount is not None:
            object.__setattr__(self, "total_amount", to_decimal(self.total_amount))

    @property
    def display_date(self) -> date:
        return self.effective_date or self.purchase_date

    @property
    def formula_total(self) -> Decimal:
        """Total amount due: explicit total, else hours x price."""
        if self.total_amount is not None:
            return self.total_amount
        return amount_for_hours(self.purchased_hours, self.price_per_hour)

    @property
    def is_fully_paid(self) -> bool:
        return self.status == PAYMENT_STATUS_PAID

    @property
    def outstanding_amount(self) -> Decimal:
        return max(self.formula_total - self.paid_amount, ZERO)

    def with_amount_recorded(self, amount) -> "Payment":
        """
        Apply an incoming amount: paid_amount grows and is capped at the total;
        status becomes paid once the total is covered, partial otherwise.
        """
        paid, status = apply_payment_amount(self.paid_amount, amount, self.formula_total)
        return replace(self, paid_amount=paid, status=status)


def apply_payment_amount(current_paid, amount, total) -> tuple[Decimal, str]:
    """
    Returns:
        (new_paid_amount, new_status)
    """
    new_paid = to_decimal(current_paid) + to_decimal(amount)
    total = to_decimal(total)
    if new_paid >= total:
        return total, PAYMENT_STATUS_PAID
    return new_paid, PAYMENT_STATUS_PARTIAL


def latest_payment(payments: list[Payment]) -> Payment | None:
    """Most recent payment by purchase date (last one wins on ties)."""
    if not payments:
        return None
    return max(enumerate(payments), key=lambda pair: (pair[1].purchase_date, pair[0]))[1]
