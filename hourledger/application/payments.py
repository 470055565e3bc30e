"""
Payment write use cases.

Every write evicts the cached hours summary of the paying student and of
every student sharing the pool before it returns, so the next read sees the
new purchase regardless of the cache TTL.
"""
import logging
from datetime import date

from hourledger.application.ports import RecordStore, SummaryCache
from hourledger.domain.errors import LedgerValidationError, PaymentNotFoundError, StudentNotFoundError
from hourledger.domain.payment import (
    Payment, PAYMENT_STATUSES, PAYMENT_STATUS_PAID, PAYMENT_STATUS_UNPAID,
)
from hourledger.utils.money import ZERO, amount_for_hours

logger = logging.getLogger(__name__)


def _evict_pool(store: RecordStore, cache: SummaryCache, student_id: int) -> None:
    cache.evict(student_id)
    for linked_id in store.list_linked_student_ids(student_id):
        cache.evict(linked_id)


class CreatePaymentUseCase:
    def __init__(self, store: RecordStore, cache: SummaryCache, today: date):
        self.store = store
        self.cache = cache
        self.today = today

    def execute(
        self,
        student_id: int,
        purchased_hours: float,
        price_per_hour: float,
        status: str = PAYMENT_STATUS_UNPAID,
        paid_amount: float | None = None,
        purchase_date: date | None = None,
        effective_date: date | None = None,
        is_session_payment: bool = False,
    ) -> Payment:
        """
        Record a purchase of hours.

        effective_date defaults to today; purchase_date (the bucket key)
        defaults to the effective date. A payment created as paid without an
        explicit amount is paid in full.
        """
        if purchased_hours <= 0:
            raise LedgerValidationError("Purchased hours must be positive")
        if price_per_hour < 0:
            raise LedgerValidationError("Price per hour cannot be negative")
        if status not in PAYMENT_STATUSES:
            raise LedgerValidationError(f"Unknown payment status: {status}")
        if paid_amount is not None and paid_amount < 0:
            raise LedgerValidationError("Paid amount cannot be negative")

        student = self.store.get_student(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)

        total = amount_for_hours(purchased_hours, price_per_hour)
        if paid_amount is None:
            paid_amount = total if status == PAYMENT_STATUS_PAID else ZERO

        effective = effective_date or self.today
        payment = self.store.add_payment(Payment(
            id=None,
            student_id=student_id,
            coach_id=student.coach_id,
            purchase_date=purchase_date or effective,
            effective_date=effective,
            purchased_hours=purchased_hours,
            price_per_hour=price_per_hour,
            paid_amount=paid_amount,
            total_amount=total,
            status=status,
            is_session_payment=is_session_payment,
        ))
        _evict_pool(self.store, self.cache, student_id)
        logger.info(
            "Payment id=%s created for student_id=%s: %sh on %s (%s)",
            payment.id, student_id, purchased_hours, payment.purchase_date, status,
        )
        return payment


class RecordPaymentAmountUseCase:
    def __init__(self, store: RecordStore, cache: SummaryCache):
        self.store = store
        self.cache = cache

    def execute(self, payment_id: int, amount: float) -> Payment:
        """
        Add an incoming amount to a payment; see Payment.with_amount_recorded.
        """
        if amount <= 0:
            raise LedgerValidationError("Amount must be positive")

        payment = self.store.get_payment(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        if payment.is_fully_paid:
            raise LedgerValidationError("Payment is already fully paid")

        updated = payment.with_amount_recorded(amount)
        self.store.update_payment_amount(payment_id, updated.paid_amount, updated.status)
        _evict_pool(self.store, self.cache, payment.student_id)
        logger.info(
            "Payment id=%s: recorded %s, paid %s/%s (%s)",
            payment_id, amount, updated.paid_amount, updated.formula_total, updated.status,
        )
        return updated
