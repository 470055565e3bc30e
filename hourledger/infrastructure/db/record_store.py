"""
SQLAlchemy-backed record store

Maps ORM rows to immutable domain records. Query errors are not caught here:
a failed fetch must reach the caller as a failure, never as a partial result.
"""
from decimal import Decimal
from typing import Iterable

from sqlalchemy import or_
from sqlalchemy.orm import Session

from hourledger.domain.checkin import Checkin, duration_from_time_slot
from hourledger.domain.payment import Payment
from hourledger.domain.student import Coach, Student
from hourledger.infrastructure.db.models import (
    CoachModel, StudentModel, StudentLinkModel, PaymentModel, CheckinModel,
)


def _ids(student_ids: int | Iterable[int]) -> list[int]:
    if isinstance(student_ids, int):
        return [student_ids]
    return list(student_ids)


def _to_payment(row: PaymentModel) -> Payment:
    return Payment(
        id=row.id,
        student_id=row.student_id,
        coach_id=row.coach_id,
        purchase_date=row.purchase_date,
        effective_date=row.effective_date,
        purchased_hours=float(row.purchased_hours),
        price_per_hour=row.price_per_hour,
        paid_amount=row.paid_amount or 0,
        total_amount=row.total_amount,
        status=row.status,
        is_session_payment=bool(row.is_session_payment),
    )


def _to_checkin(row: CheckinModel) -> Checkin:
    return Checkin(
        id=row.id,
        student_id=row.student_id,
        coach_id=row.coach_id,
        class_date=row.class_date,
        duration_minutes=duration_from_time_slot(row.time_slot),
        time_slot=row.time_slot,
    )


class SqlRecordStore:
    def __init__(self, db: Session):
        self.db = db

    # ── Students / coaches ────────────────────────────────────────────────────

    def get_coach(self, coach_id: int) -> Coach | None:
        row = self.db.query(CoachModel).filter(CoachModel.id == coach_id).first()
        if row is None:
            return None
        return Coach(id=row.id, name=row.name)

    def get_student(self, student_id: int) -> Student | None:
        row = self.db.query(StudentModel).filter(StudentModel.id == student_id).first()
        if row is None:
            return None
        return self._to_student(row, self._related_ids([row.id]))

    def list_students_by_coach(self, coach_id: int) -> list[Student]:
        rows = (
            self.db.query(StudentModel)
            .filter(StudentModel.coach_id == coach_id)
            .order_by(StudentModel.name, StudentModel.id)
            .all()
        )
        related = self._related_ids([r.id for r in rows])
        return [self._to_student(r, related) for r in rows]

    def list_linked_student_ids(self, student_id: int) -> list[int]:
        links = self.db.query(StudentLinkModel).filter(
            or_(
                StudentLinkModel.student_id == student_id,
                StudentLinkModel.related_student_id == student_id,
            )
        ).all()
        linked: list[int] = []
        for link in links:
            other = link.related_student_id if link.student_id == student_id else link.student_id
            if other not in linked:
                linked.append(other)
        return linked

    def _related_ids(self, student_ids: list[int]) -> dict[int, list[int]]:
        if not student_ids:
            return {}
        links = (
            self.db.query(StudentLinkModel)
            .filter(StudentLinkModel.student_id.in_(student_ids))
            .order_by(StudentLinkModel.id)
            .all()
        )
        related: dict[int, list[int]] = {}
        for link in links:
            related.setdefault(link.student_id, []).append(link.related_student_id)
        return related

    @staticmethod
    def _to_student(row: StudentModel, related: dict[int, list[int]]) -> Student:
        return Student(
            id=row.id,
            name=row.name,
            coach_id=row.coach_id,
            related_student_ids=tuple(related.get(row.id, [])),
        )

    # ── Payments ──────────────────────────────────────────────────────────────

    def list_payments(self, student_ids: int | Iterable[int]) -> list[Payment]:
        ids = _ids(student_ids)
        if not ids:
            return []
        rows = (
            self.db.query(PaymentModel)
            .filter(PaymentModel.student_id.in_(ids))
            .order_by(PaymentModel.purchase_date, PaymentModel.id)
            .all()
        )
        return [_to_payment(r) for r in rows]

    def get_payment(self, payment_id: int) -> Payment | None:
        row = self.db.query(PaymentModel).filter(PaymentModel.id == payment_id).first()
        return _to_payment(row) if row is not None else None

    def add_payment(self, payment: Payment) -> Payment:
        row = PaymentModel(
            student_id=payment.student_id,
            coach_id=payment.coach_id,
            purchase_date=payment.purchase_date,
            effective_date=payment.effective_date,
            purchased_hours=payment.purchased_hours,
            price_per_hour=payment.price_per_hour,
            paid_amount=payment.paid_amount,
            total_amount=payment.total_amount,
            status=payment.status,
            is_session_payment=payment.is_session_payment,
        )
        self.db.add(row)
        self.db.flush()
        self.db.commit()
        return _to_payment(row)

    def update_payment_amount(self, payment_id: int, paid_amount: Decimal, status: str) -> None:
        row = self.db.query(PaymentModel).filter(PaymentModel.id == payment_id).first()
        if row is None:
            return
        row.paid_amount = paid_amount
        row.status = status
        self.db.commit()

    # ── Checkins ──────────────────────────────────────────────────────────────

    def list_checkins(self, student_ids: int | Iterable[int]) -> list[Checkin]:
        ids = _ids(student_ids)
        if not ids:
            return []
        rows = (
            self.db.query(CheckinModel)
            .filter(CheckinModel.student_id.in_(ids))
            .order_by(CheckinModel.class_date, CheckinModel.id)
            .all()
        )
        return [_to_checkin(r) for r in rows]
