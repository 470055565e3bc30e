"""
SQLAlchemy ORM models (record store tables)
"""
from decimal import Decimal
from datetime import date as date_type, datetime
from sqlalchemy import String, Integer, Date, TIMESTAMP, Boolean, Numeric, UniqueConstraint, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from hourledger.infrastructure.db.session import Base


class CoachModel(Base):
    __tablename__ = "coaches"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class StudentModel(Base):
    """Student; `name` must match calendar event titles for schedule matching"""
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    coach_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)  # -> coaches
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class StudentLinkModel(Base):
    """Hour-pool link: student_id consumes hours together with related_student_id"""
    __tablename__ = "student_links"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    related_student_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("student_id", "related_student_id", name="uq_student_link"),
    )


class PaymentModel(Base):
    """
    Purchase of a block of hours

    purchase_date: period the purchase belongs to (bucket key)
    effective_date: day the money was received (display date)
    total_amount: agreed price when it differs from hours x price_per_hour
    """
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    coach_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    purchase_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    effective_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)

    purchased_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    price_per_hour: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="unpaid", server_default="unpaid")
    is_session_payment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_payments_student_purchase", "student_id", "purchase_date"),
    )


class CheckinModel(Base):
    """Attended class; duration is derived from time_slot ("HH:MM-HH:MM")"""
    __tablename__ = "checkins"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    coach_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    class_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    time_slot: Mapped[str] = mapped_column(String(32), nullable=False, default="", server_default="")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_checkins_student_date", "student_id", "class_date"),
    )
