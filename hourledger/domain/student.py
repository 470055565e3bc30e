"""
Student / Coach entities and hour-pool resolution

Students can share one purchased-hours pool: a secondary student has no
payments of their own and attends classes on the hours bought by a linked
student. The pool is resolved once per request and then passed down, so the
ledger code never needs to know about the links.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping

from hourledger.domain.payment import Payment, latest_payment
from hourledger.utils.money import ZERO


@dataclass(frozen=True)
class Coach:
    id: int
    name: str


@dataclass(frozen=True)
class Student:
    id: int
    name: str
    coach_id: int | None = None
    related_student_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PoolMembership:
    """
    owner_id: the member whose payments fund the pool
    member_ids: every student whose checkins consume the pool (owner included)
    """
    owner_id: int
    member_ids: tuple[int, ...]


def pool_member_ids(student_id: int, related_ids) -> tuple[int, ...]:
    ids: list[int] = [student_id]
    for rid in related_ids or ():
        if rid not in ids:
            ids.append(rid)
    return tuple(ids)


def resolve_pool_owner(
    student_id: int,
    related_ids,
    payments_by_student: Mapping[int, list[Payment]],
) -> PoolMembership:
    """
    The owner is the first member (the student first, then links in order)
    holding at least one payment. Without any payments the student owns an
    empty pool.
    """
    members = pool_member_ids(student_id, related_ids)
    for member_id in members:
        if payments_by_student.get(member_id):
            return PoolMembership(owner_id=member_id, member_ids=members)
    return PoolMembership(owner_id=student_id, member_ids=members)


def resolve_price_per_hour(
    student: Student,
    students_by_id: Mapping[int, Student],
    payments_by_student: Mapping[int, list[Payment]],
) -> Decimal:
    """
    Own latest payment's price; otherwise inherited from the first linked
    student that has one; otherwise 0.
    """
    own = latest_payment(payments_by_student.get(student.id, []))
    if own is not None:
        return own.price_per_hour
    for related_id in student.related_student_ids:
        if related_id not in students_by_id:
            continue
        related = latest_payment(payments_by_student.get(related_id, []))
        if related is not None:
            return related.price_per_hour
    return ZERO


def group_by_student(records) -> dict[int, list]:
    """Group payments or checkins by student_id, keeping input order."""
    grouped: dict[int, list] = {}
    for record in records:
        grouped.setdefault(record.student_id, []).append(record)
    return grouped
