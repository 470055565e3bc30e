"""
Student hours API endpoints
"""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from hourledger.api.deps import get_cache, get_record_store
from hourledger.application.hours import LedgerService
from hourledger.domain.checkin import Checkin


router = APIRouter(prefix="/api/v1/students", tags=["students"])


# === Response models ===

class HoursSummaryResponse(BaseModel):
    student_id: int
    purchased_hours: float
    completed_hours: float
    remaining_hours: float
    overflow_hours: float


class CheckinResponse(BaseModel):
    checkin_id: int | None
    student_id: int
    class_date: date
    time_slot: str
    duration_minutes: int
    lesson_number: int | None = None


class OverflowResponse(BaseModel):
    student_id: int
    has_overflow: bool
    overflow_boundary_date: date | None
    paid_checkins: list[CheckinResponse]
    unpaid_checkins: list[CheckinResponse]


def _checkin_response(checkin: Checkin, numbers: dict[int, int]) -> CheckinResponse:
    return CheckinResponse(
        checkin_id=checkin.id,
        student_id=checkin.student_id,
        class_date=checkin.class_date,
        time_slot=checkin.time_slot,
        duration_minutes=checkin.duration_minutes,
        lesson_number=numbers.get(checkin.id) if checkin.id is not None else None,
    )


# === Endpoints ===

@router.get("/{student_id}/hours", response_model=HoursSummaryResponse)
def get_hours_summary(
    student_id: int,
    store=Depends(get_record_store),
    cache=Depends(get_cache),
):
    """Purchased / completed / remaining hours of the student's pool"""
    try:
        summary = LedgerService(store, cache).compute_summary(student_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return HoursSummaryResponse(
        student_id=student_id,
        purchased_hours=summary.purchased_hours,
        completed_hours=summary.completed_hours,
        remaining_hours=summary.remaining_hours,
        overflow_hours=summary.overflow_hours,
    )


@router.get("/{student_id}/overflow", response_model=OverflowResponse)
def get_overflow(
    student_id: int,
    related_ids: list[int] | None = Query(default=None),
    store=Depends(get_record_store),
    cache=Depends(get_cache),
):
    """Checkins covered by purchased hours and the ones beyond them"""
    try:
        report = LedgerService(store, cache).compute_overflow(student_id, related_ids)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return OverflowResponse(
        student_id=student_id,
        has_overflow=report.has_overflow,
        overflow_boundary_date=report.overflow_boundary_date,
        paid_checkins=[_checkin_response(c, report.lesson_numbers) for c in report.paid_checkins],
        unpaid_checkins=[_checkin_response(c, {}) for c in report.unpaid_checkins],
    )
