"""
Coach monthly forecast API endpoint
"""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from hourledger.api.deps import get_calendar, get_record_store, get_today
from hourledger.application.monthly_forecast import MonthlyForecastService
from hourledger.config import get_settings


router = APIRouter(prefix="/api/v1/coaches", tags=["coaches"])


# === Response models ===

class RenewalEntryResponse(BaseModel):
    student_id: int
    student_name: str
    renewal_date: date
    expiry_date: date | None
    is_paid: bool
    expected_hours: float
    expected_amount: int
    paid_amount: int
    remaining_hours: float
    is_estimated: bool  # calendar not scheduled far enough to reach this renewal


class RenewalForecastResponse(BaseModel):
    student_count: int
    expected_amount: int
    students: list[RenewalEntryResponse]


class StudentMonthResponse(BaseModel):
    student_id: int
    student_name: str
    checked_in_classes: int
    executed_hours: float
    executed_revenue: int
    collected_amount: int


class MonthlyForecastResponse(BaseModel):
    coach_id: int
    coach_name: str
    year: int
    month: int
    scheduled_classes: int
    scheduled_hours: float
    checked_in_classes: int
    estimated_revenue: int
    executed_revenue: int
    collected_amount: int
    pending_amount: int
    is_historical: bool
    renewal_forecast: RenewalForecastResponse
    students: list[StudentMonthResponse]


# === Endpoints ===

@router.get("/{coach_id}/forecast", response_model=MonthlyForecastResponse)
def get_monthly_forecast(
    coach_id: int,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    store=Depends(get_record_store),
    calendar=Depends(get_calendar),
    today: date = Depends(get_today),
):
    """Scheduled / executed / collected figures and expected renewals for a month"""
    service = MonthlyForecastService(
        store, calendar, today, horizon_months=get_settings().FORECAST_HORIZON_MONTHS,
    )
    try:
        forecast = service.compute(coach_id, year, month)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    renewals = forecast.renewal_forecast
    return MonthlyForecastResponse(
        coach_id=forecast.coach_id,
        coach_name=forecast.coach_name,
        year=forecast.year,
        month=forecast.month,
        scheduled_classes=forecast.scheduled_classes,
        scheduled_hours=forecast.scheduled_hours,
        checked_in_classes=forecast.checked_in_classes,
        estimated_revenue=forecast.estimated_revenue,
        executed_revenue=forecast.executed_revenue,
        collected_amount=forecast.collected_amount,
        pending_amount=forecast.pending_amount,
        is_historical=forecast.is_historical,
        renewal_forecast=RenewalForecastResponse(
            student_count=renewals.student_count,
            expected_amount=renewals.expected_amount,
            students=[RenewalEntryResponse(**vars(e)) for e in renewals.students],
        ),
        students=[StudentMonthResponse(**vars(r)) for r in forecast.student_rows],
    )
