"""
Payment API endpoints
"""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator

from hourledger.api.deps import get_cache, get_record_store, get_today
from hourledger.application.payments import CreatePaymentUseCase, RecordPaymentAmountUseCase
from hourledger.domain.payment import Payment, PAYMENT_STATUSES, PAYMENT_STATUS_UNPAID


router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


# === Request/Response models ===

class CreatePaymentRequest(BaseModel):
    student_id: int
    purchased_hours: float
    price_per_hour: float
    status: str = PAYMENT_STATUS_UNPAID  # paid, partial, unpaid
    paid_amount: float | None = None
    purchase_date: date | None = None
    effective_date: date | None = None
    is_session_payment: bool = False

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in PAYMENT_STATUSES:
            raise ValueError(f"status must be one of {', '.join(PAYMENT_STATUSES)}")
        return v


class RecordAmountRequest(BaseModel):
    amount: float


class PaymentResponse(BaseModel):
    payment_id: int | None
    student_id: int
    purchase_date: date
    effective_date: date | None
    purchased_hours: float
    price_per_hour: float
    total_amount: float
    paid_amount: float
    status: str
    is_session_payment: bool


def _payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        payment_id=payment.id,
        student_id=payment.student_id,
        purchase_date=payment.purchase_date,
        effective_date=payment.effective_date,
        purchased_hours=payment.purchased_hours,
        price_per_hour=float(payment.price_per_hour),
        total_amount=float(payment.formula_total),
        paid_amount=float(payment.paid_amount),
        status=payment.status,
        is_session_payment=payment.is_session_payment,
    )


# === Endpoints ===

@router.post("/", response_model=PaymentResponse)
def create_payment(
    req: CreatePaymentRequest,
    store=Depends(get_record_store),
    cache=Depends(get_cache),
    today: date = Depends(get_today),
):
    """Record a purchase of hours"""
    use_case = CreatePaymentUseCase(store, cache, today)
    try:
        payment = use_case.execute(
            student_id=req.student_id,
            purchased_hours=req.purchased_hours,
            price_per_hour=req.price_per_hour,
            status=req.status,
            paid_amount=req.paid_amount,
            purchase_date=req.purchase_date,
            effective_date=req.effective_date,
            is_session_payment=req.is_session_payment,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _payment_response(payment)


@router.post("/{payment_id}/amount", response_model=PaymentResponse)
def record_payment_amount(
    payment_id: int,
    req: RecordAmountRequest,
    store=Depends(get_record_store),
    cache=Depends(get_cache),
):
    """Add a received amount to a payment (partial or final)"""
    try:
        payment = RecordPaymentAmountUseCase(store, cache).execute(payment_id, req.amount)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _payment_response(payment)
