from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel

from app.models.payment import Payment


class PaymentClaim(BaseModel):
    amount: Union[float, str]  # validated by the payment service
    notes: Optional[str] = None
    for_month: Optional[str] = None  # "YYYY-MM"


class ManualPaymentCreate(PaymentClaim):
    """Owner-entered payment; negative amounts correct earlier entries."""
    user_id: str


class PaymentResponse(BaseModel):
    id: str
    plan_id: str
    user_id: str
    amount: float
    date: datetime
    status: str
    notes: str = ""
    for_month: Optional[str] = None

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            id=str(payment.id),
            plan_id=str(payment.plan_id),
            user_id=payment.user_id,
            amount=payment.amount,
            date=payment.date,
            status=str(getattr(payment.status, "value", payment.status)),
            notes=payment.notes,
            for_month=payment.for_month.strftime("%Y-%m") if payment.for_month else None
        )
