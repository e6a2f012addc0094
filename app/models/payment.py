from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from app.db.mongo import PAYMENTS
from app.models.base import MongoModel, PyObjectId


class PaymentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Payment(MongoModel):
    """
    Money a member paid towards a plan.

    Amounts are signed: the owner may record a negative manual payment as a
    correction. ``for_month`` earmarks the payment against one month's due.
    Only the status ever changes after creation.
    """
    collection_name = PAYMENTS

    plan_id: PyObjectId
    user_id: str
    amount: float
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: PaymentStatus = PaymentStatus.PENDING
    notes: str = ""
    for_month: Optional[datetime] = None

    @field_validator("for_month")
    @classmethod
    def truncate_to_month(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        # Keeps the calendar month as written, whatever the offset
        return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0, tzinfo=timezone.utc)

    @property
    def is_approved(self) -> bool:
        return self.status == PaymentStatus.APPROVED

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING
