from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


class PaymentOut(BaseModel):
    id: int
    lease_id: int
    amount: Decimal
    kind: str
    status: str  # pending|paid|overdue
    due_date: date
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MarkPaidIn(BaseModel):
    payment_method: str
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None


class ScheduleIn(BaseModel):
    months_ahead: Optional[int] = Field(None, ge=1, le=120)


class ScheduleOut(BaseModel):
    payments_generated: int
    payments: List[PaymentOut]


class PaymentTotalsOut(BaseModel):
    paid: Decimal
    pending: Decimal
    overdue: Decimal
