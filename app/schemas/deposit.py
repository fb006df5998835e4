from pydantic import BaseModel, model_validator
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional


class DepositCreate(BaseModel):
    lease_id: int
    amount: Optional[Decimal] = None  # defaults to the lease's deposit_amount


class DepositConfirmIn(BaseModel):
    payment_method: Literal["cash", "bank_transfer", "eft"]
    payment_reference: Optional[str] = None


class DepositReleaseRequestIn(BaseModel):
    reason: str


class DepositReleaseIn(BaseModel):
    deduction_amount: Decimal = Decimal("0")
    deduction_reason: Optional[str] = None

    @model_validator(mode="after")
    def validate_deduction(self) -> "DepositReleaseIn":
        # A deduction must say what it covers
        if self.deduction_amount > 0 and not (self.deduction_reason or "").strip():
            raise ValueError("deduction_reason is required when deduction_amount is set")
        return self


class DepositForfeitIn(BaseModel):
    reason: str


class DepositOut(BaseModel):
    id: int
    lease_id: int
    tenant_id: str
    landlord_id: str
    amount: Decimal
    status: str  # pending|held|partial_release|released|forfeited
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    release_requested_at: Optional[datetime] = None
    release_requested_by: Optional[str] = None
    release_reason: Optional[str] = None
    deduction_amount: Decimal
    deduction_reason: Optional[str] = None
    released_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DepositReleaseOut(BaseModel):
    deposit: DepositOut
    refund_amount: Decimal
    deducted_amount: Decimal
