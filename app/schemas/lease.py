from pydantic import BaseModel, field_validator
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


class LeaseClause(BaseModel):
    id: str
    title: str
    content: str


class LeaseDocument(BaseModel):
    title: Optional[str] = None
    clauses: List[LeaseClause] = []
    special_conditions: Optional[str] = None


class LeaseCreate(BaseModel):
    property_id: int
    tenant_id: str
    tenant_email: Optional[str] = None
    start_date: date
    end_date: date
    monthly_rent: Decimal
    deposit_amount: Decimal = Decimal("0")
    payment_due_day: Optional[int] = None  # defaults to PAYMENT_DUE_DAY
    lease_document: Optional[LeaseDocument] = None

    @field_validator('tenant_id', 'tenant_email', mode='before')
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class TenantDocumentIn(BaseModel):
    type: str  # id_front / id_back / proof_of_income / ...
    storage_id: str
    uploaded_at: Optional[datetime] = None


class LeaseSignIn(BaseModel):
    signature_data: str  # opaque signed-image blob (data URL)
    documents: List[TenantDocumentIn] = []


class LeaseDecisionIn(BaseModel):
    approved: bool
    signature_data: Optional[str] = None
    notes: Optional[str] = None


class LeaseApproveIn(BaseModel):
    signature_data: Optional[str] = None
    notes: Optional[str] = None


class LeaseNotesIn(BaseModel):
    notes: Optional[str] = None


class LeaseRevisionIn(BaseModel):
    notes: str


class LeaseTerminateIn(BaseModel):
    reason: Optional[str] = None


class TenantDocumentOut(BaseModel):
    type: str
    storage_id: str
    uploaded_at: Optional[str] = None


class LeaseOut(BaseModel):
    id: int
    property_id: int
    tenant_id: str
    tenant_email: Optional[str]
    landlord_id: str
    landlord_email: Optional[str]
    start_date: date
    end_date: date
    monthly_rent: Decimal
    deposit_amount: Decimal
    payment_due_day: int
    lease_document: Optional[LeaseDocument] = None
    tenant_signature_data: Optional[str] = None
    landlord_signature_data: Optional[str] = None
    tenant_documents: List[TenantDocumentOut] = []
    landlord_notes: Optional[str] = None
    status: str
    sent_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    terminated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator('tenant_documents', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return v or []

    class Config:
        from_attributes = True
