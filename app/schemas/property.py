from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime


class PropertyBase(BaseModel):
    name: str
    address: str
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None

    @field_validator('name', 'address', mode='before')
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('name', 'address')
    @classmethod
    def not_blank(cls, v):
        if not v:
            raise ValueError('must not be blank')
        return v


class PropertyCreate(PropertyBase):
    pass


class PropertyUpdate(BaseModel):
    # Availability is owned by the lease lifecycle and cannot be patched here
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None

    @field_validator('name', 'address', 'city', 'state', 'zip', mode='before')
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('name', 'address')
    @classmethod
    def not_blank(cls, v):
        # None means "leave unchanged"
        if v is not None and not v:
            raise ValueError('must not be blank')
        return v


class PropertyOut(PropertyBase):
    id: int
    landlord_id: str
    is_available: bool
    approval_status: str  # pending|approved|rejected
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
