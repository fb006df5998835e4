from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class LeaseEventOut(BaseModel):
    id: int
    kind: str  # "lease_sent", "tenant_signed", "lease_approved", ...
    lease_id: int
    property_id: int
    recipient_id: str
    subject: str
    delivery_status: str  # queued|sent|failed|skipped
    dispatched_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
