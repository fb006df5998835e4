"""
Typed field changes applied by each lease transition.

Each delta names the status it moves the lease to and the exact columns it
writes; anything not listed is left untouched.
"""
from dataclasses import dataclass, fields
from datetime import datetime
from typing import ClassVar, Optional, Tuple

from app.models.lease import LeaseStatus


@dataclass(frozen=True)
class LeaseDelta:
    status: ClassVar[str]

    def values(self) -> dict:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = list(value) if isinstance(value, tuple) else value
        data["status"] = self.status
        return data


@dataclass(frozen=True)
class LeaseSent(LeaseDelta):
    status: ClassVar[str] = LeaseStatus.SENT_TO_TENANT
    sent_at: datetime


@dataclass(frozen=True)
class LeaseSigned(LeaseDelta):
    status: ClassVar[str] = LeaseStatus.TENANT_SIGNED
    tenant_signature_data: str
    tenant_documents: Tuple[dict, ...]
    signed_at: datetime


@dataclass(frozen=True)
class LeaseApproved(LeaseDelta):
    status: ClassVar[str] = LeaseStatus.APPROVED
    approved_at: datetime
    landlord_signature_data: Optional[str] = None
    landlord_notes: Optional[str] = None


@dataclass(frozen=True)
class LeaseRejected(LeaseDelta):
    status: ClassVar[str] = LeaseStatus.REJECTED
    landlord_notes: Optional[str] = None


@dataclass(frozen=True)
class LeaseRevisionRequested(LeaseDelta):
    status: ClassVar[str] = LeaseStatus.REVISION_REQUESTED
    landlord_notes: str
    # Cleared so a stale signature never survives into the next signing round
    tenant_signature_data: Optional[str] = None
    tenant_documents: Tuple[dict, ...] = ()
    signed_at: Optional[datetime] = None


@dataclass(frozen=True)
class LeaseTerminated(LeaseDelta):
    status: ClassVar[str] = LeaseStatus.TERMINATED
    terminated_at: datetime
    landlord_notes: Optional[str] = None


@dataclass(frozen=True)
class LeaseExpired(LeaseDelta):
    status: ClassVar[str] = LeaseStatus.EXPIRED


@dataclass(frozen=True)
class PropertyAvailability:
    property_id: int
    is_available: bool

    def values(self) -> dict:
        return {"is_available": self.is_available}
