from sqlalchemy import Column, String, Integer, DateTime, Date, ForeignKey, Numeric, JSON, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class LeaseStatus:
    DRAFT = "draft"
    SENT_TO_TENANT = "sent_to_tenant"
    TENANT_SIGNED = "tenant_signed"
    REVISION_REQUESTED = "revision_requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    TERMINATED = "terminated"
    EXPIRED = "expired"

    ALL = (
        DRAFT,
        SENT_TO_TENANT,
        TENANT_SIGNED,
        REVISION_REQUESTED,
        APPROVED,
        REJECTED,
        TERMINATED,
        EXPIRED,
    )
    TERMINAL = (REJECTED, TERMINATED, EXPIRED)


class Lease(Base):
    __tablename__ = "leases"

    id = Column(Integer, primary_key=True, index=True)

    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    property = relationship("Property", back_populates="leases")

    # Parties are Supabase user ids; emails are captured for notifications
    tenant_id = Column(String, nullable=False, index=True)
    tenant_email = Column(String, nullable=True)
    landlord_id = Column(String, nullable=False, index=True)
    landlord_email = Column(String, nullable=True)

    # Calendar dates, no time component
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False, index=True)

    monthly_rent = Column(Numeric(10, 2), nullable=False)
    deposit_amount = Column(Numeric(10, 2), nullable=False, default=0)
    payment_due_day = Column(Integer, nullable=False, default=1)

    # {"title": ..., "clauses": [{"id", "title", "content"}], "special_conditions": ...}
    lease_document = Column(JSON, nullable=True)

    tenant_signature_data = Column(Text, nullable=True)
    landlord_signature_data = Column(Text, nullable=True)
    # [{"type": "id_front", "storage_id": ..., "uploaded_at": ...}]
    tenant_documents = Column(JSON, nullable=False, default=list)
    landlord_notes = Column(Text, nullable=True)

    status = Column(String, nullable=False, default=LeaseStatus.DRAFT, index=True)

    sent_at = Column(DateTime(timezone=True), nullable=True)
    signed_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    terminated_at = Column(DateTime(timezone=True), nullable=True)

    payments = relationship("Payment", back_populates="lease", order_by="Payment.due_date")
    deposit = relationship("Deposit", back_populates="lease", uselist=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
