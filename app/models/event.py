from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Text
from sqlalchemy.sql import func
from app.core.database import Base


class LeaseEvent(Base):
    __tablename__ = "lease_events"

    id = Column(Integer, primary_key=True, index=True)

    # Event kind: "lease_sent", "tenant_signed", "lease_approved", ...
    kind = Column(String, nullable=False, index=True)

    lease_id = Column(Integer, ForeignKey("leases.id"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)

    recipient_id = Column(String, nullable=False)
    recipient_email = Column(String, nullable=True)
    subject = Column(String, nullable=False)
    body = Column(Text, nullable=False)

    # queued / sent / failed / skipped; written once by the dispatcher, never retried
    delivery_status = Column(String, nullable=False, default="queued", index=True)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
