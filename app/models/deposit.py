from sqlalchemy import Column, Integer, ForeignKey, Numeric, String, DateTime, Text, func
from sqlalchemy.orm import relationship

from app.core.database import Base


class DepositStatus:
    PENDING = "pending"
    HELD = "held"
    PARTIAL_RELEASE = "partial_release"
    RELEASED = "released"
    FORFEITED = "forfeited"

    TERMINAL = (PARTIAL_RELEASE, RELEASED, FORFEITED)


PAYMENT_METHODS = ("cash", "bank_transfer", "eft")


class Deposit(Base):
    __tablename__ = "deposits"

    id = Column(Integer, primary_key=True, index=True)

    # One deposit per lease, checked by the escrow service before insert
    lease_id = Column(Integer, ForeignKey("leases.id"), nullable=False, index=True)
    tenant_id = Column(String, nullable=False, index=True)
    landlord_id = Column(String, nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String, nullable=False, default=DepositStatus.PENDING, index=True)

    # Receipt confirmed by the landlord
    paid_at = Column(DateTime(timezone=True), nullable=True)
    payment_method = Column(String, nullable=True)  # cash / bank_transfer / eft
    payment_reference = Column(String, nullable=True)

    # Tenant-initiated request; metadata only
    release_requested_at = Column(DateTime(timezone=True), nullable=True)
    release_requested_by = Column(String, nullable=True)
    release_reason = Column(Text, nullable=True)

    deduction_amount = Column(Numeric(10, 2), nullable=False, default=0)
    deduction_reason = Column(Text, nullable=True)
    released_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)

    lease = relationship("Lease", back_populates="deposit")
