from sqlalchemy import Column, Integer, ForeignKey, Date, Numeric, String, DateTime, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship

from app.core.database import Base


class PaymentStatus:
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"

    ALL = (PENDING, PAID, OVERDUE)


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (UniqueConstraint("lease_id", "due_date", "kind", name="uq_payments_lease_due_kind"),)

    id = Column(Integer, primary_key=True, index=True)

    lease_id = Column(Integer, ForeignKey("leases.id"), nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    kind = Column(String, nullable=False, default="rent")
    status = Column(String, nullable=False, default=PaymentStatus.PENDING, index=True)  # pending / paid / overdue

    due_date = Column(Date, nullable=False, index=True)

    paid_at = Column(DateTime(timezone=True), nullable=True)
    payment_method = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    lease = relationship("Lease", back_populates="payments")
