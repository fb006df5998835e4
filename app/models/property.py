from sqlalchemy import Column, String, Integer, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)

    # Supabase user id of the owning landlord
    landlord_id = Column(String, nullable=False, index=True)

    name = Column(String, nullable=False)
    address = Column(String, nullable=False)

    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    zip = Column(String, nullable=True)

    # False while an approved lease exists; flipped only by the lease lifecycle
    is_available = Column(Boolean, nullable=False, default=True)

    # pending / approved / rejected (listing review, handled elsewhere)
    approval_status = Column(String, nullable=False, default="pending", index=True)

    leases = relationship("Lease", back_populates="property")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
