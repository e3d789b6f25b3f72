import enum
from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from simcal.database import Base
from simcal.models.user import enum_values


class OverrideStatus(str, enum.Enum):
    PENDING  = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class OverrideRequest(Base):
    __tablename__ = "override_requests"

    id           = Column(Integer, primary_key=True, index=True)
    # Not a foreign key: deleting a booking leaves its requests behind
    bookingId    = Column(Integer, nullable=False, index=True)
    requesterId  = Column(Integer, ForeignKey("users.id"), nullable=False)
    reason       = Column(Text, nullable=False)
    status       = Column(Enum(OverrideStatus, values_callable=enum_values),
                          default=OverrideStatus.PENDING, nullable=False, index=True)
    department   = Column(String(100), nullable=False, index=True)
    resolvedById = Column(Integer, ForeignKey("users.id"), nullable=True)
    resolvedAt   = Column(TIMESTAMP(timezone=True), nullable=True)
    createdAt    = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    booking     = relationship("Booking", primaryjoin="foreign(OverrideRequest.bookingId) == Booking.id",
                               viewonly=True)
    requester   = relationship("User", foreign_keys=[requesterId], back_populates="override_requests")
    resolved_by = relationship("User", foreign_keys=[resolvedById])

    def __repr__(self):
        return f"<OverrideRequest id={self.id} bookingId={self.bookingId} status={self.status}>"
