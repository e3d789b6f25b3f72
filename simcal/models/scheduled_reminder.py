from sqlalchemy import Column, Integer, Boolean, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from simcal.database import Base


class ScheduledReminder(Base):
    __tablename__ = "scheduled_reminders"

    id          = Column(Integer, primary_key=True, index=True)
    bookingId   = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    fireAt      = Column(TIMESTAMP(timezone=True), nullable=False, index=True)
    delivered   = Column(Boolean, default=False, nullable=False, index=True)
    deliveredAt = Column(TIMESTAMP(timezone=True), nullable=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    booking = relationship("Booking", back_populates="reminders")

    def __repr__(self):
        return f"<ScheduledReminder id={self.id} bookingId={self.bookingId} delivered={self.delivered}>"
