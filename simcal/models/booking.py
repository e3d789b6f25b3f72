import enum
from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP, Enum, Index, Table, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from simcal.database import Base
from simcal.models.user import enum_values


class Simulator(str, enum.Enum):
    SIM1 = "SIM1"
    SIM2 = "SIM2"
    SIM3 = "SIM3"
    SIM4 = "SIM4"


class BookingStatus(str, enum.Enum):
    SCHEDULED   = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED   = "completed"
    CANCELLED   = "cancelled"


class Priority(str, enum.Enum):
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"


booking_participants = Table(
    "booking_participants",
    Base.metadata,
    Column("bookingId", Integer, ForeignKey("bookings.id", ondelete="CASCADE"), primary_key=True),
    Column("userId",    Integer, ForeignKey("users.id", ondelete="CASCADE"),    primary_key=True),
)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_schedule", "startTime", "endTime", "simulator"),
        # One in-progress session per simulator, enforced by the database
        Index(
            "uq_bookings_simulator_in_progress",
            "simulator",
            unique=True,
            postgresql_where=text("status = 'in-progress'"),
            sqlite_where=text("status = 'in-progress'"),
        ),
    )

    id          = Column(Integer, primary_key=True, index=True)
    title       = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    startTime   = Column(TIMESTAMP(timezone=True), nullable=False)
    endTime     = Column(TIMESTAMP(timezone=True), nullable=False)
    simulator   = Column(Enum(Simulator, values_callable=enum_values), nullable=False)
    status      = Column(Enum(BookingStatus, values_callable=enum_values),
                         default=BookingStatus.SCHEDULED, nullable=False, index=True)
    priority    = Column(Enum(Priority, values_callable=enum_values),
                         default=Priority.P4, nullable=False)
    createdById = Column(Integer, ForeignKey("users.id"), nullable=False)
    department  = Column(String(100), nullable=False, index=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                         onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    creator      = relationship("User", foreign_keys=[createdById], back_populates="bookings")
    participants = relationship("User", secondary=booking_participants, order_by="User.id")
    reminders    = relationship("ScheduledReminder", back_populates="booking",
                                cascade="all, delete-orphan")

    def involves(self, user_id: int) -> bool:
        return self.createdById == user_id or any(p.id == user_id for p in self.participants)

    def __repr__(self):
        return f"<Booking id={self.id} status={self.status} simulator={self.simulator}>"
