import enum
from dataclasses import dataclass, asdict

from sqlalchemy import Column, Integer, String, Boolean, Text, TIMESTAMP, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from simcal.database import Base


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


class UserRole(str, enum.Enum):
    P1      = "P1"
    P2      = "P2"
    P3      = "P3"
    P4      = "P4"
    MANAGER = "manager"


class UserStatus(str, enum.Enum):
    ACTIVE   = "active"
    INACTIVE = "inactive"


class RoleRequestStatus(str, enum.Enum):
    PENDING  = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ─── Permissions ──────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class PermissionSet:
    canManageUsers:    bool
    canManageBookings: bool
    canViewBookings:   bool
    canViewReports:    bool

    def as_dict(self) -> dict:
        return asdict(self)


MANAGER_PERMISSIONS = PermissionSet(
    canManageUsers=True, canManageBookings=True, canViewBookings=True, canViewReports=True,
)
EMPLOYEE_PERMISSIONS = PermissionSet(
    canManageUsers=False, canManageBookings=True, canViewBookings=True, canViewReports=False,
)


def permissions_for(role: UserRole) -> PermissionSet:
    """Permission flags granted by a role. Managers get everything."""
    return MANAGER_PERMISSIONS if UserRole(role) == UserRole.MANAGER else EMPLOYEE_PERMISSIONS


class User(Base):
    __tablename__ = "users"

    id         = Column(Integer, primary_key=True, index=True)
    name       = Column(String(150), nullable=False)
    email      = Column(String(255), unique=True, nullable=False, index=True)
    password   = Column(String(255), nullable=False)
    role       = Column(Enum(UserRole, values_callable=enum_values), nullable=False)
    department = Column(String(100), nullable=False, index=True)
    status     = Column(Enum(UserStatus, values_callable=enum_values),
                        default=UserStatus.ACTIVE, nullable=False)

    # Derived from role, see apply_role()
    canManageUsers    = Column(Boolean, default=False, nullable=False)
    canManageBookings = Column(Boolean, default=True,  nullable=False)
    canViewBookings   = Column(Boolean, default=True,  nullable=False)
    canViewReports    = Column(Boolean, default=False, nullable=False)

    # Pending role change
    roleRequest       = Column(Enum(UserRole, values_callable=enum_values), nullable=True)
    roleRequestReason = Column(Text, nullable=True)
    roleRequestDate   = Column(TIMESTAMP(timezone=True), nullable=True)
    roleRequestStatus = Column(Enum(RoleRequestStatus, values_callable=enum_values), nullable=True)

    resetPasswordToken   = Column(String(128), nullable=True, index=True)
    resetPasswordExpires = Column(TIMESTAMP(timezone=True), nullable=True)

    createdAt = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                       onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    bookings          = relationship("Booking", back_populates="creator")
    override_requests = relationship("OverrideRequest", foreign_keys="OverrideRequest.requesterId",
                                     back_populates="requester")

    def apply_role(self, role: UserRole) -> None:
        """Set the role and recompute the permission flags that depend on it."""
        self.role = UserRole(role)
        for flag, value in permissions_for(self.role).as_dict().items():
            setattr(self, flag, value)

    @property
    def permissions(self) -> PermissionSet:
        return PermissionSet(
            canManageUsers=bool(self.canManageUsers),
            canManageBookings=bool(self.canManageBookings),
            canViewBookings=bool(self.canViewBookings),
            canViewReports=bool(self.canViewReports),
        )

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
