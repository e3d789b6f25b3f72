import logging

from sqlalchemy.orm import Session

from simcal.models.user import User, UserRole, UserStatus, RoleRequestStatus
from simcal.schemas.employee import EmployeeCreateRequest
from simcal.services.auth_service import serialize_user
from simcal.utils.security import hash_password
from simcal.utils.email import send_welcome_email
from simcal.utils.exceptions import (
    NotFoundException, DuplicateEntryException, ForbiddenException, ValidationException,
)
from simcal.utils.timeutils import isoformat

logger = logging.getLogger(__name__)


def _serialize_role_request(u: User) -> dict:
    return {
        "id":            u.id,
        "employee":      u.name,
        "email":         u.email,
        "currentRole":   u.role.value,
        "requestedRole": u.roleRequest.value if u.roleRequest else None,
        "reason":        u.roleRequestReason,
        "requestDate":   isoformat(u.roleRequestDate),
        "status":        (u.roleRequestStatus or RoleRequestStatus.PENDING).value,
    }


def _get_department_member(db: Session, user_id: int, manager: User) -> User:
    u = db.query(User).filter(User.id == user_id).first()
    if not u:
        raise NotFoundException("Employee")
    if u.department != manager.department:
        raise ForbiddenException("Access denied. Employee not in your department")
    if not u.roleRequest or u.roleRequestStatus != RoleRequestStatus.PENDING:
        raise ValidationException("Employee has no pending role request")
    return u


def _close_role_request(u: User, outcome: RoleRequestStatus) -> None:
    u.roleRequest       = None
    u.roleRequestReason = None
    u.roleRequestDate   = None
    u.roleRequestStatus = outcome


class EmployeeService:

    # ─── List ─────────────────────────────────────────────────────────────────
    def list_employees(self, db: Session, manager: User) -> list[dict]:
        users = db.query(User).filter(
            User.department == manager.department,
            User.role != UserRole.MANAGER,
        ).order_by(User.name.asc()).all()
        return [serialize_user(u) for u in users]

    # ─── Create ───────────────────────────────────────────────────────────────
    def add_employee(self, db: Session, data: EmployeeCreateRequest, manager: User) -> dict:
        department = data.department or manager.department
        if department != manager.department:
            raise ForbiddenException("Managers can only add employees to their own department")
        if db.query(User).filter(User.email == data.email).first():
            raise DuplicateEntryException("User already exists", field="email")

        u = User(
            name=data.name,
            email=data.email,
            password=hash_password(data.password),
            department=department,
            status=UserStatus.ACTIVE,
        )
        u.apply_role(data.role)
        db.add(u)
        db.commit()
        db.refresh(u)
        logger.info(f"{manager.email} added employee {u.email} ({u.role.value})")

        send_welcome_email(u.name, u.email, data.password)
        return serialize_user(u)

    # ─── Role Requests ────────────────────────────────────────────────────────
    def list_role_requests(self, db: Session, manager: User) -> list[dict]:
        users = db.query(User).filter(
            User.department == manager.department,
            User.roleRequest.is_not(None),
        ).order_by(User.roleRequestDate.asc()).all()
        return [_serialize_role_request(u) for u in users]

    def approve_role_request(self, db: Session, user_id: int, manager: User) -> dict:
        u = _get_department_member(db, user_id, manager)
        u.apply_role(u.roleRequest)
        _close_role_request(u, RoleRequestStatus.APPROVED)
        db.commit()
        db.refresh(u)
        logger.info(f"{manager.email} approved role {u.role.value} for {u.email}")
        return serialize_user(u)

    def reject_role_request(self, db: Session, user_id: int, manager: User) -> dict:
        u = _get_department_member(db, user_id, manager)
        _close_role_request(u, RoleRequestStatus.REJECTED)
        db.commit()
        db.refresh(u)
        logger.info(f"{manager.email} rejected the role request of {u.email}")
        return serialize_user(u)


employee_service = EmployeeService()
