import logging

from sqlalchemy.orm import Session

from simcal.config import settings
from simcal.models.user import User, RoleRequestStatus
from simcal.schemas.auth import (
    LoginRequest, RegisterRequest, ChangePasswordRequest,
    ResetPasswordRequest, ForgotPasswordRequest, RoleChangeRequest,
)
from simcal.utils.security import (
    verify_password, hash_password, create_access_token,
    generate_reset_token, reset_token_expiry,
)
from simcal.utils.email import send_password_reset_email
from simcal.utils.exceptions import (
    UnauthorizedException, AccountInactiveException, DuplicateEntryException,
    ResetTokenInvalidException, ValidationException,
)
from simcal.utils.timeutils import utcnow, as_utc, isoformat

logger = logging.getLogger(__name__)


def serialize_user(u: User) -> dict:
    return {
        "id":          u.id,
        "name":        u.name,
        "email":       u.email,
        "role":        u.role.value,
        "department":  u.department,
        "status":      u.status.value,
        "permissions": u.permissions.as_dict(),
        "roleRequest": {
            "requestedRole": u.roleRequest.value if u.roleRequest else None,
            "reason":        u.roleRequestReason,
            "date":          isoformat(u.roleRequestDate),
            "status":        u.roleRequestStatus.value,
        } if u.roleRequestStatus else None,
        "createdAt":   isoformat(u.createdAt),
    }


def _token_response(user: User) -> dict:
    return {
        "token":     create_access_token(user.id, user.role.value),
        "tokenType": "Bearer",
        "expiresIn": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user":      serialize_user(user),
    }


class AuthService:

    # ─── Register ─────────────────────────────────────────────────────────────
    def register(self, db: Session, data: RegisterRequest) -> dict:
        if db.query(User).filter(User.email == data.email).first():
            raise DuplicateEntryException("User already exists", field="email")

        user = User(
            name=data.name,
            email=data.email,
            password=hash_password(data.password),
            department=data.department,
        )
        user.apply_role(data.role)
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"New user registered: {user.email} ({user.role.value}, {user.department})")
        return _token_response(user)

    # ─── Login ────────────────────────────────────────────────────────────────
    def login(self, db: Session, data: LoginRequest) -> dict:
        user = db.query(User).filter(User.email == data.email).first()

        if not user or not verify_password(data.password, user.password):
            raise UnauthorizedException("Invalid credentials")

        if not user.is_active:
            raise AccountInactiveException()

        return _token_response(user)

    # ─── Forgot Password ──────────────────────────────────────────────────────
    def forgot_password(self, db: Session, data: ForgotPasswordRequest) -> None:
        """
        Always succeeds to prevent email enumeration.
        The reset link is only sent if the email actually exists.
        """
        user = db.query(User).filter(User.email == data.email).first()
        if not user or not user.is_active:
            return

        token = generate_reset_token()
        user.resetPasswordToken = token
        user.resetPasswordExpires = reset_token_expiry()
        db.commit()

        reset_link = f"{settings.FRONTEND_URL}/reset-password/{token}"
        send_password_reset_email(user.name, user.email, reset_link)

    # ─── Reset Password ───────────────────────────────────────────────────────
    def reset_password(self, db: Session, token: str, data: ResetPasswordRequest) -> None:
        user = db.query(User).filter(User.resetPasswordToken == token).first()
        if not user or not user.resetPasswordExpires:
            raise ResetTokenInvalidException()
        if as_utc(user.resetPasswordExpires) <= utcnow():
            raise ResetTokenInvalidException()

        user.password = hash_password(data.password)
        user.resetPasswordToken = None
        user.resetPasswordExpires = None
        db.commit()
        logger.info(f"Password reset for {user.email}")

    # ─── Change Password ──────────────────────────────────────────────────────
    def change_password(self, db: Session, data: ChangePasswordRequest, current_user: User) -> None:
        if not verify_password(data.currentPassword, current_user.password):
            raise UnauthorizedException("Current password is incorrect")

        current_user.password = hash_password(data.newPassword)
        db.commit()

    # ─── Role Change Request ──────────────────────────────────────────────────
    def request_role_change(self, db: Session, data: RoleChangeRequest, current_user: User) -> dict:
        if current_user.roleRequest and current_user.roleRequestStatus == RoleRequestStatus.PENDING:
            raise ValidationException("You already have a pending role request")
        if data.requestedRole == current_user.role:
            raise ValidationException("You already have this role", field="requestedRole")

        current_user.roleRequest       = data.requestedRole
        current_user.roleRequestReason = data.reason
        current_user.roleRequestDate   = utcnow()
        current_user.roleRequestStatus = RoleRequestStatus.PENDING
        db.commit()
        db.refresh(current_user)
        logger.info(f"{current_user.email} requested role {data.requestedRole.value}")
        return serialize_user(current_user)


auth_service = AuthService()
