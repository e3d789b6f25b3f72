from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from simcal.database import get_db
from simcal.models.user import User
from simcal.utils.security import verify_access_token
from simcal.utils.exceptions import (
    UnauthorizedException,
    ForbiddenException,
    AccountInactiveException,
)

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Get Current User ─────────────────────────────────────────────────────────
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Validate JWT Bearer token and return the current User.
    Raises 401 if token is missing, invalid, expired or names an unknown user.
    Raises 403 if account is inactive.
    """
    if not credentials:
        raise UnauthorizedException("No authentication token provided")

    payload = verify_access_token(credentials.credentials)
    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        raise UnauthorizedException("Invalid token payload")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise UnauthorizedException("User no longer exists")

    if not user.is_active:
        raise AccountInactiveException()

    return user


# ─── Permission Guards ────────────────────────────────────────────────────────
def require_permission(flag: str):
    """
    Factory that returns a FastAPI dependency requiring a permission flag.

    Usage:
        @router.delete("/{booking_id}")
        def delete(current_user = Depends(require_permission("canManageBookings"))):
            ...
    """
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not getattr(current_user.permissions, flag):
            raise ForbiddenException(f"This action requires the {flag} permission")
        return current_user
    return dependency


def get_manager_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_manager:
        raise ForbiddenException("Access denied. Managers only.")
    return current_user
