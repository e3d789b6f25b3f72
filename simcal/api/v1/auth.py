from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from simcal.database import get_db
from simcal.dependencies import get_current_user
from simcal.models.user import User
from simcal.schemas.auth import (
    LoginRequest, RegisterRequest, ForgotPasswordRequest,
    ResetPasswordRequest, ChangePasswordRequest, RoleChangeRequest,
)
from simcal.schemas.common import SuccessResponse, success_response
from simcal.services.auth_service import auth_service, serialize_user

router = APIRouter(prefix="/auth")


# ─── POST /auth/register ──────────────────────────────────────────────────────
@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
    response_model=SuccessResponse,
)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """
    Register a new user.
    - Email must be unique.
    - Permissions are derived from the role.
    """
    return success_response("Registration successful", auth_service.register(db, data))


# ─── POST /auth/login ─────────────────────────────────────────────────────────
@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    summary="Login and receive a bearer token",
    response_model=SuccessResponse,
)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    return success_response("Login successful", auth_service.login(db, data))


# ─── GET /auth/me ─────────────────────────────────────────────────────────────
@router.get(
    "/me",
    status_code=status.HTTP_200_OK,
    summary="Get current authenticated user profile",
    response_model=SuccessResponse,
)
def get_me(current_user: User = Depends(get_current_user)):
    return success_response("User profile retrieved", serialize_user(current_user))


# ─── POST /auth/forgot-password ───────────────────────────────────────────────
@router.post(
    "/forgot-password",
    status_code=status.HTTP_200_OK,
    summary="Request a password reset link",
    response_model=SuccessResponse,
)
def forgot_password(data: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """
    Always returns 200, even if the email does not exist.
    """
    auth_service.forgot_password(db, data)
    return success_response("If your email is registered, you will receive a password reset link", None)


# ─── POST /auth/reset-password/{token} ────────────────────────────────────────
@router.post(
    "/reset-password/{token}",
    status_code=status.HTTP_200_OK,
    summary="Reset password using the token from the reset link",
    response_model=SuccessResponse,
)
def reset_password(token: str, data: ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(db, token, data)
    return success_response("Password has been reset successfully", None)


# ─── PATCH /auth/change-password ──────────────────────────────────────────────
@router.patch(
    "/change-password",
    status_code=status.HTTP_200_OK,
    summary="Change password (requires current password, authenticated)",
    response_model=SuccessResponse,
)
def change_password(
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    auth_service.change_password(db, data, current_user)
    return success_response("Password changed successfully.", None)


# ─── POST /auth/request-role-change ───────────────────────────────────────────
@router.post(
    "/request-role-change",
    status_code=status.HTTP_200_OK,
    summary="Ask a manager of your department for another role",
    response_model=SuccessResponse,
)
def request_role_change(
    data: RoleChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return success_response("Role change request submitted successfully",
                            auth_service.request_role_change(db, data, current_user))
