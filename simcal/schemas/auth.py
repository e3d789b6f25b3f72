from pydantic import BaseModel, EmailStr, field_validator, model_validator

from simcal.models.user import UserRole


# ─── Helpers ──────────────────────────────────────────────────────────────────
def validate_password_length(v: str) -> str:
    if len(v) < 6:
        raise ValueError("Password must be at least 6 characters")
    return v


def normalize_email(v: str) -> str:
    return v.strip().lower()


# ─── Request Schemas ──────────────────────────────────────────────────────────
class LoginRequest(BaseModel):
    email:    EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, v): return normalize_email(v)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v): return normalize_email(v)


class ResetPasswordRequest(BaseModel):
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return validate_password_length(v)


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword:     str
    confirmPassword: str

    @field_validator("newPassword")
    @classmethod
    def password_length(cls, v: str) -> str:
        return validate_password_length(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.newPassword != self.confirmPassword:
            raise ValueError("Passwords do not match")
        return self


class RegisterRequest(BaseModel):
    name:       str
    email:      EmailStr
    password:   str
    role:       UserRole = UserRole.P4
    department: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, v): return normalize_email(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return validate_password_length(v)

    @field_validator("name", "department")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class RoleChangeRequest(BaseModel):
    requestedRole: UserRole
    reason:        str

    @field_validator("reason")
    @classmethod
    def detailed_reason(cls, v: str) -> str:
        if len(v.strip()) < 10:
            raise ValueError("Please provide a detailed reason (minimum 10 characters)")
        return v.strip()
