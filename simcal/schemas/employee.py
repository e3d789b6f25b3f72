import re

from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional

from simcal.models.user import UserRole


def validate_password_strength(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[0-9]", v):
        raise ValueError("Password must contain at least one digit")
    if not re.search(r"[@$!%*?&]", v):
        raise ValueError("Password must contain at least one special character (@$!%*?&)")
    return v


class EmployeeCreateRequest(BaseModel):
    name:       str
    email:      EmailStr
    password:   str
    role:       UserRole
    department: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v): return v.strip().lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, v): return validate_password_strength(v)

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        if v == UserRole.MANAGER: raise ValueError("Role must be P1, P2, P3, or P4")
        return v

    @field_validator("name", "department")
    @classmethod
    def check_length(cls, v):
        if v is None: return v
        v = v.strip()
        if not 2 <= len(v) <= 50: raise ValueError("Must be between 2 and 50 characters")
        return v
