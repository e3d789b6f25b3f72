from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime

from simcal.models.booking import BookingStatus, Priority, Simulator
from simcal.utils.timeutils import as_utc


class BookingCreateRequest(BaseModel):
    title:        str
    description:  Optional[str] = None
    startTime:    datetime
    endTime:      datetime
    simulator:    Simulator
    department:   str
    priority:     Priority = Priority.P4
    # Accepted for compatibility; new bookings always start as scheduled
    status:       Optional[str] = None
    participants: list[int] = []

    @field_validator("title", "department")
    @classmethod
    def check_not_empty(cls, v):
        if not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("startTime", "endTime")
    @classmethod
    def normalize_time(cls, v):
        return as_utc(v)


class BookingUpdateRequest(BaseModel):
    title:        Optional[str] = None
    description:  Optional[str] = None
    startTime:    Optional[datetime] = None
    endTime:      Optional[datetime] = None
    simulator:    Optional[Simulator] = None
    status:       Optional[BookingStatus] = None
    priority:     Optional[Priority] = None
    participants: Optional[list[int]] = None
    department:   Optional[str] = None

    @field_validator("title", "startTime", "endTime", "simulator", "status",
                     "priority", "participants", "department")
    @classmethod
    def check_not_null(cls, v, info):
        if v is None: raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("title", "department")
    @classmethod
    def check_not_empty(cls, v):
        if not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("startTime", "endTime")
    @classmethod
    def normalize_time(cls, v):
        return as_utc(v)


class OverrideCreateRequest(BaseModel):
    reason: str

    @field_validator("reason")
    @classmethod
    def check_reason(cls, v):
        if len(v.strip()) < 10:
            raise ValueError("Please provide a detailed reason (minimum 10 characters)")
        return v.strip()
