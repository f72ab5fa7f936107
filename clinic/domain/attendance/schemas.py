"""Attendance domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.pagination import Pagination
from ...shared.schemas import CamelModel, UserSummary, normalize_datetime


class AttendanceUpdate(CamelModel):
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("clock_in", "clock_out", "break_start", "break_end")
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class AttendanceFilter(BaseModel):
    user_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class AttendanceResponse(CamelModel):
    id: int
    user_id: int
    date: date
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    total_hours: Optional[float] = None
    notes: Optional[str] = None
    user: Optional[UserSummary] = None


class AttendanceListResponse(BaseModel):
    attendance: list[AttendanceResponse]
    pagination: Pagination
