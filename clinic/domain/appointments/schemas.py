"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import AppointmentStatus
from ...shared.schemas import CamelModel, PatientSummary, UserSummary, normalize_datetime


class AppointmentCreate(CamelModel):
    """Schema for booking an appointment"""

    patient_id: int
    doctor_id: Optional[int] = None
    chair_number: int
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class AppointmentUpdate(CamelModel):
    """Schema for rescheduling or editing an appointment"""

    doctor_id: Optional[int] = None
    chair_number: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class AppointmentFilter(BaseModel):
    """Structured filter for appointment listings"""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    doctor_id: Optional[int] = None
    status: Optional[AppointmentStatus] = None
    chair_number: Optional[int] = None


class AppointmentResponse(CamelModel):
    id: int
    patient_id: int
    doctor_id: Optional[int] = None
    chair_number: int
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    notes: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    patient: Optional[PatientSummary] = None
    doctor: Optional[UserSummary] = None


class BookedInterval(CamelModel):
    appointment_id: int
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus


class ChairAvailability(CamelModel):
    chair_number: int
    booked: list[BookedInterval]
