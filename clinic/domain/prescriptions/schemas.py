"""Prescription domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.pagination import Pagination
from ...shared.schemas import CamelModel, PatientSummary, UserSummary, normalize_datetime


class PrescriptionItemCreate(CamelModel):
    medication_name: str = Field(min_length=1, max_length=255)
    dosage: str = Field(min_length=1, max_length=100)
    frequency: str = Field(min_length=1, max_length=100)
    duration: str = Field(min_length=1, max_length=100)
    instructions: Optional[str] = None


class PrescriptionCreate(CamelModel):
    patient_id: int
    doctor_id: Optional[int] = None  # Defaults to the requesting doctor
    date: Optional[datetime] = None
    notes: Optional[str] = None
    items: list[PrescriptionItemCreate]

    @field_validator("items")
    @classmethod
    def validate_items(cls, v):
        if not v:
            raise ValueError("Prescription must have at least one item")
        return v

    @field_validator("date")
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class PrescriptionUpdate(CamelModel):
    """When items is sent it replaces the whole item set"""

    notes: Optional[str] = None
    items: Optional[list[PrescriptionItemCreate]] = None


class PrescriptionFilter(BaseModel):
    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class PrescriptionItemResponse(CamelModel):
    id: int
    medication_name: str
    dosage: str
    frequency: str
    duration: str
    instructions: Optional[str] = None


class PrescriptionResponse(CamelModel):
    id: int
    patient_id: int
    doctor_id: int
    date: datetime
    notes: Optional[str] = None
    patient: Optional[PatientSummary] = None
    doctor: Optional[UserSummary] = None
    items: list[PrescriptionItemResponse] = []


class PrescriptionListResponse(BaseModel):
    prescriptions: list[PrescriptionResponse]
    pagination: Pagination
