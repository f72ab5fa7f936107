"""Treatment domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import TreatmentStatus
from ...shared.pagination import Pagination
from ...shared.schemas import CamelModel, Money, PatientSummary, UserSummary, normalize_datetime


class TreatmentCreate(CamelModel):
    patient_id: int
    appointment_id: Optional[int] = None
    doctor_id: Optional[int] = None  # Defaults to the requesting doctor
    tooth_number: Optional[str] = None
    treatment_type: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    clinical_notes: Optional[str] = None
    treatment_date: Optional[datetime] = None
    status: TreatmentStatus = TreatmentStatus.PLANNED
    cost: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)

    @field_validator("treatment_date")
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class TreatmentUpdate(CamelModel):
    appointment_id: Optional[int] = None
    tooth_number: Optional[str] = None
    treatment_type: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1)
    clinical_notes: Optional[str] = None
    treatment_date: Optional[datetime] = None
    status: Optional[TreatmentStatus] = None
    cost: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)

    @field_validator("treatment_date")
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class TreatmentFilter(BaseModel):
    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class TreatmentResponse(CamelModel):
    id: int
    patient_id: int
    appointment_id: Optional[int] = None
    doctor_id: int
    tooth_number: Optional[str] = None
    treatment_type: str
    description: str
    clinical_notes: Optional[str] = None
    treatment_date: datetime
    status: TreatmentStatus
    cost: Money
    patient: Optional[PatientSummary] = None
    doctor: Optional[UserSummary] = None


class TreatmentListResponse(BaseModel):
    treatments: list[TreatmentResponse]
    pagination: Pagination
