"""Patient domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ...shared.pagination import Pagination
from ...shared.schemas import CamelModel
from ..appointments.schemas import AppointmentResponse
from ..billing.schemas import InvoiceResponse
from ..prescriptions.schemas import PrescriptionResponse
from ..treatments.schemas import TreatmentResponse


class PatientBase(CamelModel):
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    medical_history: Optional[str] = None
    allergies: Optional[str] = None
    blood_group: Optional[str] = None
    occupation: Optional[str] = None
    referred_by: Optional[str] = None
    notes: Optional[str] = None


class PatientCreate(PatientBase):
    """Schema for registering a patient"""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date
    gender: str = Field(min_length=1, max_length=20)
    phone: str = Field(min_length=5, max_length=50)

    @field_validator("phone")
    @classmethod
    def strip_phone(cls, v):
        return v.strip()


class PatientUpdate(PatientBase):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(default=None, min_length=1, max_length=20)
    phone: Optional[str] = Field(default=None, min_length=5, max_length=50)

    @field_validator("phone")
    @classmethod
    def strip_phone(cls, v):
        return v.strip() if v else v


class PatientResponse(PatientBase):
    # Stored emails are echoed back as-is
    email: Optional[str] = None
    id: int
    first_name: str
    last_name: str
    date_of_birth: date
    gender: str
    phone: str
    is_active: bool
    created_at: Optional[datetime] = None


class PatientDetail(PatientResponse):
    appointments: list[AppointmentResponse] = []
    treatments: list[TreatmentResponse] = []
    prescriptions: list[PrescriptionResponse] = []
    invoices: list[InvoiceResponse] = []


class PatientListResponse(BaseModel):
    patients: list[PatientResponse]
    pagination: Pagination
