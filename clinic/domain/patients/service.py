"""Patient service - patient registry"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import NotFoundError, ValidationError
from ...models import Patient
from ...shared.pagination import Pagination
from .repository import PatientRepository
from .schemas import PatientCreate, PatientUpdate

logger = logging.getLogger(__name__)

# Columns that cannot be cleared through an update
REQUIRED_PATIENT_FIELDS = frozenset({"first_name", "last_name", "date_of_birth", "gender", "phone"})


class PatientService:
    """Service layer for patient business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PatientRepository()

    def create_patient(self, data: PatientCreate) -> Patient:
        if self.repo.get_by_phone(self.db, data.phone):
            raise ValidationError(
                "Patient with this phone number already exists", context={"phone": data.phone}
            )

        patient = self.repo.create(self.db, Patient(**data.model_dump()))
        logger.info(f"Patient {patient.id} registered")
        return patient

    def get_patient(self, patient_id: int) -> Patient:
        patient = self.repo.get_by_id(self.db, patient_id)
        if not patient:
            raise NotFoundError("Patient not found")
        return patient

    def get_patients(
        self, page: int = 1, limit: int = 20, search: Optional[str] = None
    ) -> tuple[list[Patient], Pagination]:
        return self.repo.get_patients(self.db, page, limit, search)

    def update_patient(self, patient_id: int, data: PatientUpdate) -> Patient:
        patient = self.get_patient(patient_id)
        fields = data.model_dump(exclude_unset=True)

        phone = fields.get("phone")
        if phone and phone != patient.phone:
            existing = self.repo.get_by_phone(self.db, phone)
            if existing and existing.id != patient.id:
                raise ValidationError(
                    "Patient with this phone number already exists", context={"phone": phone}
                )

        for key, value in fields.items():
            if value is None and key in REQUIRED_PATIENT_FIELDS:
                continue
            setattr(patient, key, value)

        self.db.commit()
        self.db.refresh(patient)
        logger.info(f"Patient {patient.id} updated")
        return patient

    def delete_patient(self, patient_id: int) -> None:
        """Soft delete; history stays attached to the record"""
        patient = self.get_patient(patient_id)
        patient.is_active = False
        self.db.commit()
        logger.info(f"Patient {patient.id} deactivated")
