"""Prescription service - medications prescribed to patients"""

import logging

from sqlalchemy.orm import Session

from ...exceptions import NotFoundError
from ...models import Patient, Prescription, PrescriptionItem, User
from ...shared.pagination import Pagination
from ...shared.time_utils import utcnow
from ..treatments.service import resolve_doctor_id
from .repository import PrescriptionRepository
from .schemas import PrescriptionCreate, PrescriptionFilter, PrescriptionItemCreate, PrescriptionUpdate

logger = logging.getLogger(__name__)


def build_items(items: list[PrescriptionItemCreate]) -> list[PrescriptionItem]:
    return [PrescriptionItem(**item.model_dump()) for item in items]


class PrescriptionService:
    """Service layer for prescription business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PrescriptionRepository()

    def create_prescription(self, data: PrescriptionCreate, current_user: User) -> Prescription:
        if not self.db.query(Patient.id).filter(Patient.id == data.patient_id).first():
            raise NotFoundError("Patient not found")

        prescription = Prescription(
            patient_id=data.patient_id,
            doctor_id=resolve_doctor_id(self.db, data.doctor_id, current_user),
            date=data.date or utcnow(),
            notes=data.notes,
            items=build_items(data.items),
        )
        self.db.add(prescription)
        self.db.commit()

        logger.info(
            f"Prescription {prescription.id} written for patient {prescription.patient_id} "
            f"({len(data.items)} items)"
        )
        return self.get_prescription(prescription.id)

    def get_prescription(self, prescription_id: int) -> Prescription:
        prescription = self.repo.get_by_id(self.db, prescription_id)
        if not prescription:
            raise NotFoundError("Prescription not found")
        return prescription

    def get_prescriptions(
        self, filters: PrescriptionFilter, page: int = 1, limit: int = 20
    ) -> tuple[list[Prescription], Pagination]:
        return self.repo.get_prescriptions(self.db, filters, page, limit)

    def update_prescription(self, prescription_id: int, data: PrescriptionUpdate) -> Prescription:
        """Update notes; a new item list replaces the old one wholesale"""
        prescription = self.get_prescription(prescription_id)
        fields = data.model_dump(exclude_unset=True)

        try:
            if "notes" in fields:
                prescription.notes = data.notes
            if data.items is not None:
                # delete-orphan cascade removes the previous rows
                prescription.items = build_items(data.items)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Prescription {prescription.id} updated")
        return self.get_prescription(prescription.id)

    def delete_prescription(self, prescription_id: int) -> None:
        prescription = self.get_prescription(prescription_id)
        self.db.delete(prescription)
        self.db.commit()
        logger.info(f"Prescription {prescription_id} deleted")
