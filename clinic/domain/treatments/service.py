"""Treatment service - clinical procedures performed on patients"""

import logging

from sqlalchemy.orm import Session

from ...exceptions import NotFoundError, ValidationError
from ...models import Appointment, Patient, Treatment, User, UserRole
from ...shared.money import to_money
from ...shared.pagination import Pagination
from ...shared.time_utils import utcnow
from .repository import TreatmentRepository
from .schemas import TreatmentCreate, TreatmentFilter, TreatmentUpdate

logger = logging.getLogger(__name__)


class TreatmentService:
    """Service layer for treatment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TreatmentRepository()

    def create_treatment(self, data: TreatmentCreate, current_user: User) -> Treatment:
        if not self.db.query(Patient.id).filter(Patient.id == data.patient_id).first():
            raise NotFoundError("Patient not found")
        if data.appointment_id is not None:
            self._ensure_appointment(data.appointment_id)

        treatment = Treatment(
            patient_id=data.patient_id,
            appointment_id=data.appointment_id,
            doctor_id=resolve_doctor_id(self.db, data.doctor_id, current_user),
            tooth_number=data.tooth_number,
            treatment_type=data.treatment_type,
            description=data.description,
            clinical_notes=data.clinical_notes,
            treatment_date=data.treatment_date or utcnow(),
            status=data.status,
            cost=to_money(data.cost),
        )
        treatment = self.repo.create(self.db, treatment)
        logger.info(f"Treatment {treatment.id} ({treatment.treatment_type}) recorded for patient {treatment.patient_id}")
        return self.get_treatment(treatment.id)

    def get_treatment(self, treatment_id: int) -> Treatment:
        treatment = self.repo.get_by_id(self.db, treatment_id)
        if not treatment:
            raise NotFoundError("Treatment not found")
        return treatment

    def get_treatments(
        self, filters: TreatmentFilter, page: int = 1, limit: int = 20
    ) -> tuple[list[Treatment], Pagination]:
        return self.repo.get_treatments(self.db, filters, page, limit)

    def update_treatment(self, treatment_id: int, data: TreatmentUpdate) -> Treatment:
        treatment = self.get_treatment(treatment_id)
        fields = data.model_dump(exclude_unset=True)
        if fields.get("appointment_id") is not None:
            self._ensure_appointment(fields["appointment_id"])

        for key, value in fields.items():
            if value is None and key in ("treatment_type", "description", "treatment_date", "status", "cost"):
                continue
            setattr(treatment, key, to_money(value) if key == "cost" else value)

        self.db.commit()
        logger.info(f"Treatment {treatment.id} updated")
        return self.get_treatment(treatment.id)

    def delete_treatment(self, treatment_id: int) -> None:
        treatment = self.get_treatment(treatment_id)
        self.repo.delete(self.db, treatment)
        logger.info(f"Treatment {treatment_id} deleted")

    def _ensure_appointment(self, appointment_id: int) -> None:
        if not self.db.query(Appointment.id).filter(Appointment.id == appointment_id).first():
            raise NotFoundError("Appointment not found")


def resolve_doctor_id(db: Session, doctor_id, current_user: User) -> int:
    """Explicit doctor if given, else the requesting user when they are a doctor"""
    if doctor_id is None:
        if current_user.role != UserRole.DOCTOR:
            raise ValidationError("doctorId is required")
        return current_user.id

    doctor = db.query(User).filter(User.id == doctor_id).first()
    if not doctor or doctor.role != UserRole.DOCTOR:
        raise NotFoundError("Doctor not found")
    return doctor.id
