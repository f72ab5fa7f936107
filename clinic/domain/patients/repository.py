"""Patient repository - Database operations for patients"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Patient
from ...shared.pagination import Pagination, paginate


class PatientRepository:
    """Repository for patient database operations"""

    @staticmethod
    def create(db: Session, patient: Patient) -> Patient:
        db.add(patient)
        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def get_by_id(db: Session, patient_id: int) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.id == patient_id).first()

    @staticmethod
    def get_by_phone(db: Session, phone: str) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.phone == phone).first()

    @staticmethod
    def get_patients(
        db: Session, page: int, limit: int, search: Optional[str] = None
    ) -> tuple[list[Patient], Pagination]:
        """Active patients, newest first, optionally matching a search term"""
        query = db.query(Patient).filter(Patient.is_active.is_(True))

        if search:
            term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Patient.first_name.ilike(term),
                    Patient.last_name.ilike(term),
                    Patient.phone.ilike(term),
                    Patient.email.ilike(term),
                )
            )

        return paginate(query.order_by(Patient.created_at.desc(), Patient.id.desc()), page, limit)
