"""Prescription repository - Database operations for prescriptions"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import Prescription
from ...shared.pagination import Pagination, paginate
from .schemas import PrescriptionFilter


class PrescriptionRepository:
    """Repository for prescription database operations"""

    @staticmethod
    def get_by_id(db: Session, prescription_id: int) -> Optional[Prescription]:
        return (
            db.query(Prescription)
            .options(
                joinedload(Prescription.patient),
                joinedload(Prescription.doctor),
                selectinload(Prescription.items),
            )
            .filter(Prescription.id == prescription_id)
            .first()
        )

    @staticmethod
    def get_prescriptions(
        db: Session, filters: PrescriptionFilter, page: int, limit: int
    ) -> tuple[list[Prescription], Pagination]:
        query = db.query(Prescription).options(
            joinedload(Prescription.patient),
            joinedload(Prescription.doctor),
            selectinload(Prescription.items),
        )

        if filters.patient_id:
            query = query.filter(Prescription.patient_id == filters.patient_id)
        if filters.doctor_id:
            query = query.filter(Prescription.doctor_id == filters.doctor_id)
        if filters.start_date:
            query = query.filter(Prescription.date >= filters.start_date)
        if filters.end_date:
            query = query.filter(Prescription.date <= filters.end_date)

        return paginate(query.order_by(Prescription.date.desc(), Prescription.id.desc()), page, limit)
