"""Treatment repository - Database operations for treatments"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Treatment
from ...shared.pagination import Pagination, paginate
from .schemas import TreatmentFilter


class TreatmentRepository:
    """Repository for treatment database operations"""

    @staticmethod
    def create(db: Session, treatment: Treatment) -> Treatment:
        db.add(treatment)
        db.commit()
        db.refresh(treatment)
        return treatment

    @staticmethod
    def get_by_id(db: Session, treatment_id: int) -> Optional[Treatment]:
        return (
            db.query(Treatment)
            .options(joinedload(Treatment.patient), joinedload(Treatment.doctor))
            .filter(Treatment.id == treatment_id)
            .first()
        )

    @staticmethod
    def get_treatments(
        db: Session, filters: TreatmentFilter, page: int, limit: int
    ) -> tuple[list[Treatment], Pagination]:
        query = db.query(Treatment).options(joinedload(Treatment.patient), joinedload(Treatment.doctor))

        if filters.patient_id:
            query = query.filter(Treatment.patient_id == filters.patient_id)
        if filters.doctor_id:
            query = query.filter(Treatment.doctor_id == filters.doctor_id)
        if filters.start_date:
            query = query.filter(Treatment.treatment_date >= filters.start_date)
        if filters.end_date:
            query = query.filter(Treatment.treatment_date <= filters.end_date)

        return paginate(query.order_by(Treatment.treatment_date.desc(), Treatment.id.desc()), page, limit)

    @staticmethod
    def delete(db: Session, treatment: Treatment) -> None:
        db.delete(treatment)
        db.commit()
