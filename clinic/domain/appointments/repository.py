"""Appointment repository - Database operations for appointments and chairs"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...config import CLINIC_CHAIR_COUNT
from ...models import INACTIVE_APPOINTMENT_STATUSES, Appointment, Chair, Patient, User
from .schemas import AppointmentFilter


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def ensure_chairs(db: Session, count: int = CLINIC_CHAIR_COUNT) -> None:
        """Insert any missing chair rows for chairs 1..count"""
        existing = {number for (number,) in db.query(Chair.number).all()}
        for number in range(1, count + 1):
            if number not in existing:
                db.add(Chair(number=number, label=f"Chair {number}"))
        db.commit()

    @staticmethod
    def lock_chair(db: Session, chair_number: int) -> Chair:
        """
        Take a row lock on the chair for the rest of the transaction.
        Concurrent schedulers for the same chair serialize here.
        """
        chair = db.get(Chair, chair_number, with_for_update=True)
        if chair is None:
            chair = Chair(number=chair_number, label=f"Chair {chair_number}")
            db.add(chair)
            db.flush()
        return chair

    @staticmethod
    def find_conflict(
        db: Session,
        chair_number: int,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[int] = None,
    ) -> Optional[Appointment]:
        """
        First active appointment on the chair whose [start, end) overlaps the
        candidate [start_time, end_time). Touching boundaries do not overlap.
        """
        query = db.query(Appointment).filter(
            Appointment.chair_number == chair_number,
            Appointment.status.notin_(INACTIVE_APPOINTMENT_STATUSES),
            Appointment.start_time < end_time,
            Appointment.end_time > start_time,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.order_by(Appointment.start_time).first()

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.patient), joinedload(Appointment.doctor))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def get_appointments(db: Session, filters: AppointmentFilter) -> list[Appointment]:
        query = db.query(Appointment).options(
            joinedload(Appointment.patient), joinedload(Appointment.doctor)
        )

        if filters.start_date:
            query = query.filter(Appointment.start_time >= filters.start_date)
        if filters.end_date:
            query = query.filter(Appointment.start_time <= filters.end_date)
        if filters.doctor_id:
            query = query.filter(Appointment.doctor_id == filters.doctor_id)
        if filters.status:
            query = query.filter(Appointment.status == filters.status)
        if filters.chair_number:
            query = query.filter(Appointment.chair_number == filters.chair_number)

        return query.order_by(Appointment.start_time.asc()).all()

    @staticmethod
    def get_booked(
        db: Session, window_start: datetime, window_end: datetime, chair_number: Optional[int] = None
    ) -> list[Appointment]:
        """Active appointments overlapping the window, by chair then start"""
        query = db.query(Appointment).filter(
            Appointment.status.notin_(INACTIVE_APPOINTMENT_STATUSES),
            Appointment.start_time < window_end,
            Appointment.end_time > window_start,
        )
        if chair_number:
            query = query.filter(Appointment.chair_number == chair_number)
        return query.order_by(Appointment.chair_number, Appointment.start_time).all()

    @staticmethod
    def patient_exists(db: Session, patient_id: int) -> bool:
        return db.query(Patient.id).filter(Patient.id == patient_id).first() is not None

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()
