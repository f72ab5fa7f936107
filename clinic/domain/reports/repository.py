"""Report repository - aggregate queries across domains"""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import INACTIVE_APPOINTMENT_STATUSES, Appointment, Patient, Treatment, User
from ...models_invoice import Invoice, Payment, PaymentStatus


class ReportRepository:
    """Repository for report queries"""

    @staticmethod
    def count_active_patients(db: Session) -> int:
        return db.query(func.count(Patient.id)).filter(Patient.is_active.is_(True)).scalar() or 0

    @staticmethod
    def count_new_patients(db: Session, start: datetime, end: datetime) -> int:
        return (
            db.query(func.count(Patient.id))
            .filter(Patient.created_at >= start, Patient.created_at <= end)
            .scalar()
            or 0
        )

    @staticmethod
    def count_appointments(db: Session, start: datetime, end: datetime, active_only: bool = False) -> int:
        query = db.query(func.count(Appointment.id)).filter(
            Appointment.start_time >= start, Appointment.start_time <= end
        )
        if active_only:
            query = query.filter(Appointment.status.notin_(INACTIVE_APPOINTMENT_STATUSES))
        return query.scalar() or 0

    @staticmethod
    def count_open_invoices(db: Session) -> int:
        return (
            db.query(func.count(Invoice.id))
            .filter(Invoice.status.in_([PaymentStatus.PENDING, PaymentStatus.PARTIAL]))
            .scalar()
            or 0
        )

    @staticmethod
    def sum_payments(db: Session, start: datetime, end: datetime):
        return (
            db.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(Payment.payment_date >= start, Payment.payment_date <= end)
            .scalar()
        )

    @staticmethod
    def payment_amounts(db: Session, start: datetime, end: datetime) -> list[tuple]:
        """(payment_date, amount) pairs, bucketed by the caller"""
        return (
            db.query(Payment.payment_date, Payment.amount)
            .filter(Payment.payment_date >= start, Payment.payment_date <= end)
            .all()
        )

    @staticmethod
    def get_payments(db: Session, start: datetime, end: datetime) -> list[Payment]:
        return (
            db.query(Payment)
            .options(joinedload(Payment.invoice), joinedload(Payment.patient))
            .filter(Payment.payment_date >= start, Payment.payment_date <= end)
            .order_by(Payment.payment_date.desc())
            .all()
        )

    @staticmethod
    def revenue_by_method(db: Session, start: datetime, end: datetime) -> list[tuple]:
        return (
            db.query(Payment.method, func.sum(Payment.amount))
            .filter(Payment.payment_date >= start, Payment.payment_date <= end)
            .group_by(Payment.method)
            .order_by(Payment.method)
            .all()
        )

    @staticmethod
    def top_treatment_types(db: Session, start: datetime, end: datetime, limit: int = 5) -> list[tuple]:
        count = func.count(Treatment.id)
        return (
            db.query(Treatment.treatment_type, count)
            .filter(Treatment.treatment_date >= start, Treatment.treatment_date <= end)
            .group_by(Treatment.treatment_type)
            .order_by(count.desc(), Treatment.treatment_type)
            .limit(limit)
            .all()
        )

    @staticmethod
    def top_patients(db: Session, start: datetime, end: datetime, limit: int = 10) -> list[tuple]:
        count = func.count(Appointment.id)
        return (
            db.query(Patient.id, Patient.first_name, Patient.last_name, count)
            .join(Appointment, Appointment.patient_id == Patient.id)
            .filter(Appointment.start_time >= start, Appointment.start_time <= end)
            .group_by(Patient.id, Patient.first_name, Patient.last_name)
            .order_by(count.desc(), Patient.id)
            .limit(limit)
            .all()
        )

    @staticmethod
    def treatments_by_doctor(db: Session, start: datetime, end: datetime) -> list[tuple]:
        return (
            db.query(Treatment.doctor_id, func.count(Treatment.id), func.coalesce(func.sum(Treatment.cost), 0))
            .filter(Treatment.treatment_date >= start, Treatment.treatment_date <= end)
            .group_by(Treatment.doctor_id)
            .all()
        )

    @staticmethod
    def get_users(db: Session, user_ids: list[int]) -> list[User]:
        if not user_ids:
            return []
        return db.query(User).filter(User.id.in_(user_ids)).all()
