"""Appointment service - chair scheduling and the appointment lifecycle"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...config import CLINIC_CHAIR_COUNT
from ...exceptions import ConflictError, NotFoundError, ValidationError
from ...models import INACTIVE_APPOINTMENT_STATUSES, Appointment, AppointmentStatus, UserRole
from ...shared.time_utils import end_of_day, start_of_day, utcnow
from .repository import AppointmentRepository
from .schemas import (
    AppointmentCreate,
    AppointmentFilter,
    AppointmentUpdate,
    BookedInterval,
    ChairAvailability,
)

logger = logging.getLogger(__name__)

# SCHEDULED -> CHECKED_IN -> (IN_PROGRESS) -> COMPLETED, with CANCELLED and
# NO_SHOW as exits. COMPLETED, CANCELLED and NO_SHOW are terminal.
ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CHECKED_IN, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.CHECKED_IN: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test: [a_start, a_end) and [b_start, b_end)"""
    return a_start < b_end and b_start < a_end


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, chair_count: int = CLINIC_CHAIR_COUNT):
        self.db = db
        self.repo = AppointmentRepository()
        self.chair_count = chair_count

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def validate_slot(self, chair_number: int, start_time: datetime, end_time: datetime) -> None:
        if chair_number < 1 or chair_number > self.chair_count:
            raise ValidationError(
                f"Invalid chair number. Must be between 1 and {self.chair_count}",
                context={"chairNumber": chair_number, "chairCount": self.chair_count},
            )
        if start_time >= end_time:
            raise ValidationError(
                "Appointment end time must be after its start time",
                context={"startTime": start_time.isoformat(), "endTime": end_time.isoformat()},
            )

    def schedule_or_reschedule(
        self,
        chair_number: int,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[int] = None,
    ) -> None:
        """
        Validate the candidate slot and lock its chair.

        Must run inside the transaction that writes the appointment: the chair
        row lock is held until that transaction commits or rolls back.
        """
        self.validate_slot(chair_number, start_time, end_time)
        self.repo.lock_chair(self.db, chair_number)

        conflict = self.repo.find_conflict(self.db, chair_number, start_time, end_time, exclude_id)
        if conflict:
            logger.warning(
                f"Chair {chair_number} conflict: {start_time}-{end_time} overlaps appointment "
                f"{conflict.id} ({conflict.start_time}-{conflict.end_time})"
            )
            raise ConflictError(
                "Appointment conflict: Chair is already booked for this time",
                status_code=400,
                context={
                    "chairNumber": chair_number,
                    "conflictingAppointmentId": conflict.id,
                    "conflictStart": conflict.start_time.isoformat(),
                    "conflictEnd": conflict.end_time.isoformat(),
                },
            )

    def create_appointment(self, data: AppointmentCreate) -> Appointment:
        """Book a new appointment on a free chair slot"""
        if not self.repo.patient_exists(self.db, data.patient_id):
            raise NotFoundError("Patient not found")
        if data.doctor_id is not None:
            self._ensure_doctor(data.doctor_id)

        try:
            self.schedule_or_reschedule(data.chair_number, data.start_time, data.end_time)
            appointment = Appointment(
                patient_id=data.patient_id,
                doctor_id=data.doctor_id,
                chair_number=data.chair_number,
                start_time=data.start_time,
                end_time=data.end_time,
                notes=data.notes,
                status=AppointmentStatus.SCHEDULED,
            )
            self.db.add(appointment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Appointment {appointment.id} booked: chair {appointment.chair_number} "
            f"{appointment.start_time}-{appointment.end_time}"
        )
        return self.get_appointment(appointment.id)

    def update_appointment(self, appointment_id: int, data: AppointmentUpdate) -> Appointment:
        """Edit an appointment; moving it in time or across chairs re-checks conflicts"""
        appointment = self.get_appointment(appointment_id)
        fields = data.model_dump(exclude_unset=True)

        if fields.get("doctor_id") is not None:
            self._ensure_doctor(fields["doctor_id"])

        # chair and times are required columns, an explicit null keeps the stored value
        slot = {
            key: fields[key] if fields.get(key) is not None else getattr(appointment, key)
            for key in ("chair_number", "start_time", "end_time")
        }

        try:
            moved = any(fields.get(k) is not None for k in slot)
            new_status = fields.get("status")
            target_status = new_status or appointment.status

            if moved:
                if target_status in INACTIVE_APPOINTMENT_STATUSES:
                    self.validate_slot(**slot)
                else:
                    self.schedule_or_reschedule(**slot, exclude_id=appointment.id)

            for key, value in slot.items():
                setattr(appointment, key, value)
            for key in ("doctor_id", "notes"):
                if key in fields:
                    setattr(appointment, key, fields[key])

            if new_status is not None and new_status != appointment.status:
                self._apply_transition(appointment, new_status)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Appointment {appointment.id} updated")
        return self.get_appointment(appointment.id)

    def get_availability(
        self, day: date, chair_number: Optional[int] = None
    ) -> list[ChairAvailability]:
        """Booked intervals per chair for one day"""
        if chair_number is not None and not 1 <= chair_number <= self.chair_count:
            raise ValidationError(f"Invalid chair number. Must be between 1 and {self.chair_count}")

        booked = self.repo.get_booked(self.db, start_of_day(day), end_of_day(day), chair_number)
        chairs = [chair_number] if chair_number else range(1, self.chair_count + 1)
        return [
            ChairAvailability(
                chair_number=number,
                booked=[
                    BookedInterval(
                        appointment_id=a.id,
                        start_time=a.start_time,
                        end_time=a.end_time,
                        status=a.status,
                    )
                    for a in booked
                    if a.chair_number == number
                ],
            )
            for number in chairs
        ]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def check_in(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.CHECKED_IN)

    def start_treatment(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.IN_PROGRESS)

    def check_out(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.COMPLETED)

    def mark_no_show(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.NO_SHOW)

    def cancel(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        """Cancel and free the chair; the reason is appended to the notes"""
        appointment = self.get_appointment(appointment_id)
        self._apply_transition(appointment, AppointmentStatus.CANCELLED)
        if reason:
            appointment.notes = f"{appointment.notes or ''}\nCancelled: {reason}".strip()
        self.db.commit()
        logger.info(f"Appointment {appointment.id} cancelled")
        return self.get_appointment(appointment.id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def get_appointments(self, filters: AppointmentFilter) -> list[Appointment]:
        return self.repo.get_appointments(self.db, filters)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _transition(self, appointment_id: int, new_status: AppointmentStatus) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        self._apply_transition(appointment, new_status)
        self.db.commit()
        logger.info(f"Appointment {appointment.id} -> {new_status.value}")
        return self.get_appointment(appointment.id)

    @staticmethod
    def _apply_transition(appointment: Appointment, new_status: AppointmentStatus) -> None:
        if new_status not in ALLOWED_TRANSITIONS[appointment.status]:
            raise ValidationError(
                f"Cannot change appointment from {appointment.status.value} to {new_status.value}",
                context={"from": appointment.status.value, "to": new_status.value},
            )
        if new_status == AppointmentStatus.CHECKED_IN:
            appointment.checked_in_at = utcnow()
        elif new_status == AppointmentStatus.COMPLETED:
            appointment.checked_out_at = utcnow()
        appointment.status = new_status

    def _ensure_doctor(self, doctor_id: int) -> None:
        doctor = self.repo.get_user(self.db, doctor_id)
        if not doctor or doctor.role != UserRole.DOCTOR:
            raise NotFoundError("Doctor not found")
