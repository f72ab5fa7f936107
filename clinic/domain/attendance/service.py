"""Attendance service - staff clock-in and clock-out"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import NotFoundError, ValidationError
from ...models import Attendance, User
from ...shared.pagination import Pagination
from ...shared.time_utils import utcnow
from .repository import AttendanceRepository
from .schemas import AttendanceFilter, AttendanceUpdate

logger = logging.getLogger(__name__)


def compute_total_hours(
    clock_in: datetime,
    clock_out: datetime,
    break_start: Optional[datetime] = None,
    break_end: Optional[datetime] = None,
) -> float:
    """Worked hours minus the break, never negative"""
    worked = (clock_out - clock_in).total_seconds()
    if break_start and break_end:
        worked -= (break_end - break_start).total_seconds()
    return round(max(worked, 0) / 3600, 2)


class AttendanceService:
    """Service layer for attendance business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AttendanceRepository()

    def clock_in(self, user: User, now: Optional[datetime] = None) -> Attendance:
        now = now or utcnow()
        record = self.repo.get_for_day(self.db, user.id, now.date())
        if record and record.clock_in:
            raise ValidationError("Already clocked in today")

        if record is None:
            record = Attendance(user_id=user.id, date=now.date())
            self.db.add(record)
        record.clock_in = now
        self.db.commit()

        logger.info(f"User {user.id} clocked in at {now}")
        return self.repo.get_for_day(self.db, user.id, now.date())

    def clock_out(self, user: User, now: Optional[datetime] = None) -> Attendance:
        now = now or utcnow()
        record = self.repo.get_for_day(self.db, user.id, now.date())
        if not record or not record.clock_in:
            raise ValidationError("Not clocked in today")
        if record.clock_out:
            raise ValidationError("Already clocked out today")

        record.clock_out = now
        record.total_hours = compute_total_hours(
            record.clock_in, now, record.break_start, record.break_end
        )
        self.db.commit()

        logger.info(f"User {user.id} clocked out: {record.total_hours}h")
        return self.repo.get_for_day(self.db, user.id, now.date())

    def get_attendance(
        self, filters: AttendanceFilter, page: int = 1, limit: int = 20
    ) -> tuple[list[Attendance], Pagination]:
        return self.repo.get_attendance(self.db, filters, page, limit)

    def update_attendance(self, user_id: int, day: date, data: AttendanceUpdate) -> Attendance:
        """Correct a day's record; hours are recomputed when both clock times are known"""
        record = self.repo.get_for_day(self.db, user_id, day)
        if not record:
            raise NotFoundError("Attendance record not found")

        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(record, key, value)

        if record.clock_in and record.clock_out:
            record.total_hours = compute_total_hours(
                record.clock_in, record.clock_out, record.break_start, record.break_end
            )
        self.db.commit()

        logger.info(f"Attendance for user {user_id} on {day} corrected")
        return self.repo.get_for_day(self.db, user_id, day)
