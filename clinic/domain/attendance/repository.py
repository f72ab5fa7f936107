"""Attendance repository - Database operations for staff attendance"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Attendance
from ...shared.pagination import Pagination, paginate
from .schemas import AttendanceFilter


class AttendanceRepository:
    """Repository for attendance database operations"""

    @staticmethod
    def get_for_day(db: Session, user_id: int, day: date) -> Optional[Attendance]:
        return (
            db.query(Attendance)
            .options(joinedload(Attendance.user))
            .filter(Attendance.user_id == user_id, Attendance.date == day)
            .first()
        )

    @staticmethod
    def get_attendance(
        db: Session, filters: AttendanceFilter, page: int, limit: int
    ) -> tuple[list[Attendance], Pagination]:
        query = db.query(Attendance).options(joinedload(Attendance.user))

        if filters.user_id:
            query = query.filter(Attendance.user_id == filters.user_id)
        if filters.start_date:
            query = query.filter(Attendance.date >= filters.start_date)
        if filters.end_date:
            query = query.filter(Attendance.date <= filters.end_date)

        return paginate(query.order_by(Attendance.date.desc(), Attendance.id.desc()), page, limit)
