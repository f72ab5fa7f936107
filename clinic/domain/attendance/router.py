"""Attendance router - FastAPI endpoints for staff attendance"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...database import get_db
from ...models import User, UserRole
from ...shared.schemas import ApiResponse
from .schemas import AttendanceFilter, AttendanceListResponse, AttendanceResponse, AttendanceUpdate
from .service import AttendanceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendance", tags=["Attendance"])


def get_attendance_service(db: Session = Depends(get_db)) -> AttendanceService:
    """Dependency injection for AttendanceService"""
    return AttendanceService(db)


@router.post("/clock-in", response_model=ApiResponse[AttendanceResponse])
async def clock_in(
    current_user: User = Depends(get_current_user),
    service: AttendanceService = Depends(get_attendance_service),
):
    return {"success": True, "data": AttendanceResponse.model_validate(service.clock_in(current_user))}


@router.post("/clock-out", response_model=ApiResponse[AttendanceResponse])
async def clock_out(
    current_user: User = Depends(get_current_user),
    service: AttendanceService = Depends(get_attendance_service),
):
    return {"success": True, "data": AttendanceResponse.model_validate(service.clock_out(current_user))}


@router.get("", response_model=ApiResponse[AttendanceListResponse])
async def get_attendance(
    user_id: Optional[int] = Query(None, alias="userId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: AttendanceService = Depends(get_attendance_service),
):
    filters = AttendanceFilter(user_id=user_id, start_date=start_date, end_date=end_date)
    records, pagination = service.get_attendance(filters, page, limit)
    return {
        "success": True,
        "data": {
            "attendance": [AttendanceResponse.model_validate(r) for r in records],
            "pagination": pagination,
        },
    }


@router.put("/{user_id}/{day}", response_model=ApiResponse[AttendanceResponse])
async def update_attendance(
    user_id: int,
    day: date,
    data: AttendanceUpdate,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Correct a staff member's attendance for a day (ADMIN only)"""
    record = service.update_attendance(user_id, day, data)
    return {"success": True, "data": AttendanceResponse.model_validate(record)}
