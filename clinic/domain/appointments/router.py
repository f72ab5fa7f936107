"""Appointment router - FastAPI endpoints for scheduling"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import AppointmentStatus, User
from ...shared.schemas import ApiResponse
from .schemas import (
    AppointmentCreate,
    AppointmentFilter,
    AppointmentResponse,
    AppointmentUpdate,
    CancelRequest,
    ChairAvailability,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


@router.post("", response_model=ApiResponse[AppointmentResponse], status_code=status.HTTP_201_CREATED)
async def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment on a chair"""
    appointment = service.create_appointment(data)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}


@router.get("", response_model=ApiResponse[list[AppointmentResponse]])
async def get_appointments(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    doctor_id: Optional[int] = Query(None, alias="doctorId"),
    appointment_status: Optional[AppointmentStatus] = Query(None, alias="status"),
    chair_number: Optional[int] = Query(None, alias="chairNumber"),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """List appointments ordered by start time"""
    filters = AppointmentFilter(
        start_date=start_date,
        end_date=end_date,
        doctor_id=doctor_id,
        status=appointment_status,
        chair_number=chair_number,
    )
    appointments = service.get_appointments(filters)
    return {"success": True, "data": [AppointmentResponse.model_validate(a) for a in appointments]}


@router.get("/availability", response_model=ApiResponse[list[ChairAvailability]])
async def get_availability(
    day: date = Query(..., alias="date"),
    chair_number: Optional[int] = Query(None, alias="chairNumber"),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Booked intervals per chair for a day"""
    return {"success": True, "data": service.get_availability(day, chair_number)}


@router.get("/{appointment_id}", response_model=ApiResponse[AppointmentResponse])
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.get_appointment(appointment_id)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}


@router.put("/{appointment_id}", response_model=ApiResponse[AppointmentResponse])
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Update or reschedule an appointment"""
    appointment = service.update_appointment(appointment_id, data)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}


@router.post("/{appointment_id}/check-in", response_model=ApiResponse[AppointmentResponse])
async def check_in(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.check_in(appointment_id)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}


@router.post("/{appointment_id}/start", response_model=ApiResponse[AppointmentResponse])
async def start_treatment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.start_treatment(appointment_id)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}


@router.post("/{appointment_id}/check-out", response_model=ApiResponse[AppointmentResponse])
async def check_out(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.check_out(appointment_id)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}


@router.post("/{appointment_id}/cancel", response_model=ApiResponse[AppointmentResponse])
async def cancel_appointment(
    appointment_id: int,
    data: Optional[CancelRequest] = None,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Cancel an appointment, freeing its chair slot"""
    appointment = service.cancel(appointment_id, data.reason if data else None)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}


@router.post("/{appointment_id}/no-show", response_model=ApiResponse[AppointmentResponse])
async def mark_no_show(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.mark_no_show(appointment_id)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}
