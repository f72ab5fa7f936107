"""Treatment router - FastAPI endpoints for treatments"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.schemas import ApiResponse, MessageResponse
from .schemas import (
    TreatmentCreate,
    TreatmentFilter,
    TreatmentListResponse,
    TreatmentResponse,
    TreatmentUpdate,
)
from .service import TreatmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/treatments", tags=["Treatments"])


def get_treatment_service(db: Session = Depends(get_db)) -> TreatmentService:
    """Dependency injection for TreatmentService"""
    return TreatmentService(db)


@router.post("", response_model=ApiResponse[TreatmentResponse], status_code=status.HTTP_201_CREATED)
async def create_treatment(
    data: TreatmentCreate,
    current_user: User = Depends(get_current_user),
    service: TreatmentService = Depends(get_treatment_service),
):
    treatment = service.create_treatment(data, current_user)
    return {"success": True, "data": TreatmentResponse.model_validate(treatment)}


@router.get("", response_model=ApiResponse[TreatmentListResponse])
async def get_treatments(
    patient_id: Optional[int] = Query(None, alias="patientId"),
    doctor_id: Optional[int] = Query(None, alias="doctorId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: TreatmentService = Depends(get_treatment_service),
):
    filters = TreatmentFilter(
        patient_id=patient_id, doctor_id=doctor_id, start_date=start_date, end_date=end_date
    )
    treatments, pagination = service.get_treatments(filters, page, limit)
    return {
        "success": True,
        "data": {
            "treatments": [TreatmentResponse.model_validate(t) for t in treatments],
            "pagination": pagination,
        },
    }


@router.get("/{treatment_id}", response_model=ApiResponse[TreatmentResponse])
async def get_treatment(
    treatment_id: int,
    current_user: User = Depends(get_current_user),
    service: TreatmentService = Depends(get_treatment_service),
):
    return {"success": True, "data": TreatmentResponse.model_validate(service.get_treatment(treatment_id))}


@router.put("/{treatment_id}", response_model=ApiResponse[TreatmentResponse])
async def update_treatment(
    treatment_id: int,
    data: TreatmentUpdate,
    current_user: User = Depends(get_current_user),
    service: TreatmentService = Depends(get_treatment_service),
):
    treatment = service.update_treatment(treatment_id, data)
    return {"success": True, "data": TreatmentResponse.model_validate(treatment)}


@router.delete("/{treatment_id}", response_model=ApiResponse[MessageResponse])
async def delete_treatment(
    treatment_id: int,
    current_user: User = Depends(get_current_user),
    service: TreatmentService = Depends(get_treatment_service),
):
    service.delete_treatment(treatment_id)
    return {"success": True, "data": {"message": "Treatment deleted successfully"}}
