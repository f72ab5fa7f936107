"""Patient router - FastAPI endpoints for patients"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.schemas import ApiResponse, MessageResponse
from .schemas import PatientCreate, PatientDetail, PatientListResponse, PatientResponse, PatientUpdate
from .service import PatientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    """Dependency injection for PatientService"""
    return PatientService(db)


@router.post("", response_model=ApiResponse[PatientResponse], status_code=status.HTTP_201_CREATED)
async def create_patient(
    data: PatientCreate,
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    patient = service.create_patient(data)
    return {"success": True, "data": PatientResponse.model_validate(patient)}


@router.get("", response_model=ApiResponse[PatientListResponse])
async def get_patients(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    """Active patients, searchable by name, phone or email"""
    patients, pagination = service.get_patients(page, limit, search)
    return {
        "success": True,
        "data": {
            "patients": [PatientResponse.model_validate(p) for p in patients],
            "pagination": pagination,
        },
    }


@router.get("/{patient_id}", response_model=ApiResponse[PatientDetail])
async def get_patient(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    """Patient with appointments, treatments, prescriptions and invoices"""
    return {"success": True, "data": PatientDetail.model_validate(service.get_patient(patient_id))}


@router.put("/{patient_id}", response_model=ApiResponse[PatientResponse])
async def update_patient(
    patient_id: int,
    data: PatientUpdate,
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    patient = service.update_patient(patient_id, data)
    return {"success": True, "data": PatientResponse.model_validate(patient)}


@router.delete("/{patient_id}", response_model=ApiResponse[MessageResponse])
async def delete_patient(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    service.delete_patient(patient_id)
    return {"success": True, "data": {"message": "Patient deleted successfully"}}
