"""Prescription router - FastAPI endpoints for prescriptions"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.schemas import ApiResponse, MessageResponse
from .pdf_service import generate_prescription_pdf
from .schemas import (
    PrescriptionCreate,
    PrescriptionFilter,
    PrescriptionListResponse,
    PrescriptionResponse,
    PrescriptionUpdate,
)
from .service import PrescriptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])


def get_prescription_service(db: Session = Depends(get_db)) -> PrescriptionService:
    """Dependency injection for PrescriptionService"""
    return PrescriptionService(db)


@router.post("", response_model=ApiResponse[PrescriptionResponse], status_code=status.HTTP_201_CREATED)
async def create_prescription(
    data: PrescriptionCreate,
    current_user: User = Depends(get_current_user),
    service: PrescriptionService = Depends(get_prescription_service),
):
    prescription = service.create_prescription(data, current_user)
    return {"success": True, "data": PrescriptionResponse.model_validate(prescription)}


@router.get("", response_model=ApiResponse[PrescriptionListResponse])
async def get_prescriptions(
    patient_id: Optional[int] = Query(None, alias="patientId"),
    doctor_id: Optional[int] = Query(None, alias="doctorId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: PrescriptionService = Depends(get_prescription_service),
):
    filters = PrescriptionFilter(
        patient_id=patient_id, doctor_id=doctor_id, start_date=start_date, end_date=end_date
    )
    prescriptions, pagination = service.get_prescriptions(filters, page, limit)
    return {
        "success": True,
        "data": {
            "prescriptions": [PrescriptionResponse.model_validate(p) for p in prescriptions],
            "pagination": pagination,
        },
    }


@router.get("/{prescription_id}", response_model=ApiResponse[PrescriptionResponse])
async def get_prescription(
    prescription_id: int,
    current_user: User = Depends(get_current_user),
    service: PrescriptionService = Depends(get_prescription_service),
):
    prescription = service.get_prescription(prescription_id)
    return {"success": True, "data": PrescriptionResponse.model_validate(prescription)}


@router.put("/{prescription_id}", response_model=ApiResponse[PrescriptionResponse])
async def update_prescription(
    prescription_id: int,
    data: PrescriptionUpdate,
    current_user: User = Depends(get_current_user),
    service: PrescriptionService = Depends(get_prescription_service),
):
    prescription = service.update_prescription(prescription_id, data)
    return {"success": True, "data": PrescriptionResponse.model_validate(prescription)}


@router.delete("/{prescription_id}", response_model=ApiResponse[MessageResponse])
async def delete_prescription(
    prescription_id: int,
    current_user: User = Depends(get_current_user),
    service: PrescriptionService = Depends(get_prescription_service),
):
    service.delete_prescription(prescription_id)
    return {"success": True, "data": {"message": "Prescription deleted successfully"}}


@router.get("/{prescription_id}/pdf")
async def download_prescription_pdf(
    prescription_id: int,
    current_user: User = Depends(get_current_user),
    service: PrescriptionService = Depends(get_prescription_service),
):
    prescription = service.get_prescription(prescription_id)
    headers = {
        "Content-Disposition": f"attachment; filename=prescription-{prescription.id}.pdf",
        "Cache-Control": "no-cache, must-revalidate",
    }
    return Response(
        content=generate_prescription_pdf(prescription), media_type="application/pdf", headers=headers
    )
