"""Document router - FastAPI endpoints for patient file uploads"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import DocumentType, User
from ...shared.schemas import ApiResponse, MessageResponse
from .schemas import DocumentFilter, DocumentListResponse, DocumentResponse
from .service import DocumentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["Documents"])


def get_document_service(db: Session = Depends(get_db)) -> DocumentService:
    """Dependency injection for DocumentService"""
    return DocumentService(db)


@router.post("", response_model=ApiResponse[DocumentResponse], status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    patient_id: int = Form(..., alias="patientId"),
    doc_type: DocumentType = Form(..., alias="type"),
    description: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    """Upload an X-ray, report or photo for a patient (multipart form)"""
    contents = await file.read()
    document = service.upload_document(
        patient_id=patient_id,
        doc_type=doc_type,
        file_name=file.filename,
        mime_type=file.content_type or "application/octet-stream",
        contents=contents,
        description=description,
        uploaded_by=current_user.id,
    )
    return {"success": True, "data": DocumentResponse.model_validate(document)}


@router.get("", response_model=ApiResponse[DocumentListResponse])
async def get_documents(
    patient_id: Optional[int] = Query(None, alias="patientId"),
    doc_type: Optional[DocumentType] = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    """Newest uploads first"""
    documents, pagination = service.get_documents(
        DocumentFilter(patient_id=patient_id, type=doc_type), page, limit
    )
    return {
        "success": True,
        "data": {
            "documents": [DocumentResponse.model_validate(d) for d in documents],
            "pagination": pagination,
        },
    }


@router.get("/{document_id}", response_model=ApiResponse[DocumentResponse])
async def get_document(
    document_id: int,
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    document = service.get_document(document_id)
    return {"success": True, "data": DocumentResponse.model_validate(document)}


@router.get("/{document_id}/download")
async def download_document(
    document_id: int,
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    document = service.get_document(document_id)
    return FileResponse(
        service.get_file_path(document),
        media_type=document.mime_type,
        filename=document.file_name,
        headers={"Cache-Control": "no-cache, must-revalidate"},
    )


@router.delete("/{document_id}", response_model=ApiResponse[MessageResponse])
async def delete_document(
    document_id: int,
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    service.delete_document(document_id)
    return {"success": True, "data": {"message": "Document deleted successfully"}}
