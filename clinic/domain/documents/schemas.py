"""Document domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import DocumentType
from ...shared.pagination import Pagination
from ...shared.schemas import CamelModel, PatientSummary


class DocumentFilter(BaseModel):
    patient_id: Optional[int] = None
    type: Optional[DocumentType] = None


class DocumentResponse(CamelModel):
    id: int
    patient_id: int
    type: DocumentType
    file_name: str
    file_size: int
    mime_type: str
    description: Optional[str] = None
    uploaded_by: Optional[int] = None
    uploaded_at: datetime
    patient: Optional[PatientSummary] = None


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse]
    pagination: Pagination
