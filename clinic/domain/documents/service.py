"""Document service - patient files stored on local disk"""

import logging
import uuid
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from ...config import MAX_FILE_SIZE, UPLOAD_DIR
from ...exceptions import NotFoundError, ValidationError
from ...models import Document, DocumentType
from ...shared.pagination import Pagination
from .repository import DocumentRepository
from .schemas import DocumentFilter

logger = logging.getLogger(__name__)

# X-rays and photos, scanned reports and DICOM exports
ALLOWED_TYPES = {
    ".jpg": ("image/jpeg",),
    ".jpeg": ("image/jpeg",),
    ".png": ("image/png",),
    ".gif": ("image/gif",),
    ".pdf": ("application/pdf",),
    ".dcm": ("application/dicom", "application/octet-stream"),
    ".dicom": ("application/dicom", "application/octet-stream"),
}


def validate_upload(file_name: str, mime_type: str, size: int, max_size: int = MAX_FILE_SIZE) -> str:
    """Check type and size of an upload; returns its lowercase extension"""
    extension = Path(file_name).suffix.lower()
    if extension not in ALLOWED_TYPES or mime_type not in ALLOWED_TYPES[extension]:
        raise ValidationError(
            "Invalid file type. Only images, PDFs and DICOM files are allowed.",
            context={"fileName": file_name, "mimeType": mime_type},
        )
    if size == 0:
        raise ValidationError("Uploaded file is empty")
    if size > max_size:
        raise ValidationError(
            f"File size exceeds {max_size / (1024 * 1024):.0f}MB limit",
            context={"fileSize": size, "maxFileSize": max_size},
        )
    return extension


class DocumentService:
    """Service layer for patient documents"""

    def __init__(self, db: Session, upload_dir: Optional[str] = None, max_file_size: int = MAX_FILE_SIZE):
        self.db = db
        self.repo = DocumentRepository()
        self.upload_dir = Path(upload_dir or UPLOAD_DIR)
        self.max_file_size = max_file_size

    def upload_document(
        self,
        patient_id: int,
        doc_type: DocumentType,
        file_name: str,
        mime_type: str,
        contents: bytes,
        description: Optional[str] = None,
        uploaded_by: Optional[int] = None,
    ) -> Document:
        if not self.repo.patient_exists(self.db, patient_id):
            raise NotFoundError("Patient not found")

        # Only the base name is kept; the stored name is generated
        file_name = Path(file_name or "").name
        extension = validate_upload(file_name, mime_type, len(contents), self.max_file_size)

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        stored_name = f"{patient_id}-{uuid.uuid4().hex}{extension}"
        target = self.upload_dir / stored_name
        target.write_bytes(contents)

        document = Document(
            patient_id=patient_id,
            type=doc_type,
            file_name=file_name,
            file_path=stored_name,
            file_size=len(contents),
            mime_type=mime_type,
            description=description,
            uploaded_by=uploaded_by,
        )
        try:
            document = self.repo.create(self.db, document)
        except Exception:
            self.db.rollback()
            target.unlink(missing_ok=True)
            raise

        logger.info(
            f"Document {document.id} ({doc_type.value}, {document.file_size} bytes) uploaded for patient {patient_id}"
        )
        return self.get_document(document.id)

    def get_document(self, document_id: int) -> Document:
        document = self.repo.get_by_id(self.db, document_id)
        if not document:
            raise NotFoundError("Document not found")
        return document

    def get_documents(
        self, filters: DocumentFilter, page: int = 1, limit: int = 20
    ) -> tuple[list[Document], Pagination]:
        return self.repo.get_documents(self.db, filters, page, limit)

    def get_file_path(self, document: Document) -> Path:
        """Absolute path of the stored file; NotFound if it is gone from disk"""
        path = self.upload_dir / document.file_path
        if not path.is_file():
            logger.warning(f"Document {document.id} file missing at {path}")
            raise NotFoundError("File not found")
        return path

    def delete_document(self, document_id: int) -> None:
        document = self.get_document(document_id)
        path = self.upload_dir / document.file_path
        self.repo.delete(self.db, document)
        path.unlink(missing_ok=True)
        logger.info(f"Document {document_id} deleted")
