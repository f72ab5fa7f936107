"""Document repository - Database operations for patient documents"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Document, Patient
from ...shared.pagination import Pagination, paginate
from .schemas import DocumentFilter


class DocumentRepository:
    """Repository for document database operations"""

    @staticmethod
    def create(db: Session, document: Document) -> Document:
        db.add(document)
        db.commit()
        db.refresh(document)
        return document

    @staticmethod
    def get_by_id(db: Session, document_id: int) -> Optional[Document]:
        return (
            db.query(Document)
            .options(joinedload(Document.patient))
            .filter(Document.id == document_id)
            .first()
        )

    @staticmethod
    def get_documents(
        db: Session, filters: DocumentFilter, page: int, limit: int
    ) -> tuple[list[Document], Pagination]:
        query = db.query(Document).options(joinedload(Document.patient))

        if filters.patient_id:
            query = query.filter(Document.patient_id == filters.patient_id)
        if filters.type:
            query = query.filter(Document.type == filters.type)

        return paginate(query.order_by(Document.uploaded_at.desc(), Document.id.desc()), page, limit)

    @staticmethod
    def delete(db: Session, document: Document) -> None:
        db.delete(document)
        db.commit()

    @staticmethod
    def patient_exists(db: Session, patient_id: int) -> bool:
        return (
            db.query(Patient.id)
            .filter(Patient.id == patient_id, Patient.is_active.is_(True))
            .first()
            is not None
        )
