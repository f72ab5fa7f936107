"""Billing router - FastAPI endpoints for invoices and payments"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...models_invoice import PaymentMethod, PaymentStatus
from ...shared.schemas import ApiResponse
from .invoice_service import InvoiceService
from .payment_service import PaymentService
from .pdf_service import generate_invoice_pdf
from .schemas import (
    InvoiceCreate,
    InvoiceFilter,
    InvoiceListResponse,
    InvoiceResponse,
    PaymentCreate,
    PaymentDetailResponse,
    PaymentFilter,
    PaymentListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["Invoices"])
payments_router = APIRouter(prefix="/payments", tags=["Payments"])


def get_invoice_service(db: Session = Depends(get_db)) -> InvoiceService:
    """Dependency injection for InvoiceService"""
    return InvoiceService(db)


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


# Invoices


@router.post("", response_model=ApiResponse[InvoiceResponse], status_code=status.HTTP_201_CREATED)
async def create_invoice(
    data: InvoiceCreate,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Create an invoice; totals and the invoice number are computed server-side"""
    invoice = service.create_invoice(data, issued_by=current_user.id)
    return {"success": True, "data": InvoiceResponse.model_validate(invoice)}


@router.get("", response_model=ApiResponse[InvoiceListResponse])
async def get_invoices(
    patient_id: Optional[int] = Query(None, alias="patientId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    invoice_status: Optional[PaymentStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    filters = InvoiceFilter(
        patient_id=patient_id, start_date=start_date, end_date=end_date, status=invoice_status
    )
    invoices, pagination = service.get_invoices(filters, page, limit)
    return {
        "success": True,
        "data": {
            "invoices": [InvoiceResponse.model_validate(i) for i in invoices],
            "pagination": pagination,
        },
    }


@router.get("/{invoice_id}", response_model=ApiResponse[InvoiceResponse])
async def get_invoice(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    invoice = service.get_invoice(invoice_id)
    return {"success": True, "data": InvoiceResponse.model_validate(invoice)}


@router.get("/{invoice_id}/pdf")
async def download_invoice_pdf(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Render the invoice as a PDF"""
    invoice = service.get_invoice(invoice_id)
    pdf_bytes = generate_invoice_pdf(invoice)
    headers = {
        "Content-Disposition": f"attachment; filename=invoice-{invoice.invoice_number}.pdf",
        "Cache-Control": "no-cache, must-revalidate",
    }
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)


# Payments


@payments_router.post(
    "", response_model=ApiResponse[PaymentDetailResponse], status_code=status.HTTP_201_CREATED
)
async def create_payment(
    data: PaymentCreate,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Record a payment against an invoice"""
    payment = service.record_payment(data)
    return {"success": True, "data": PaymentDetailResponse.model_validate(payment)}


@payments_router.get("", response_model=ApiResponse[PaymentListResponse])
async def get_payments(
    invoice_id: Optional[int] = Query(None, alias="invoiceId"),
    patient_id: Optional[int] = Query(None, alias="patientId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    method: Optional[PaymentMethod] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    filters = PaymentFilter(
        invoice_id=invoice_id,
        patient_id=patient_id,
        start_date=start_date,
        end_date=end_date,
        method=method,
    )
    payments, pagination = service.get_payments(filters, page, limit)
    return {
        "success": True,
        "data": {
            "payments": [PaymentDetailResponse.model_validate(p) for p in payments],
            "pagination": pagination,
        },
    }


@payments_router.get("/{payment_id}", response_model=ApiResponse[PaymentDetailResponse])
async def get_payment(
    payment_id: int,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payment = service.get_payment(payment_id)
    return {"success": True, "data": PaymentDetailResponse.model_validate(payment)}
