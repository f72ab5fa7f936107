"""Billing domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models_invoice import PaymentMethod, PaymentStatus
from ...shared.pagination import Pagination
from ...shared.schemas import CamelModel, Money, PatientSummary, normalize_datetime


class InvoiceItemCreate(CamelModel):
    treatment_id: Optional[int] = None
    description: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0, decimal_places=2)


class InvoiceCreate(CamelModel):
    """Schema for creating an invoice with its items"""

    patient_id: int
    appointment_id: Optional[int] = None
    due_date: Optional[datetime] = None
    discount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)  # Percentage; clinic default when omitted
    notes: Optional[str] = None
    items: list[InvoiceItemCreate]

    @field_validator("items")
    @classmethod
    def validate_items(cls, v):
        if not v:
            raise ValueError("Invoice must have at least one item")
        return v

    @field_validator("due_date")
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class InvoiceFilter(BaseModel):
    patient_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[PaymentStatus] = None


class PaymentCreate(CamelModel):
    """Schema for recording a payment against an invoice"""

    invoice_id: int
    patient_id: Optional[int] = None  # Defaults to the invoice's patient
    amount: Decimal = Field(gt=0, decimal_places=2)
    method: PaymentMethod
    transaction_id: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    payment_date: Optional[datetime] = None

    @field_validator("payment_date")
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class PaymentFilter(BaseModel):
    invoice_id: Optional[int] = None
    patient_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    method: Optional[PaymentMethod] = None


class InvoiceItemResponse(CamelModel):
    id: int
    treatment_id: Optional[int] = None
    description: str
    quantity: int
    unit_price: Money
    total: Money


class PaymentResponse(CamelModel):
    id: int
    invoice_id: int
    patient_id: int
    amount: Money
    method: PaymentMethod
    transaction_id: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    payment_date: datetime


class InvoiceResponse(CamelModel):
    id: int
    invoice_number: str
    patient_id: int
    appointment_id: Optional[int] = None
    issued_by: int
    issue_date: datetime
    due_date: Optional[datetime] = None
    subtotal: Money
    tax_rate: Money
    tax_amount: Money
    discount: Money
    total: Money
    paid_amount: Money
    remaining: Money
    status: PaymentStatus
    notes: Optional[str] = None
    patient: Optional[PatientSummary] = None
    items: list[InvoiceItemResponse] = []
    payments: list[PaymentResponse] = []


class InvoiceSummary(CamelModel):
    id: int
    invoice_number: str
    total: Money
    status: PaymentStatus


class PaymentDetailResponse(PaymentResponse):
    invoice: Optional[InvoiceSummary] = None
    patient: Optional[PatientSummary] = None


class InvoiceListResponse(BaseModel):
    invoices: list[InvoiceResponse]
    pagination: Pagination


class PaymentListResponse(BaseModel):
    payments: list[PaymentDetailResponse]
    pagination: Pagination
