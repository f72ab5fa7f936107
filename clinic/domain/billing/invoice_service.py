"""Invoice service - invoice totals and numbering"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ...config import CLINIC_TAX_RATE
from ...exceptions import NotFoundError
from ...models_invoice import Invoice, InvoiceItem, PaymentStatus
from ...shared.money import to_money
from ...shared.pagination import Pagination
from ...shared.time_utils import utcnow
from .repository import BillingRepository
from .schemas import InvoiceCreate, InvoiceFilter, InvoiceItemCreate

logger = logging.getLogger(__name__)


def format_invoice_number(year: int, sequence: int) -> str:
    return f"INV-{year}-{sequence:05d}"


def compute_totals(
    items: list[InvoiceItemCreate], discount: Decimal, tax_rate: Decimal
) -> dict[str, Decimal]:
    """
    subtotal = sum(quantity * unit_price)
    tax_amount = (subtotal - discount) * tax_rate / 100, rounded to cents
    total = subtotal - discount + tax_amount

    Discount is not clamped to the subtotal, so an oversized discount yields a
    negative taxable base.
    """
    subtotal = sum((to_money(i.quantity * to_money(i.unit_price)) for i in items), Decimal("0.00"))
    discount = to_money(discount)
    tax_amount = to_money((subtotal - discount) * Decimal(tax_rate) / Decimal(100))
    return {
        "subtotal": subtotal,
        "discount": discount,
        "tax_amount": tax_amount,
        "total": subtotal - discount + tax_amount,
    }


def derive_status(paid: Decimal, total: Decimal) -> PaymentStatus:
    """PAID once nothing remains, PARTIAL once anything is paid, else PENDING"""
    if total - paid <= 0:
        return PaymentStatus.PAID
    if paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


class InvoiceService:
    """Service layer for invoice business logic"""

    def __init__(self, db: Session, default_tax_rate: float = CLINIC_TAX_RATE):
        self.db = db
        self.repo = BillingRepository()
        self.default_tax_rate = to_money(default_tax_rate)

    def create_invoice(self, data: InvoiceCreate, issued_by: int) -> Invoice:
        """Create an invoice with its items; status PENDING, nothing paid"""
        if not self.repo.patient_exists(self.db, data.patient_id):
            raise NotFoundError("Patient not found")
        if data.appointment_id is not None and not self.repo.appointment_exists(
            self.db, data.appointment_id
        ):
            raise NotFoundError("Appointment not found")

        tax_rate = to_money(data.tax_rate) if data.tax_rate is not None else self.default_tax_rate
        totals = compute_totals(data.items, data.discount, tax_rate)
        issue_date = utcnow()

        try:
            sequence = self.repo.next_invoice_sequence(self.db, issue_date.year)
            invoice = Invoice(
                invoice_number=format_invoice_number(issue_date.year, sequence),
                patient_id=data.patient_id,
                appointment_id=data.appointment_id,
                issued_by=issued_by,
                issue_date=issue_date,
                due_date=data.due_date,
                tax_rate=tax_rate,
                paid_amount=Decimal("0.00"),
                status=PaymentStatus.PENDING,
                notes=data.notes,
                items=[
                    InvoiceItem(
                        treatment_id=item.treatment_id,
                        description=item.description,
                        quantity=item.quantity,
                        unit_price=to_money(item.unit_price),
                        total=to_money(item.quantity * to_money(item.unit_price)),
                    )
                    for item in data.items
                ],
                **totals,
            )
            self.repo.add_invoice(self.db, invoice)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Invoice {invoice.invoice_number} created for patient {invoice.patient_id}: "
            f"total {totals['total']}"
        )
        return self.get_invoice(invoice.id)

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.repo.get_invoice(self.db, invoice_id)
        if not invoice:
            raise NotFoundError("Invoice not found")
        return invoice

    def get_invoices(
        self, filters: InvoiceFilter, page: int = 1, limit: int = 20
    ) -> tuple[list[Invoice], Pagination]:
        return self.repo.get_invoices(self.db, filters, page, limit)

    def refresh_status(self, invoice: Invoice, paid: Optional[Decimal] = None) -> Invoice:
        """Recompute paid_amount and status from the recorded payments"""
        if paid is None:
            paid = self.repo.sum_payments(self.db, invoice.id)
        invoice.paid_amount = paid
        invoice.status = derive_status(paid, to_money(invoice.total))
        return invoice
