"""Billing repository - Database operations for invoices and payments"""

from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from ...exceptions import ConflictError
from ...models import Appointment, Patient
from ...models_invoice import Invoice, InvoiceSequence, Payment
from ...shared.money import to_money
from ...shared.pagination import Pagination, paginate
from .schemas import InvoiceFilter, PaymentFilter


class BillingRepository:
    """Repository for billing database operations"""

    # Invoice numbers
    @staticmethod
    def next_invoice_sequence(db: Session, year: int) -> int:
        """
        Atomically claim the next invoice sequence for a year.

        The UPDATE takes a row lock held until the caller's transaction ends,
        so concurrent invoice creations in the same year serialize here.
        """
        updated = (
            db.query(InvoiceSequence)
            .filter(InvoiceSequence.year == year)
            .update({InvoiceSequence.last_value: InvoiceSequence.last_value + 1}, synchronize_session=False)
        )
        if not updated:
            # First invoice of the year under this counter: continue from any
            # numbers already issued with the year's prefix
            seed = BillingRepository.highest_issued_sequence(db, year)
            db.add(InvoiceSequence(year=year, last_value=seed + 1))
            try:
                db.flush()
            except IntegrityError as e:
                raise ConflictError(
                    "Invoice number allocation raced with another request; please retry",
                    context={"year": year},
                ) from e

        return db.query(InvoiceSequence.last_value).filter(InvoiceSequence.year == year).scalar()

    @staticmethod
    def highest_issued_sequence(db: Session, year: int) -> int:
        prefix = f"INV-{year}-"
        last = (
            db.query(Invoice.invoice_number)
            .filter(Invoice.invoice_number.like(f"{prefix}%"))
            .order_by(Invoice.invoice_number.desc())
            .first()
        )
        if not last:
            return 0
        try:
            return int(last[0].split("-")[2])
        except (IndexError, ValueError):
            return 0

    # Invoices
    @staticmethod
    def add_invoice(db: Session, invoice: Invoice) -> Invoice:
        db.add(invoice)
        db.flush()
        return invoice

    @staticmethod
    def get_invoice(db: Session, invoice_id: int) -> Optional[Invoice]:
        return (
            db.query(Invoice)
            .options(
                joinedload(Invoice.patient),
                selectinload(Invoice.items),
                selectinload(Invoice.payments),
            )
            .filter(Invoice.id == invoice_id)
            .first()
        )

    @staticmethod
    def lock_invoice(db: Session, invoice_id: int) -> Optional[Invoice]:
        """Load the invoice with a row lock for the rest of the transaction"""
        return db.get(Invoice, invoice_id, with_for_update=True)

    @staticmethod
    def get_invoices(
        db: Session, filters: InvoiceFilter, page: int, limit: int
    ) -> tuple[list[Invoice], Pagination]:
        query = db.query(Invoice).options(
            joinedload(Invoice.patient), selectinload(Invoice.items), selectinload(Invoice.payments)
        )

        if filters.patient_id:
            query = query.filter(Invoice.patient_id == filters.patient_id)
        if filters.status:
            query = query.filter(Invoice.status == filters.status)
        if filters.start_date:
            query = query.filter(Invoice.issue_date >= filters.start_date)
        if filters.end_date:
            query = query.filter(Invoice.issue_date <= filters.end_date)

        return paginate(query.order_by(Invoice.issue_date.desc(), Invoice.id.desc()), page, limit)

    # Payments
    @staticmethod
    def sum_payments(db: Session, invoice_id: int) -> Decimal:
        amounts = db.query(Payment.amount).filter(Payment.invoice_id == invoice_id).all()
        return sum((to_money(amount) for (amount,) in amounts), Decimal("0.00"))

    @staticmethod
    def add_payment(db: Session, payment: Payment) -> Payment:
        db.add(payment)
        db.flush()
        return payment

    @staticmethod
    def get_payment(db: Session, payment_id: int) -> Optional[Payment]:
        return (
            db.query(Payment)
            .options(joinedload(Payment.invoice), joinedload(Payment.patient))
            .filter(Payment.id == payment_id)
            .first()
        )

    @staticmethod
    def get_payments(
        db: Session, filters: PaymentFilter, page: int, limit: int
    ) -> tuple[list[Payment], Pagination]:
        query = db.query(Payment).options(joinedload(Payment.invoice), joinedload(Payment.patient))

        if filters.invoice_id:
            query = query.filter(Payment.invoice_id == filters.invoice_id)
        if filters.patient_id:
            query = query.filter(Payment.patient_id == filters.patient_id)
        if filters.method:
            query = query.filter(Payment.method == filters.method)
        if filters.start_date:
            query = query.filter(Payment.payment_date >= filters.start_date)
        if filters.end_date:
            query = query.filter(Payment.payment_date <= filters.end_date)

        return paginate(query.order_by(Payment.payment_date.desc(), Payment.id.desc()), page, limit)

    # Lookups
    @staticmethod
    def patient_exists(db: Session, patient_id: int) -> bool:
        return db.query(Patient.id).filter(Patient.id == patient_id).first() is not None

    @staticmethod
    def appointment_exists(db: Session, appointment_id: int) -> bool:
        return db.query(Appointment.id).filter(Appointment.id == appointment_id).first() is not None
