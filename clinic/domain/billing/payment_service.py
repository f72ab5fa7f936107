"""Payment service - payment reconciliation against invoices"""

import logging

from sqlalchemy.orm import Session

from ...exceptions import BusinessRuleError, NotFoundError, ValidationError
from ...models_invoice import Payment
from ...shared.money import to_money
from ...shared.pagination import Pagination
from ...shared.time_utils import utcnow
from .invoice_service import InvoiceService
from .repository import BillingRepository
from .schemas import PaymentCreate, PaymentFilter

logger = logging.getLogger(__name__)


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BillingRepository()
        self.invoices = InvoiceService(db)

    def record_payment(self, data: PaymentCreate) -> Payment:
        """
        Record a payment and update the invoice's paid amount and status.

        The invoice row is locked first, so the remaining balance check, the
        payment insert and the invoice update commit together.
        """
        amount = to_money(data.amount)
        try:
            invoice = self.repo.lock_invoice(self.db, data.invoice_id)
            if not invoice:
                raise NotFoundError("Invoice not found")

            patient_id = data.patient_id or invoice.patient_id
            if patient_id != invoice.patient_id:
                raise ValidationError(
                    "Payment patient does not match the invoice patient",
                    context={"invoicePatientId": invoice.patient_id, "patientId": patient_id},
                )

            total_paid = self.repo.sum_payments(self.db, invoice.id)
            remaining = to_money(invoice.total) - total_paid
            if amount > remaining:
                logger.warning(
                    f"Payment of {amount} rejected on invoice {invoice.invoice_number}: "
                    f"remaining {remaining}"
                )
                raise BusinessRuleError(
                    f"Payment amount exceeds remaining balance. Remaining: {remaining}",
                    context={"remaining": float(remaining), "amount": float(amount)},
                )

            payment = Payment(
                invoice_id=invoice.id,
                patient_id=patient_id,
                amount=amount,
                method=data.method,
                transaction_id=data.transaction_id,
                reference=data.reference,
                notes=data.notes,
                payment_date=data.payment_date or utcnow(),
            )
            self.repo.add_payment(self.db, payment)
            self.invoices.refresh_status(invoice, total_paid + amount)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Payment {payment.id} of {amount} recorded on invoice {invoice.invoice_number}: "
            f"{invoice.status.value}"
        )
        return self.get_payment(payment.id)

    def get_payment(self, payment_id: int) -> Payment:
        payment = self.repo.get_payment(self.db, payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    def get_payments(
        self, filters: PaymentFilter, page: int = 1, limit: int = 20
    ) -> tuple[list[Payment], Pagination]:
        return self.repo.get_payments(self.db, filters, page, limit)
