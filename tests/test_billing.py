"""
Invoices and payments: totals, numbering, reconciliation and status
"""

from datetime import date
from decimal import Decimal

import pytest

from clinic.domain.billing.invoice_service import (
    InvoiceService,
    compute_totals,
    derive_status,
    format_invoice_number,
)
from clinic.domain.billing.payment_service import PaymentService
from clinic.domain.billing.schemas import InvoiceCreate, InvoiceItemCreate, PaymentCreate
from clinic.exceptions import BusinessRuleError, NotFoundError, ValidationError
from clinic.models import Patient
from clinic.models_invoice import Invoice, Payment, PaymentMethod, PaymentStatus
from clinic.shared.time_utils import utcnow


def items(*pairs):
    return [
        InvoiceItemCreate(description=f"Item {i}", quantity=qty, unit_price=Decimal(price))
        for i, (qty, price) in enumerate(pairs, start=1)
    ]


@pytest.fixture
def invoices(db):
    return InvoiceService(db, default_tax_rate=18)


@pytest.fixture
def payments(db):
    return PaymentService(db)


@pytest.fixture
def invoice(invoices, patient, admin):
    """Single 3000.00 item at 18% tax: total 3540.00"""
    return invoices.create_invoice(
        InvoiceCreate(patient_id=patient.id, items=items((1, "3000.00"))), issued_by=admin.id
    )


def pay(patient_id, invoice_id, amount, method=PaymentMethod.CASH):
    return PaymentCreate(invoice_id=invoice_id, patient_id=patient_id, amount=Decimal(amount), method=method)


class TestTotals:
    def test_tax_applies_after_discount(self):
        totals = compute_totals(items((2, "500.00"), (1, "250.50")), Decimal("100"), Decimal("18"))

        assert totals["subtotal"] == Decimal("1250.50")
        assert totals["discount"] == Decimal("100.00")
        assert totals["tax_amount"] == Decimal("207.09")
        assert totals["total"] == Decimal("1357.59")

    def test_zero_tax(self):
        totals = compute_totals(items((3, "99.99")), Decimal("0"), Decimal("0"))
        assert totals["total"] == Decimal("299.97")

    def test_discount_is_not_clamped(self):
        totals = compute_totals(items((1, "100.00")), Decimal("150"), Decimal("10"))
        assert totals["tax_amount"] == Decimal("-5.00")
        assert totals["total"] == Decimal("-55.00")

    @pytest.mark.parametrize(
        "paid,total,expected",
        [
            ("0", "100", PaymentStatus.PENDING),
            ("40", "100", PaymentStatus.PARTIAL),
            ("100", "100", PaymentStatus.PAID),
            ("0", "0", PaymentStatus.PAID),
        ],
    )
    def test_derive_status(self, paid, total, expected):
        assert derive_status(Decimal(paid), Decimal(total)) == expected


class TestInvoiceNumbers:
    def test_format(self):
        assert format_invoice_number(2025, 1) == "INV-2025-00001"
        assert format_invoice_number(2025, 123456) == "INV-2025-123456"

    def test_sequential_within_a_year(self, invoices, patient, admin):
        year = utcnow().year
        numbers = [
            invoices.create_invoice(
                InvoiceCreate(patient_id=patient.id, items=items((1, "10.00"))), issued_by=admin.id
            ).invoice_number
            for _ in range(3)
        ]
        assert numbers == [f"INV-{year}-00001", f"INV-{year}-00002", f"INV-{year}-00003"]

    def test_counter_continues_from_existing_numbers(self, db, invoices, patient, admin):
        year = utcnow().year
        db.add(
            Invoice(
                invoice_number=f"INV-{year}-00041",
                patient_id=patient.id,
                issued_by=admin.id,
                subtotal=Decimal("1.00"),
                tax_rate=Decimal("0"),
                tax_amount=Decimal("0"),
                total=Decimal("1.00"),
            )
        )
        db.commit()

        invoice = invoices.create_invoice(
            InvoiceCreate(patient_id=patient.id, items=items((1, "10.00"))), issued_by=admin.id
        )
        assert invoice.invoice_number == f"INV-{year}-00042"


class TestInvoiceCreation:
    def test_new_invoice_is_pending(self, invoice):
        assert invoice.total == Decimal("3540.00")
        assert invoice.tax_amount == Decimal("540.00")
        assert invoice.paid_amount == Decimal("0")
        assert invoice.status == PaymentStatus.PENDING
        assert len(invoice.items) == 1
        assert invoice.items[0].total == Decimal("3000.00")

    def test_explicit_tax_rate(self, invoices, patient, admin):
        invoice = invoices.create_invoice(
            InvoiceCreate(patient_id=patient.id, tax_rate=Decimal("5"), items=items((1, "200.00"))),
            issued_by=admin.id,
        )
        assert invoice.total == Decimal("210.00")

    def test_unknown_patient(self, invoices, admin):
        with pytest.raises(NotFoundError):
            invoices.create_invoice(InvoiceCreate(patient_id=9999, items=items((1, "1.00"))), issued_by=admin.id)

    def test_items_required(self):
        with pytest.raises(ValueError):
            InvoiceCreate(patient_id=1, items=[])


class TestPayments:
    def test_partial_then_full_payment(self, payments, invoice, patient):
        payments.record_payment(pay(patient.id, invoice.id, "2000.00"))
        invoice = payments.invoices.get_invoice(invoice.id)
        assert invoice.status == PaymentStatus.PARTIAL
        assert invoice.paid_amount == Decimal("2000.00")
        assert invoice.remaining == Decimal("1540.00")

        payments.record_payment(pay(patient.id, invoice.id, "1540.00", PaymentMethod.UPI))
        invoice = payments.invoices.get_invoice(invoice.id)
        assert invoice.status == PaymentStatus.PAID
        assert invoice.remaining == Decimal("0")

    def test_overpayment_is_rejected_without_side_effects(self, db, payments, invoice, patient):
        payments.record_payment(pay(patient.id, invoice.id, "3540.00"))

        with pytest.raises(BusinessRuleError) as exc_info:
            payments.record_payment(pay(patient.id, invoice.id, "1.00"))

        assert exc_info.value.message == "Payment amount exceeds remaining balance. Remaining: 0.00"
        assert exc_info.value.context == {"remaining": 0.0, "amount": 1.0}
        assert db.query(Payment).filter(Payment.invoice_id == invoice.id).count() == 1
        assert payments.invoices.get_invoice(invoice.id).status == PaymentStatus.PAID

    def test_patient_defaults_to_invoice_patient(self, payments, invoice, patient):
        payment = payments.record_payment(
            PaymentCreate(invoice_id=invoice.id, amount=Decimal("100"), method=PaymentMethod.CARD)
        )
        assert payment.patient_id == patient.id

    def test_patient_mismatch(self, db, payments, invoice):
        other = Patient(
            first_name="Ravi", last_name="Kumar", date_of_birth=date(1985, 3, 2),
            gender="M", phone="9000000001",
        )
        db.add(other)
        db.commit()

        with pytest.raises(ValidationError):
            payments.record_payment(pay(other.id, invoice.id, "100.00"))

    def test_unknown_invoice(self, payments, patient):
        with pytest.raises(NotFoundError):
            payments.record_payment(pay(patient.id, 9999, "10.00"))


class TestBillingApi:
    def create_invoice(self, client, headers, patient_id):
        response = client.post(
            "/api/invoices",
            json={
                "patientId": patient_id,
                "taxRate": 18,
                "items": [{"description": "Root canal", "quantity": 1, "unitPrice": 3000}],
            },
            headers=headers,
        )
        assert response.status_code == 201
        return response.json()["data"]

    def test_invoice_payload(self, client, headers, patient):
        invoice = self.create_invoice(client, headers, patient.id)

        assert invoice["invoiceNumber"].startswith("INV-")
        assert invoice["subtotal"] == 3000.0
        assert invoice["taxAmount"] == 540.0
        assert invoice["total"] == 3540.0
        assert invoice["paidAmount"] == 0.0
        assert invoice["status"] == "PENDING"
        assert invoice["items"][0]["description"] == "Root canal"

    def test_payment_flow(self, client, headers, patient):
        invoice = self.create_invoice(client, headers, patient.id)

        first = client.post(
            "/api/payments",
            json={"invoiceId": invoice["id"], "amount": 2000, "method": "CASH"},
            headers=headers,
        )
        assert first.status_code == 201
        assert first.json()["data"]["invoice"]["status"] == "PARTIAL"

        detail = client.get(f"/api/invoices/{invoice['id']}", headers=headers).json()["data"]
        assert detail["remaining"] == 1540.0
        assert len(detail["payments"]) == 1

        over = client.post(
            "/api/payments",
            json={"invoiceId": invoice["id"], "amount": 1540.01, "method": "UPI"},
            headers=headers,
        )
        assert over.status_code == 400
        assert over.json() == {
            "success": False,
            "message": "Payment amount exceeds remaining balance. Remaining: 1540.00",
            "remaining": 1540.0,
            "amount": 1540.01,
        }

        final = client.post(
            "/api/payments",
            json={"invoiceId": invoice["id"], "amount": 1540, "method": "UPI", "transactionId": "UPI123"},
            headers=headers,
        )
        assert final.json()["data"]["invoice"]["status"] == "PAID"

    def test_list_invoices_by_status(self, client, headers, patient):
        self.create_invoice(client, headers, patient.id)

        pending = client.get("/api/invoices?status=PENDING", headers=headers).json()["data"]
        paid = client.get("/api/invoices?status=PAID", headers=headers).json()["data"]

        assert pending["pagination"]["total"] == 1
        assert paid["invoices"] == []

    def test_list_payments_by_invoice(self, client, headers, patient):
        invoice = self.create_invoice(client, headers, patient.id)
        client.post(
            "/api/payments",
            json={"invoiceId": invoice["id"], "amount": 100, "method": "CARD"},
            headers=headers,
        )

        data = client.get(f"/api/payments?invoiceId={invoice['id']}", headers=headers).json()["data"]
        assert data["pagination"]["total"] == 1
        assert data["payments"][0]["method"] == "CARD"

    def test_invoice_pdf(self, client, headers, patient):
        invoice = self.create_invoice(client, headers, patient.id)

        response = client.get(f"/api/invoices/{invoice['id']}/pdf", headers=headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert invoice["invoiceNumber"] in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    def test_validation_errors(self, client, headers, patient):
        response = client.post(
            "/api/invoices", json={"patientId": patient.id, "items": []}, headers=headers
        )
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert body["errors"][0]["field"] == "items"


def test_two_line_invoice_paid_in_two_steps(invoices, payments, patient, admin):
    invoice = invoices.create_invoice(
        InvoiceCreate(patient_id=patient.id, items=items((2, "500"), (1, "2000"))), issued_by=admin.id
    )
    assert (invoice.subtotal, invoice.tax_amount, invoice.total) == (
        Decimal("3000.00"),
        Decimal("540.00"),
        Decimal("3540.00"),
    )
    assert invoice.total == invoice.subtotal - invoice.discount + invoice.tax_amount

    for amount in ("2000", "1540"):
        payments.record_payment(pay(patient.id, invoice.id, amount))
        invoice = invoices.get_invoice(invoice.id)
        assert invoice.paid_amount == sum(p.amount for p in invoice.payments)

    assert invoice.status == PaymentStatus.PAID
    with pytest.raises(BusinessRuleError):
        payments.record_payment(pay(patient.id, invoice.id, "1"))
