"""
Invoice PDF Generator
Renders a fetched invoice with its items and payment summary
"""

import logging
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, Spacer, Table, TableStyle

from ...config import CLINIC_CURRENCY
from ...models_invoice import Invoice
from ...shared.money import to_money
from ...shared.pdf import ClinicPDFGenerator

logger = logging.getLogger(__name__)


class InvoicePDFGenerator(ClinicPDFGenerator):
    """Generate an invoice PDF"""

    def __init__(self, invoice: Invoice):
        super().__init__()
        self.invoice = invoice
        self.title = f"Invoice {invoice.invoice_number}"

    def build_story(self) -> list:
        invoice = self.invoice
        patient = invoice.patient
        story = [Paragraph("INVOICE", self.heading_style)]

        info_rows = [
            ["Invoice Number:", invoice.invoice_number],
            ["Date:", invoice.issue_date.strftime("%d %b %Y")],
        ]
        if invoice.due_date:
            info_rows.append(["Due Date:", invoice.due_date.strftime("%d %b %Y")])
        info_rows.append(["Bill To:", f"{patient.first_name} {patient.last_name}"])
        if patient.address:
            info_rows.append(["Address:", patient.address])
        if patient.phone:
            info_rows.append(["Phone:", patient.phone])
        story.append(self.info_table(info_rows))
        story.append(Spacer(1, 0.3 * inch))

        # Items
        item_rows = [["Description", "Qty", "Unit Price", "Total"]]
        for item in invoice.items:
            item_rows.append(
                [
                    Paragraph(escape(item.description), self.body_style),
                    str(item.quantity),
                    self._format_money(item.unit_price),
                    self._format_money(item.total),
                ]
            )
        widths = [self.content_width - 3.6 * inch, 0.6 * inch, 1.5 * inch, 1.5 * inch]
        story.append(self.grid_table(item_rows, widths))
        story.append(Spacer(1, 0.2 * inch))

        # Totals
        totals = [["Subtotal:", self._format_money(invoice.subtotal)]]
        if to_money(invoice.discount) > 0:
            totals.append(["Discount:", f"-{self._format_money(invoice.discount)}"])
        totals += [
            [f"Tax ({to_money(invoice.tax_rate)}%):", self._format_money(invoice.tax_amount)],
            ["Total:", self._format_money(invoice.total)],
            ["Paid:", self._format_money(invoice.paid_amount)],
            ["Balance Due:", self._format_money(invoice.remaining)],
        ]
        totals_table = Table(totals, colWidths=[self.content_width - 1.5 * inch, 1.5 * inch])
        totals_table.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (-1, -1), "Helvetica", 10),
                    ("FONT", (0, -3), (-1, -3), "Helvetica-Bold", 11),
                    ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                    ("LINEABOVE", (0, -3), (-1, -3), 0.5, colors.grey),
                ]
            )
        )
        story.append(totals_table)

        story.append(Spacer(1, 0.2 * inch))
        story.append(Paragraph(f"<b>Status:</b> {invoice.status.value}", self.body_style))
        if invoice.notes:
            story.append(Paragraph(f"<b>Notes:</b> {escape(invoice.notes)}", self.body_style))

        return story

    @staticmethod
    def _format_money(value) -> str:
        return f"{CLINIC_CURRENCY} {to_money(value):,.2f}"


def generate_invoice_pdf(invoice: Invoice) -> bytes:
    return InvoicePDFGenerator(invoice).generate()
