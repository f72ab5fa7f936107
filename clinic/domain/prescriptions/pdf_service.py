"""
Prescription PDF Generator
Renders a prescription with its medication table
"""

import logging
from xml.sax.saxutils import escape

from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, Spacer

from ...models import Prescription
from ...shared.pdf import ClinicPDFGenerator

logger = logging.getLogger(__name__)


class PrescriptionPDFGenerator(ClinicPDFGenerator):
    """Generate a prescription PDF"""

    def __init__(self, prescription: Prescription):
        super().__init__()
        self.prescription = prescription
        self.title = f"Prescription {prescription.id}"

    def build_story(self) -> list:
        prescription = self.prescription
        patient = prescription.patient
        doctor = prescription.doctor
        story = [Paragraph("PRESCRIPTION", self.heading_style)]

        story.append(
            self.info_table(
                [
                    ["Patient:", f"{patient.first_name} {patient.last_name}"],
                    ["Phone:", patient.phone or "N/A"],
                    ["Doctor:", f"Dr. {doctor.first_name} {doctor.last_name}"],
                    ["Date:", prescription.date.strftime("%d %b %Y")],
                ]
            )
        )
        story.append(Spacer(1, 0.3 * inch))

        # Medications
        rows = [["#", "Medication", "Dosage", "Frequency", "Duration"]]
        for index, item in enumerate(prescription.items, start=1):
            medication = escape(item.medication_name)
            if item.instructions:
                medication += f"<br/><i>{escape(item.instructions)}</i>"
            rows.append(
                [
                    str(index),
                    Paragraph(medication, self.body_style),
                    item.dosage,
                    item.frequency,
                    item.duration,
                ]
            )
        widths = [0.4 * inch, self.content_width - 4.0 * inch, 1.2 * inch, 1.2 * inch, 1.2 * inch]
        story.append(self.grid_table(rows, widths))

        if prescription.notes:
            story.append(Spacer(1, 0.3 * inch))
            story.append(Paragraph(f"<b>Notes:</b> {escape(prescription.notes)}", self.body_style))

        story.append(Spacer(1, 0.6 * inch))
        story.append(Paragraph(f"Dr. {doctor.first_name} {doctor.last_name}", self.body_style))

        return story


def generate_prescription_pdf(prescription: Prescription) -> bytes:
    return PrescriptionPDFGenerator(prescription).generate()
