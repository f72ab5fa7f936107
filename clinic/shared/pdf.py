"""
Clinic PDF base
Shared letterhead, styles and page numbering for invoice and prescription PDFs
"""

import io
import logging

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..config import CLINIC_ADDRESS, CLINIC_NAME

logger = logging.getLogger(__name__)


class ClinicPDFGenerator:
    """Base class: subclasses implement build_story() and set title"""

    title = "Document"

    def __init__(self):
        # PDF settings
        self.page_width, self.page_height = A4
        self.margin = 0.75 * inch
        self.content_width = self.page_width - (2 * self.margin)

        # Brand color (teal)
        self.brand_color = colors.HexColor("#0f766e")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")

        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "ClinicTitle",
            parent=styles["Heading1"],
            fontSize=20,
            textColor=self.brand_color,
            spaceAfter=4,
            alignment=1,  # Center
        )
        self.subtitle_style = ParagraphStyle(
            "ClinicSubtitle",
            parent=styles["Normal"],
            fontSize=9,
            textColor=self.dark_gray,
            alignment=1,
        )
        self.heading_style = ParagraphStyle(
            "ClinicHeading",
            parent=styles["Heading2"],
            fontSize=14,
            textColor=self.dark_gray,
            spaceAfter=10,
            spaceBefore=16,
            alignment=1,
        )
        self.body_style = ParagraphStyle(
            "ClinicBody",
            parent=styles["Normal"],
            fontSize=10,
            textColor=self.dark_gray,
            spaceAfter=6,
        )

    def build_story(self) -> list:
        raise NotImplementedError

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=self.title,
        )

        story = self.letterhead() + self.build_story()
        doc.build(story, onFirstPage=self._add_page_number, onLaterPages=self._add_page_number)

        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"Generated {self.title} PDF ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    def letterhead(self) -> list:
        return [
            Paragraph(CLINIC_NAME, self.title_style),
            Paragraph(CLINIC_ADDRESS, self.subtitle_style),
            Spacer(1, 0.2 * inch),
        ]

    def info_table(self, rows: list[list[str]]) -> Table:
        """Two-column label/value block"""
        table = Table(rows, colWidths=[1.5 * inch, self.content_width - 1.5 * inch])
        table.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (0, -1), "Helvetica-Bold", 10),
                    ("FONT", (1, 0), (1, -1), "Helvetica", 10),
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        return table

    def grid_table(self, data: list[list], col_widths: list[float]) -> Table:
        """Branded table with a header row"""
        table = Table(data, colWidths=col_widths, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    # Header row
                    ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 10),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
                    ("TOPPADDING", (0, 0), (-1, 0), 8),
                    # Data rows
                    ("FONT", (0, 1), (-1, -1), "Helvetica", 9),
                    ("TEXTCOLOR", (0, 1), (-1, -1), self.dark_gray),
                    ("VALIGN", (0, 1), (-1, -1), "TOP"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, self.light_gray]),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                    ("LEFTPADDING", (0, 0), (-1, -1), 6),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        return table

    def _add_page_number(self, canvas_obj, doc):
        """Add page numbers to PDF"""
        page_num = canvas_obj.getPageNumber()
        canvas_obj.setFont("Helvetica", 9)
        canvas_obj.setFillColor(colors.grey)
        canvas_obj.drawRightString(self.page_width - self.margin, self.margin / 2, f"Page {page_num}")
