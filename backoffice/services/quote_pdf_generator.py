"""
Price Quote PDF Generator
Renders a quote with its line items as a downloadable PDF
"""

import io
import logging
from datetime import datetime
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models import Business, Customer, Quote

logger = logging.getLogger(__name__)


class QuotePDFGenerator:
    """Generate price quote PDFs"""

    def __init__(self, quote: Quote, customer: Customer, business: Optional[Business] = None):
        self.quote = quote
        self.customer = customer
        self.business = business

        # PDF settings
        self.page_width, self.page_height = A4
        self.margin = 0.75 * inch
        self.content_width = self.page_width - (2 * self.margin)

        self.brand_color = colors.HexColor("#2563eb")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f8f9fa")

    @property
    def quote_number(self) -> str:
        return self.quote.id.split("-")[0].upper()

    def _money(self, amount: float) -> str:
        return f"{amount:,.2f} {self.quote.currency}"

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        logger.info(f"📄 Generating quote PDF for quote {self.quote.id}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"Price Quote {self.quote_number}",
        )

        story = []
        styles = getSampleStyleSheet()

        title_style = ParagraphStyle(
            "QuoteTitle",
            parent=styles["Heading1"],
            fontSize=22,
            textColor=self.brand_color,
            spaceAfter=12,
            alignment=1,  # Center
        )
        body_style = ParagraphStyle(
            "QuoteBody",
            parent=styles["Normal"],
            fontSize=10,
            textColor=self.dark_gray,
            spaceAfter=6,
        )
        total_style = ParagraphStyle(
            "QuoteTotal",
            parent=body_style,
            fontSize=14,
            fontName="Helvetica-Bold",
            alignment=2,  # Right
            spaceBefore=12,
        )

        # Header
        if self.business:
            story.append(Paragraph(escape(self.business.name), body_style))
        story.append(Paragraph(f"PRICE QUOTE #{self.quote_number}", title_style))
        story.append(Spacer(1, 0.2 * inch))

        issued = self.quote.created_at or datetime.utcnow()
        info_data = [
            ["Customer:", self.customer.name],
            ["Email:", self.customer.email or "N/A"],
            ["Date:", issued.strftime("%d/%m/%Y")],
            ["Valid until:", self.quote.valid_until.strftime("%d/%m/%Y")],
        ]
        info_table = Table(info_data, colWidths=[1.5 * inch, 4.5 * inch])
        info_table.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (0, -1), "Helvetica-Bold", 10),
                    ("FONT", (1, 0), (1, -1), "Helvetica", 10),
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        story.append(info_table)
        story.append(Spacer(1, 0.3 * inch))

        # Items
        table_data = [["Product", "Quantity", "Unit price", "Total"]]
        for item in self.quote.items:
            table_data.append(
                [
                    Paragraph(escape(item.product_name), body_style),
                    str(item.quantity),
                    self._money(item.price_at_time),
                    self._money(item.price_at_time * item.quantity),
                ]
            )

        items_table = Table(
            table_data,
            colWidths=[3.0 * inch, 0.9 * inch, 1.4 * inch, 1.4 * inch],
            repeatRows=1,
        )
        items_table.setStyle(
            TableStyle(
                [
                    # Header row
                    ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 10),
                    # Data rows
                    ("FONT", (1, 1), (-1, -1), "Helvetica", 9),
                    ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, self.light_gray]),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        story.append(items_table)

        story.append(Paragraph(f"Total: {self._money(self.quote.total_amount)}", total_style))

        # Footer
        story.append(Spacer(1, 0.5 * inch))
        story.append(
            Paragraph(
                f"<i>This quote is valid until {self.quote.valid_until.strftime('%d/%m/%Y')}.</i>",
                ParagraphStyle(
                    "Footer",
                    parent=body_style,
                    fontSize=8,
                    textColor=colors.grey,
                    alignment=1,
                ),
            )
        )

        doc.build(story)

        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"✅ Generated quote PDF ({len(pdf_bytes)} bytes)")
        return pdf_bytes
