"""Fixed-layout A4 invoice rendering with reportlab.

Layout positions are in millimetres measured from the top-left corner of the
page, then converted to reportlab's bottom-left point coordinates.
"""

from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from checkout.invoicing.document import InvoiceDocument
from checkout.shared.money import format_money

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 20 * mm

BRAND = colors.Color(0, 71 / 255, 140 / 255)
MUTED = colors.Color(100 / 255, 100 / 255, 100 / 255)
BODY = colors.Color(40 / 255, 40 / 255, 40 / 255)
DISCOUNT = colors.Color(34 / 255, 197 / 255, 94 / 255)
TABLE_HEADER = colors.Color(248 / 255, 250 / 255, 252 / 255)

STATUS_COLORS = {
    "paid": colors.Color(34 / 255, 197 / 255, 94 / 255),
    "pending": colors.Color(234 / 255, 179 / 255, 8 / 255),
    "failed": colors.Color(239 / 255, 68 / 255, 68 / 255),
}

ITEMS_TOP = 150
CONTINUED_ITEMS_TOP = 30
ROW_HEIGHT = 12
# Rows stop here; below is reserved for the footer
ITEMS_BOTTOM = 260


def _y(top_mm: float) -> float:
    return PAGE_HEIGHT - top_mm * mm


class InvoiceRenderer:
    def __init__(self, document: InvoiceDocument) -> None:
        self.document = document
        self.buffer = BytesIO()
        self.pdf = canvas.Canvas(self.buffer, pagesize=A4)
        self.pdf.setTitle(f"Invoice {document.invoice_number}")
        self.pdf.setAuthor(document.company.name)

    def money(self, amount: int) -> str:
        return format_money(amount, self.document.currency, symbol=False)

    def text(self, top, value, x=MARGIN, size=10, bold=False, color=BODY, align="left"):
        self.pdf.setFont("Helvetica-Bold" if bold else "Helvetica", size)
        self.pdf.setFillColor(color)
        if align == "right":
            self.pdf.drawRightString(x, _y(top), value)
        elif align == "center":
            self.pdf.drawCentredString(x, _y(top), value)
        else:
            self.pdf.drawString(x, _y(top), value)

    def render(self) -> bytes:
        self.letterhead()
        self.invoice_meta()
        self.status_badge()
        self.bill_to()
        top = self.items()
        top = self.totals(top)
        self.payment_reference(top)
        self.footer()
        self.pdf.save()
        return self.buffer.getvalue()

    # -------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------
    def letterhead(self) -> None:
        company = self.document.company
        self.text(20, company.name, size=24, bold=True, color=BRAND)
        self.text(28, company.address, color=MUTED)
        self.text(33, f"Email: {company.email}", color=MUTED)
        self.text(38, f"Phone: {company.phone}", color=MUTED)
        if company.gstin:
            self.text(43, company.gstin, color=MUTED)

    def invoice_meta(self) -> None:
        right = PAGE_WIDTH - MARGIN
        doc = self.document
        self.text(25, "INVOICE", x=right, size=28, bold=True, color=BRAND, align="right")
        self.text(35, f"#{doc.invoice_number}", x=right, size=12, align="right")
        self.text(42, f"Order: {doc.order_number}", x=right, size=12, align="right")
        self.text(52, f"Date: {doc.issued_on:%d %B %Y}", x=right, align="right")
        if doc.due_on:
            self.text(59, f"Due Date: {doc.due_on:%d %B %Y}", x=right, align="right")

    def status_badge(self) -> None:
        status = self.document.payment_status
        self.pdf.setFillColor(STATUS_COLORS.get(status, MUTED))
        self.pdf.roundRect(PAGE_WIDTH - 50 * mm, _y(75), 30 * mm, 10 * mm, 2 * mm, stroke=0, fill=1)
        self.text(72, status.upper(), x=PAGE_WIDTH - 35 * mm, size=8, bold=True, color=colors.white, align="center")

        self.pdf.setStrokeColor(colors.Color(200 / 255, 200 / 255, 200 / 255))
        self.pdf.line(MARGIN, _y(80), PAGE_WIDTH - MARGIN, _y(80))

    def bill_to(self) -> None:
        bill_to = self.document.bill_to
        top = 95
        self.text(top, "BILL TO", bold=True, color=MUTED)
        top += 8
        self.text(top, bill_to.name, size=12, bold=True)
        top += 6
        self.text(top, bill_to.email, color=MUTED)
        if bill_to.phone:
            top += 5
            self.text(top, bill_to.phone, color=MUTED)
        if bill_to.address:
            address = bill_to.address
            top += 5
            self.text(top, address["line1"], color=MUTED)
            if address.get("line2"):
                top += 5
                self.text(top, address["line2"], color=MUTED)
            top += 5
            self.text(top, f"{address['city']}, {address['state']} - {address['postal_code']}", color=MUTED)
            top += 5
            self.text(top, address["country"], color=MUTED)

    def table_header(self, top: float) -> None:
        self.pdf.setFillColor(TABLE_HEADER)
        self.pdf.rect(MARGIN, _y(top + 7), PAGE_WIDTH - 2 * MARGIN, 12 * mm, stroke=0, fill=1)
        self.text(top + 3, "ITEM", x=25 * mm, size=9, bold=True)
        self.text(top + 3, "QTY", x=120 * mm, size=9, bold=True)
        self.text(top + 3, "PRICE", x=145 * mm, size=9, bold=True)
        self.text(top + 3, "TOTAL", x=PAGE_WIDTH - 25 * mm, size=9, bold=True, align="right")

    def items(self) -> float:
        top = ITEMS_TOP
        self.table_header(top)
        top += 15
        for item in self.document.items:
            if top > ITEMS_BOTTOM:
                self.footer()
                self.pdf.showPage()
                top = CONTINUED_ITEMS_TOP
                self.table_header(top)
                top += 15

            self.text(top, item.name)
            self.text(top, str(item.quantity), x=125 * mm)
            self.text(top, self.money(item.unit_price), x=145 * mm)
            self.text(top, self.money(item.total), x=PAGE_WIDTH - 25 * mm, align="right")
            if item.description:
                self.text(top + 4, item.description[:50], size=8, color=MUTED)
            top += ROW_HEIGHT
        return top

    def totals(self, top: float) -> float:
        if top > ITEMS_BOTTOM - 40:
            self.footer()
            self.pdf.showPage()
            top = CONTINUED_ITEMS_TOP

        amounts = self.document.amounts
        right = PAGE_WIDTH - 25 * mm
        label_x = 120 * mm

        top += 10
        self.pdf.setStrokeColor(colors.Color(220 / 255, 220 / 255, 220 / 255))
        self.pdf.line(110 * mm, _y(top), PAGE_WIDTH - MARGIN, _y(top))

        top += 10
        self.text(top, "Subtotal:", x=label_x, color=MUTED)
        self.text(top, self.money(amounts.subtotal), x=right, color=MUTED, align="right")

        if amounts.discount > 0:
            top += 8
            self.text(top, "Discount:", x=label_x, color=DISCOUNT)
            self.text(top, f"-{self.money(amounts.discount)}", x=right, color=DISCOUNT, align="right")

        if amounts.tax > 0:
            top += 8
            self.text(top, f"Tax ({self.document.tax_rate:g}%):", x=label_x, color=MUTED)
            self.text(top, self.money(amounts.tax), x=right, color=MUTED, align="right")

        top += 12
        self.pdf.setStrokeColor(BRAND)
        self.pdf.setLineWidth(0.5 * mm)
        self.pdf.line(110 * mm, _y(top - 3), PAGE_WIDTH - MARGIN, _y(top - 3))
        self.pdf.setLineWidth(1)
        self.text(top + 5, "TOTAL:", x=label_x, size=14, bold=True, color=BRAND)
        self.text(top + 5, self.money(amounts.total), x=right, size=14, bold=True, color=BRAND, align="right")
        return top + 5

    def payment_reference(self, top: float) -> None:
        doc = self.document
        if not (doc.payment_method or doc.payment_id):
            return
        top += 20
        if doc.payment_method:
            self.text(top, f"Payment Method: {doc.payment_method}", size=9, color=MUTED)
        if doc.payment_id:
            top += 5
            self.text(top, f"Transaction ID: {doc.payment_id}", size=9, color=MUTED)

    def footer(self) -> None:
        top = 277
        for line in self.document.footer:
            self.text(top, line, x=PAGE_WIDTH / 2, size=8, color=colors.Color(150 / 255, 150 / 255, 150 / 255), align="center")
            top += 5


def render_invoice_pdf(document: InvoiceDocument) -> bytes:
    """Render the invoice and return the PDF bytes."""
    return InvoiceRenderer(document).render()
