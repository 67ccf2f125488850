"""
Invoice PDF generation.

Lays out a customer's bill on an A4 page with reportlab: company header,
customer and invoice details, the service/accessory table with totals,
amount in words, notes, terms and conditions and the footer message.
"""

import io
import logging
from pathlib import Path
from typing import List, Optional, Union
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, Table, TableStyle

from ..exceptions import InvoiceBuildError
from ..models import NO_PUMP, BillTemplate, CustomerRecord

logger = logging.getLogger(__name__)

# ─── LAYOUT ───
W, H = A4  # 595.27 x 841.89
MARGIN = 45
CONTENT_W = W - 2 * MARGIN
BOTTOM = 60  # Lowest y for body content; the footer sits below it
BLOCK_GAP = 10
DETAILS_W = 160  # Invoice Details column; wider when the QR code sits beside it
DETAILS_W_WITH_QR = 230
COLUMN_GAP = 10

# ─── COLOR PALETTE ───
BRAND_BLUE = colors.Color(0, 84 / 255, 147 / 255)
GREY_TEXT = colors.Color(100 / 255, 100 / 255, 100 / 255)
FOOT_FILL = colors.Color(240 / 255, 240 / 255, 240 / 255)

DESCRIPTION_STYLE = ParagraphStyle("description", fontName="Helvetica", fontSize=10, leading=12)

REQUIRED_FIELDS = (
    "id", "name", "service_type", "service_date",
    "total_amount", "taxes", "grand_total", "payment_status",
)


def format_inr(amount: float, symbol: str = "₹") -> str:
    """Format an amount with Indian digit grouping, e.g. ₹12,34,567.50"""
    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{symbol}{whole}.{fraction}"


def invoice_number(customer: CustomerRecord) -> str:
    return f"INV-{customer.id}"


def describe_service(customer: CustomerRecord,
                     installation_service_type: str = "Borewell Installation") -> str:
    parts = []
    if customer.service_type == installation_service_type and customer.borewell_depth is not None:
        parts.append(f"Depth: {customer.borewell_depth:g} ft")
    if customer.pump_type and customer.pump_type != NO_PUMP:
        parts.append(f"Pump: {customer.pump_type} {customer.pump_model or ''}".strip())
    return ", ".join(parts)


class InvoiceDocument:
    """A rendered invoice: the PDF bytes plus the text drawn on it"""

    def __init__(self, customer_id: str, pdf_bytes: bytes, lines: List[str]):
        self.customer_id = customer_id
        self._pdf_bytes = pdf_bytes
        self._lines = lines

    @property
    def filename(self) -> str:
        return f"Invoice-{self.customer_id}.pdf"

    def to_bytes(self) -> bytes:
        """In-memory PDF for preview, printing or attachments."""
        return self._pdf_bytes

    def to_stream(self) -> io.BytesIO:
        return io.BytesIO(self._pdf_bytes)

    def save(self, path: Union[str, Path, None] = None) -> Path:
        """
        Write the PDF to disk.

        Args:
            path: Target .pdf file, or a directory (created if missing) to
                place Invoice-<id>.pdf in. Defaults to the current directory.

        Returns:
            Path of the written file
        """
        target = Path(path) if path is not None else Path(".")
        if target.is_dir() or target.suffix.lower() != ".pdf":
            target = target / self.filename
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self._pdf_bytes)
        logger.info(f"📄 Invoice saved to {target}")
        return target

    def text_lines(self) -> List[str]:
        return list(self._lines)


class _InvoiceRenderer:
    def __init__(self, customer: CustomerRecord, template: BillTemplate,
                 currency_symbol: str, installation_service_type: str,
                 qr_image: Optional[bytes]):
        self.customer = customer
        self.template = template
        self.symbol = currency_symbol
        self.installation_service_type = installation_service_type
        self.qr_image = qr_image
        self.lines: List[str] = []
        self.buffer = io.BytesIO()
        # invariant=1 keeps the output byte-identical across renders
        self.c = canvas.Canvas(self.buffer, pagesize=A4, invariant=1, pageCompression=0)
        self.c.setTitle(f"Invoice {invoice_number(customer)}")
        self.c.setAuthor(template.company_name)
        self.y = H - MARGIN

    def money(self, amount: float) -> str:
        return format_inr(amount, self.symbol)

    # ─── PRIMITIVES ───

    def text(self, x: float, y: float, value: str, font: str = "Helvetica", size: float = 11,
             color=colors.black, align: str = "left"):
        self.c.setFont(font, size)
        self.c.setFillColor(color)
        if align == "center":
            self.c.drawCentredString(x, y, value)
        elif align == "right":
            self.c.drawRightString(x, y, value)
        else:
            self.c.drawString(x, y, value)
        self.lines.append(value)

    def new_page(self):
        self.draw_footer()
        self.c.showPage()
        self.y = H - MARGIN

    def ensure_space(self, needed: float):
        if self.y - needed < BOTTOM:
            self.new_page()

    # ─── BLOCKS ───

    def draw_header(self):
        t = self.template
        self.text(W / 2, self.y, t.company_name, "Helvetica-Bold", 20, BRAND_BLUE, "center")
        self.y -= 20
        self.text(W / 2, self.y, t.company_address, size=10, color=GREY_TEXT, align="center")
        self.y -= 14
        self.text(W / 2, self.y, f"Phone: {t.company_phone} | Email: {t.company_email}",
                  size=10, color=GREY_TEXT, align="center")
        self.y -= 14
        self.text(W / 2, self.y, f"Website: {t.company_website}", size=10, color=GREY_TEXT, align="center")
        self.y -= 26
        self.text(W / 2, self.y, "INVOICE", "Helvetica-Bold", 16, BRAND_BLUE, "center")
        self.y -= 10
        self.c.setStrokeColor(BRAND_BLUE)
        self.c.line(MARGIN, self.y, W - MARGIN, self.y)
        self.y -= 20

    def left_column_width(self) -> float:
        details_w = DETAILS_W_WITH_QR if self.qr_image else DETAILS_W
        return CONTENT_W - details_w - COLUMN_GAP

    def draw_parties(self):
        cust = self.customer
        left = [("Bill To:", "Helvetica-Bold")]
        for value in [
            f"Name: {cust.name}",
            f"Address: {cust.address or ''}",
            f"Phone: {cust.phone or ''}",
            f"Email: {cust.email or ''}",
        ]:
            left.extend((line, "Helvetica") for line in
                        simpleSplit(value, "Helvetica", 11, self.left_column_width()) or [value])
        right = [
            "Invoice Details:",
            f"Invoice #: {invoice_number(cust)}",
            f"Date: {cust.service_date.strftime('%d/%m/%Y')}",
            f"Payment Status: {cust.payment_status.value}",
        ]
        if cust.bill_id:
            right.append(f"Bill ID: {cust.bill_id}")

        top = self.y
        details_x = W - MARGIN - (DETAILS_W_WITH_QR if self.qr_image else DETAILS_W)
        for i, (value, font) in enumerate(left):
            self.text(MARGIN, top - i * 16, value, font)
        for i, value in enumerate(right):
            self.text(details_x, top - i * 16, value, "Helvetica-Bold" if i == 0 else "Helvetica")

        if self.qr_image:
            size = 70
            self.c.drawImage(ImageReader(io.BytesIO(self.qr_image)),
                             W - MARGIN - size, top - size + 10, size, size)
            self.text(W - MARGIN - size / 2, top - size, "Scan to verify", size=7,
                      color=GREY_TEXT, align="center")

        self.y = top - max(len(left), len(right)) * 16 - BLOCK_GAP

    def build_table(self) -> Table:
        cust = self.customer
        rows = [["Service/Product", "Description", "Amount"]]
        description = describe_service(cust, self.installation_service_type)
        rows.append([cust.service_type, Paragraph(escape(description), DESCRIPTION_STYLE),
                     self.money(cust.total_amount)])
        self.lines.extend(["Service/Product", "Description", "Amount",
                           cust.service_type, description, self.money(cust.total_amount)])
        for accessory in cust.accessories:
            rows.append(["Accessory", accessory, ""])
            self.lines.extend(["Accessory", accessory])

        totals = [
            ("Subtotal", cust.total_amount),
            ("Tax", cust.taxes),
            ("Grand Total", cust.grand_total),
        ]
        for label, amount in totals:
            rows.append(["", label, self.money(amount)])
            self.lines.extend([label, self.money(amount)])

        foot_start = len(rows) - len(totals)
        table = Table(rows, colWidths=[150, CONTENT_W - 260, 110], repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), BRAND_BLUE),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("ALIGN", (2, 0), (2, -1), "RIGHT"),
            ("GRID", (0, 0), (-1, foot_start - 1), 0.5, colors.lightgrey),
            ("BACKGROUND", (0, foot_start), (-1, -1), FOOT_FILL),
            ("FONTNAME", (0, foot_start), (-1, -1), "Helvetica-Bold"),
            ("ALIGN", (1, foot_start), (1, -1), "RIGHT"),
        ]))
        return table

    def draw_table(self):
        pending = [self.build_table()]
        while pending:
            table = pending.pop(0)
            _, height = table.wrapOn(self.c, CONTENT_W, H)
            if self.y - height >= BOTTOM:
                table.drawOn(self.c, MARGIN, self.y - height)
                # Table end position; following blocks start one gap below it
                self.y = self.y - height - BLOCK_GAP
                continue
            # Rows that do not fit continue on the next page under a repeated header
            parts = table.split(CONTENT_W, self.y - BOTTOM)
            if len(parts) < 2:
                if self.y >= H - MARGIN:
                    raise InvoiceBuildError(
                        f"Invoice table for customer {self.customer.id} cannot fit on a page"
                    )
                self.new_page()
                pending.insert(0, table)
                continue
            first = parts[0]
            _, first_height = first.wrapOn(self.c, CONTENT_W, H)
            first.drawOn(self.c, MARGIN, self.y - first_height)
            self.new_page()
            pending = list(parts[1:]) + pending

    def draw_amount_in_words(self):
        words = self.customer.amount_in_words
        if not words:
            return
        wrapped = simpleSplit(f"Amount in Words: {words}", "Helvetica-Oblique", 10, CONTENT_W)
        self.ensure_space(len(wrapped) * 13 + BLOCK_GAP)
        for line in wrapped:
            self.y -= 13
            self.text(MARGIN, self.y, line, "Helvetica-Oblique", 10)
        self.y -= BLOCK_GAP

    def draw_notes(self):
        notes = (self.customer.notes or "").strip()
        if not notes:
            return
        wrapped = []
        for paragraph in notes.splitlines():
            wrapped.extend(simpleSplit(paragraph, "Helvetica", 10, CONTENT_W) or [""])
        self.ensure_space(16 + len(wrapped) * 13 + BLOCK_GAP)
        self.y -= 16
        self.text(MARGIN, self.y, "Notes:", "Helvetica-Bold")
        for line in wrapped:
            self.y -= 13
            self.text(MARGIN, self.y, line, size=10)
        self.y -= BLOCK_GAP

    def draw_terms(self):
        terms = self.template.terms_and_conditions
        if not terms:
            return
        self.ensure_space(30)
        self.y -= 16
        self.text(MARGIN, self.y, "Terms and Conditions:", "Helvetica-Bold", 11, BRAND_BLUE)
        for index, term in enumerate(terms, start=1):
            for line in simpleSplit(f"{index}. {term}", "Helvetica", 9, CONTENT_W):
                self.ensure_space(12)
                self.y -= 12
                self.text(MARGIN, self.y, line, size=9)

    def draw_footer(self):
        if self.template.footer:
            self.text(W / 2, 30, self.template.footer, size=10, align="center")

    def render(self) -> InvoiceDocument:
        self.draw_header()
        self.draw_parties()
        self.draw_table()
        self.draw_amount_in_words()
        self.draw_notes()
        self.draw_terms()
        self.draw_footer()
        self.c.save()
        return InvoiceDocument(self.customer.id, self.buffer.getvalue(), self.lines)


def _check_customer(customer: CustomerRecord):
    if customer is None:
        raise InvoiceBuildError("Customer information not found")
    missing = [name for name in REQUIRED_FIELDS if getattr(customer, name, None) in (None, "")]
    if missing:
        raise InvoiceBuildError(
            f"Cannot build invoice for customer {getattr(customer, 'id', '?')}: missing {', '.join(missing)}",
            details={"missing": missing},
        )


def build_invoice(customer: CustomerRecord, template: BillTemplate,
                  qr_image: Optional[bytes] = None,
                  currency_symbol: str = "Rs. ",
                  installation_service_type: str = "Borewell Installation") -> InvoiceDocument:
    """
    Render a customer's invoice.

    Args:
        customer: Customer record with billing fields filled in
        template: Company identity, terms and footer to print
        qr_image: Optional PNG bytes of the verification QR code
        currency_symbol: Prefix for money values
        installation_service_type: Service type that prints the borewell depth

    Returns:
        The rendered invoice document

    Raises:
        InvoiceBuildError: If required customer fields are missing
    """
    _check_customer(customer)
    logger.info(f"🧾 Building invoice {invoice_number(customer)} for {customer.name}")
    renderer = _InvoiceRenderer(customer, template, currency_symbol, installation_service_type, qr_image)
    return renderer.render()
