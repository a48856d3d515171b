# smartinventory/services/bill_service.py

import io
import logging
import os
import tempfile
import webbrowser
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
from zoneinfo import ZoneInfo

from reportlab.lib.colors import HexColor, white
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from smartinventory.domain.models import CompanyProfile, Customer, Invoice, LineItem
from smartinventory.exceptions import ExportIOError, ValidationError
from smartinventory.utils.formatting import (
    amount_in_words,
    clean_phone,
    format_inr,
    round_money,
    to_decimal,
)
from smartinventory.utils.pdf_helpers import register_fonts, truncate_to_width, wrap_text

logger = logging.getLogger(__name__)

IST = ZoneInfo("Asia/Kolkata")

# Layout works in millimetres measured from the top edge of an A4 page.
PAGE_WIDTH = 210
PAGE_HEIGHT = 297
TOP_MARGIN = 20
ROW_BREAK_LIMIT = PAGE_HEIGHT - 60
SUMMARY_BREAK_LIMIT = PAGE_HEIGHT - 100
FOOTER_BOTTOM = PAGE_HEIGHT - 8

TABLE_LEFT = 20
TABLE_WIDTH = PAGE_WIDTH - 40
COL_SNO = 10
COL_NAME = 70
COL_QTY = 18
COL_RATE = 34
COL_AMOUNT = 38

MIN_ROW_HEIGHT = 10
NAME_FONT_SIZE = 10
NAME_LINE_HEIGHT = 4.5

PRIMARY = HexColor("#2563EB")
SECONDARY = HexColor("#64748B")
ACCENT = HexColor("#059669")
LIGHT = HexColor("#F8FAFC")
DARK = HexColor("#0F172A")
BORDER = HexColor("#E2E8F0")
DISCOUNT_RED = HexColor("#DC2626")

TERMS = [
    "• All goods sold are subject to our standard terms and conditions.",
    "• Payment is due immediately unless other arrangements have been made.",
    "• Returns are accepted within 7 days with original receipt and in original condition.",
    "• Prices are inclusive of GST. • This invoice is computer generated and does not require signature.",
]


@dataclass(frozen=True)
class RowPlacement:
    page: int  # 0-based
    top: float
    height: float


def plan_item_rows(
        row_heights: List[float],
        start_y: float,
        *,
        top_margin: float = TOP_MARGIN,
        limit: float = ROW_BREAK_LIMIT,
) -> List[RowPlacement]:
    """
    Decide where each item row goes.

    Before a row is placed, a new page starts when the cursor is already
    past `limit` or the row would cross it. The first row of a continuation
    page is always placed, so a row taller than a page cannot loop.
    """
    placements: List[RowPlacement] = []
    page = 0
    y = start_y
    rows_on_page = 0

    for height in row_heights:
        fresh_page = page > 0 and rows_on_page == 0
        if (y > limit or y + height > limit) and not fresh_page:
            page += 1
            y = top_margin
            rows_on_page = 0

        placements.append(RowPlacement(page=page, top=y, height=height))
        y += height
        rows_on_page += 1

    return placements


def validate_invoice(invoice: Invoice) -> None:
    if not invoice.items:
        raise ValidationError("No items found in bill data")
    if invoice.customer is None or not invoice.customer.name:
        raise ValidationError("Customer information is missing")


def recompute_grand_total(invoice: Invoice) -> Decimal:
    subtotal = to_decimal(invoice.subtotal)
    discounted = subtotal - subtotal * to_decimal(invoice.discount_percent) / 100
    return round_money(discounted * (1 + to_decimal(invoice.tax_rate_percent) / 100))


def _percent(value) -> str:
    return f"{to_decimal(value).normalize():f}"


def _to_int(value: Any, default: int) -> int:
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return default
    return number or default


def _coerce_customer(customer: Union[Customer, Dict[str, Any], None]) -> Customer:
    if customer is None:
        return Customer(name="Walk-in Customer", phone="N/A")
    if isinstance(customer, Customer):
        return customer
    return Customer(
        name=customer.get("name") or "",
        phone=customer.get("phone") or "N/A",
        email=customer.get("email") or None,
        address=customer.get("address") or None,
        gst_id=customer.get("gstNumber") or customer.get("gst_number") or customer.get("gst_id") or None,
    )


def build_invoice(
        cart_items: List[Dict[str, Any]],
        customer: Union[Customer, Dict[str, Any], None] = None,
        discount: Any = 0,
        tax_rate: Any = 18,
        payment_method: str = "Cash",
        amount_tendered: Any = None,
        now: Optional[datetime] = None,
) -> Invoice:
    """
    Build an Invoice from cart rows at checkout time.

    Each cart row is expected to look like:
      {
        "name": str,
        "quantity": int,
        "price": number,
        "hsnCode": str,   # optional
      }

    Totals are rounded to paise at every step: subtotal, discount amount,
    tax amount and grand total.
    """
    now = now or datetime.now()

    items: List[LineItem] = []
    for row in cart_items:
        quantity = _to_int(row.get("quantity"), 1)
        unit_price = to_decimal(row.get("price"))
        items.append(
            LineItem(
                name=row.get("name") or "Unknown Product",
                quantity=quantity,
                unit_price=unit_price,
                line_total=unit_price * quantity,
                tax_code=row.get("hsnCode") or row.get("hsn_code") or "8517",
            )
        )

    discount = to_decimal(discount)
    tax_rate = to_decimal(tax_rate)

    subtotal = round_money(sum((item.line_total for item in items), to_decimal(0)))
    discount_amount = round_money(subtotal * discount / 100)
    taxable = subtotal - discount_amount
    tax_amount = round_money(taxable * tax_rate / 100)
    grand_total = round_money(taxable + tax_amount)

    tendered = to_decimal(amount_tendered) if amount_tendered else None
    change_due = round_money(tendered - grand_total) if tendered else None

    millis = str(int(now.timestamp() * 1000))[-4:]

    return Invoice(
        number=f"INV-{now:%Y%m%d}-{millis}",
        date=now.strftime("%d %B %Y"),
        customer=_coerce_customer(customer),
        items=items,
        subtotal=subtotal,
        discount_percent=discount,
        tax_rate_percent=tax_rate,
        tax_amount=tax_amount,
        grand_total=grand_total,
        payment_method=payment_method,
        amount_tendered=tendered,
        change_due=change_due,
    )


def open_for_printing(path: str) -> bool:
    """
    Hand the file to the platform viewer. On Windows the shell "print" verb
    prints directly; elsewhere the browser opens it for printing.
    Returns False when no viewer could be opened.
    """
    if hasattr(os, "startfile"):
        os.startfile(path, "print")
        return True
    return webbrowser.open(Path(path).resolve().as_uri())


class BillGenerator:
    """
    Render an Invoice as an A4 PDF.

    State (canvas, cursor, page count) lives on the instance for the
    duration of one generate() call.
    """

    def __init__(self, font_path: Optional[str] = None):
        self.font, self.font_bold = register_fonts(font_path)
        self.currency = "₹" if font_path else "Rs. "
        self.c: Optional[canvas.Canvas] = None
        self.y: float = TOP_MARGIN
        self.page_count = 0
        self.row_placements: List[RowPlacement] = []

    # ---------- public API ----------

    def generate(self, invoice: Invoice, company: Optional[CompanyProfile] = None) -> bytes:
        validate_invoice(invoice)
        company = company or CompanyProfile()

        buffer = io.BytesIO()
        try:
            self.c = canvas.Canvas(buffer, pagesize=A4)
            self.c.setTitle(f"Invoice {invoice.number}")
            self.c.setAuthor(company.name)
            self.page_count = 1
            self.y = TOP_MARGIN

            self._draw_header(company)
            self._draw_title(invoice)
            self._draw_customer(invoice.customer)
            self._draw_items(invoice.items)
            self._draw_summary(invoice)
            self._draw_footer()

            self.c.save()
        except ValidationError:
            raise
        except Exception as e:
            logger.error("Error generating bill %s: %s", invoice.number, e)
            raise ExportIOError(f"Failed to generate bill: {e}") from e

        logger.info("Generated bill %s (%d page(s))", invoice.number, self.page_count)
        return buffer.getvalue()

    def save_to_file(self, invoice: Invoice, company: Optional[CompanyProfile], sink) -> str:
        data = self.generate(invoice, company)
        return sink.save(data, f"Bill_{invoice.number}.pdf")

    def open_print_dialog(
            self,
            invoice: Invoice,
            company: Optional[CompanyProfile],
            sink,
            opener: Callable[[str], bool] = open_for_printing,
    ) -> str:
        """
        Open the rendered bill in a viewer for printing. When the viewer
        cannot be opened, save it through the sink as a plain download.
        Returns the temporary file path or the sink location.
        """
        data = self.generate(invoice, company)

        with tempfile.NamedTemporaryFile(prefix="bill_", suffix=".pdf", delete=False) as tmp:
            tmp.write(data)
            path = tmp.name

        try:
            opened = opener(path)
        except OSError as e:
            logger.warning("Could not open print viewer: %s", e)
            opened = False

        if opened:
            return path

        logger.warning("Print viewer blocked, offering bill %s as a download", invoice.number)
        os.unlink(path)
        return sink.save(data, "bill.pdf")

    # ---------- drawing primitives ----------

    def _new_page(self) -> None:
        self.c.showPage()
        self.page_count += 1
        self.y = TOP_MARGIN

    def _box(self, x, top, w, h, fill=None, stroke=None, stroke_w=0.3, radius=0.0) -> None:
        self.c.saveState()
        if fill is not None:
            self.c.setFillColor(fill)
        if stroke is not None:
            self.c.setStrokeColor(stroke)
            self.c.setLineWidth(stroke_w)
        bottom = (PAGE_HEIGHT - top - h) * mm
        args = (x * mm, bottom, w * mm, h * mm)
        flags = {"fill": 1 if fill is not None else 0, "stroke": 1 if stroke is not None else 0}
        if radius:
            self.c.roundRect(*args, radius * mm, **flags)
        else:
            self.c.rect(*args, **flags)
        self.c.restoreState()

    def _line(self, x1, y1, x2, y2, color=PRIMARY, width=0.5) -> None:
        self.c.saveState()
        self.c.setStrokeColor(color)
        self.c.setLineWidth(width)
        self.c.line(x1 * mm, (PAGE_HEIGHT - y1) * mm, x2 * mm, (PAGE_HEIGHT - y2) * mm)
        self.c.restoreState()

    def _text(self, text, x, baseline, size=10, bold=False, color=DARK, align="left") -> None:
        self.c.saveState()
        self.c.setFont(self.font_bold if bold else self.font, size)
        self.c.setFillColor(color)
        px, py = x * mm, (PAGE_HEIGHT - baseline) * mm
        if align == "center":
            self.c.drawCentredString(px, py, text)
        elif align == "right":
            self.c.drawRightString(px, py, text)
        else:
            self.c.drawString(px, py, text)
        self.c.restoreState()

    def _width_mm(self, text: str, size: float, bold: bool = False) -> float:
        return pdfmetrics.stringWidth(text, self.font_bold if bold else self.font, size) / mm

    def _money(self, amount) -> str:
        return format_inr(amount, symbol=self.currency)

    # ---------- sections ----------

    def _draw_header(self, company: CompanyProfile) -> None:
        self._box(0, 0, PAGE_WIDTH, 35, fill=PRIMARY)
        self._text(company.name, PAGE_WIDTH / 2, 18, size=26, bold=True, color=white, align="center")
        self._text(company.tagline, PAGE_WIDTH / 2, 28, size=11, color=white, align="center")

        top = 38
        self._box(15, top, PAGE_WIDTH - 30, 20, fill=LIGHT, stroke=BORDER, stroke_w=0.5, radius=3)
        self._text(company.address, 20, top + 6, size=9)
        self._text(f"Phone: {company.phone}", 20, top + 10.5, size=9)
        self._text(f"Email: {company.email}", 20, top + 15, size=9)
        if company.website:
            self._text(f"Website: {company.website}", PAGE_WIDTH - 20, top + 6, size=9, align="right")
        self._text(f"GST No: {company.gst_id}", PAGE_WIDTH - 20, top + 10.5, size=9, align="right")

        self.y = top + 25

    def _draw_title(self, invoice: Invoice) -> None:
        self._box(15, self.y, PAGE_WIDTH - 30, 12, fill=ACCENT, radius=2)
        self._text("TAX INVOICE", PAGE_WIDTH / 2, self.y + 8.5, size=18, bold=True, color=white, align="center")
        self.y += 16

        box_w = (PAGE_WIDTH - 35) / 2
        right_x = (PAGE_WIDTH + 5) / 2
        for x, label, value in ((15, "INVOICE NUMBER", invoice.number), (right_x, "DATE", invoice.date)):
            self._box(x, self.y, box_w, 18, fill=LIGHT, stroke=BORDER, radius=2)
            self._text(label, x + 5, self.y + 6, size=10, bold=True)
            size = 12 if self._width_mm(value, 12) <= box_w - 10 else 10
            self._text(value, x + 5, self.y + 13, size=size)

        self.y += 22

    def _draw_customer(self, customer: Customer) -> None:
        self._box(15, self.y, PAGE_WIDTH - 30, 8, fill=PRIMARY, radius=2)
        self._text("BILL TO", 20, self.y + 6, size=12, bold=True, color=white)
        self.y += 10

        box_top = self.y
        box_h = 20 + sum(4 for v in (customer.email, customer.address, customer.gst_id) if v)
        self._box(15, box_top, PAGE_WIDTH - 30, box_h, fill=LIGHT, stroke=BORDER, radius=2)

        y = box_top + 8
        name = truncate_to_width(customer.name, self.font_bold, 14, (PAGE_WIDTH - 50) * mm)
        self._text(name, 20, y, size=14, bold=True)
        y += 7

        self._text(f"Phone: {clean_phone(customer.phone)}", 20, y, size=10)
        y += 4
        if customer.email:
            email = truncate_to_width(f"Email: {customer.email}", self.font, 10, (PAGE_WIDTH - 70) * mm)
            self._text(email, 20, y, size=10)
            y += 4
        if customer.address:
            address = truncate_to_width(
                f"Address: {customer.address}", self.font, 10, (PAGE_WIDTH - 80) * mm, min_chars=15
            )
            self._text(address, 20, y, size=10)
            y += 4
        if customer.gst_id:
            self._text(f"GST: {customer.gst_id}", 20, y, size=10)

        self.y = box_top + box_h + 8

    def _wrapped_names(self, items: List[LineItem]) -> List[List[str]]:
        width = (COL_NAME - 6) * mm
        return [wrap_text(item.name, self.font, NAME_FONT_SIZE, width) for item in items]

    def _draw_items(self, items: List[LineItem]) -> None:
        left = TABLE_LEFT
        x_name = left + COL_SNO + 3
        x_qty = left + COL_SNO + COL_NAME + COL_QTY / 2
        x_rate = left + COL_SNO + COL_NAME + COL_QTY + COL_RATE - 2
        x_amount = left + TABLE_WIDTH - 2

        self._box(left, self.y, TABLE_WIDTH, 10, fill=PRIMARY, radius=2)
        header_baseline = self.y + 7
        self._text("#", left + COL_SNO / 2, header_baseline, size=10, bold=True, color=white, align="center")
        self._text("PRODUCT DETAILS", x_name, header_baseline, size=10, bold=True, color=white)
        self._text("QTY", x_qty, header_baseline, size=10, bold=True, color=white, align="center")
        self._text("UNIT PRICE", x_rate, header_baseline, size=10, bold=True, color=white, align="right")
        self._text("AMOUNT", x_amount, header_baseline, size=10, bold=True, color=white, align="right")
        self.y += 12

        names = self._wrapped_names(items)
        heights = [max(MIN_ROW_HEIGHT, len(lines) * NAME_LINE_HEIGHT + 5.5) for lines in names]
        placements = plan_item_rows(heights, self.y)
        self.row_placements = placements

        current_page = 0
        for index, (item, lines, place) in enumerate(zip(items, names, placements)):
            while current_page < place.page:
                self._new_page()
                current_page += 1

            if index % 2 == 0:
                self._box(left, place.top, TABLE_WIDTH, place.height, fill=LIGHT)
            self._box(left, place.top, TABLE_WIDTH, place.height, stroke=BORDER, stroke_w=0.2)

            baseline = place.top + 6.5
            self._text(str(index + 1), left + COL_SNO / 2, baseline, align="center")
            for offset, line in enumerate(lines):
                self._text(line, x_name, baseline + offset * NAME_LINE_HEIGHT)
            self._text(str(item.quantity), x_qty, baseline, align="center")

            price = self._money(item.unit_price)
            self._text(price, x_rate, baseline, size=10 if self._width_mm(price, 10) < COL_RATE - 4 else 8, align="right")
            total = self._money(item.line_total)
            size = 10 if self._width_mm(total, 10, bold=True) < COL_AMOUNT - 4 else 8
            self._text(total, x_amount, baseline, size=size, bold=True, align="right")

            self.y = place.top + place.height

        self._line(left, self.y, left + TABLE_WIDTH, self.y, color=PRIMARY, width=1)
        self.y += 10

    def _draw_summary(self, invoice: Invoice) -> None:
        if self.y > SUMMARY_BREAK_LIMIT:
            self._new_page()

        box_w = 90
        left = PAGE_WIDTH - box_w - 25
        top = self.y
        has_discount = to_decimal(invoice.discount_percent) > 0
        has_payment = bool(invoice.amount_tendered) and invoice.change_due is not None

        height = 35 + (8 if has_discount else 0) + (12 if has_payment else 0)
        self._box(left, top, box_w, height, fill=LIGHT, stroke=PRIMARY, stroke_w=0.8, radius=3)

        label_x = left + 8
        value_x = left + box_w - 8
        line_y = top + 10

        self._text("Subtotal:", label_x, line_y)
        self._text(self._money(invoice.subtotal), value_x, line_y, align="right")
        line_y += 6

        if has_discount:
            discount_amount = round_money(to_decimal(invoice.subtotal) * to_decimal(invoice.discount_percent) / 100)
            self._text(f"Discount ({_percent(invoice.discount_percent)}%):", label_x, line_y, color=DISCOUNT_RED)
            self._text(f"- {self._money(discount_amount)}", value_x, line_y, color=DISCOUNT_RED, align="right")
            line_y += 6

        self._text(f"GST ({_percent(invoice.tax_rate_percent)}%):", label_x, line_y)
        self._text(self._money(invoice.tax_amount), value_x, line_y, align="right")
        line_y += 8

        self._line(label_x, line_y - 2, value_x, line_y - 2, color=PRIMARY, width=0.5)
        self._box(label_x - 3, line_y - 1, box_w - 10, 10, fill=PRIMARY, radius=2)
        self._text("TOTAL:", label_x, line_y + 5.5, size=12, bold=True, color=white)
        self._text(self._money(invoice.grand_total), value_x - 3, line_y + 5.5, size=12, bold=True, color=white,
                   align="right")
        line_y += 14

        if has_payment:
            self._text(f"Received: {self._money(invoice.amount_tendered)}", label_x, line_y, size=9)
            self._text(f"Change: {self._money(invoice.change_due)}", label_x, line_y + 4, size=9)

        self.y = top + height + 5
        self._box(left, self.y, box_w, 8, fill=ACCENT, radius=2)
        self._text(f"Payment Mode: {invoice.payment_method}", left + box_w / 2, self.y + 5.5, size=9, bold=True,
                   color=white, align="center")
        self.y += 12

        whole = to_decimal(invoice.grand_total).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        words = f"{amount_in_words(int(whole))} Rupees Only"
        lines = wrap_text(words, self.font, 10, (PAGE_WIDTH - 30 - 45) * mm)
        box_h = max(12, 6 + len(lines) * 4.5)
        self._box(15, self.y, PAGE_WIDTH - 30, box_h, fill=LIGHT, stroke=BORDER, radius=2)
        self._text("Amount in Words:", 20, self.y + 7.5, size=10, bold=True)
        for offset, line in enumerate(lines):
            self._text(line, 55, self.y + 7.5 + offset * 4.5, size=10)

        self.y += box_h + 3

    def _draw_footer(self) -> None:
        term_lines: List[str] = []
        for term in TERMS:
            term_lines.extend(wrap_text(term, self.font, 8, (PAGE_WIDTH - 50) * mm))

        terms_h = 12 + len(term_lines) * 3.5
        footer_h = terms_h + 5 + 12 + 3 + 8
        if self.y + footer_h > FOOTER_BOTTOM:
            self._new_page()

        self._box(15, self.y, PAGE_WIDTH - 30, terms_h, fill=LIGHT, stroke=BORDER, radius=2)
        self._text("TERMS & CONDITIONS:", 20, self.y + 7, size=10, bold=True)
        term_y = self.y + 12
        for line in term_lines:
            self._text(line, 20, term_y, size=8)
            term_y += 3.5
        self.y += terms_h + 5

        self._box(15, self.y, PAGE_WIDTH - 30, 12, fill=ACCENT, radius=3)
        self._text("Thank You for Your Business!", PAGE_WIDTH / 2, self.y + 8, size=12, bold=True, color=white,
                   align="center")
        self.y += 15

        timestamp = datetime.now(IST).strftime("%d %b %Y, %I:%M %p")
        self._text("This is a computer generated invoice.", PAGE_WIDTH / 2, self.y, size=9, color=SECONDARY,
                   align="center")
        self._text(f"Generated on: {timestamp} IST", PAGE_WIDTH / 2, self.y + 4, size=9, color=SECONDARY,
                   align="center")

        self._line(15, PAGE_HEIGHT - 5, PAGE_WIDTH - 15, PAGE_HEIGHT - 5, color=PRIMARY, width=2)


def generate_bill(invoice: Invoice, company: Optional[CompanyProfile] = None, font_path: Optional[str] = None) -> bytes:
    return BillGenerator(font_path=font_path).generate(invoice, company)
