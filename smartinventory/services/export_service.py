# smartinventory/services/export_service.py

import csv
import io
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib.colors import HexColor, white
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from smartinventory.domain.models import ExportColumn, ExportRequest
from smartinventory.exceptions import ExportIOError
from smartinventory.utils.formatting import format_currency, format_date
from smartinventory.utils.pdf_helpers import register_fonts

logger = logging.getLogger(__name__)

BOM = "\ufeff"
DEFAULT_COLUMN_WIDTH = 15
DEFAULT_SHEET_NAME = "Sheet1"

HEADER_FILL = PatternFill(fill_type="solid", start_color="CCCCCC", end_color="CCCCCC")
PDF_HEADER_COLOR = HexColor("#2563EB")
PDF_GRID_COLOR = HexColor("#E2E8F0")
PDF_STRIPE_COLOR = HexColor("#F8FAFC")
PDF_MARGIN = 20  # mm
PDF_BODY_FONT_SIZE = 8
PDF_CELL_PADDING = 6  # reportlab Table default, points per side
PDF_MAX_CELL_LINES = 20


# ---------------------------------------------------------------------------
# Shared projection
# ---------------------------------------------------------------------------

def build_filename(base_name: str, ext: str, include_date_stamp: bool = True, today: Optional[date] = None) -> str:
    if include_date_stamp:
        today = today or date.today()
        return f"{base_name}_{today.isoformat()}.{ext}"
    return f"{base_name}.{ext}"


def _read(record: Any, key: str) -> Any:
    if record is None:
        return None
    if isinstance(record, dict):
        return record.get(key)
    return getattr(record, key, None)


def project_value(record: Any, column: ExportColumn) -> str:
    """
    Render one cell: formatter when the column has one, otherwise the raw
    value as text with missing / None rendered as "".
    """
    value = _read(record, column.key)
    if column.formatter is not None:
        rendered = column.formatter(value)
        return "" if rendered is None else str(rendered)
    return "" if value is None else str(value)


def project_rows(columns: List[ExportColumn], records: List[Any]) -> List[List[str]]:
    return [[project_value(record, col) for col in columns] for record in (records or [])]


def _check_columns(request: ExportRequest) -> None:
    if not request.columns:
        raise ExportIOError(f"Nothing to export for {request.base_name}: no columns given")


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def render_delimited(request: ExportRequest) -> bytes:
    """
    Every field quoted, quotes doubled, CRLF line endings, UTF-8 with BOM.
    """
    _check_columns(request)
    headers = [col.header for col in request.columns]
    rows = project_rows(request.columns, request.records)

    df = pd.DataFrame(rows, columns=headers, dtype=object)
    text = df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\r\n")
    return (BOM + text).encode("utf-8")


def export_delimited(request: ExportRequest, sink, today: Optional[date] = None) -> str:
    try:
        data = render_delimited(request)
    except ExportIOError:
        raise
    except Exception as e:
        logger.error("CSV export failed: %s", e)
        raise ExportIOError("Failed to export CSV. Please try again.") from e

    filename = build_filename(request.base_name, "csv", request.include_date_stamp, today)
    return sink.save(data, filename)


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------

def render_spreadsheet(request: ExportRequest) -> bytes:
    """
    Optional title row + blank row, then a bold grey header row and the
    data rows. Column widths come from each column (default 15).
    """
    _check_columns(request)
    wb = Workbook()
    ws = wb.active
    ws.title = request.sheet_name or DEFAULT_SHEET_NAME

    header_row = 1
    if request.title:
        ws.cell(row=1, column=1, value=request.title).font = Font(bold=True, size=14)
        header_row = 3

    for col_idx, col in enumerate(request.columns, start=1):
        cell = ws.cell(row=header_row, column=col_idx, value=col.header)
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL
        ws.column_dimensions[get_column_letter(col_idx)].width = col.width or DEFAULT_COLUMN_WIDTH

    for row_offset, row in enumerate(project_rows(request.columns, request.records), start=1):
        for col_idx, value in enumerate(row, start=1):
            cell = ws.cell(row=header_row + row_offset, column=col_idx, value=value)
            # text starting with "=" must not become a formula
            cell.data_type = "s"

    buffer = io.BytesIO()
    wb.save(buffer)
    wb.close()
    return buffer.getvalue()


def export_spreadsheet(request: ExportRequest, sink, today: Optional[date] = None) -> str:
    try:
        data = render_spreadsheet(request)
    except ExportIOError:
        raise
    except Exception as e:
        logger.error("Excel export failed: %s", e)
        raise ExportIOError(f"Failed to export Excel file: {e}") from e

    filename = build_filename(request.base_name, "xlsx", request.include_date_stamp, today)
    return sink.save(data, filename)


# ---------------------------------------------------------------------------
# PDF table
# ---------------------------------------------------------------------------

def _column_widths(columns: List[ExportColumn], available: float) -> List[float]:
    weights = [col.width or DEFAULT_COLUMN_WIDTH for col in columns]
    total = sum(weights)
    return [available * w / total for w in weights]


def fit_cell_text(text: str, col_width: float, font_size: float = PDF_BODY_FONT_SIZE) -> str:
    """
    Cut `text` with a trailing ellipsis so it wraps to roughly PDF_MAX_CELL_LINES
    lines inside a column `col_width` points wide. A cell taller than
    a page cannot be laid out at all.
    """
    usable = max(col_width - 2 * PDF_CELL_PADDING, font_size)
    max_chars = max(10, int(PDF_MAX_CELL_LINES * usable / font_size))
    if len(text) <= max_chars:
        return text
    return text[:max_chars - 3] + "..."


def build_pdf_table(request: ExportRequest, font: str, font_bold: str, available_width: float) -> Table:
    """
    Header row plus one row per record, cells taken from the shared
    projection. The header repeats on every page the table flows onto.
    """
    header_style = ParagraphStyle("ExportHeader", fontName=font_bold, fontSize=9, leading=11, textColor=white)
    body_style = ParagraphStyle("ExportBody", fontName=font, fontSize=PDF_BODY_FONT_SIZE, leading=10)

    col_widths = _column_widths(request.columns, available_width)

    data = [[Paragraph(escape(col.header), header_style) for col in request.columns]]
    for row in project_rows(request.columns, request.records):
        data.append([
            Paragraph(escape(fit_cell_text(value, width)), body_style)
            for value, width in zip(row, col_widths)
        ])

    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), PDF_HEADER_COLOR),
                ("TEXTCOLOR", (0, 0), (-1, 0), white),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [white, PDF_STRIPE_COLOR]),
                ("GRID", (0, 0), (-1, -1), 0.25, PDF_GRID_COLOR),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    return table


def render_pdf_table(request: ExportRequest, font_path: Optional[str] = None) -> bytes:
    """
    Title and "Generated on" stamp at fixed positions on the first page,
    then a grid that flows over as many pages as needed with the header
    row repeated on each one.
    """
    _check_columns(request)
    font, font_bold = register_fonts(font_path)
    page_w, page_h = A4

    stamp_y = 35 if request.title else 20
    generated = f"Generated on: {datetime.now().strftime('%d/%m/%Y')}"

    def draw_first_page(c, _doc):
        c.saveState()
        if request.title:
            c.setFont(font_bold, 16)
            c.drawCentredString(page_w / 2, page_h - 20 * mm, request.title)
        c.setFont(font, 10)
        c.drawRightString(page_w - PDF_MARGIN * mm, page_h - stamp_y * mm, generated)
        c.restoreState()

    table = build_pdf_table(request, font, font_bold, page_w - 2 * PDF_MARGIN * mm)

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=PDF_MARGIN * mm,
        rightMargin=PDF_MARGIN * mm,
        topMargin=PDF_MARGIN * mm,
        bottomMargin=15 * mm,
        title=request.title or request.base_name,
    )
    doc.build(
        [Spacer(1, (stamp_y + 10 - PDF_MARGIN) * mm), table],
        onFirstPage=draw_first_page,
    )
    return buffer.getvalue()


def export_pdf_table(request: ExportRequest, sink, today: Optional[date] = None, font_path: Optional[str] = None) -> str:
    try:
        data = render_pdf_table(request, font_path=font_path)
    except ExportIOError:
        raise
    except Exception as e:
        logger.error("PDF export failed: %s", e)
        raise ExportIOError(f"Failed to export PDF: {e}") from e

    filename = build_filename(request.base_name, "pdf", request.include_date_stamp, today)
    return sink.save(data, filename)


# ---------------------------------------------------------------------------
# Predefined exports
# ---------------------------------------------------------------------------

PRODUCT_COLUMNS = [
    ExportColumn("name", "Product Name", 25),
    ExportColumn("sku", "SKU", 15),
    ExportColumn("barcode", "Barcode", 15),
    ExportColumn("category", "Category", 15),
    ExportColumn("brand", "Brand", 12),
    ExportColumn("unitPrice", "Unit Price", 12, format_currency),
    ExportColumn("costPrice", "Cost Price", 12, format_currency),
    ExportColumn("currentStock", "Stock", 10),
    ExportColumn("minStock", "Min Stock", 10),
    ExportColumn("supplier", "Supplier", 20),
    ExportColumn("status", "Status", 10),
]

CUSTOMER_COLUMNS = [
    ExportColumn("name", "Customer Name", 25),
    ExportColumn("phone", "Phone", 15),
    ExportColumn("email", "Email", 25),
    ExportColumn("totalPurchases", "Total Purchases", 15),
    ExportColumn("totalSpent", "Total Spent", 15, format_currency),
    ExportColumn("lastPurchase", "Last Purchase", 15, format_date),
    ExportColumn("loyaltyPoints", "Loyalty Points", 12),
    ExportColumn("joinDate", "Join Date", 15, format_date),
]

SALES_COLUMNS = [
    ExportColumn("billNumber", "Bill Number", 15),
    ExportColumn("date", "Date", 15, format_date),
    ExportColumn("customerName", "Customer", 20),
    ExportColumn("itemCount", "Items", 10),
    ExportColumn("subtotal", "Subtotal", 15, format_currency),
    ExportColumn("discount", "Discount", 12, format_currency),
    ExportColumn("tax", "Tax", 12, format_currency),
    ExportColumn("total", "Total", 15, format_currency),
    ExportColumn("paymentMethod", "Payment Method", 15),
]

INVENTORY_COLUMNS = [
    ExportColumn("name", "Product Name", 25),
    ExportColumn("sku", "SKU", 15),
    ExportColumn("category", "Category", 15),
    ExportColumn("currentStock", "Current Stock", 12),
    ExportColumn("minStock", "Min Stock", 12),
    ExportColumn("maxStock", "Max Stock", 12),
    ExportColumn("stockValue", "Stock Value", 15, format_currency),
    ExportColumn("status", "Stock Status", 12),
]

# kind -> (base name, title, sheet name, columns)
EXPORT_PRESETS: Dict[str, tuple] = {
    "products": ("products", "Product Catalog", "Products", PRODUCT_COLUMNS),
    "customers": ("customers", "Customer Database", "Customers", CUSTOMER_COLUMNS),
    "sales": ("sales_report", "Sales Report", "Sales", SALES_COLUMNS),
    "inventory": ("inventory_report", "Inventory Report", "Inventory", INVENTORY_COLUMNS),
}

EXPORTERS = {
    "csv": export_delimited,
    "excel": export_spreadsheet,
    "pdf": export_pdf_table,
}


def export_records(kind: str, records: List[Any], fmt: str, sink, today: Optional[date] = None) -> str:
    """
    Export one of the predefined record sets ("products", "customers",
    "sales", "inventory") as "csv", "excel" or "pdf".
    """
    if kind not in EXPORT_PRESETS:
        raise ValueError(f"Unknown export kind: {kind}")
    if fmt not in EXPORTERS:
        raise ValueError(f"Unknown export format: {fmt}")

    base_name, title, sheet_name, columns = EXPORT_PRESETS[kind]
    request = ExportRequest(
        base_name=base_name,
        title=title,
        sheet_name=sheet_name,
        columns=columns,
        records=records,
    )
    return EXPORTERS[fmt](request, sink, today=today)
