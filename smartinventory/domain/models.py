# smartinventory/domain/models.py

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, List, Optional


@dataclass
class Customer:
    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    gst_id: Optional[str] = None


@dataclass
class LineItem:
    """
    One product entry on an invoice.
    """
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    tax_code: Optional[str] = None  # HSN code


@dataclass
class Invoice:
    """
    A bill built at checkout time. Never persisted by this package.
    """
    number: str  # e.g. "INV-20240115-1234"
    date: str  # already formatted for display
    customer: Customer
    items: List[LineItem]
    subtotal: Decimal
    discount_percent: Decimal
    tax_rate_percent: Decimal
    tax_amount: Decimal
    grand_total: Decimal
    payment_method: str
    amount_tendered: Optional[Decimal] = None
    change_due: Optional[Decimal] = None


@dataclass
class CompanyProfile:
    name: str = "SmartInventory Solutions"
    address: str = "123 Business Park, Tech City, State - 500001"
    phone: str = "+91 98765 43210"
    email: str = "info@smartinventory.com"
    website: Optional[str] = "www.smartinventory.com"
    gst_id: str = "22AAAAA0000A1Z5"
    tagline: str = "Smart Inventory Management System"


@dataclass(frozen=True)
class ExportColumn:
    """
    Projection from a record to one rendered cell.
    """
    key: str
    header: str
    width: Optional[int] = None  # character units
    formatter: Optional[Callable[[Any], str]] = None


@dataclass
class ExportRequest:
    base_name: str
    columns: List[ExportColumn]
    records: List[Any]
    sheet_name: Optional[str] = None
    title: Optional[str] = None
    include_date_stamp: bool = True


@dataclass(frozen=True)
class MigrationCounts:
    products: int = 0
    customers: int = 0
    orders: int = 0

    @property
    def total(self) -> int:
        return self.products + self.customers + self.orders


@dataclass(frozen=True)
class MigrationOutcome:
    """
    Result of one migration attempt, returned to the caller.
    """
    succeeded: bool
    message: str
    counts: MigrationCounts = field(default_factory=MigrationCounts)
