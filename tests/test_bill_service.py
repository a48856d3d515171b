"""
Unit tests for invoice building and bill PDF rendering.
"""

import copy
import os
import unittest
from datetime import datetime
from decimal import Decimal

from fakes import MemorySink

from smartinventory.domain.models import CompanyProfile, Customer
from smartinventory.exceptions import ValidationError
from smartinventory.services.bill_service import (
    ROW_BREAK_LIMIT,
    TOP_MARGIN,
    BillGenerator,
    build_invoice,
    generate_bill,
    plan_item_rows,
    recompute_grand_total,
    validate_invoice,
)

CUSTOMER = {"name": "Asha Rao", "phone": "9876543210", "email": "asha@example.com"}


def _cart(count=2, name="USB-C Charger"):
    return [{"name": f"{name} {i}", "quantity": 2, "price": "100"} for i in range(count)]


class TestBuildInvoice(unittest.TestCase):
    """Totals and defaults of invoices built from a cart."""

    def test_totals_with_discount_and_tax(self):
        invoice = build_invoice(
            [{"name": "Cable", "quantity": 2, "price": "100"}],
            customer=CUSTOMER,
            discount=10,
            tax_rate=18,
        )
        self.assertEqual(invoice.subtotal, Decimal("200.00"))
        self.assertEqual(invoice.tax_amount, Decimal("32.40"))
        self.assertEqual(invoice.grand_total, Decimal("212.40"))
        self.assertEqual(recompute_grand_total(invoice), invoice.grand_total)

    def test_no_discount_no_tax_equals_subtotal(self):
        invoice = build_invoice(_cart(3), customer=CUSTOMER, discount=0, tax_rate=0)
        self.assertEqual(invoice.grand_total, invoice.subtotal)
        self.assertEqual(invoice.subtotal, Decimal("600.00"))

    def test_defaults(self):
        now = datetime(2024, 1, 15, 10, 30)
        invoice = build_invoice([{"price": 50}], now=now)
        self.assertEqual(invoice.customer.name, "Walk-in Customer")
        self.assertEqual(invoice.items[0].name, "Unknown Product")
        self.assertEqual(invoice.items[0].quantity, 1)
        self.assertEqual(invoice.items[0].tax_code, "8517")
        self.assertEqual(invoice.payment_method, "Cash")
        self.assertEqual(invoice.date, "15 January 2024")
        self.assertTrue(invoice.number.startswith("INV-20240115-"))

    def test_change_due(self):
        invoice = build_invoice(
            [{"name": "Cable", "quantity": 1, "price": "90"}],
            customer=CUSTOMER,
            tax_rate=0,
            amount_tendered="100",
        )
        self.assertEqual(invoice.change_due, Decimal("10.00"))

    def test_customer_gst_from_dict(self):
        invoice = build_invoice(_cart(1), customer=dict(CUSTOMER, gstNumber="29ABCDE1234F1Z5"))
        self.assertEqual(invoice.customer.gst_id, "29ABCDE1234F1Z5")


class TestValidateInvoice(unittest.TestCase):
    """Invoices that cannot be laid out."""

    def test_no_items(self):
        invoice = build_invoice(_cart(1), customer=CUSTOMER)
        invoice.items = []
        with self.assertRaises(ValidationError) as ctx:
            validate_invoice(invoice)
        self.assertIn("No items", str(ctx.exception))

    def test_missing_customer_name(self):
        invoice = build_invoice(_cart(1), customer=Customer(name="", phone="9876543210"))
        with self.assertRaises(ValidationError):
            BillGenerator().generate(invoice)


class TestPlanItemRows(unittest.TestCase):
    """Row placement across pages."""

    def test_rows_fit_on_one_page(self):
        placements = plan_item_rows([10, 10, 10], 100)
        self.assertEqual([p.page for p in placements], [0, 0, 0])
        self.assertEqual([p.top for p in placements], [100, 110, 120])

    def test_row_that_would_cross_limit_moves(self):
        placements = plan_item_rows([10, 10], 220, limit=237)
        self.assertEqual(placements[0].page, 0)
        self.assertEqual(placements[1].page, 1)
        self.assertEqual(placements[1].top, TOP_MARGIN)

    def test_oversized_row_on_fresh_page_is_placed(self):
        placements = plan_item_rows([10, 500, 10], 200, limit=237)
        self.assertEqual(placements[1].page, 1)
        self.assertEqual(placements[1].top, TOP_MARGIN)
        self.assertEqual(placements[2].page, 2)


class TestBillGenerator(unittest.TestCase):
    """PDF rendering of a full bill."""

    def setUp(self):
        self.invoice = build_invoice(_cart(3), customer=CUSTOMER, discount=5, amount_tendered="1000")

    def test_generate_returns_pdf(self):
        data = generate_bill(self.invoice, CompanyProfile())
        self.assertTrue(data.startswith(b"%PDF"))

    def test_invoice_not_mutated(self):
        before = copy.deepcopy(self.invoice)
        BillGenerator().generate(self.invoice)
        self.assertEqual(self.invoice, before)

    def test_long_names_spill_over_pages(self):
        long_name = "Wireless Bluetooth Noise Cancelling Over Ear Headphones with Extended Battery"
        invoice = build_invoice(_cart(25, name=long_name), customer=CUSTOMER)

        generator = BillGenerator()
        data = generator.generate(invoice)

        self.assertTrue(data.startswith(b"%PDF"))
        self.assertGreater(generator.page_count, 1)
        self.assertEqual(len(generator.row_placements), 25)
        for place in generator.row_placements:
            self.assertLessEqual(place.top + place.height, ROW_BREAK_LIMIT)

    def test_save_to_file(self):
        sink = MemorySink()
        location = BillGenerator().save_to_file(self.invoice, None, sink)
        filename = f"Bill_{self.invoice.number}.pdf"
        self.assertEqual(location, f"memory://{filename}")
        self.assertTrue(sink.saved[filename].startswith(b"%PDF"))


class TestOpenPrintDialog(unittest.TestCase):
    """Printing falls back to a download when no viewer opens."""

    def setUp(self):
        self.invoice = build_invoice(_cart(1), customer=CUSTOMER)
        self.sink = MemorySink()

    def test_viewer_opened(self):
        opened = []
        path = BillGenerator().open_print_dialog(self.invoice, None, self.sink, opener=lambda p: opened.append(p) or True)
        try:
            self.assertEqual(opened, [path])
            self.assertTrue(os.path.exists(path))
            self.assertEqual(self.sink.saved, {})
        finally:
            os.unlink(path)

    def test_blocked_viewer_saves_download(self):
        location = BillGenerator().open_print_dialog(self.invoice, None, self.sink, opener=lambda p: False)
        self.assertEqual(location, "memory://bill.pdf")
        self.assertTrue(self.sink.saved["bill.pdf"].startswith(b"%PDF"))

    def test_opener_os_error_saves_download(self):
        def broken(path):
            raise OSError("no viewer")

        location = BillGenerator().open_print_dialog(self.invoice, None, self.sink, opener=broken)
        self.assertEqual(location, "memory://bill.pdf")


if __name__ == "__main__":
    unittest.main()
