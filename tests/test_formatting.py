"""
Unit tests for money, date and phone formatting helpers.
"""

import unittest
from datetime import date
from decimal import Decimal

from smartinventory.utils.formatting import (
    amount_in_words,
    clean_phone,
    format_boolean,
    format_currency,
    format_date,
    format_inr,
    group_indian,
    round_money,
    to_decimal,
)


class TestAmountInWords(unittest.TestCase):
    """Indian numbering system spelling."""

    def test_zero(self):
        self.assertEqual(amount_in_words(0), "Zero")

    def test_one_lakh(self):
        self.assertEqual(amount_in_words(100000), "One Lakh")

    def test_mixed_groups(self):
        self.assertEqual(
            amount_in_words(1234567),
            "Twelve Lakh Thirty Four Thousand Five Hundred Sixty Seven",
        )

    def test_crore_and_teens(self):
        self.assertEqual(amount_in_words(20000015), "Two Crore Fifteen")

    def test_round_tens(self):
        self.assertEqual(amount_in_words(1090), "One Thousand Ninety")

    def test_negative_rejected(self):
        with self.assertRaises(ValueError):
            amount_in_words(-1)


class TestMoney(unittest.TestCase):
    """Decimal conversion, rounding and Indian grouping."""

    def test_to_decimal_is_lenient(self):
        self.assertEqual(to_decimal("12.5"), Decimal("12.5"))
        self.assertEqual(to_decimal(None), Decimal("0"))
        self.assertEqual(to_decimal("abc"), Decimal("0"))
        self.assertEqual(to_decimal(""), Decimal("0"))

    def test_round_money_half_up(self):
        self.assertEqual(round_money("2.345"), Decimal("2.35"))
        self.assertEqual(round_money("2.344"), Decimal("2.34"))

    def test_group_indian(self):
        self.assertEqual(group_indian(999), "999")
        self.assertEqual(group_indian(1000), "1,000")
        self.assertEqual(group_indian(1234567), "12,34,567")
        self.assertEqual(group_indian(-123456), "-1,23,456")

    def test_format_inr(self):
        self.assertEqual(format_inr(123456.5), "1,23,456.50")
        self.assertEqual(format_inr("0"), "0.00")
        self.assertEqual(format_inr(10, symbol="Rs. "), "Rs. 10.00")

    def test_format_currency(self):
        self.assertEqual(format_currency(1500), "₹1,500.00")
        self.assertEqual(format_currency(None), "")
        self.assertEqual(format_currency(""), "")


class TestColumnFormatters(unittest.TestCase):
    """Formatters used by the export presets."""

    def test_format_date_iso_string(self):
        self.assertEqual(format_date("2024-01-15T10:30:00Z"), "15/01/2024")

    def test_format_date_date_object(self):
        self.assertEqual(format_date(date(2024, 3, 5)), "05/03/2024")

    def test_format_date_unparseable_passthrough(self):
        self.assertEqual(format_date("yesterday"), "yesterday")
        self.assertEqual(format_date(None), "")

    def test_format_boolean(self):
        self.assertEqual(format_boolean(True), "Yes")
        self.assertEqual(format_boolean(0), "No")


class TestCleanPhone(unittest.TestCase):
    """Phone sanitising for the bill."""

    def test_valid_number_kept(self):
        self.assertEqual(clean_phone("+91 9876543210"), "+91 9876543210")

    def test_letters_stripped(self):
        self.assertEqual(clean_phone("tel:9876543210"), "9876543210")

    def test_short_or_missing(self):
        self.assertEqual(clean_phone("12345"), "Not Provided")
        self.assertEqual(clean_phone(None), "Not Provided")
        self.assertEqual(clean_phone("N/A"), "Not Provided")

    def test_needs_consecutive_digits(self):
        self.assertEqual(clean_phone("98765 43210"), "Not Provided")


if __name__ == "__main__":
    unittest.main()
