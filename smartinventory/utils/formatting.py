# smartinventory/utils/formatting.py

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CENTS = Decimal("0.01")

ONES = [
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
    "Seventeen", "Eighteen", "Nineteen",
]
TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]


def to_decimal(value: Any, default: str = "0") -> Decimal:
    """
    Lenient conversion used for money read from forms and local storage.
    "12.5" -> Decimal("12.5"), None / "" / "abc" -> Decimal(default)
    """
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        return Decimal(default)
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal(default)


def round_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def group_indian(n: int) -> str:
    """
    Group digits the Indian way.
    Example: 1234567 -> "12,34,567"
    """
    digits = str(abs(int(n)))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"-{digits}" if int(n) < 0 else digits


def format_inr(amount: Any, symbol: str = "") -> str:
    """
    Format money with Indian grouping and two decimals.
    Example: 123456.5 -> "1,23,456.50"
    """
    value = round_money(amount)
    sign = "-" if value < 0 else ""
    value = abs(value)
    whole = int(value)
    paise = int((value - whole) * 100)
    return f"{sign}{symbol}{group_indian(whole)}.{paise:02d}"


def format_currency(amount: Any) -> str:
    """
    Column formatter for exports: "₹1,23,456.50", blank for missing values.
    """
    if amount is None or amount == "":
        return ""
    return format_inr(amount, symbol="₹")


def format_date(value: Any) -> str:
    """
    Column formatter for exports, en-IN style: "15/01/2024".
    """
    if value is None or value == "":
        return ""
    if isinstance(value, datetime):
        d = value.date()
    elif isinstance(value, date):
        d = value
    else:
        text = str(value).strip().replace("Z", "+00:00")
        try:
            d = datetime.fromisoformat(text).date()
        except ValueError:
            return str(value)
    return d.strftime("%d/%m/%Y")


def format_boolean(value: Any) -> str:
    return "Yes" if value else "No"


def amount_in_words(n: int) -> str:
    """
    Spell a non-negative integer using the Indian numbering system.
    Example: 1234567 -> "Twelve Lakh Thirty Four Thousand Five Hundred Sixty Seven"
    """
    n = int(n)
    if n < 0:
        raise ValueError("amount_in_words expects a non-negative integer")
    if n == 0:
        return "Zero"

    crore, n = divmod(n, 10_000_000)
    lakh, n = divmod(n, 100_000)
    thousand, n = divmod(n, 1_000)
    hundred, rest = divmod(n, 100)

    parts = []
    if crore:
        parts.append(f"{amount_in_words(crore)} Crore")
    if lakh:
        parts.append(f"{amount_in_words(lakh)} Lakh")
    if thousand:
        parts.append(f"{amount_in_words(thousand)} Thousand")
    if hundred:
        parts.append(f"{ONES[hundred]} Hundred")
    if rest:
        if rest < 20:
            parts.append(ONES[rest])
        elif rest % 10:
            parts.append(f"{TENS[rest // 10]} {ONES[rest % 10]}")
        else:
            parts.append(TENS[rest // 10])
    return " ".join(parts)


def clean_phone(phone: Optional[str]) -> str:
    """
    Strip anything that is not part of a phone number. Returns
    "Not Provided" unless at least ten consecutive digits remain.
    """
    if not phone or phone == "N/A":
        return "Not Provided"
    cleaned = re.sub(r"[^\d\s+()-]", "", str(phone)).strip()
    if len(cleaned) >= 10 and re.search(r"\d{10,}", cleaned):
        return cleaned
    return "Not Provided"
