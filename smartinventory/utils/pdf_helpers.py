# smartinventory/utils/pdf_helpers.py

import os
from typing import List, Optional, Tuple

from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

DEFAULT_FONTS = ("Helvetica", "Helvetica-Bold")


def register_fonts(font_path: Optional[str]) -> Tuple[str, str]:
    """
    Register a TrueType font for documents that need glyphs outside the
    standard Type 1 set (e.g. the rupee sign). Returns (regular, bold) font
    names; falls back to Helvetica when no font file is configured.
    """
    if not font_path:
        return DEFAULT_FONTS

    if not os.path.exists(font_path):
        raise FileNotFoundError(f"PDF font not found: {font_path}")

    name = os.path.splitext(os.path.basename(font_path))[0]
    if name not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(name, font_path))
    return name, name


def truncate_to_width(text: str, font: str, size: float, max_width: float, min_chars: int = 10) -> str:
    """
    Shorten `text` with a trailing ellipsis until it fits in `max_width`.
    Never cuts below `min_chars` characters.
    """
    if pdfmetrics.stringWidth(text, font, size) <= max_width:
        return text
    while pdfmetrics.stringWidth(text + "...", font, size) > max_width and len(text) > min_chars:
        text = text[:-1]
    return text + "..."


def wrap_text(text: str, font: str, size: float, max_width: float) -> List[str]:
    """
    Word-wrap `text` into lines no wider than `max_width`. A single word
    wider than the column stays on its own line.
    """
    lines = simpleSplit(text or "", font, size, max_width)
    return lines or [""]
