"""
Menu allergen import core.

Turns CSV files, pasted spreadsheet rows, free menu text, photos and PDFs into
a de-duplicated product list with LMIV allergen and additive codes.
"""

__all__ = [
    "config",
    "errors",
    "logging",
    "paths",
    "service",
]
