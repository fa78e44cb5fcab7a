"""Deterministic CSV and paste import."""

from .table_parser import TableParseError, TableParseResult, parse_csv_text, parse_pasted_text

__all__ = ["TableParseError", "TableParseResult", "parse_csv_text", "parse_pasted_text"]
