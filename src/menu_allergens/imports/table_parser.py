from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..domain.models import ImportWarning, ProductCandidate
from ..domain.tokens import parse_additive_input, parse_allergen_input
from ..domain.warnings import SOURCE_CSV, SOURCE_PASTE, WarningLog
from ..errors import ValidationError
from ..logging import get_logger

LOG = get_logger("table-parser")

NAME_HEADERS: Tuple[str, ...] = ("name", "produkt", "produktname", "gericht", "speise")
ALLERGEN_HEADERS: Tuple[str, ...] = (
    "allergene",
    "allergen",
    "allergenekuerzel",
    "allergenekürzel",
    "allergenkurzel",
    "allergenkürzel",
    "allergenecodes",
)
ADDITIVE_HEADERS: Tuple[str, ...] = (
    "zusatzstoffe",
    "zusatzstoff",
    "zusatzstoffcodes",
    "zusatzstoffkuerzel",
    "zusatzstoffkürzel",
    "zusatzstoffkurzel",
    "additives",
)

CSV_DELIMITERS: Tuple[str, ...] = (",", ";", "\t")

_HEADER_NOISE_RE = re.compile(r"[ _-]+")


class TableParseError(ValidationError):
    pass


@dataclass
class TableParseResult:
    candidates: List[ProductCandidate] = field(default_factory=list)
    warnings: List[ImportWarning] = field(default_factory=list)


def normalize_header(value: Any) -> str:
    return _HEADER_NOISE_RE.sub("", str(value or "").strip().lower())


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def read_field(row: Mapping[Any, Any], allowed_headers: Sequence[str]) -> str:
    """Value of the first column whose header normalizes to one of the aliases."""
    for header, value in row.items():
        if header is None:
            continue
        if normalize_header(header) in allowed_headers:
            return _to_str(value)
    return ""


def build_candidate(
    name_input: str,
    allergens_input: str,
    additives_input: str,
    row_number: int,
    warnings: WarningLog,
    *,
    source: str,
) -> Optional[ProductCandidate]:
    """Build one candidate from raw cells, appending row warnings to ``warnings``.

    A row without a name is skipped before its codes are looked at, so its
    unknown tokens are never reported.
    """
    name = _to_str(name_input).strip()
    if not name:
        warnings.add(f"Zeile {row_number} wurde übersprungen: Produktname fehlt.", source=source, row=row_number)
        return None

    allergens = parse_allergen_input(_to_str(allergens_input))
    additives = parse_additive_input(_to_str(additives_input))

    if allergens.invalid_tokens:
        warnings.add(
            f"Zeile {row_number}: Unbekannte Allergene ignoriert ({', '.join(allergens.invalid_tokens)}).",
            source=source,
            row=row_number,
        )
    if additives.invalid_tokens:
        warnings.add(
            f"Zeile {row_number}: Unbekannte Zusatzstoffe ignoriert ({', '.join(additives.invalid_tokens)}).",
            source=source,
            row=row_number,
        )
    return ProductCandidate(name=name, allergens=allergens.keys, additives=additives.keys)


def parse_header_rows(rows: Iterable[Mapping[Any, Any]], *, source: str = SOURCE_CSV) -> TableParseResult:
    """Parse rows of named fields; row numbers account for the header line."""
    warnings = WarningLog()
    candidates: List[ProductCandidate] = []
    for index, row in enumerate(rows):
        created = build_candidate(
            read_field(row, NAME_HEADERS),
            read_field(row, ALLERGEN_HEADERS),
            read_field(row, ADDITIVE_HEADERS),
            index + 2,
            warnings,
            source=source,
        )
        if created is not None:
            candidates.append(created)
    return TableParseResult(candidates=candidates, warnings=warnings.entries)


def looks_like_header_row(row: Sequence[Any]) -> bool:
    return any(normalize_header(cell) in NAME_HEADERS for cell in row)


def parse_rows_without_header(rows: Sequence[Sequence[Any]], *, source: str = SOURCE_PASTE) -> TableParseResult:
    """Parse positional rows (name, allergens, additives).

    The first row is treated as a header and skipped when any of its cells is a
    known name header.
    """
    warnings = WarningLog()
    candidates: List[ProductCandidate] = []
    has_header = len(rows) > 0 and looks_like_header_row(rows[0])
    data_rows = rows[1:] if has_header else rows
    offset = 2 if has_header else 1

    for index, row in enumerate(data_rows):
        cells = list(row) + [""] * (3 - len(row))
        created = build_candidate(cells[0], cells[1], cells[2], index + offset, warnings, source=source)
        if created is not None:
            candidates.append(created)
    return TableParseResult(candidates=candidates, warnings=warnings.entries)


def _strip_bom(text: str) -> str:
    return text[1:] if text.startswith("\ufeff") else text


def detect_csv_delimiter(text: str) -> str:
    """Pick the delimiter occurring most often in the first non-blank line."""
    first_line = next((line for line in text.splitlines() if line.strip()), "")
    counts = [(first_line.count(d), d) for d in CSV_DELIMITERS]
    best_count, best = max(counts, key=lambda pair: pair[0])
    return best if best_count > 0 else ","


def parse_csv_text(text: str) -> TableParseResult:
    """Parse CSV text with a header row (``Name, Allergene, Zusatzstoffe``)."""
    content = _strip_bom(text or "")
    if not content.strip():
        LOG.info("CSV import received empty content")
        return TableParseResult()
    delimiter = detect_csv_delimiter(content)
    LOG.debug("CSV delimiter detected: %r", delimiter)
    try:
        reader = csv.DictReader(io.StringIO(content, newline=""), delimiter=delimiter)
        rows = list(reader)
    except csv.Error as exc:
        LOG.warning("CSV import failed: %s", exc)
        return TableParseResult(warnings=[ImportWarning(message=f"CSV-Fehler: {exc}", source=SOURCE_CSV)])
    result = parse_header_rows(rows, source=SOURCE_CSV)
    LOG.info("CSV import: %d row(s) -> %d candidate(s), %d warning(s)", len(rows), len(result.candidates), len(result.warnings))
    return result


def paste_delimiter(text: str) -> str:
    return "\t" if "\t" in text else ";"


def parse_pasted_text(text: str) -> TableParseResult:
    """Parse rows pasted from a spreadsheet: tab-separated, else ``;``-separated."""
    trimmed = (text or "").strip()
    if not trimmed:
        raise TableParseError("Bitte zuerst Daten einfügen.")
    delimiter = paste_delimiter(trimmed)
    try:
        reader = csv.reader(io.StringIO(trimmed, newline=""), delimiter=delimiter)
        rows = [row for row in reader if row]
    except csv.Error as exc:
        LOG.warning("Paste import failed: %s", exc)
        return TableParseResult(warnings=[ImportWarning(message=f"Import-Fehler: {exc}", source=SOURCE_PASTE)])
    result = parse_rows_without_header(rows, source=SOURCE_PASTE)
    LOG.info("Paste import: %d row(s) -> %d candidate(s), %d warning(s)", len(rows), len(result.candidates), len(result.warnings))
    return result
