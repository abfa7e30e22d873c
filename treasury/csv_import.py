#!/usr/bin/env python3
"""
CSV Import Module for the treasury ledger

Imports the delimited text exports produced by spreadsheet tools (Google Sheets,
Excel, LibreOffice) into candidate transactions. Handles comma and semicolon
exports, Latin-American number formats, day/month/year dates and free-text
movement descriptions that are reconciled against the movement-type catalog.

Nothing here writes to storage: the result is a list of new records for the
caller to persist.
"""

import hashlib
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from treasury.categorize import build_type_index, classify_movement, normalize_text
from treasury.config import (
    DEFAULT_CURRENCY, IMPORTED_DETAIL, MAX_REPORTED_ERRORS, UNKNOWN_MOVEMENT_TYPE_ID,
)
from treasury.models import Center, MovementType, Transaction

logger = logging.getLogger(__name__)

# Header names, normalized (lowercase, no accents). Earlier candidates win.
DATE_COLUMN = ['fecha']
AMOUNT_COLUMN = ['monto2', 'monto']
DETAIL_COLUMN = ['detalle']
CURRENCY_COLUMN = ['moneda']
TYPE_COLUMN = ['descripcion_tipo_movimiento']
# Used when TYPE_COLUMN is absent; whichever comes first in the header wins
TYPE_FALLBACK_COLUMNS = ['tipo_movimiento', 'descripcion']

CURRENCY_CODES = r'(ARS|USD|EUR|CLP|UYU|BRL|PYG|BOB|PEN|COP|MXN|GBP|CHF)'

DEFAULT_CENTER = 'default'


class CSVImportError(Exception):
    """Raised when an import file cannot be read at all"""
    pass


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one import run"""
    success: bool
    imported: Tuple[Transaction, ...] = ()
    skipped: int = 0
    total_rows: int = 0
    unmatched: int = 0  # rows tagged with the unknown movement type
    delimiter: Optional[str] = None
    headers: Tuple[str, ...] = ()
    reason: Optional[str] = None
    errors: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def imported_count(self) -> int:
        return len(self.imported)


def parse_csv_line(line: str, delimiter: str = ',') -> List[str]:
    """
    Split one line into fields, honouring double-quoted fields.

    `""` inside quotes is a literal quote. An unterminated quote runs to the
    end of the line. Never raises.
    """
    fields = []
    current = []
    in_quote = False
    i = 0

    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quote and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quote = not in_quote
        elif char == delimiter and not in_quote:
            fields.append(''.join(current))
            current = []
        else:
            current.append(char)
        i += 1

    fields.append(''.join(current))
    return fields


def detect_delimiter(header_line: str) -> str:
    """Pick ';' or ',' from the header line, ties go to ';'"""
    comma_count = header_line.count(',')
    semicolon_count = header_line.count(';')
    return ';' if semicolon_count >= comma_count else ','


def parse_amount(value: Optional[str]) -> float:
    """
    Parse amount string to float, handling Latin-American and US formats.

    "1.234,50" -> 1234.5, "1234,50" -> 1234.5, "1234.50" -> 1234.5

    Args:
        value: Amount as string (may include currency symbols, spaces, etc.)

    Returns:
        Parsed float, or nan when the value cannot be parsed
    """
    if value is None:
        return math.nan

    value = str(value).strip()

    # Remove currency codes and symbols
    value = re.sub(r'^' + CURRENCY_CODES + r'\s*', '', value, flags=re.IGNORECASE)
    value = re.sub(r'\s*' + CURRENCY_CODES + r'$', '', value, flags=re.IGNORECASE)
    value = re.sub(r'[$€£¥₣\s]', '', value)

    if not value:
        return math.nan

    # Handle parentheses for negative numbers
    if value.startswith('(') and value.endswith(')'):
        value = '-' + value[1:-1]

    if '.' in value and ',' in value:
        value = value.replace('.', '')  # Remove thousand separators
        value = value.replace(',', '.')  # Convert decimal separator
    elif ',' in value:
        value = value.replace(',', '.')

    try:
        amount = float(value)
    except ValueError:
        return math.nan

    if not math.isfinite(amount):
        return math.nan
    return amount


def parse_date(value: Optional[str], today: date = None) -> str:
    """
    Convert dd/mm/yyyy to ISO yyyy-mm-dd.

    Empty values become `today` (the processing date by default). Values
    without '/' are returned as they are. No calendar validation happens.
    """
    value = (value or '').strip()

    if '/' in value:
        parts = value.split('/')
        if len(parts) == 3:
            day, month, year = (p.strip() for p in parts)
            return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
        return value

    if not value:
        return (today or date.today()).isoformat()

    return value


def parse_currency(value: Optional[str], default: str = DEFAULT_CURRENCY) -> str:
    """Sanitize a currency cell to a three-letter uppercase code"""
    code = re.sub(r'[^A-Z]', '', (value or default).upper())
    if len(code) != 3:
        return default
    return code


def find_column(headers: Sequence[str], candidates: Sequence[str]) -> Optional[int]:
    """
    Find column index from list of candidate names.

    Args:
        headers: Normalized CSV headers
        candidates: Possible column names, most preferred first

    Returns:
        Column index or None
    """
    for candidate in candidates:
        if candidate in headers:
            return list(headers).index(candidate)
    return None


def find_first_column(headers: Sequence[str], names: Sequence[str]) -> Optional[int]:
    """Leftmost column whose header is any of `names`"""
    for i, header in enumerate(headers):
        if header in names:
            return i
    return None


def create_transaction_id(line_number: int, booking_date: str, amount: float,
                          currency: str, description: str) -> str:
    """
    Deterministic id for an imported row.

    The line number is part of the key, so two identical rows in one file stay
    two transactions.
    """
    desc_normalized = ' '.join(description.lower().split()) if description else ''
    key = f"{line_number}|{booking_date}|{amount:.2f}|{currency}|{desc_normalized}"
    return hashlib.md5(key.encode('utf-8')).hexdigest()


def _cell(cols: Sequence[str], index: Optional[int]) -> str:
    if index is None or index >= len(cols):
        return ''
    return cols[index]


def _split_lines(csv_content: str) -> List[str]:
    csv_content = csv_content.lstrip('\ufeff')
    return [line for line in re.split(r'\r?\n', csv_content) if line.strip()]


def import_csv(csv_content: str,
               centers: Sequence[Center],
               movement_types: Sequence[MovementType],
               default_currency: str = DEFAULT_CURRENCY,
               default_center_id: str = None,
               today: date = None) -> ImportResult:
    """
    Reconcile a spreadsheet export against the catalog.

    Args:
        csv_content: Raw file text, first line is the header
        centers: Center catalog; imported rows go to `default_center_id` or
            the first center
        movement_types: Movement-type catalog used for classification
        default_currency: Currency for rows without a usable currency cell
        default_center_id: Center assigned to every imported row
        today: Date used for rows with an empty date cell

    Returns:
        ImportResult. A missing date or amount column gives success=False
        with the reason and the detected headers; nothing is imported.
        A header without data rows is a successful, empty import.
    """
    lines = _split_lines(csv_content)
    if not lines:
        reason = "File is empty"
        logger.warning(f"Import aborted: {reason}")
        return ImportResult(success=False, reason=reason)

    delimiter = detect_delimiter(lines[0])
    headers = tuple(normalize_text(h) for h in parse_csv_line(lines[0], delimiter))
    logger.debug(f"Detected delimiter {delimiter!r}, headers: {list(headers)}")

    date_col = find_column(headers, DATE_COLUMN)
    amount_col = find_column(headers, AMOUNT_COLUMN)
    detail_col = find_column(headers, DETAIL_COLUMN)
    currency_col = find_column(headers, CURRENCY_COLUMN)
    type_col = find_column(headers, TYPE_COLUMN)
    if type_col is None:
        type_col = find_first_column(headers, TYPE_FALLBACK_COLUMNS)

    if date_col is None or amount_col is None:
        reason = (
            "Required columns 'Fecha' and 'Monto2' (or 'Monto') not found. "
            f"Detected columns: {', '.join(headers)}"
        )
        logger.warning(f"Import aborted: {reason}")
        return ImportResult(
            success=False,
            reason=reason,
            headers=headers,
            delimiter=delimiter,
            total_rows=len(lines) - 1,
        )

    if type_col is None:
        logger.warning(
            "No 'Descripcion_Tipo_Movimiento' column found, classifying from 'Detalle'"
        )

    if default_center_id:
        center_id = default_center_id
    elif centers:
        center_id = centers[0].id
    else:
        center_id = DEFAULT_CENTER

    index = build_type_index(movement_types)

    transactions = []
    errors = []
    skipped = 0
    unmatched = 0

    for line_number, line in enumerate(lines[1:], start=2):
        try:
            cols = [c.strip() for c in parse_csv_line(line, delimiter)]

            raw_amount = _cell(cols, amount_col)
            amount = parse_amount(raw_amount)
            if math.isnan(amount):
                skipped += 1
                errors.append(f"Row {line_number}: could not parse amount '{raw_amount}'")
                continue
            if amount == 0:
                skipped += 1
                continue

            booking_date = parse_date(_cell(cols, date_col), today=today)

            detail_text = _cell(cols, detail_col)
            type_text = _cell(cols, type_col) or detail_text
            movement_type = classify_movement(type_text, (), index=index)
            if movement_type is None:
                unmatched += 1
                logger.debug(f"Row {line_number}: no movement type for '{type_text}'")

            currency = parse_currency(_cell(cols, currency_col) or None, default=default_currency)
            amount = abs(amount)
            detail = detail_text or type_text or IMPORTED_DETAIL

            transactions.append(Transaction(
                id=create_transaction_id(line_number, booking_date, amount, currency,
                                         f"{type_text} {detail}"),
                date=booking_date,
                center_id=center_id,
                movement_type_id=movement_type.id if movement_type else UNKNOWN_MOVEMENT_TYPE_ID,
                detail=detail,
                amount=amount,
                currency=currency,
            ))

        except Exception as e:
            skipped += 1
            errors.append(f"Row {line_number}: {e}")
            logger.debug(f"Row {line_number} skipped: {e}")

    logger.info(
        f"Parsed {len(transactions)} transactions, skipped {skipped}, "
        f"unclassified {unmatched}"
    )

    return ImportResult(
        success=True,
        imported=tuple(transactions),
        skipped=skipped,
        total_rows=len(lines) - 1,
        unmatched=unmatched,
        delimiter=delimiter,
        headers=headers,
        errors=tuple(errors[:MAX_REPORTED_ERRORS]),
    )


def import_csv_file(file_path: str,
                    centers: Sequence[Center],
                    movement_types: Sequence[MovementType],
                    **kwargs) -> ImportResult:
    """
    Import transactions from a CSV file.

    Args:
        file_path: Path to the export
        centers: Center catalog
        movement_types: Movement-type catalog
        **kwargs: Passed through to import_csv()

    Returns:
        ImportResult

    Raises:
        CSVImportError: file missing, wrong type or undecodable
    """
    path = Path(file_path).expanduser()

    if not path.exists():
        raise CSVImportError(f"File not found: {file_path}")

    if path.suffix.lower() not in ('.csv', '.txt'):
        raise CSVImportError(f"File must be a CSV or TXT file: {file_path}")

    # Try multiple encodings, iso-8859-1 accepts any byte sequence so it goes last
    content = None
    for encoding in ['utf-8-sig', 'cp1252', 'iso-8859-1']:
        try:
            with open(path, 'r', encoding=encoding) as f:
                content = f.read()
            logger.debug(f"Read {path.name} as {encoding}")
            break
        except UnicodeDecodeError:
            continue

    if content is None:
        raise CSVImportError(f"Could not decode {file_path} with any known encoding")

    return import_csv(content, centers, movement_types, **kwargs)
