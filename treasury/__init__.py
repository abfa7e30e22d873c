"""
Treasury ledger: spreadsheet import, per-currency aggregation and the monthly
treasury report.
"""

from treasury.categorize import classify_movement, normalize_text
from treasury.csv_import import (
    CSVImportError, ImportResult, detect_delimiter, import_csv, import_csv_file,
    parse_amount, parse_csv_line, parse_currency, parse_date,
)
from treasury.ledger import aggregate, dashboard_summary, group_by_month
from treasury.models import Center, MovementCategory, MovementType, Transaction
from treasury.reports import compose_monthly_report

__version__ = "1.0.0"
