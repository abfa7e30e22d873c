#!/usr/bin/env python3
"""
Treasury ledger command line
Main entry point with all treasury commands

Supports:
- CSV import from spreadsheet exports (Google Sheets, Excel)
- Per-currency balances and monthly groups
- Monthly treasury report as PDF or text
- Dashboard charts
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from treasury.config import get_user_config
from treasury.models import MovementCategory

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Treasury ledger commands")
    parser.add_argument('--transactions', '-t', help='Transactions JSON file (overrides config)')
    parser.add_argument('--catalog', help='Catalog JSON file (overrides config)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Import command (CSV import)
    import_parser = subparsers.add_parser('import', help='Import transactions from a CSV export')
    import_parser.add_argument('file', help='Path to CSV file')
    import_parser.add_argument('--dry-run', action='store_true', help='Parse and report, store nothing')

    # Balance command
    balance_parser = subparsers.add_parser('balance', help='Show income, expense and balance per currency')
    balance_parser.add_argument('--start', help='First date (YYYY-MM-DD)')
    balance_parser.add_argument('--end', help='Last date (YYYY-MM-DD)')

    # Months command
    months_parser = subparsers.add_parser('months', help='Show totals per month and currency')
    months_parser.add_argument('--currency', '-c', help='Only this currency')

    # Report command
    report_parser = subparsers.add_parser('report', help='Generate the monthly treasury report')
    report_parser.add_argument('month', help='Month (YYYY-MM format)')
    report_parser.add_argument('--output', '-o', help='Output PDF path')
    report_parser.add_argument('--currency', '-c', help='Only include this currency')
    report_parser.add_argument('--text', action='store_true', help='Print the report instead of writing a PDF')

    # Chart command
    chart_parser = subparsers.add_parser('chart', help='Generate dashboard charts')
    chart_parser.add_argument('--currency', '-c', help='Chart currency (default: base currency)')
    chart_parser.add_argument('--start', help='First date (YYYY-MM-DD), switches to daily points')
    chart_parser.add_argument('--end', help='Last date (YYYY-MM-DD)')
    chart_parser.add_argument('--output-dir', help='Directory for the PNG files')

    # Types command
    subparsers.add_parser('types', help='List the movement-type catalog')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    config = get_user_config()
    if args.transactions:
        config['transactions_file'] = args.transactions
    if args.catalog:
        config['catalog_file'] = args.catalog

    if args.command == 'import':
        return cmd_import(config, args.file, args.dry_run)
    elif args.command == 'balance':
        return cmd_balance(config, args.start, args.end)
    elif args.command == 'months':
        return cmd_months(config, args.currency)
    elif args.command == 'report':
        return cmd_report(config, args.month, args.output, args.currency, args.text)
    elif args.command == 'chart':
        return cmd_chart(config, args.currency, args.start, args.end, args.output_dir)
    elif args.command == 'types':
        return cmd_types(config)
    else:
        parser.print_help()
        return 1


# ============================================================================
# Import Command
# ============================================================================

def cmd_import(config: Dict[str, Any], file_path: str, dry_run: bool = False) -> int:
    """Import transactions from CSV file"""
    from treasury.csv_import import CSVImportError, import_csv_file
    from treasury.store import append_transactions, load_catalog

    try:
        centers, movement_types = load_catalog(config['catalog_file'])
        path = Path(file_path).expanduser().resolve()

        print(f"Importing: {path.name}")
        result = import_csv_file(
            str(path),
            centers,
            movement_types,
            default_currency=config['default_currency'],
            default_center_id=config['default_center_id'],
        )
    except CSVImportError as e:
        print(f"Error importing CSV: {e}")
        return 1
    except (OSError, KeyError, ValueError) as e:
        print(f"Error loading catalog: {e}")
        return 1

    if not result.success:
        print(f"Import failed: {result.reason}")
        return 1

    print(f"Delimiter: '{result.delimiter}'")
    print(f"Total rows: {result.total_rows}")
    print(f"Valid records: {result.imported_count}")
    print(f"Skipped: {result.skipped}")
    if result.unmatched:
        print(f"Unclassified (tagged as unknown type): {result.unmatched}")
    for err in result.errors[:5]:
        print(f"  - {err}")

    if not result.imported:
        print()
        print("No valid records found to import.")
        return 1

    if dry_run:
        print()
        print("Dry run, nothing stored.")
        return 0

    try:
        stored = append_transactions(
            config['transactions_file'], result.imported, config['currencies']
        )
    except ValueError as e:
        print(f"Import rejected: {e}")
        print("Add the currency to 'currencies' in the config file to accept it.")
        return 1

    print(f"Imported: {stored} new transactions")
    return 0


# ============================================================================
# Dashboard Commands
# ============================================================================

def cmd_balance(config: Dict[str, Any], start: str = None, end: str = None) -> int:
    """Show income, expense and balance per currency"""
    from treasury.currency import format_amount, format_signed
    from treasury.ledger import BY_MONTH, BY_RANGE, aggregate
    from treasury.store import load_catalog, load_transactions

    try:
        _, movement_types = load_catalog(config['catalog_file'])
        transactions = load_transactions(config['transactions_file'])
    except (OSError, KeyError, ValueError) as e:
        print(f"Error loading ledger: {e}")
        return 1

    mode = BY_RANGE if (start or end) else BY_MONTH
    summary = aggregate(transactions, movement_types, mode=mode, start=start, end=end,
                        default_currency=config['default_currency'])

    print("Balances")
    if mode == BY_RANGE:
        print(f"({start or '...'} to {end or '...'})")
    print("=" * 50)

    if not summary.totals:
        print()
        print("No transactions recorded yet.")
        print("Run 'treasury import <csv>' to import a spreadsheet export.")
        return 0

    for currency, totals in summary.totals.items():
        print()
        print(f"  {currency}")
        print(f"    Entradas: {format_amount(totals.income, currency):>20}")
        print(f"    Salidas:  {format_amount(totals.expense, currency):>20}")
        print(f"    Balance:  {format_signed(totals.balance, currency):>20}")

    return 0


def cmd_months(config: Dict[str, Any], currency: str = None) -> int:
    """Show totals per month and currency, newest first"""
    from treasury.currency import format_number
    from treasury.ledger import group_by_month, period_label
    from treasury.store import load_catalog, load_transactions

    try:
        _, movement_types = load_catalog(config['catalog_file'])
        transactions = load_transactions(config['transactions_file'])
    except (OSError, KeyError, ValueError) as e:
        print(f"Error loading ledger: {e}")
        return 1

    groups = group_by_month(transactions, movement_types,
                            default_currency=config['default_currency'], newest_first=True)
    if currency:
        groups = [g for g in groups if g.currency == currency.upper()]

    if not groups:
        print("No transactions for the selected filters.")
        return 0

    print(f"{'Mes':<10} {'Moneda':<7} {'Entradas':>14} {'Salidas':>14} {'Balance':>14} {'Mov.':>5}")
    print("-" * 69)
    for g in groups:
        print(f"{period_label(g.month):<10} {g.currency:<7} {format_number(g.income):>14} "
              f"{format_number(g.expense):>14} {format_number(g.balance):>14} {len(g.transactions):>5}")

    return 0


def cmd_report(config: Dict[str, Any], month: str, output: str = None,
               currency: str = None, text: bool = False) -> int:
    """Generate the monthly treasury report"""
    from treasury.ledger import available_currencies, filter_transactions
    from treasury.pdf_report import default_report_path, render_report_pdf
    from treasury.reports import compose_monthly_report, render_report_text
    from treasury.store import load_catalog, load_transactions

    try:
        _, movement_types = load_catalog(config['catalog_file'])
        transactions = load_transactions(config['transactions_file'])
        document = compose_monthly_report(
            transactions,
            movement_types,
            month,
            expense_groups=config['expense_groups'],
            organization=config['organization'],
            currency=currency.upper() if currency else None,
            default_currency=config['default_currency'],
        )
    except (OSError, KeyError, ValueError) as e:
        print(f"Error generating report: {e}")
        return 1

    if document.transaction_count == 0:
        print(f"No transactions for {month}")
        return 1

    if not currency:
        reported = [t for t in filter_transactions(transactions, month=month) if not t.exclude_from_pdf]
        currencies = available_currencies(reported, config['default_currency'])
        if len(currencies) > 1:
            logger.warning(f"Report for {month} sums {len(currencies)} currencies into one total")
            print(f"Warning: {month} mixes {', '.join(sorted(currencies))}; totals add them together. "
                  f"Use --currency to report one at a time.")

    if text:
        print(render_report_text(document))
        return 0

    path = render_report_pdf(document, output or str(default_report_path(month)))
    print(f"Report saved: {path}")
    return 0


def cmd_chart(config: Dict[str, Any], currency: str = None, start: str = None,
              end: str = None, output_dir: str = None) -> int:
    """Generate dashboard charts"""
    from treasury.charts import cleanup_old_charts, create_monthly_flow_chart, create_type_distribution_chart
    from treasury.ledger import BY_MONTH, BY_RANGE, dashboard_summary
    from treasury.store import load_catalog, load_transactions

    try:
        _, movement_types = load_catalog(config['catalog_file'])
        transactions = load_transactions(config['transactions_file'])
    except (OSError, KeyError, ValueError) as e:
        print(f"Error loading ledger: {e}")
        return 1

    mode = BY_RANGE if (start or end) else BY_MONTH
    summary = dashboard_summary(
        transactions, movement_types, mode=mode, start=start, end=end,
        chart_currency=currency.upper() if currency else None,
        default_currency=config['default_currency'],
    )

    directory = Path(output_dir).expanduser() if output_dir else None
    flow_path = create_monthly_flow_chart(summary.chart, summary.chart_currency, directory)
    types_path = create_type_distribution_chart(summary.distribution, summary.chart_currency, directory)

    if not flow_path and not types_path:
        print(f"No {summary.chart_currency} data to chart")
        return 1

    if flow_path:
        print(f"Chart saved: {flow_path}")
    if types_path:
        print(f"Chart saved: {types_path}")

    if directory is None:
        cleanup_old_charts()
    return 0


def cmd_types(config: Dict[str, Any]) -> int:
    """List the movement-type catalog grouped by category"""
    from treasury.store import load_catalog

    try:
        _, movement_types = load_catalog(config['catalog_file'])
    except (OSError, KeyError, ValueError) as e:
        print(f"Error loading catalog: {e}")
        return 1

    for category, title in ((MovementCategory.INCOME, "Entradas"), (MovementCategory.EXPENSE, "Salidas")):
        print(title)
        print("-" * 50)
        for mt in movement_types:
            if mt.category == category:
                group = f"  [{mt.sub_category}]" if mt.sub_category else ""
                print(f"  {mt.id:<28} {mt.name}{group}")
        print()

    return 0


if __name__ == '__main__':
    sys.exit(main())
