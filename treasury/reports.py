#!/usr/bin/env python3
"""
Monthly treasury report composition
Arranges the movement-type catalog into the fixed "planilla de tesorería" layout

The composer only builds a document model (sections, rows, labels, totals).
Drawing it is left to a renderer: render_report_text() here, or
pdf_report.render_report_pdf().
"""

import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from treasury.categorize import index_by_id
from treasury.config import (
    DEFAULT_CURRENCY, EXPENSE_GROUPS, EXPENSE_SECTION_TITLE, INCOME_SECTION_TITLE,
    MONTH_NAMES, ORGANIZATION_NAME, OTHER_GROUP_LABEL, PASTOR_SIGNATURE, REPORT_TITLE,
    STAMP_LABEL, TREASURER_SIGNATURE,
)
from treasury.currency import format_number, get_currency_symbol
from treasury.ledger import is_income
from treasury.models import MovementCategory, MovementType, Transaction

MONTH_PATTERN = re.compile(r'^(\d{4})-(\d{2})$')


@dataclass(frozen=True)
class ReportRow:
    label: str
    amount: float
    amount_text: str  # blank when the amount is zero
    movement_type_id: Optional[str] = None


@dataclass(frozen=True)
class ReportSection:
    title: str
    rows: Tuple[ReportRow, ...]
    total_label: str
    total: float
    total_amount_text: str
    subsections: Tuple['ReportSection', ...] = ()


@dataclass(frozen=True)
class ReportDocument:
    """Report data structure handed to a renderer"""
    title: str
    month: str  # YYYY-MM
    month_name: str
    year: str
    organization: str
    currency: Optional[str]
    sections: Tuple[ReportSection, ...]
    income_total: float
    expense_total: float
    transaction_count: int
    signatures: Tuple[str, str] = (TREASURER_SIGNATURE, PASTOR_SIGNATURE)
    stamp_label: str = STAMP_LABEL

    @property
    def balance(self) -> float:
        return self.income_total - self.expense_total


def format_report_amount(amount: float, symbol: str = '$', blank_zero: bool = False) -> str:
    """'$ 1.500,00'; empty string for zero rows when blank_zero is set"""
    if blank_zero and not amount > 0:
        return ''
    return f"{symbol} {format_number(amount)}"


def month_display_name(month: str) -> Tuple[str, str]:
    """'2024-03' -> ('Marzo', '2024')"""
    match = MONTH_PATTERN.match(month or '')
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise ValueError(f"Invalid report month '{month}', expected YYYY-MM")
    name = MONTH_NAMES[int(match.group(2)) - 1]
    return name.capitalize(), match.group(1)


def _type_rows(types: Iterable[MovementType], sums: Dict[str, float],
               symbol: str) -> Tuple[ReportRow, ...]:
    return tuple(
        ReportRow(
            label=mt.name,
            amount=sums.get(mt.id, 0.0),
            amount_text=format_report_amount(sums.get(mt.id, 0.0), symbol, blank_zero=True),
            movement_type_id=mt.id,
        )
        for mt in types
    )


def _subsection(title: str, rows: Tuple[ReportRow, ...], symbol: str) -> ReportSection:
    total = sum(row.amount for row in rows)
    return ReportSection(
        title=title,
        rows=rows,
        total_label=f"SUBTOTAL {title}",
        total=total,
        total_amount_text=format_report_amount(total, symbol),
    )


def compose_monthly_report(transactions: Iterable[Transaction],
                           movement_types: Sequence[MovementType],
                           month: str,
                           expense_groups: Sequence[str] = None,
                           organization: str = ORGANIZATION_NAME,
                           currency: str = None,
                           default_currency: str = DEFAULT_CURRENCY) -> ReportDocument:
    """
    Build the monthly report document.

    Args:
        transactions: Transaction snapshot; only `month` is used and rows
            flagged exclude_from_pdf are left out
        movement_types: Catalog, in display order
        month: Report period as YYYY-MM
        expense_groups: Ordered sub-category labels for the expense section
        organization: Name printed in the header
        currency: Restrict to one currency (None keeps every currency)
        default_currency: Currency for legacy records without one

    Returns:
        ReportDocument

    Raises:
        ValueError: month is not YYYY-MM
    """
    month_name, year = month_display_name(month)
    if expense_groups is None:
        expense_groups = EXPENSE_GROUPS
    symbol = get_currency_symbol(currency) if currency else '$'
    types_by_id = index_by_id(movement_types)

    period = [
        t for t in transactions
        if t.date.startswith(month)
        and not t.exclude_from_pdf
        and (currency is None or t.currency_or(default_currency) == currency)
    ]

    sums = defaultdict(float)
    for t in period:
        sums[t.movement_type_id] += t.amount

    income_total = sum(t.amount for t in period if is_income(t, types_by_id))
    # Unresolved movement types count as expenses, matching the ledger totals
    expense_total = sum(t.amount for t in period if not is_income(t, types_by_id))

    income_types = [mt for mt in movement_types if mt.category == MovementCategory.INCOME]
    income_section = ReportSection(
        title=INCOME_SECTION_TITLE,
        rows=_type_rows(income_types, sums, symbol),
        total_label=f"TOTAL {INCOME_SECTION_TITLE}",
        total=income_total,
        total_amount_text=format_report_amount(income_total, symbol),
    )

    expense_types = [mt for mt in movement_types if mt.category == MovementCategory.EXPENSE]
    subsections = []
    for group in expense_groups:
        members = [mt for mt in expense_types if mt.sub_category == group]
        subsections.append(_subsection(group, _type_rows(members, sums, symbol), symbol))

    others = [mt for mt in expense_types if (mt.sub_category or '') not in expense_groups]
    if others:
        subsections.append(_subsection(OTHER_GROUP_LABEL, _type_rows(others, sums, symbol), symbol))

    expense_section = ReportSection(
        title=EXPENSE_SECTION_TITLE,
        rows=(),
        total_label=f"TOTAL {EXPENSE_SECTION_TITLE}",
        total=expense_total,
        total_amount_text=format_report_amount(expense_total, symbol),
        subsections=tuple(subsections),
    )

    return ReportDocument(
        title=REPORT_TITLE,
        month=month,
        month_name=month_name,
        year=year,
        organization=organization,
        currency=currency,
        sections=(income_section, expense_section),
        income_total=income_total,
        expense_total=expense_total,
        transaction_count=len(period),
    )


def _section_to_dict(section: ReportSection) -> Dict[str, Any]:
    result = {
        'title': section.title,
        'rows': [{'label': r.label, 'amountText': r.amount_text} for r in section.rows],
        'totalLabel': section.total_label,
        'totalAmountText': section.total_amount_text,
    }
    if section.subsections:
        result['subsections'] = [_section_to_dict(s) for s in section.subsections]
    return result


def report_to_dict(document: ReportDocument) -> Dict[str, Any]:
    """Plain renderer-facing shape of the document"""
    return {
        'title': document.title,
        'period': {
            'month': document.month,
            'monthName': document.month_name,
            'year': document.year,
            'organization': document.organization,
        },
        'sections': [_section_to_dict(s) for s in document.sections],
        'signatures': {
            'treasurer': document.signatures[0],
            'pastor': document.signatures[1],
        },
        'stampLabel': document.stamp_label,
    }


def render_report_text(document: ReportDocument, width: int = 60) -> str:
    """Terminal rendering of the report"""
    lines: List[str] = [
        document.title.center(width),
        f"Mes de: {document.month_name}  de: {document.year}  Iglesia de: {document.organization}",
        "=" * width,
    ]

    def add_rows(rows):
        for row in rows:
            label = row.label if len(row.label) <= width - 20 else row.label[:width - 23] + '...'
            lines.append(f"  {label:<{width - 20}}{row.amount_text:>18}")

    for section in document.sections:
        lines.append("")
        lines.append(section.title.center(width))
        lines.append("-" * width)
        add_rows(section.rows)
        for sub in section.subsections:
            lines.append(f" {sub.title}")
            add_rows(sub.rows)
            lines.append(f"  {sub.total_label:<{width - 20}}{sub.total_amount_text:>18}")
        lines.append("-" * width)
        lines.append(f"{section.total_label:<{width - 18}}{section.total_amount_text:>18}")

    lines.append("")
    lines.append(f"{'BALANCE':<{width - 18}}{format_report_amount(document.balance):>18}")
    return "\n".join(lines)
