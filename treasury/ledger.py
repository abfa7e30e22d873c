#!/usr/bin/env python3
"""
Ledger aggregation
Per-currency income/expense/balance totals, monthly groups and dashboard series

Income or expense is decided by looking up the movement type at aggregation
time, so editing a type's category changes historical totals. A transaction
whose type is no longer in the catalog counts as an expense.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from treasury.categorize import index_by_id
from treasury.config import DEFAULT_CURRENCY, MONTH_ABBREVIATIONS, TOP_TYPES_LIMIT
from treasury.models import MovementType, Transaction

logger = logging.getLogger(__name__)

BY_MONTH = 'by-month'
BY_RANGE = 'by-range'
MODES = (BY_MONTH, BY_RANGE)


@dataclass(frozen=True)
class CurrencyTotals:
    income: float = 0.0
    expense: float = 0.0

    @property
    def balance(self) -> float:
        return self.income - self.expense

    def to_dict(self) -> Dict[str, float]:
        return {'income': self.income, 'expense': self.expense, 'balance': self.balance}


@dataclass(frozen=True)
class MonthCurrencyGroup:
    """Transactions sharing a calendar month and a currency"""
    month: str  # YYYY-MM
    currency: str
    transactions: Tuple[Transaction, ...]
    income: float
    expense: float

    @property
    def balance(self) -> float:
        return self.income - self.expense


@dataclass(frozen=True)
class ChartPoint:
    key: str  # YYYY-MM or YYYY-MM-DD, sortable
    label: str
    income: float
    expense: float

    def to_dict(self) -> Dict[str, object]:
        return {'periodLabel': self.label, 'income': self.income, 'expense': self.expense}


@dataclass(frozen=True)
class LedgerSummary:
    mode: str
    totals: Dict[str, CurrencyTotals]
    months: Tuple[MonthCurrencyGroup, ...] = ()

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {currency: totals.to_dict() for currency, totals in self.totals.items()}


@dataclass(frozen=True)
class DashboardSummary:
    totals: Dict[str, CurrencyTotals]
    currencies: Tuple[str, ...]
    chart_currency: str
    chart: Tuple[ChartPoint, ...]
    distribution: Tuple[Tuple[str, float], ...]


def is_income(transaction: Transaction, types_by_id: Dict[str, MovementType]) -> bool:
    movement_type = types_by_id.get(transaction.movement_type_id)
    return movement_type is not None and movement_type.is_income


def _check_mode(mode: str):
    if mode not in MODES:
        raise ValueError(f"Unknown grouping mode '{mode}', expected one of {MODES}")


def in_range(transaction: Transaction, start: str = None, end: str = None) -> bool:
    """Inclusive ISO date comparison, open ends allowed"""
    if start and transaction.date < start:
        return False
    if end and transaction.date > end:
        return False
    return True


def aggregate_by_currency(transactions: Iterable[Transaction],
                          movement_types: Iterable[MovementType],
                          default_currency: str = DEFAULT_CURRENCY) -> Dict[str, CurrencyTotals]:
    """Total income and expense per currency code, in first-seen order"""
    types_by_id = index_by_id(movement_types)
    income = defaultdict(float)
    expense = defaultdict(float)
    order = []

    for t in transactions:
        currency = t.currency_or(default_currency)
        if currency not in order:
            order.append(currency)
        if is_income(t, types_by_id):
            income[currency] += t.amount
        else:
            expense[currency] += t.amount

    return {c: CurrencyTotals(income[c], expense[c]) for c in order}


def group_by_month(transactions: Iterable[Transaction],
                   movement_types: Iterable[MovementType],
                   default_currency: str = DEFAULT_CURRENCY,
                   newest_first: bool = False) -> List[MonthCurrencyGroup]:
    """
    Split transactions into (month, currency) groups.

    Groups are ordered by month (chronologically unless `newest_first`) and
    then by currency code.
    """
    types_by_id = index_by_id(movement_types)
    buckets: Dict[Tuple[str, str], List[Transaction]] = defaultdict(list)

    for t in transactions:
        buckets[(t.month, t.currency_or(default_currency))].append(t)

    groups = []
    for (month, currency), members in buckets.items():
        income = sum(t.amount for t in members if is_income(t, types_by_id))
        expense = sum(t.amount for t in members if not is_income(t, types_by_id))
        groups.append(MonthCurrencyGroup(month, currency, tuple(members), income, expense))

    groups.sort(key=lambda g: g.currency)
    groups.sort(key=lambda g: g.month, reverse=newest_first)
    return groups


def aggregate(transactions: Iterable[Transaction],
              movement_types: Sequence[MovementType],
              mode: str = BY_MONTH,
              start: str = None,
              end: str = None,
              default_currency: str = DEFAULT_CURRENCY) -> LedgerSummary:
    """
    Aggregate a transaction snapshot for the dashboard.

    Args:
        transactions: Transactions to aggregate
        movement_types: Catalog used to resolve income/expense
        mode: 'by-month' adds one group per month present; 'by-range'
            restricts to start..end (inclusive) and returns totals only
        start: First ISO date of the range (by-range only)
        end: Last ISO date of the range (by-range only)
        default_currency: Currency for legacy records without one

    Returns:
        LedgerSummary
    """
    _check_mode(mode)
    transactions = list(transactions)

    if mode == BY_RANGE:
        transactions = [t for t in transactions if in_range(t, start, end)]

    totals = aggregate_by_currency(transactions, movement_types, default_currency)
    months = ()
    if mode == BY_MONTH:
        months = tuple(group_by_month(transactions, movement_types, default_currency))

    logger.debug(f"Aggregated {len(transactions)} transactions into {len(totals)} currencies")
    return LedgerSummary(mode=mode, totals=totals, months=months)


def filter_transactions(transactions: Iterable[Transaction],
                        month: str = None,
                        start: str = None,
                        end: str = None,
                        movement_type_id: str = None,
                        search: str = None) -> List[Transaction]:
    """List view filter: period, movement type and detail search, newest first"""
    needle = search.lower() if search else None
    results = []

    for t in transactions:
        if month and not t.date.startswith(month):
            continue
        if not month and not in_range(t, start, end):
            continue
        if movement_type_id and t.movement_type_id != movement_type_id:
            continue
        if needle and needle not in (t.detail or '').lower():
            continue
        results.append(t)

    return sorted(results, key=lambda t: t.date, reverse=True)


def period_label(key: str) -> str:
    """'2024-01' -> 'ene 24', '2024-01-05' -> '05/01'"""
    parts = key.split('-')
    if len(parts) == 3:
        return f"{parts[2]}/{parts[1]}"
    if len(parts) == 2 and parts[1].isdigit() and 1 <= int(parts[1]) <= 12:
        return f"{MONTH_ABBREVIATIONS[int(parts[1]) - 1]} {parts[0][-2:]}"
    return key


def chart_series(transactions: Iterable[Transaction],
                 movement_types: Iterable[MovementType],
                 currency: str,
                 mode: str = BY_MONTH,
                 start: str = None,
                 end: str = None,
                 default_currency: str = DEFAULT_CURRENCY) -> List[ChartPoint]:
    """
    Income/expense series for one currency.

    Monthly points for 'by-month'; daily points inside start..end for
    'by-range'. Points are sorted chronologically.
    """
    _check_mode(mode)
    types_by_id = index_by_id(movement_types)
    income = defaultdict(float)
    expense = defaultdict(float)

    for t in transactions:
        if t.currency_or(default_currency) != currency:
            continue
        if mode == BY_RANGE:
            if not in_range(t, start, end):
                continue
            key = t.date
        else:
            key = t.month

        if is_income(t, types_by_id):
            income[key] += t.amount
        else:
            expense[key] += t.amount

    keys = sorted(set(income) | set(expense))
    return [ChartPoint(k, period_label(k), income[k], expense[k]) for k in keys]


def type_distribution(transactions: Iterable[Transaction],
                      movement_types: Iterable[MovementType],
                      currency: str,
                      limit: int = TOP_TYPES_LIMIT,
                      default_currency: str = DEFAULT_CURRENCY) -> List[Tuple[str, float]]:
    """Largest movement types by amount for one currency"""
    types_by_id = index_by_id(movement_types)
    by_type = defaultdict(float)

    for t in transactions:
        if t.currency_or(default_currency) != currency:
            continue
        movement_type = types_by_id.get(t.movement_type_id)
        if movement_type:
            by_type[movement_type.name] += t.amount

    ordered = sorted(by_type.items(), key=lambda x: x[1], reverse=True)
    return ordered[:max(0, limit)]


def available_currencies(transactions: Iterable[Transaction],
                         default_currency: str = DEFAULT_CURRENCY) -> List[str]:
    seen = []
    for t in transactions:
        currency = t.currency_or(default_currency)
        if currency not in seen:
            seen.append(currency)
    return seen


def pick_chart_currency(currencies: Sequence[str],
                        preferred: str = DEFAULT_CURRENCY) -> str:
    if not currencies or preferred in currencies:
        return preferred
    return currencies[0]


def dashboard_summary(transactions: Iterable[Transaction],
                      movement_types: Sequence[MovementType],
                      mode: str = BY_MONTH,
                      start: str = None,
                      end: str = None,
                      chart_currency: Optional[str] = None,
                      default_currency: str = DEFAULT_CURRENCY) -> DashboardSummary:
    """Everything the dashboard shows: totals, chart series and type split"""
    _check_mode(mode)
    transactions = list(transactions)
    if mode == BY_RANGE:
        transactions = [t for t in transactions if in_range(t, start, end)]

    currencies = available_currencies(transactions, default_currency)
    if chart_currency is None:
        chart_currency = pick_chart_currency(currencies, default_currency)

    return DashboardSummary(
        totals=aggregate_by_currency(transactions, movement_types, default_currency),
        currencies=tuple(currencies),
        chart_currency=chart_currency,
        chart=tuple(chart_series(transactions, movement_types, chart_currency, mode,
                                 start, end, default_currency)),
        distribution=tuple(type_distribution(transactions, movement_types, chart_currency,
                                             default_currency=default_currency)),
    )
