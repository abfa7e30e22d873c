#!/usr/bin/env python3
"""
Currency helpers for the treasury ledger
Symbols, Spanish-style number formatting and the accepted-code check
"""

from typing import Iterable

from treasury.config import CURRENCIES

# Common currency symbols for display
CURRENCY_SYMBOLS = {
    "ARS": "$",
    "CLP": "$",
    "UYU": "$U",
    "MXN": "$",
    "COP": "$",
    "USD": "US$",
    "EUR": "€",
    "BRL": "R$",
    "PYG": "₲",
    "BOB": "Bs",
    "PEN": "S/",
    "GBP": "£",
    "CHF": "Fr.",
}

_SWAP_SEPARATORS = str.maketrans({',': '.', '.': ','})


def get_currency_symbol(currency: str) -> str:
    """Get symbol for currency code, fallback to code itself"""
    return CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())


def format_number(amount: float, decimals: int = 2) -> str:
    """1234.5 -> '1.234,50' (dot thousands, comma decimals)"""
    return f"{amount:,.{decimals}f}".translate(_SWAP_SEPARATORS)


def format_amount(amount: float, currency: str, show_symbol: bool = True) -> str:
    """
    Format amount with currency symbol

    Args:
        amount: Amount to format
        currency: Currency code
        show_symbol: Whether to show symbol or code

    Returns:
        Formatted string like "$ 1.234,56" or "1.234,56 USD"
    """
    currency = currency.upper()
    if show_symbol:
        return f"{get_currency_symbol(currency)} {format_number(amount)}"
    return f"{format_number(amount)} {currency}"


def format_signed(amount: float, currency: str) -> str:
    sign = '-' if amount < 0 else ''
    return f"{sign}{format_amount(abs(amount), currency)}"


def is_supported_currency(code: str, currencies: Iterable[str] = None) -> bool:
    """True when `code` is one of the configured currencies"""
    if currencies is None:
        currencies = CURRENCIES
    return bool(code) and code.upper() in {c.upper() for c in currencies}
