#!/usr/bin/env python3
"""
Configuration settings for the treasury ledger
Centralized location for all configurable values
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

# Currency settings
DEFAULT_CURRENCY = "ARS"  # Used when a row or legacy record carries no currency
CURRENCIES = ["ARS", "USD"]  # Codes accepted when writing transactions

# Import settings
UNKNOWN_MOVEMENT_TYPE_ID = "unknown"  # Sentinel for rows no catalog entry matched
DEFAULT_CENTER_ID = None  # None = first center of the catalog
IMPORTED_DETAIL = "Importado desde CSV"
MAX_REPORTED_ERRORS = 10  # Row errors kept on an import result

# Report settings
ORGANIZATION_NAME = "Córdoba Capital Peniel"
REPORT_TITLE = "PLANILLA DE TESORERIA del M. C y M."
INCOME_SECTION_TITLE = "ENTRADAS"
EXPENSE_SECTION_TITLE = "SALIDAS"
EXPENSE_GROUPS = [
    "INVERSIONES",
    "GASTOS ESPECIFICOS DE MINISTERIO",
    "GASTOS GENERALES",
]
OTHER_GROUP_LABEL = "OTROS"
TREASURER_SIGNATURE = "Firma y aclaración del tesorero"
PASTOR_SIGNATURE = "Firma y aclaración del pastor"
STAMP_LABEL = "Sello Iglesia"

MONTH_NAMES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]
MONTH_ABBREVIATIONS = [
    "ene", "feb", "mar", "abr", "may", "jun",
    "jul", "ago", "sept", "oct", "nov", "dic",
]

# Dashboard / chart generation
TOP_TYPES_LIMIT = 8  # Entries shown in the type distribution
PIE_CHART_MINIMUM_PERCENTAGE = 0.03  # 3% minimum to show in pie chart (smaller grouped as "Otros")
CHART_RETENTION_DAYS = 7  # Days to keep old chart files before cleanup

# Storage locations
CONFIG_DIR = Path.home() / '.config' / 'treasury'
CHART_DIR = CONFIG_DIR / 'charts'
TRANSACTIONS_FILE = CONFIG_DIR / 'transactions.json'
CATALOG_FILE = Path(__file__).parent / 'data' / 'catalog.json'

DEFAULT_CONFIG = {
    "currencies": CURRENCIES,
    "default_currency": DEFAULT_CURRENCY,
    "default_center_id": DEFAULT_CENTER_ID,
    "organization": ORGANIZATION_NAME,
    "expense_groups": EXPENSE_GROUPS,
    "transactions_file": str(TRANSACTIONS_FILE),
    "catalog_file": str(CATALOG_FILE),
}


def get_config_path() -> Path:
    """Location of the user config file, overridable with TREASURY_CONFIG"""
    override = os.environ.get("TREASURY_CONFIG")
    if override:
        return Path(override).expanduser()
    return CONFIG_DIR / 'config.json'


def get_user_config() -> Dict[str, Any]:
    """
    Load user settings merged over DEFAULT_CONFIG.

    A missing file yields the defaults. A file that is not valid JSON is
    reported and ignored rather than aborting the command.
    """
    config = dict(DEFAULT_CONFIG)
    path = get_config_path()

    if not path.exists():
        return config

    try:
        with open(path, encoding='utf-8') as f:
            user_config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not read config {path}: {e}")
        return config

    if not isinstance(user_config, dict):
        logger.warning(f"Ignoring config {path}: expected a JSON object")
        return config

    config.update({k: v for k, v in user_config.items() if k in DEFAULT_CONFIG})
    config["currencies"] = [str(c).upper() for c in config["currencies"]]
    config["default_currency"] = str(config["default_currency"]).upper()
    return config
