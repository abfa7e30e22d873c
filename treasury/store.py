#!/usr/bin/env python3
"""
JSON snapshot storage for the catalog and the transaction list

Reads whole snapshots and appends imported batches. There is no deduplication:
importing the same file twice stores its rows twice.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from treasury.config import CATALOG_FILE, CURRENCIES
from treasury.currency import is_supported_currency
from treasury.models import Center, MovementType, Transaction

logger = logging.getLogger(__name__)

FILE_PERMISSIONS = 0o600  # Owner read/write only


def load_catalog(path: str = None) -> Tuple[Tuple[Center, ...], Tuple[MovementType, ...]]:
    """
    Load centers and movement types.

    Args:
        path: Catalog JSON file; the bundled seed catalog when None

    Returns:
        (centers, movement_types) in file order
    """
    catalog_path = Path(path).expanduser() if path else CATALOG_FILE
    with open(catalog_path, encoding='utf-8') as f:
        data = json.load(f)

    centers = tuple(Center.from_dict(c) for c in data.get('centers', []))
    movement_types = tuple(MovementType.from_dict(m) for m in data.get('movementTypes', []))
    logger.debug(f"Loaded {len(centers)} centers and {len(movement_types)} movement types "
                 f"from {catalog_path}")
    return centers, movement_types


def load_transactions(path: str) -> Tuple[Transaction, ...]:
    """Load the transaction snapshot, a missing file is an empty ledger"""
    file_path = Path(path).expanduser()
    if not file_path.exists():
        return ()

    with open(file_path, encoding='utf-8') as f:
        data = json.load(f)

    return tuple(Transaction.from_dict(t) for t in data.get('transactions', []))


def check_currencies(transactions: Iterable[Transaction],
                     currencies: Sequence[str] = None) -> List[str]:
    """Problems for transactions whose currency is not configured"""
    if currencies is None:
        currencies = CURRENCIES
    return [
        f"{t.date} {t.detail!r}: currency {t.currency!r} is not one of {list(currencies)}"
        for t in transactions
        if not is_supported_currency(t.currency, currencies)
    ]


def save_transactions(path: str, transactions: Iterable[Transaction]) -> None:
    file_path = Path(path).expanduser()
    file_path.parent.mkdir(parents=True, exist_ok=True)

    payload = {'transactions': [t.to_dict() for t in transactions]}
    tmp_path = file_path.with_suffix(file_path.suffix + '.tmp')
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    tmp_path.chmod(FILE_PERMISSIONS)
    tmp_path.replace(file_path)


def append_transactions(path: str,
                        batch: Sequence[Transaction],
                        currencies: Sequence[str] = None) -> int:
    """
    Append an imported batch to the snapshot.

    Args:
        path: Transactions JSON file (created if missing)
        batch: New transactions
        currencies: Accepted currency codes, config CURRENCIES when None

    Returns:
        Number of transactions written

    Raises:
        ValueError: a transaction carries a currency that is not configured;
            nothing is written in that case
    """
    problems = check_currencies(batch, currencies)
    if problems:
        raise ValueError(f"{len(problems)} transaction(s) rejected: {problems[0]}")

    existing = load_transactions(path)
    save_transactions(path, existing + tuple(batch))
    logger.info(f"Stored {len(batch)} transactions in {path}")
    return len(batch)
