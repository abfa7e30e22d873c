#!/usr/bin/env python3
"""
Movement-type classification engine
Maps free-text descriptions from spreadsheet exports onto the catalog
"""

import unicodedata
from typing import Dict, Iterable, List, Optional, Tuple

from treasury.models import MovementType

TypeIndex = List[Tuple[str, MovementType]]


def normalize_text(value: Optional[str]) -> str:
    """Lowercase, strip accents and surrounding whitespace"""
    if not value:
        return ''
    decomposed = unicodedata.normalize('NFD', str(value).lower())
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.strip()


def build_type_index(movement_types: Iterable[MovementType]) -> TypeIndex:
    """
    Precompute (normalized name, type) pairs, longest name first.

    The sort is stable, so entries of equal length keep catalog order.
    """
    pairs = [(normalize_text(mt.name), mt) for mt in movement_types]
    pairs = [(name, mt) for name, mt in pairs if name]
    return sorted(pairs, key=lambda pair: len(pair[0]), reverse=True)


def classify_movement(text: Optional[str],
                      movement_types: Iterable[MovementType],
                      index: TypeIndex = None) -> Optional[MovementType]:
    """
    Return the most specific catalog entry whose name appears in `text`.

    Longer names are tried first, so "OFRENDAS MISIONERAS (CAMPAMENTO)" maps to
    "OFRENDAS MISIONERAS" rather than to "OFRENDAS".

    Args:
        text: Free-text description from the import file
        movement_types: Catalog to match against
        index: Optional result of build_type_index() to reuse across rows

    Returns:
        Matching MovementType or None
    """
    needle = normalize_text(text)
    if not needle:
        return None

    if index is None:
        index = build_type_index(movement_types)

    for name, movement_type in index:
        if name in needle:
            return movement_type

    return None


def index_by_id(movement_types: Iterable[MovementType]) -> Dict[str, MovementType]:
    return {mt.id: mt for mt in movement_types}
