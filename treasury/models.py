#!/usr/bin/env python3
"""
Ledger records: movement types, centers and transactions

Records are immutable. They convert to and from the camelCase shape used by
the external store (`centerId`, `movementTypeId`, `excludeFromPdf`, ...).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class MovementCategory(str, Enum):
    INCOME = 'INCOME'  # Entrada (positivo)
    EXPENSE = 'EXPENSE'  # Salida (negativo)


@dataclass(frozen=True)
class MovementType:
    id: str
    name: str
    category: MovementCategory
    sub_category: Optional[str] = None  # Only used to group rows in the report

    @property
    def is_income(self) -> bool:
        return self.category == MovementCategory.INCOME

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MovementType':
        return cls(
            id=str(data['id']),
            name=data['name'],
            category=MovementCategory(data['category']),
            sub_category=data.get('subCategory'),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {'id': self.id, 'name': self.name, 'category': self.category.value}
        if self.sub_category is not None:
            result['subCategory'] = self.sub_category
        return result


@dataclass(frozen=True)
class Center:
    id: str
    name: str
    code: str = ''
    address: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    responsible: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Center':
        return cls(
            id=str(data['id']),
            name=data['name'],
            code=data.get('code', ''),
            address=data.get('address'),
            city=data.get('city'),
            zip_code=data.get('zipCode'),
            phone=data.get('phone'),
            email=data.get('email'),
            responsible=data.get('responsible'),
        )


@dataclass(frozen=True)
class Transaction:
    id: str
    date: str  # YYYY-MM-DD, not validated against the calendar
    center_id: str
    movement_type_id: str
    detail: str
    amount: float  # always >= 0, the sign comes from the movement type
    currency: Optional[str]  # None only on legacy records
    attachment: Optional[str] = None
    exclude_from_pdf: bool = False

    @property
    def month(self) -> str:
        return self.date[:7]

    def currency_or(self, default: str) -> str:
        return self.currency or default

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=str(data['id']),
            date=data['date'],
            center_id=data.get('centerId', ''),
            movement_type_id=data.get('movementTypeId', ''),
            detail=data.get('detail', ''),
            amount=float(data.get('amount', 0)),
            currency=data.get('currency') or None,
            attachment=data.get('attachment') or None,
            exclude_from_pdf=bool(data.get('excludeFromPdf', False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'id': self.id,
            'date': self.date,
            'centerId': self.center_id,
            'movementTypeId': self.movement_type_id,
            'detail': self.detail,
            'amount': self.amount,
            'currency': self.currency,
        }
        if self.attachment:
            result['attachment'] = self.attachment
        if self.exclude_from_pdf:
            result['excludeFromPdf'] = True
        return result
