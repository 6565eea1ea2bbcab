from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from dateutil.parser import isoparse

from findash.errors import InvalidRecordError


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


# Server field name -> dataclass attribute for the fields we model explicitly.
_KNOWN_FIELDS = {
    "_id": "id",
    "id": "id",
    "amount": "amount",
    "type": "type",
    "date": "date",
    "description": "description",
    "payee": "payee",
    "notes": "notes",
    "category": "category",
    "paymentMethod": "payment_method",
    "status": "status",
    "tags": "tags",
}


@dataclass(frozen=True)
class Transaction:
    """Read-mirror copy of a server transaction.

    The remote store owns the authoritative record; instances here are
    replaced wholesale, never edited in place.
    """

    id: str
    amount: float
    type: TransactionType
    date: Optional[datetime] = None
    description: str = ""
    payee: Optional[str] = None
    notes: Optional[str] = None
    category: Optional[str] = None
    payment_method: Optional[str] = None
    status: Optional[str] = None
    tags: Tuple[str, ...] = ()
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def signed_amount(self) -> float:
        return self.amount if self.is_income else -self.amount

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Transaction:
        """Build a transaction from the server's JSON representation."""
        raw_id = payload.get("_id") or payload.get("id")
        if not raw_id:
            raise InvalidRecordError(f"Transaction payload has no identifier: {payload!r}")

        try:
            amount = float(payload.get("amount") or 0)
        except (TypeError, ValueError) as exc:
            raise InvalidRecordError(f"Invalid amount for transaction {raw_id}") from exc

        try:
            tx_type = TransactionType(payload.get("type") or TransactionType.EXPENSE.value)
        except ValueError as exc:
            raise InvalidRecordError(f"Unknown transaction type {payload.get('type')!r}") from exc

        return cls(
            id=str(raw_id),
            amount=amount,
            type=tx_type,
            date=_parse_date(payload.get("date")),
            description=payload.get("description") or "",
            payee=payload.get("payee") or None,
            notes=payload.get("notes") or None,
            category=_category_ref(payload.get("category")),
            payment_method=payload.get("paymentMethod") or None,
            status=payload.get("status") or None,
            tags=tuple(str(tag) for tag in payload.get("tags") or ()),
            extra={k: v for k, v in payload.items() if k not in _KNOWN_FIELDS},
        )


def _parse_date(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return isoparse(str(value))
    except (TypeError, ValueError):
        return None


def _category_ref(value: Any) -> Optional[str]:
    # The list endpoint may populate the category document instead of the id.
    if value is None or value == "":
        return None
    if isinstance(value, Mapping):
        ref = value.get("_id") or value.get("id") or value.get("name")
        return str(ref) if ref else None
    return str(value)
