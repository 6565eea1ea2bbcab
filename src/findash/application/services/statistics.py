from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from findash.domain.models.core import Transaction, TransactionType


@dataclass(frozen=True)
class TransactionStats:
    count: int = 0
    income: float = 0.0
    expenses: float = 0.0
    net: float = 0.0
    average: float = 0.0


def summarize(records: Iterable[Transaction]) -> TransactionStats:
    """Summary of resident transactions only; paged-out rows are not counted."""
    count = 0
    income = 0.0
    expenses = 0.0
    gross = 0.0
    for record in records:
        count += 1
        gross += record.amount
        if record.type == TransactionType.INCOME:
            income += record.amount
        elif record.type == TransactionType.EXPENSE:
            expenses += record.amount
    return TransactionStats(
        count=count,
        income=income,
        expenses=expenses,
        net=income - expenses,
        average=gross / count if count else 0.0,
    )
