from __future__ import annotations

from datetime import datetime, timezone

import pytest

from findash.domain.models.core import Transaction, TransactionType
from findash.domain.models.pagination import MirrorState, PaginationState
from findash.errors import InvalidRecordError


def _tx(tx_id: str, amount: float = 10.0, tx_type: TransactionType = TransactionType.EXPENSE):
    return Transaction(id=tx_id, amount=amount, type=tx_type)


class TestFromPayload:
    def test_server_document(self):
        record = Transaction.from_payload(
            {
                "_id": "abc",
                "amount": "12.5",
                "type": "income",
                "date": "2024-03-01T10:00:00Z",
                "description": "Salary",
                "payee": "ACME",
                "category": {"_id": "cat-1", "name": "Work"},
                "paymentMethod": "bank",
                "tags": ["monthly"],
                "createdAt": "2024-03-01",
            }
        )

        assert record.id == "abc"
        assert record.amount == 12.5
        assert record.type is TransactionType.INCOME
        assert record.date == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
        assert record.category == "cat-1"
        assert record.payment_method == "bank"
        assert record.tags == ("monthly",)
        assert record.extra == {"createdAt": "2024-03-01"}

    def test_plain_id_and_defaults(self):
        record = Transaction.from_payload({"id": 7, "amount": 3})
        assert record.id == "7"
        assert record.type is TransactionType.EXPENSE
        assert record.description == ""
        assert record.date is None

    def test_missing_id_raises(self):
        with pytest.raises(InvalidRecordError):
            Transaction.from_payload({"amount": 1})

    def test_unknown_type_raises(self):
        with pytest.raises(InvalidRecordError):
            Transaction.from_payload({"_id": "x", "type": "gift"})

    def test_extra_fields_do_not_affect_equality(self):
        first = Transaction.from_payload({"_id": "x", "amount": 1, "v": 1})
        second = Transaction.from_payload({"_id": "x", "amount": 1, "v": 2})
        assert first == second

    def test_signed_amount(self):
        assert _tx("a", 5, TransactionType.INCOME).signed_amount == 5
        assert _tx("b", 5, TransactionType.EXPENSE).signed_amount == -5


class TestPaginationState:
    def test_total_pages_rounds_up(self):
        assert PaginationState(page=1, limit=100, total=1200).total_pages == 12
        assert PaginationState(page=1, limit=100, total=1201).total_pages == 13

    def test_total_pages_zero_when_empty(self):
        assert PaginationState(page=1, limit=10, total=0).total_pages == 0
        assert PaginationState().total_pages == 0

    def test_advanced_and_with_total(self):
        state = PaginationState(page=1, limit=100, total=10)
        assert state.advanced().page == 2
        assert state.with_total(-3).total == 0
        assert state.page == 1


class TestMirrorState:
    def test_has_more_and_index(self):
        mirror = MirrorState(
            records=(_tx("a"), _tx("b")),
            pagination=PaginationState(page=1, limit=2, total=3),
        )
        assert mirror.loaded_count == 2
        assert mirror.has_more is True
        assert mirror.record_ids == frozenset({"a", "b"})
        assert mirror.index_of("b") == 1
        assert mirror.index_of("zzz") == -1
