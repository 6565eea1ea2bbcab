"""Tests for filter normalization and the query-string mapping."""

from __future__ import annotations

from datetime import date

import pytest

from findash.domain.models.query import (
    TransactionQuery,
    date_range_from_preset,
    normalize,
    to_params,
)
from findash.errors import QueryNormalizationError


# ---------------------------------------------------------------------------
# normalize
# ---------------------------------------------------------------------------


class TestNormalize:
    def test_none_and_empty_form_mean_no_filter(self):
        assert normalize(None) is None
        assert normalize({}) is None

    def test_all_blank_fields_mean_no_filter(self):
        form = {"searchTerm": "  ", "categories": [], "minAmount": "", "startDate": None}
        assert normalize(form) is None

    def test_default_sort_alone_is_no_filter(self):
        assert normalize({"sortBy": "date", "sortOrder": "DESC"}) is None

    def test_equivalent_forms_produce_equal_queries(self):
        first = normalize({"categories": ["rent", "food", "rent"], "startDate": "2024-06-01"})
        second = normalize({"category": "food,rent", "start_date": date(2024, 6, 1)})

        assert first == second
        assert hash(first) == hash(second)
        assert first.categories == ("food", "rent")
        assert first.start_date == "2024-06-01"

    def test_search_is_trimmed(self):
        query = normalize({"searchTerm": "  coffee "})
        assert query.search == "coffee"

    def test_amounts_are_coerced_to_float(self):
        query = normalize({"minAmount": "10", "maxAmount": 250})
        assert query.min_amount == 10.0
        assert query.max_amount == 250.0

    def test_zero_amount_bound_is_unset(self):
        assert normalize({"minAmount": 0}) is None
        assert normalize({"minAmount": "0"}) is None
        assert normalize({"maxAmount": "0.00"}) is None
        assert normalize({"minAmount": "0", "maxAmount": "5"}).min_amount is None

    def test_bad_amount_raises(self):
        with pytest.raises(QueryNormalizationError):
            normalize({"minAmount": "ten"})

    def test_bad_date_raises(self):
        with pytest.raises(QueryNormalizationError):
            normalize({"startDate": "not a date"})

    def test_datetime_with_time_keeps_time(self):
        query = normalize({"endDate": "2024-06-30T23:59:59"})
        assert query.end_date == "2024-06-30T23:59:59"

    def test_preset_applies_when_no_explicit_dates(self):
        query = normalize({"dateRange": "today"})
        today = date.today().isoformat()
        assert query.start_date == today
        assert query.end_date == today

    def test_explicit_dates_win_over_preset(self):
        query = normalize({"dateRange": "today", "startDate": "2020-01-01"})
        assert query.start_date == "2020-01-01"
        assert query.end_date is None

    def test_custom_preset_alone_is_no_filter(self):
        assert normalize({"dateRange": "custom"}) is None

    def test_sort_order_is_lowercased(self):
        query = normalize({"sortBy": "amount", "sortOrder": "ASC"})
        assert query.sort_by == "amount"
        assert query.sort_order == "asc"


# ---------------------------------------------------------------------------
# to_params
# ---------------------------------------------------------------------------


class TestToParams:
    def test_no_query_sends_paging_and_default_sort(self):
        params = to_params(None, 1, 500)
        assert params == {"page": "1", "limit": "500", "sortBy": "date", "sortOrder": "desc"}

    def test_server_parameter_names(self):
        query = TransactionQuery(
            start_date="2024-01-01",
            end_date="2024-01-31",
            categories=("food", "rent"),
            types=("expense",),
            payment_methods=("card",),
            min_amount=5.0,
            max_amount=99.5,
            search="coffee",
        )
        params = to_params(query, 3, 100)

        assert params["page"] == "3"
        assert params["limit"] == "100"
        assert params["startDate"] == "2024-01-01"
        assert params["endDate"] == "2024-01-31"
        assert params["category"] == "food,rent"
        assert params["type"] == "expense"
        assert params["paymentMethod"] == "card"
        assert params["minAmount"] == "5"
        assert params["maxAmount"] == "99.5"
        assert params["searchTerm"] == "coffee"

    def test_empty_criteria_are_omitted(self):
        params = to_params(TransactionQuery(search="x"), 1, 10)
        assert "category" not in params
        assert "minAmount" not in params


# ---------------------------------------------------------------------------
# date_range_from_preset
# ---------------------------------------------------------------------------


class TestDateRangePresets:
    # Wednesday
    TODAY = date(2024, 5, 15)

    @pytest.mark.parametrize(
        "preset, expected",
        [
            ("today", (date(2024, 5, 15), date(2024, 5, 15))),
            ("yesterday", (date(2024, 5, 14), date(2024, 5, 14))),
            ("thisWeek", (date(2024, 5, 12), date(2024, 5, 15))),
            ("lastWeek", (date(2024, 5, 5), date(2024, 5, 11))),
            ("thisMonth", (date(2024, 5, 1), date(2024, 5, 15))),
            ("lastMonth", (date(2024, 4, 1), date(2024, 4, 30))),
            ("last3Months", (date(2024, 2, 15), date(2024, 5, 15))),
            ("last6Months", (date(2023, 11, 15), date(2024, 5, 15))),
            ("thisYear", (date(2024, 1, 1), date(2024, 5, 15))),
            ("lastYear", (date(2023, 1, 1), date(2023, 12, 31))),
            ("custom", (None, None)),
            ("nonsense", (None, None)),
        ],
    )
    def test_preset(self, preset, expected):
        assert date_range_from_preset(preset, today=self.TODAY) == expected

    def test_week_starts_on_sunday(self):
        sunday = date(2024, 5, 12)
        assert date_range_from_preset("thisWeek", today=sunday) == (sunday, sunday)
