from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from dateutil.parser import parse as parse_date
from dateutil.relativedelta import relativedelta

from findash.config import DEFAULT_SORT_BY, DEFAULT_SORT_ORDER
from findash.errors import QueryNormalizationError


@dataclass(frozen=True)
class TransactionQuery:
    """Normalized filter/sort criteria for the transaction list.

    Instances are immutable and compare by value, so two queries built from
    equivalent forms are interchangeable as cache and dedup keys.  Set-like
    criteria are stored as sorted tuples for that reason.
    """

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    categories: Tuple[str, ...] = ()
    types: Tuple[str, ...] = ()
    payment_methods: Tuple[str, ...] = ()
    statuses: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    search: Optional[str] = None
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = DEFAULT_SORT_ORDER

    @property
    def is_empty(self) -> bool:
        return self == TransactionQuery()


# Form key aliases, first match wins.  The camelCase names follow the web
# filter form; the snake_case names let Python callers pass kwargs directly.
_FORM_KEYS: Dict[str, Tuple[str, ...]] = {
    "search": ("searchTerm", "search"),
    "start_date": ("startDate", "start_date"),
    "end_date": ("endDate", "end_date"),
    "categories": ("categories", "category"),
    "types": ("types", "type"),
    "payment_methods": ("paymentMethods", "paymentMethod", "payment_methods"),
    "statuses": ("status", "statuses"),
    "tags": ("tags",),
    "min_amount": ("minAmount", "min_amount"),
    "max_amount": ("maxAmount", "max_amount"),
    "sort_by": ("sortBy", "sort_by"),
    "sort_order": ("sortOrder", "sort_order"),
}

# Query attribute -> server query-string parameter.
_PARAM_NAMES: Dict[str, str] = {
    "start_date": "startDate",
    "end_date": "endDate",
    "categories": "category",
    "types": "type",
    "payment_methods": "paymentMethod",
    "statuses": "status",
    "tags": "tags",
    "min_amount": "minAmount",
    "max_amount": "maxAmount",
    "search": "searchTerm",
    "sort_by": "sortBy",
    "sort_order": "sortOrder",
}

DATE_RANGE_PRESETS: Tuple[str, ...] = (
    "today",
    "yesterday",
    "thisWeek",
    "lastWeek",
    "thisMonth",
    "lastMonth",
    "last3Months",
    "last6Months",
    "thisYear",
    "lastYear",
    "custom",
)


def normalize(raw_form: Optional[Mapping[str, Any]]) -> Optional[TransactionQuery]:
    """Turn a raw filter form into a :class:`TransactionQuery`.

    Returns ``None`` when every field is empty or default, meaning "no
    filter".  Values are only coerced (dates to ISO 8601, comma lists to
    tuples, amounts to float); range checks are left to the server.
    """

    if not raw_form:
        return None

    values: Dict[str, Any] = {}
    for attr, keys in _FORM_KEYS.items():
        values[attr] = _first_present(raw_form, keys)

    start = values["start_date"]
    end = values["end_date"]
    preset = raw_form.get("dateRange")
    if start in (None, "") and end in (None, "") and preset:
        start, end = date_range_from_preset(str(preset))

    query = TransactionQuery(
        start_date=_coerce_date(start, "startDate"),
        end_date=_coerce_date(end, "endDate"),
        categories=_coerce_list(values["categories"]),
        types=_coerce_list(values["types"]),
        payment_methods=_coerce_list(values["payment_methods"]),
        statuses=_coerce_list(values["statuses"]),
        tags=_coerce_list(values["tags"]),
        min_amount=_coerce_amount(values["min_amount"], "minAmount"),
        max_amount=_coerce_amount(values["max_amount"], "maxAmount"),
        search=_coerce_text(values["search"]),
        sort_by=str(values["sort_by"] or DEFAULT_SORT_BY),
        sort_order=str(values["sort_order"] or DEFAULT_SORT_ORDER).lower(),
    )
    if query.is_empty:
        return None
    return query


def to_params(query: Optional[TransactionQuery], page: int, limit: int) -> Dict[str, str]:
    """Return the ``GET /transactions`` query-string for *query*."""

    params: Dict[str, str] = {"page": str(page), "limit": str(limit)}
    query = query or TransactionQuery()
    for item in fields(query):
        value = getattr(query, item.name)
        if value is None or value == ():
            continue
        name = _PARAM_NAMES[item.name]
        if isinstance(value, tuple):
            params[name] = ",".join(value)
        elif isinstance(value, float):
            params[name] = format(value, "g")
        else:
            params[name] = str(value)
    return params


def date_range_from_preset(
    preset: str, today: Optional[date] = None
) -> Tuple[Optional[date], Optional[date]]:
    """Resolve a date-range preset name to an inclusive ``(start, end)`` pair.

    Weeks start on Sunday.  ``custom`` and unknown names resolve to
    ``(None, None)`` so the explicit form dates apply.
    """

    today = today or date.today()
    if isinstance(today, datetime):
        today = today.date()
    # Days elapsed since the most recent Sunday.
    since_sunday = (today.weekday() + 1) % 7
    first_of_month = today.replace(day=1)

    if preset == "today":
        return today, today
    if preset == "yesterday":
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if preset == "thisWeek":
        return today - timedelta(days=since_sunday), today
    if preset == "lastWeek":
        end = today - timedelta(days=since_sunday + 1)
        return end - timedelta(days=6), end
    if preset == "thisMonth":
        return first_of_month, today
    if preset == "lastMonth":
        return first_of_month - relativedelta(months=1), first_of_month - timedelta(days=1)
    if preset == "last3Months":
        return today - relativedelta(months=3), today
    if preset == "last6Months":
        return today - relativedelta(months=6), today
    if preset == "thisYear":
        return date(today.year, 1, 1), today
    if preset == "lastYear":
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)
    return None, None


# -- coercion helpers -------------------------------------------------------


def _first_present(form: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in form and form[key] is not None:
            return form[key]
    return None


def _coerce_date(value: Any, name: str) -> Optional[str]:
    # Midnight without a zone collapses to a plain date so "2024-06-01" and
    # date(2024, 6, 1) normalize to the same query.
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value.isoformat()
    else:
        try:
            parsed = parse_date(str(value))
        except (ValueError, OverflowError) as exc:
            raise QueryNormalizationError(f"{name}: cannot parse date {value!r}") from exc
    if parsed.tzinfo is None and parsed.time() == datetime.min.time():
        return parsed.date().isoformat()
    return parsed.isoformat()


def _coerce_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip() or None


def _coerce_list(value: Any) -> Tuple[str, ...]:
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, Iterable):
        items = [str(item) for item in value if item is not None]
    else:
        items = [str(value)]
    return tuple(sorted({item.strip() for item in items if item.strip()}))


def _coerce_amount(value: Any, name: str) -> Optional[float]:
    # A zero amount bound is treated as unset, like an empty field.
    if value is None or value == "":
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise QueryNormalizationError(f"{name}: not a number: {value!r}") from exc
    return amount or None
