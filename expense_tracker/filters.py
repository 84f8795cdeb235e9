# expense_tracker/filters.py

from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Tuple

from .models import EXPENSE

ALL = "ALL"
DATE_FORMAT = "%Y-%m-%d"


def format_date(value):
    return value.strftime(DATE_FORMAT) if value else ""


def toggle_category(category_ids, category_id):
    """Add the id if absent, drop it if present. Ids compare as strings."""
    cid = str(category_id)
    if cid in category_ids:
        return tuple(i for i in category_ids if i != cid)
    return tuple(category_ids) + (cid,)


def category_param(category_ids):
    # empty selection means "every category": the key is left out entirely
    return ",".join(category_ids) if category_ids else None


@dataclass(frozen=True)
class FilterState:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    type: str = ALL
    category_ids: Tuple[str, ...] = ()

    def toggle_category(self, category_id):
        return replace(self, category_ids=toggle_category(self.category_ids, category_id))

    def select_all_categories(self):
        return replace(self, category_ids=())

    def cleared(self):
        return FilterState()

    def common_params(self):
        params = {}
        if self.start_date:
            params["startDate"] = format_date(self.start_date)
        if self.end_date:
            params["endDate"] = format_date(self.end_date)
        categories = category_param(self.category_ids)
        if categories:
            params["categoryId"] = categories
        return params


def transaction_query(filters):
    params = filters.common_params()
    if filters.type and filters.type != ALL:
        params["type"] = filters.type
    return params


def dashboard_query(filters, chart_type=EXPENSE):
    """Dashboard charts one type at a time, so ``type`` is always sent"""
    params = filters.common_params()
    params["type"] = chart_type
    return params


# ---------------- Sorting ----------------
SORT_FIELDS = ("date", "amount")


@dataclass(frozen=True)
class SortState:
    field: str = "date"
    direction: str = "desc"

    def toggle(self, field):
        if field not in SORT_FIELDS:
            raise ValueError(f"Cannot sort by {field!r}")
        if field == self.field:
            return SortState(field, "asc" if self.direction == "desc" else "desc")
        return SortState(field, "desc")


def sort_transactions(transactions, sort=None):
    sort = sort or SortState()
    key = (lambda tx: tx.date) if sort.field == "date" else (lambda tx: tx.amount)
    return sorted(transactions, key=key, reverse=sort.direction == "desc")


def recent_transactions(transactions, limit=5):
    return list(transactions)[:limit]
