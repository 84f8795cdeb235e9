# expense_tracker/models.py
# client-side view models; the server owns the real records

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

INCOME = "INCOME"
EXPENSE = "EXPENSE"
TRANSACTION_TYPES = (INCOME, EXPENSE)


def parse_date(value):
    """Accept date objects and ISO strings, with or without a time part"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if "T" in s:
        s = s.split("T")[0]
    elif " " in s:
        s = s.split(" ")[0]
    return date.fromisoformat(s)


def parse_amount(value):
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount


def format_money(value):
    return f"{Decimal(str(value)):,.2f}"


@dataclass(frozen=True)
class Category:
    id: object
    name: str
    type: str = EXPENSE

    @classmethod
    def from_api(cls, data):
        return cls(id=data.get("id"), name=data.get("name") or "", type=data.get("type") or EXPENSE)


@dataclass
class Transaction:
    id: object
    title: str
    amount: Decimal
    type: str
    date: date
    category: Optional[Category] = None
    note: str = ""

    def __post_init__(self):
        if self.type not in TRANSACTION_TYPES:
            raise ValueError(f"Unknown transaction type: {self.type!r}")
        if self.amount <= 0:
            raise ValueError(f"Transaction amount must be positive, got {self.amount}")

    @classmethod
    def from_api(cls, data):
        if not isinstance(data, dict):
            raise ValueError(f"Transaction record must be an object, got {type(data).__name__}")
        tx_date = parse_date(data.get("date"))
        if tx_date is None:
            raise ValueError(f"Transaction {data.get('id')!r} has no date")
        category = data.get("category")
        return cls(
            id=data.get("id"),
            title=data.get("title") or "",
            amount=parse_amount(data.get("amount")),
            type=data.get("type") or EXPENSE,
            date=tx_date,
            category=Category.from_api(category) if isinstance(category, dict) else None,
            note=data.get("note") or "",
        )

    @property
    def category_name(self):
        return self.category.name if self.category else None

    @property
    def signed_amount(self):
        return self.amount if self.type == INCOME else -self.amount

    def display_amount(self):
        sign = "+" if self.type == INCOME else "-"
        return f"{sign}{format_money(self.amount)}"


@dataclass
class DashboardSummary:
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")

    @classmethod
    def from_api(cls, data):
        data = data or {}
        return cls(
            total_income=parse_amount(data.get("totalIncome") or 0),
            total_expense=parse_amount(data.get("totalExpense") or 0),
            balance=parse_amount(data.get("balance") or 0),
        )


@dataclass
class PieSlice:
    category: str
    total: Decimal

    @classmethod
    def from_api(cls, data):
        return cls(
            category=data.get("category") or data.get("name") or "",
            total=parse_amount(data.get("total") or data.get("value") or 0),
        )


@dataclass
class DashboardView:
    summary: DashboardSummary = field(default_factory=DashboardSummary)
    pie: List[PieSlice] = field(default_factory=list)
    recent: List[Transaction] = field(default_factory=list)

    @property
    def pie_total(self):
        return sum((s.total for s in self.pie), Decimal("0"))


def unwrap_list(payload):
    """List endpoints answer ``{"data": [...]}``; anything else is an empty list"""
    if isinstance(payload, dict):
        return payload.get("data") or []
    if isinstance(payload, list):
        return payload
    return []
