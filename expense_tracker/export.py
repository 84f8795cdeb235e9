# expense_tracker/export.py
"""CSV and spreadsheet export of an in-memory transaction list.

Both encoders render the same pandas DataFrame, so they share column order
and cell values. The spreadsheet
variant is an HTML table carrying the Excel namespaces, which Excel and
LibreOffice open as a sheet when saved with a ``.xls`` extension.
"""

import csv
from dataclasses import dataclass
from datetime import date

import pandas as pd

from .models import INCOME

BOM = "\ufeff"
CSV_MIME = "text/csv;charset=utf-8"
EXCEL_MIME = "application/vnd.ms-excel;charset=utf-8"


class NothingToExport(ValueError):
    pass


@dataclass(frozen=True)
class Labels:
    headers: tuple
    income: str
    expense: str
    no_category: str
    transactions_prefix: str
    recent_prefix: str
    buddhist_era: bool = False

    def type_label(self, tx_type):
        return self.income if tx_type == INCOME else self.expense

    def format_date(self, value):
        if self.buddhist_era:
            return f"{value.day}/{value.month}/{value.year + 543}"
        return value.isoformat()


LABELS = {
    "en": Labels(
        headers=("Title", "Type", "Category", "Amount", "Date", "Note"),
        income="Income",
        expense="Expense",
        no_category="Uncategorized",
        transactions_prefix="transactions",
        recent_prefix="recent_transactions",
    ),
    "th": Labels(
        headers=("ชื่อรายการ", "ประเภท", "หมวดหมู่", "จำนวนเงิน", "วันที่", "หมายเหตุ"),
        income="รายรับ",
        expense="รายจ่าย",
        no_category="ไม่ระบุ",
        transactions_prefix="รายการค่าใช้จ่าย",
        recent_prefix="รายการล่าสุด",
        buddhist_era=True,
    ),
}


def get_labels(locale="en"):
    return LABELS.get(locale, LABELS["en"])


@dataclass(frozen=True)
class ExportFile:
    filename: str
    mime: str
    content: bytes


def export_rows(transactions, labels):
    for tx in transactions:
        yield [
            tx.title,
            labels.type_label(tx.type),
            tx.category_name or labels.no_category,
            str(tx.amount),
            labels.format_date(tx.date),
            tx.note or "",
        ]


def export_frame(transactions, labels=None):
    """Export rows as a DataFrame with the localized headers; raises NothingToExport"""
    transactions = list(transactions)
    if not transactions:
        raise NothingToExport("Nothing to export")
    labels = labels or get_labels()
    return pd.DataFrame(list(export_rows(transactions, labels)), columns=list(labels.headers))


def to_csv(transactions, labels=None):
    """Every field quoted, quotes doubled, rows joined by newline, BOM first"""
    frame = export_frame(transactions, labels)
    content = frame.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    if content.endswith("\n"):
        content = content[:-1]
    return BOM + content


def to_excel_html(transactions, labels=None):
    table = export_frame(transactions, labels).to_html(index=False, border=1)
    return (
        '<html xmlns:o="urn:schemas-microsoft-com:office:office" '
        'xmlns:x="urn:schemas-microsoft-com:office:excel">'
        '<head><meta charset="UTF-8"></head><body>'
        + table
        + "</body></html>"
    )


def export_filename(prefix, ext, today=None):
    return f"{prefix}_{(today or date.today()).strftime('%Y-%m-%d')}.{ext}"


def build_export(kind, transactions, prefix, labels=None, today=None):
    """Encode ``transactions`` as ``csv`` or ``excel``; raises NothingToExport"""
    if kind == "csv":
        content, mime, ext = to_csv(transactions, labels), CSV_MIME, "csv"
    elif kind == "excel":
        content, mime, ext = to_excel_html(transactions, labels), EXCEL_MIME, "xls"
    else:
        raise ValueError(f"Unknown export format: {kind!r}")
    return ExportFile(export_filename(prefix, ext, today), mime, content.encode("utf-8"))
