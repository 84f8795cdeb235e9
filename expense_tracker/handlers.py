# expense_tracker/handlers.py
"""Page actions: run validation, API calls and exports, then report the
outcome through a Notifier. Nothing here touches Streamlit, so every action
can be driven from tests with a fake session.
"""

import logging

from .api import ApiError
from .export import NothingToExport, build_export
from .filters import FilterState, dashboard_query, recent_transactions, transaction_query
from .forms import transaction_payload
from .models import (
    EXPENSE,
    Category,
    DashboardSummary,
    DashboardView,
    PieSlice,
    Transaction,
    unwrap_list,
)

logger = logging.getLogger(__name__)


def require_login(tokens):
    """Route guard: protected pages render the login view when this is False"""
    return tokens.is_authenticated()


def _report(notifier, err, fallback):
    logger.error(f"{fallback}: {err.message}")
    notifier.error(err.message or fallback)


# ---------------- Auth ----------------
def submit_login(client, form, notifier):
    if not form.validate_all():
        return False
    try:
        client.login(form.values["username"], form.values["password"])
    except ApiError as e:
        _report(notifier, e, "Login failed")
        return False
    notifier.success("Logged in successfully!")
    return True


def submit_register(client, form, notifier):
    if not form.validate_all():
        return False
    try:
        client.register(form.values["username"], form.values["password"], form.values["name"])
    except ApiError as e:
        _report(notifier, e, "Registration failed")
        return False
    notifier.success("Registration successful! Please log in.")
    return True


def logout(client, notifier):
    client.logout()
    notifier.info("Logged out")


# ---------------- Transactions ----------------
def submit_transaction(client, form, notifier, editing=None):
    """Create, or update ``editing`` when given. Returns True on success."""
    if not form.validate_all():
        return False
    payload = transaction_payload(form)
    try:
        if editing is not None:
            client.update_transaction(editing.id, payload)
            notifier.success("Transaction updated!")
        else:
            client.create_transaction(payload)
            notifier.success("Transaction added!")
    except ApiError as e:
        _report(notifier, e, "Failed to save transaction")
        return False
    return True


def remove_transaction(client, tx, notifier):
    try:
        client.delete_transaction(tx.id)
    except ApiError as e:
        _report(notifier, e, "Failed to delete transaction")
        return False
    notifier.success("Transaction deleted!")
    return True


def parse_transactions(payload, notifier=None):
    """Build view models, dropping records the server sent malformed"""
    transactions = []
    skipped = 0
    for item in unwrap_list(payload):
        try:
            transactions.append(Transaction.from_api(item))
        except ValueError as e:
            logger.warning(f"Skipping invalid transaction record: {e}")
            skipped += 1
    if skipped and notifier is not None:
        notifier.warning(f"Skipped {skipped} invalid transaction(s)")
    return transactions


def load_transactions(client, filters, notifier):
    try:
        payload = client.get_transactions(transaction_query(filters))
    except ApiError as e:
        _report(notifier, e, "Failed to load transactions")
        return []
    return parse_transactions(payload, notifier)


def load_categories(client):
    return [Category.from_api(item) for item in unwrap_list(client.get_categories())]


def cached_categories(state, client):
    """Categories for this session, fetched once until ``state["categories"]`` is reset"""
    if state.get("categories") is None:
        state["categories"] = load_categories(client)
    return state["categories"]


# ---------------- Dashboard ----------------
def load_dashboard(client, filters, notifier, chart_type=EXPENSE):
    try:
        dash = client.get_dashboard(dashboard_query(filters, chart_type))
        # the recent list shares dates and categories but not the chart type
        txs = client.get_transactions(filters.common_params())
    except ApiError as e:
        logger.error(f"Failed to load dashboard: {e.message}")
        notifier.error("Failed to load dashboard")
        return None

    data = (dash.get("data") if isinstance(dash, dict) else None) or {}
    return DashboardView(
        summary=DashboardSummary.from_api(data.get("summary")),
        pie=[PieSlice.from_api(item) for item in data.get("pieChartData") or []],
        recent=recent_transactions(parse_transactions(txs, notifier)),
    )


def clear_filters(reload):
    """Reset to the initial filter state and reload exactly once"""
    filters = FilterState()
    return filters, reload(filters)


# ---------------- Export ----------------
def export_transactions(kind, transactions, prefix, notifier, labels=None, today=None):
    try:
        export = build_export(kind, transactions, prefix, labels, today)
    except NothingToExport:
        notifier.warning("Nothing to export")
        return None
    notifier.success(f"Exported {export.filename}")
    return export


class PendingExports:
    """Finished exports waiting for a download button, one slot per page.

    Any change to the rows a page shows clears its slot, so a download never
    serves data the table no longer displays.
    """

    def __init__(self):
        self._slots = {}

    def put(self, key, export):
        if export is None:
            self._slots.pop(key, None)
        else:
            self._slots[key] = export

    def get(self, key):
        return self._slots.get(key)

    def clear(self, key=None):
        if key is None:
            self._slots.clear()
        else:
            self._slots.pop(key, None)
