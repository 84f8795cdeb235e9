"""Tests for page actions and the notifications they raise."""

from datetime import date
from decimal import Decimal

import requests

from expense_tracker import handlers
from expense_tracker.api import NETWORK_ERROR_MESSAGE
from expense_tracker.filters import FilterState
from expense_tracker.forms import login_form, register_form, transaction_form
from expense_tracker.models import Transaction

TX = {
    "id": 7,
    "title": "Coffee",
    "amount": 65,
    "type": "EXPENSE",
    "category": {"id": 3, "name": "Food", "type": "EXPENSE"},
    "date": "2024-03-09T00:00:00.000Z",
    "note": None,
}


def _kinds(notifier):
    return [(t.kind, t.message) for t in notifier.toasts]


class TestAuthHandlers:
    """Tests for login and registration."""

    def test_short_username_blocks_before_network(self, client, session, notifier):
        form = login_form()
        form.change("username", "ab")
        form.change("password", "secret1")

        assert handlers.submit_login(client, form, notifier) is False
        assert form.visible_error("username") == "Username must be at least 3 characters"
        assert session.calls == []
        assert notifier.toasts == []

    def test_login_success(self, client, session, tokens, notifier):
        session.reply(200, {"token": "t-9"})
        form = login_form()
        form.change("username", "alice")
        form.change("password", "secret1")

        assert handlers.submit_login(client, form, notifier) is True
        assert tokens.get() == "t-9"
        assert _kinds(notifier) == [("success", "Logged in successfully!")]

    def test_login_failure_shows_server_message(self, client, session, notifier):
        session.reply(401, {"message": "Invalid username or password"})
        form = login_form()
        form.change("username", "alice")
        form.change("password", "secret1")

        assert handlers.submit_login(client, form, notifier) is False
        assert _kinds(notifier) == [("error", "Invalid username or password")]

    def test_register_network_error(self, client, session, notifier):
        session.fail(requests.ConnectionError())
        form = register_form()
        form.change("name", "Alice")
        form.change("username", "alice")
        form.change("password", "secret1")

        assert handlers.submit_register(client, form, notifier) is False
        assert _kinds(notifier) == [("error", NETWORK_ERROR_MESSAGE)]

    def test_logout(self, client, tokens, notifier):
        tokens.set("t")
        handlers.logout(client, notifier)

        assert not handlers.require_login(tokens)


class TestTransactionHandlers:
    """Tests for create, update, delete and list."""

    def _filled_form(self, tx=None):
        form = transaction_form(tx, today=date(2024, 3, 9))
        if tx is None:
            form.change("title", "Coffee")
            form.change("amount", "65")
            form.change("categoryName", "Brand new category")
        return form

    def test_create_posts_category_name(self, client, session, notifier):
        session.reply(201, {"data": TX})
        assert handlers.submit_transaction(client, self._filled_form(), notifier) is True

        call = session.calls[0]
        assert call["method"] == "POST"
        assert call["json"]["categoryName"] == "Brand new category"
        assert call["json"]["amount"] == 65.0
        assert _kinds(notifier) == [("success", "Transaction added!")]

    def test_update_uses_put(self, client, session, notifier):
        tx = Transaction.from_api(TX)
        session.reply(200, {"data": TX})

        assert handlers.submit_transaction(client, self._filled_form(tx), notifier, editing=tx) is True
        assert session.calls[0]["method"] == "PUT"
        assert session.calls[0]["url"].endswith("/api/transactions/7")

    def test_invalid_form_is_noop(self, client, session, notifier):
        form = transaction_form(today=date(2024, 3, 9))
        form.change("amount", "-3")

        assert handlers.submit_transaction(client, form, notifier) is False
        assert session.calls == []

    def test_plain_text_error_reaches_user(self, client, session, notifier):
        session.reply(500, text="Internal Server Error")

        assert handlers.submit_transaction(client, self._filled_form(), notifier) is False
        assert _kinds(notifier) == [("error", "Internal Server Error")]

    def test_delete(self, client, session, notifier):
        session.reply(204)
        assert handlers.remove_transaction(client, Transaction.from_api(TX), notifier) is True
        assert _kinds(notifier) == [("success", "Transaction deleted!")]

    def test_load_transactions(self, client, session, notifier):
        session.reply(200, {"data": [TX]})
        txs = handlers.load_transactions(client, FilterState(type="EXPENSE"), notifier)

        assert session.calls[0]["url"] == "http://api.test/api/transactions?type=EXPENSE"
        assert len(txs) == 1
        assert txs[0].amount == Decimal("65")
        assert txs[0].date == date(2024, 3, 9)
        assert txs[0].category_name == "Food"

    def test_load_transactions_failure_returns_empty(self, client, session, notifier):
        session.reply(500, {"error": "Database down"})

        assert handlers.load_transactions(client, FilterState(), notifier) == []
        assert _kinds(notifier) == [("error", "Database down")]

    def test_load_categories_degrades(self, client, session):
        session.reply(502, text="")
        assert handlers.load_categories(client) == []

    def test_load_categories(self, client, session):
        session.reply(200, {"data": [{"id": 1, "name": "Food", "type": "EXPENSE"}]})
        cats = handlers.load_categories(client)

        assert [(c.id, c.name) for c in cats] == [(1, "Food")]

    def test_categories_fetched_once_per_session(self, client, session):
        session.reply(200, {"data": [{"id": 1, "name": "Food", "type": "EXPENSE"}]})
        state = {}

        first = handlers.cached_categories(state, client)
        second = handlers.cached_categories(state, client)

        assert first is second
        assert len(session.calls) == 1

    def test_categories_refetched_after_reset(self, client, session):
        session.reply(200, {"data": []})
        session.reply(200, {"data": [{"id": 2, "name": "Rent", "type": "EXPENSE"}]})
        state = {}
        handlers.cached_categories(state, client)

        state["categories"] = None
        assert [c.name for c in handlers.cached_categories(state, client)] == ["Rent"]
        assert len(session.calls) == 2


class TestDashboard:
    """Tests for the dashboard loader and clearing filters."""

    def test_load_dashboard(self, client, session, notifier):
        session.reply(200, {"data": {
            "summary": {"totalIncome": 1000, "totalExpense": 400, "balance": 600},
            "pieChartData": [{"category": "Food", "total": 300}, {"category": "Rent", "value": 100}],
        }})
        session.reply(200, {"data": [TX] * 7})
        filters = FilterState(category_ids=("3", "7"))

        view = handlers.load_dashboard(client, filters, notifier, chart_type="EXPENSE")

        assert session.calls[0]["url"] == "http://api.test/api/dashboard?categoryId=3,7&type=EXPENSE"
        assert session.calls[1]["url"] == "http://api.test/api/transactions?categoryId=3,7"
        assert view.summary.balance == Decimal("600")
        assert view.pie_total == Decimal("400")
        assert len(view.recent) == 5

    def test_load_dashboard_failure(self, client, session, notifier):
        session.fail(requests.ConnectionError())

        assert handlers.load_dashboard(client, FilterState(), notifier) is None
        assert _kinds(notifier) == [("error", "Failed to load dashboard")]

    def test_clear_filters_reloads_once(self):
        calls = []
        filters, result = handlers.clear_filters(lambda f: calls.append(f) or "reloaded")

        assert filters == FilterState()
        assert calls == [FilterState()]
        assert result == "reloaded"


class TestExportHandler:
    """Tests for the export action."""

    def test_empty_export_warns_and_returns_nothing(self, notifier):
        assert handlers.export_transactions("csv", [], "transactions", notifier) is None
        assert _kinds(notifier) == [("warning", "Nothing to export")]

    def test_export_success(self, notifier):
        txs = [Transaction.from_api(TX)]
        export = handlers.export_transactions("excel", txs, "transactions", notifier, today=date(2024, 3, 9))

        assert export.filename == "transactions_2024-03-09.xls"
        assert _kinds(notifier) == [("success", "Exported transactions_2024-03-09.xls")]


class TestMalformedRecords:
    """Bad rows from the server are dropped instead of breaking the page."""

    def test_transactions_skip_bad_amount(self, client, session, notifier):
        session.reply(200, {"data": [TX, dict(TX, id=8, amount=None)]})

        txs = handlers.load_transactions(client, FilterState(), notifier)

        assert [tx.id for tx in txs] == [7]
        assert _kinds(notifier) == [("warning", "Skipped 1 invalid transaction(s)")]

    def test_transactions_skip_missing_date(self, client, session, notifier):
        session.reply(200, {"data": [dict(TX, id=8, date=None), dict(TX, id=9, date=""), TX]})

        txs = handlers.load_transactions(client, FilterState(), notifier)

        assert [tx.id for tx in txs] == [7]
        assert _kinds(notifier) == [("warning", "Skipped 2 invalid transaction(s)")]

    def test_dashboard_recent_skips_zero_amount(self, client, session, notifier):
        session.reply(200, {"data": {"summary": {}, "pieChartData": []}})
        session.reply(200, {"data": [dict(TX, id=1, amount=0), TX, "garbage"]})

        view = handlers.load_dashboard(client, FilterState(), notifier)

        assert view is not None
        assert [tx.id for tx in view.recent] == [7]
        assert _kinds(notifier) == [("warning", "Skipped 2 invalid transaction(s)")]

    def test_clean_payload_raises_no_warning(self, client, session, notifier):
        session.reply(200, {"data": [TX]})
        handlers.load_transactions(client, FilterState(), notifier)

        assert notifier.toasts == []


class TestPendingExports:
    """Each page keeps its own finished export."""

    def _export(self, notifier, prefix):
        txs = [Transaction.from_api(TX)]
        return handlers.export_transactions("csv", txs, prefix, notifier, today=date(2024, 3, 9))

    def test_pages_do_not_share_a_slot(self, notifier):
        pending = handlers.PendingExports()
        pending.put("tx_export", self._export(notifier, "transactions"))

        assert pending.get("dash_export") is None
        assert pending.get("tx_export").filename == "transactions_2024-03-09.csv"

        pending.put("dash_export", self._export(notifier, "recent"))
        assert pending.get("tx_export").filename == "transactions_2024-03-09.csv"
        assert pending.get("dash_export").filename == "recent_2024-03-09.csv"

    def test_clearing_one_page_keeps_the_other(self, notifier):
        pending = handlers.PendingExports()
        pending.put("tx_export", self._export(notifier, "transactions"))
        pending.put("dash_export", self._export(notifier, "recent"))

        pending.clear("tx_export")
        assert pending.get("tx_export") is None
        assert pending.get("dash_export") is not None

        pending.clear()
        assert pending.get("dash_export") is None

    def test_failed_export_empties_the_slot(self, notifier):
        pending = handlers.PendingExports()
        pending.put("tx_export", self._export(notifier, "transactions"))

        pending.put("tx_export", handlers.export_transactions("csv", [], "transactions", notifier))
        assert pending.get("tx_export") is None
