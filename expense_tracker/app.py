# expense_tracker/app.py
# Streamlit pages. Run with: streamlit run expense_tracker/app.py

import logging
from datetime import date

import pandas as pd
import plotly.express as px
import streamlit as st

from expense_tracker import handlers
from expense_tracker.api import ApiClient
from expense_tracker.config import Settings
from expense_tracker.export import get_labels
from expense_tracker.filters import ALL, FilterState, SortState, sort_transactions
from expense_tracker.forms import login_form, register_form, suggest_categories, transaction_form
from expense_tracker.models import EXPENSE, INCOME, format_money
from expense_tracker.notify import Notifier
from expense_tracker.session import StreamlitTokenStore

CHART_COLORS = [
    "#38bdf8", "#818cf8", "#fb923c", "#34d399", "#f472b6",
    "#ef4444", "#22d3ee", "#a78bfa", "#84cc16", "#fbbf24",
]
TYPE_OPTIONS = {ALL: "All", INCOME: "Income", EXPENSE: "Expense"}

# ---------------- Page config ----------------
st.set_page_config(page_title="Expense Tracker", layout="wide", page_icon="💸")

settings = Settings.from_env()
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
labels = get_labels(settings.locale)


# ---------------- Session State Management ----------------
def init_session_state():
    defaults = {
        "client": lambda: ApiClient(settings, StreamlitTokenStore()),
        "notifier": Notifier,
        "login_form": login_form,
        "register_form": register_form,
        "tx_filters": FilterState,
        "tx_sort": SortState,
        "dash_filters": FilterState,
        "chart_type": lambda: EXPENSE,
        "editing_tx": lambda: None,
        "pending_exports": handlers.PendingExports,
        "categories": lambda: None,
        "tx_filter_version": lambda: 0,
        "dash_filter_version": lambda: 0,
        "transactions": lambda: None,
        "dashboard": lambda: None,
    }
    for key, factory in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = factory()


def invalidate_data():
    st.session_state.transactions = None
    st.session_state.dashboard = None
    st.session_state.categories = None
    st.session_state.pending_exports.clear()


def reset_dashboard():
    st.session_state.dashboard = None
    st.session_state.pending_exports.clear("dash_export")


def reset_transactions():
    st.session_state.transactions = None
    st.session_state.pending_exports.clear("tx_export")


init_session_state()
client = st.session_state.client
notifier = st.session_state.notifier


# ---------------- Form helpers ----------------
def show_field_error(form, field):
    err = form.visible_error(field)
    if err:
        st.caption(f":red[{err}]")


def show_form_errors(form):
    if form.has_visible_errors():
        st.error("Please fix the highlighted fields")


def sync_form(form, values):
    # widgets only report on submit, so each submitted value counts as a blur
    for field, value in values.items():
        form.change(field, value)
        form.blur(field)


# ---------------- Sidebar ----------------
def render_sidebar():
    with st.sidebar:
        st.title("🔐 Account")

        if handlers.require_login(client.tokens):
            st.success("You are logged in")
            if st.button("🚪 Logout", use_container_width=True, key="logout_btn"):
                handlers.logout(client, notifier)
                invalidate_data()
                st.rerun()
            return

        action = st.radio("Action", ["Login", "Register"], horizontal=True, key="auth_tab")
        if action == "Login":
            render_login()
        else:
            render_register()


def render_login():
    form = st.session_state.login_form
    with st.form("login"):
        username = st.text_input("👤 Username", value=form.values["username"])
        show_field_error(form, "username")
        password = st.text_input("🔒 Password", type="password", value=form.values["password"])
        show_field_error(form, "password")
        submitted = st.form_submit_button("Login", use_container_width=True)
    show_form_errors(form)

    if submitted:
        sync_form(form, {"username": username, "password": password})
        if handlers.submit_login(client, form, notifier):
            st.session_state.login_form = login_form()
            invalidate_data()
        st.rerun()


def render_register():
    form = st.session_state.register_form
    with st.form("register"):
        name = st.text_input("🪪 Full name", value=form.values["name"])
        show_field_error(form, "name")
        username = st.text_input("👤 Username", value=form.values["username"])
        show_field_error(form, "username")
        password = st.text_input("🔒 Password", type="password", value=form.values["password"])
        show_field_error(form, "password")
        submitted = st.form_submit_button("Register", use_container_width=True)
    show_form_errors(form)

    if submitted:
        sync_form(form, {"name": name, "username": username, "password": password})
        if handlers.submit_register(client, form, notifier):
            st.session_state.register_form = register_form()
        st.rerun()


# ---------------- Transaction form ----------------
def render_transaction_form(categories):
    editing = st.session_state.editing_tx
    form_key = f"tx_form_{editing.id if editing else 'new'}"
    if form_key not in st.session_state:
        st.session_state[form_key] = transaction_form(editing)
    form = st.session_state[form_key]
    values = form.values

    st.subheader("✏️ Edit transaction" if editing else "➕ Add transaction")
    with st.form(form_key + "_widget"):
        col_a, col_b = st.columns(2)
        with col_a:
            title = st.text_input("📝 Title", value=values["title"], placeholder="e.g. Lunch")
            show_field_error(form, "title")
            amount = st.text_input("💰 Amount", value=str(values["amount"]), placeholder="0.00")
            show_field_error(form, "amount")
            tx_type = st.selectbox(
                "🔸 Type", [EXPENSE, INCOME], index=0 if values["type"] == EXPENSE else 1,
                format_func=TYPE_OPTIONS.get,
            )
        with col_b:
            category = st.text_input("🏷️ Category", value=values["categoryName"])
            matches = suggest_categories(categories, category)
            if matches:
                st.caption("Existing: " + ", ".join(c.name for c in matches[:8]))
            show_field_error(form, "categoryName")
            tx_date = st.date_input("📅 Date", value=date.fromisoformat(values["date"]) if values["date"] else None)
            show_field_error(form, "date")
            note = st.text_input("🗒️ Note", value=values["note"])
        submitted = st.form_submit_button("💾 Save", use_container_width=True)
    show_form_errors(form)

    if submitted:
        sync_form(form, {
            "title": title,
            "amount": amount,
            "type": tx_type,
            "categoryName": category,
            "date": tx_date.isoformat() if tx_date else "",
            "note": note,
        })
        if handlers.submit_transaction(client, form, notifier, editing=editing):
            del st.session_state[form_key]
            st.session_state.editing_tx = None
            invalidate_data()
        st.rerun()

    if editing is not None:
        col1, col2 = st.columns(2)
        if col1.button("🗑️ Delete", use_container_width=True, key="delete_tx"):
            if handlers.remove_transaction(client, editing, notifier):
                st.session_state.pop(form_key, None)
                st.session_state.editing_tx = None
                invalidate_data()
            st.rerun()
        if col2.button("Cancel", use_container_width=True, key="cancel_edit"):
            st.session_state.pop(form_key, None)
            st.session_state.editing_tx = None
            st.rerun()


# ---------------- Export ----------------
def render_export(transactions, prefix, key):
    pending = st.session_state.pending_exports
    col1, col2 = st.columns(2)
    for col, kind, label in ((col1, "csv", "📥 Export CSV"), (col2, "excel", "📥 Export Excel")):
        if col.button(label, use_container_width=True, key=f"{key}_{kind}"):
            pending.put(key, handlers.export_transactions(kind, transactions, prefix, notifier, labels=labels))

    export = pending.get(key)
    if export is not None:
        st.download_button(
            label=f"⬇️ Download {export.filename}",
            data=export.content,
            file_name=export.filename,
            mime=export.mime,
            key=f"{key}_download",
        )


def transactions_frame(transactions):
    return pd.DataFrame(
        [
            {
                "Date": tx.date.isoformat(),
                "Title": tx.title,
                "Category": tx.category_name or labels.no_category,
                "Type": labels.type_label(tx.type),
                "Amount": tx.display_amount(),
                "Note": tx.note,
            }
            for tx in transactions
        ]
    )


# ---------------- Dashboard Tab ----------------
def toggle_dashboard_category(cat_id):
    st.session_state.dash_filters = st.session_state.dash_filters.toggle_category(cat_id)
    reset_dashboard()


def select_all_dashboard_categories():
    st.session_state.dash_filters = st.session_state.dash_filters.select_all_categories()
    reset_dashboard()


def render_dashboard():
    st.header("📊 Dashboard")
    if not handlers.require_login(client.tokens):
        st.info("🔐 Please login to view the dashboard")
        return

    categories = handlers.cached_categories(st.session_state, client)
    filters = st.session_state.dash_filters

    col1, col2, col3 = st.columns([1, 1, 1])
    version = st.session_state.dash_filter_version
    start = col1.date_input("Start date", value=filters.start_date, key=f"dash_start_{version}")
    end = col2.date_input("End date", value=filters.end_date, key=f"dash_end_{version}")
    chart_type = col3.radio(
        "Chart", [EXPENSE, INCOME], horizontal=True, format_func=TYPE_OPTIONS.get,
        index=0 if st.session_state.chart_type == EXPENSE else 1,
    )
    if chart_type != st.session_state.chart_type:
        st.session_state.chart_type = chart_type
        reset_dashboard()

    st.caption("Categories")
    cols = st.columns(min(len(categories), 6) + 1)
    cols[0].button(
        ("✓ " if not filters.category_ids else "") + "All",
        on_click=select_all_dashboard_categories, key="dash_cat_all",
    )
    for i, cat in enumerate(categories):
        selected = str(cat.id) in filters.category_ids
        cols[1 + i % (len(cols) - 1)].button(
            ("✓ " if selected else "") + cat.name,
            on_click=toggle_dashboard_category, args=(cat.id,), key=f"dash_cat_{cat.id}",
        )

    b1, b2 = st.columns(2)
    if b1.button("🔍 Filter", use_container_width=True, key="dash_filter"):
        st.session_state.dash_filters = FilterState(start, end, filters.type, filters.category_ids)
        reset_dashboard()
    if b2.button("🧹 Clear", use_container_width=True, key="dash_clear"):
        st.session_state.pending_exports.clear("dash_export")
        st.session_state.dash_filters, st.session_state.dashboard = handlers.clear_filters(
            lambda f: handlers.load_dashboard(client, f, notifier, st.session_state.chart_type)
        )
        st.session_state.dash_filter_version += 1
        st.rerun()

    if st.session_state.dashboard is None:
        st.session_state.dashboard = handlers.load_dashboard(
            client, st.session_state.dash_filters, notifier, st.session_state.chart_type
        )
    view = st.session_state.dashboard
    if view is None:
        return

    m1, m2, m3 = st.columns(3)
    m1.metric("💵 Income", f"+{format_money(view.summary.total_income)}")
    m2.metric("💰 Expenses", f"-{format_money(view.summary.total_expense)}")
    m3.metric("🏦 Balance", format_money(view.summary.balance))

    left, right = st.columns(2)
    with left:
        kind = TYPE_OPTIONS[st.session_state.chart_type].lower()
        selected = len(st.session_state.dash_filters.category_ids)
        st.subheader(f"Share of {kind}" + (f" ({selected} categories)" if selected else ""))
        if not view.pie:
            st.info(f"No {kind} data yet")
        else:
            pie_df = pd.DataFrame([{"category": s.category, "total": float(s.total)} for s in view.pie])
            fig = px.pie(pie_df, values="total", names="category", hole=0.4,
                         color_discrete_sequence=CHART_COLORS)
            st.plotly_chart(fig, use_container_width=True)
            st.caption(f"Total: {format_money(view.pie_total)}")
    with right:
        st.subheader("🕒 Recent transactions")
        if not view.recent:
            st.info("No transactions yet")
        else:
            st.dataframe(transactions_frame(view.recent), use_container_width=True, hide_index=True)
        render_export(view.recent, labels.recent_prefix, key="dash_export")


# ---------------- Transactions Tab ----------------
def render_transactions():
    st.header("💳 Transactions")
    if not handlers.require_login(client.tokens):
        st.info("🔐 Please login to manage transactions")
        return

    categories = handlers.cached_categories(st.session_state, client)
    with st.expander("➕ Add / edit", expanded=st.session_state.editing_tx is not None):
        render_transaction_form(categories)

    filters = st.session_state.tx_filters
    col1, col2, col3 = st.columns(3)
    version = st.session_state.tx_filter_version
    start = col1.date_input("Start date", value=filters.start_date, key=f"tx_start_{version}")
    end = col2.date_input("End date", value=filters.end_date, key=f"tx_end_{version}")
    tx_type = col3.selectbox(
        "Type", list(TYPE_OPTIONS), index=list(TYPE_OPTIONS).index(filters.type),
        format_func=TYPE_OPTIONS.get, key=f"tx_type_filter_{version}",
    )

    b1, b2 = st.columns(2)
    if b1.button("🔍 Filter", use_container_width=True, key="tx_filter"):
        st.session_state.tx_filters = FilterState(start, end, tx_type, filters.category_ids)
        reset_transactions()
    if b2.button("🧹 Clear", use_container_width=True, key="tx_clear"):
        st.session_state.pending_exports.clear("tx_export")
        st.session_state.tx_filters, st.session_state.transactions = handlers.clear_filters(
            lambda f: handlers.load_transactions(client, f, notifier)
        )
        st.session_state.tx_filter_version += 1
        st.rerun()

    if st.session_state.transactions is None:
        st.session_state.transactions = handlers.load_transactions(
            client, st.session_state.tx_filters, notifier
        )

    sort = st.session_state.tx_sort
    s1, s2 = st.columns(2)
    arrow = "⬇️" if sort.direction == "desc" else "⬆️"
    if s1.button("Date " + (arrow if sort.field == "date" else ""), key="sort_date"):
        st.session_state.tx_sort = sort.toggle("date")
        st.session_state.pending_exports.clear("tx_export")
        st.rerun()
    if s2.button("Amount " + (arrow if sort.field == "amount" else ""), key="sort_amount"):
        st.session_state.tx_sort = sort.toggle("amount")
        st.session_state.pending_exports.clear("tx_export")
        st.rerun()

    transactions = sort_transactions(st.session_state.transactions, st.session_state.tx_sort)
    render_export(transactions, labels.transactions_prefix, key="tx_export")

    if not transactions:
        st.info("💳 No transactions found. Add your first one above!")
        return

    st.dataframe(transactions_frame(transactions), use_container_width=True, hide_index=True)
    by_label = {f"{tx.date.isoformat()} · {tx.title} · {tx.display_amount()}": tx for tx in transactions}
    choice = st.selectbox("Edit a transaction", [""] + list(by_label), key="edit_choice")
    if choice and st.button("✏️ Edit", key="edit_btn"):
        st.session_state.editing_tx = by_label[choice]
        st.rerun()


# ---------------- Main ----------------
def main():
    st.title("💸 Expense Tracker")
    render_sidebar()

    tab1, tab2 = st.tabs(["📊 Dashboard", "💳 Transactions"])
    with tab1:
        render_dashboard()
    with tab2:
        render_transactions()

    notifier.render()
    client.tokens.sync_cookie()


if __name__ == "__main__":
    main()
