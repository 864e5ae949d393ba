import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from dataclasses import replace

import streamlit as st
import plotly.express as px

from expenses import config
from expenses.aggregator import sum_amount
from expenses.auth import InMemoryAuthProvider
from expenses.domain import TimeRange, ViewStatus
from expenses.formatting import (
    date_label,
    format_amount,
    format_percentage,
    transactions_label,
)
from expenses.screens import AnalyticsScreen, HistoryScreen, HomeScreen
from expenses.services import FORM, ExpenseService
from expenses.store import InMemoryRecordStore
from expenses.transforms import expenses_frame, load_seed, summaries_frame
from expenses.validation import validate_sign_in, validate_sign_up

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("expenses.app")

st.set_page_config(page_title="Expense Tracker", layout="wide")

if "store" not in st.session_state:
    st.session_state.store = InMemoryRecordStore()
if "auth" not in st.session_state:
    st.session_state.auth = InMemoryAuthProvider()

store: InMemoryRecordStore = st.session_state.store
auth: InMemoryAuthProvider = st.session_state.auth
identity = auth.current_identity


def show_field_errors(errors: dict):
    for field, message in errors.items():
        if field == FORM:
            st.error(message)
        else:
            st.caption(f":red[{field.capitalize()}: {message}]")


def show_status(screen):
    """Render the non-ready states. Returns True when the data can be shown."""
    status = screen.status
    if status is ViewStatus.LOADING:
        st.info("Loading expenses...")
    elif status is ViewStatus.FAILED:
        st.error(screen.error)
    elif status is ViewStatus.EMPTY:
        st.info(screen.empty_message)
    return status is ViewStatus.READY or (status is ViewStatus.FAILED and bool(screen.records))


def expense_rows(records):
    for e in records:
        left, right = st.columns([4, 1])
        with left:
            st.markdown(f"**{e.title}**  \n{e.category} · {date_label(e.created_at)}")
        with right:
            st.markdown(f"**{format_amount(e.amount)}**")


def sign_in_page():
    st.title("💸 Expense Tracker")
    tab_in, tab_up = st.tabs(["Sign in", "Create account"])

    with tab_in:
        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign In")
        if submitted:
            result = validate_sign_in(email, password).bind(
                lambda c: auth.sign_in(c.email, c.password).map(lambda _: c)
            )
            if result.is_right():
                st.success("Signed in successfully!")
                st.rerun()
            else:
                error = result.get_error()
                show_field_errors(error if isinstance(error, dict) else {FORM: error})
        if st.button("Forgot password?"):
            auth.request_password_reset(email)
            st.info(config.PASSWORD_RESET_NOTICE)

    with tab_up:
        with st.form("sign_up"):
            name = st.text_input("Full Name")
            email = st.text_input("Email", key="signup_email")
            password = st.text_input("Password", type="password", key="signup_password")
            confirm = st.text_input("Confirm Password", type="password")
            submitted = st.form_submit_button("Create Account")
        if submitted:
            result = validate_sign_up(name, email, password, confirm).bind(
                lambda c: auth.sign_up(c.email, c.password, c.display_name).map(lambda _: c)
            )
            if result.is_right():
                st.success("Account Created!")
                st.rerun()
            else:
                error = result.get_error()
                show_field_errors(error if isinstance(error, dict) else {FORM: error})


def home_page():
    st.title("🏠 Home")
    with HomeScreen(store, identity) as screen:
        k1, k2, k3 = st.columns(3)
        with k1:
            st.metric("Today", format_amount(screen.totals.today))
        with k2:
            st.metric("Last 7 days", format_amount(screen.totals.week))
        with k3:
            st.metric("This month", format_amount(screen.totals.month))

        st.subheader("Recent Expenses")
        if show_status(screen):
            expense_rows(screen.recent)


def add_expense_page():
    st.title("➕ Add Expense")
    service = ExpenseService(store)
    with st.form("add_expense", clear_on_submit=False):
        title = st.text_input("Title")
        category = st.text_input("Category (e.g. Food, Travel)")
        amount = st.text_input(f"Amount ({config.CURRENCY_SYMBOL})")
        submitted = st.form_submit_button("Save Expense")
    if submitted:
        result = service.add_expense(identity, title, category, amount)
        if result.is_right():
            st.success("Expense added successfully")
        else:
            show_field_errors(result.get_error())


def history_page():
    st.title("🧾 History")
    query = st.text_input("Search by title or category")
    with HistoryScreen(store, identity) as screen:
        screen.set_query(query)
        if show_status(screen):
            st.caption(f"{len(screen.results)} of {len(screen.records)} expenses")
            expense_rows(screen.results)
            csv = expenses_frame(screen.results).to_csv(index=False)
            st.download_button("⬇️ Download CSV", csv, file_name="expenses.csv", mime="text/csv")


def analytics_page():
    st.title("📊 Analytics")
    choice = st.radio("Period", [r.value for r in TimeRange], horizontal=True, index=len(TimeRange) - 1)
    with AnalyticsScreen(store, identity, time_range=TimeRange(choice)) as screen:
        k1, k2 = st.columns(2)
        with k1:
            st.metric("Total spent", format_amount(screen.total_spent))
        with k2:
            st.metric("This month", format_amount(screen.month_total))

        if show_status(screen):
            df = summaries_frame(screen.summaries, screen.total_spent)
            fig = px.pie(df, values="total", names="category", title="Spending by category", hole=0.4)
            st.plotly_chart(fig, use_container_width=True)

            for summary, pct in screen.rows():
                left, mid, right = st.columns([3, 1, 1])
                with left:
                    st.markdown(f"**{summary.category}**  \n{transactions_label(summary.transaction_count)}")
                with mid:
                    st.markdown(format_amount(summary.total_amount))
                with right:
                    st.markdown(format_percentage(pct))


def settings_page():
    st.title("⚙️ Settings")
    st.caption("Logged in as")
    st.markdown(f"**{identity.email}**")
    if st.button("Logout"):
        auth.sign_out()
        st.rerun()

    st.divider()
    st.markdown("**Default Currency**")
    st.caption(f"{config.DEFAULT_CURRENCY} ({config.CURRENCY_SYMBOL})")

    if config.SEED_PATH.exists() and st.button("Load demo expenses"):
        seeded = load_seed(config.SEED_PATH)
        store.seed(replace(e, id=f"{identity.uid}-{e.id}", owner=identity.uid) for e in seeded)
        st.success(f"Loaded {len(seeded)} expenses ({format_amount(sum_amount(seeded))})")


if identity is None:
    sign_in_page()
else:
    st.sidebar.markdown(f"### 👤 {identity.display_name or identity.email}")
    menu = st.sidebar.radio(
        "Menu",
        ["🏠 Home", "➕ Add Expense", "🧾 History", "📊 Analytics", "⚙️ Settings"]
    )

    if menu == "🏠 Home":
        home_page()
    elif menu == "➕ Add Expense":
        add_expense_page()
    elif menu == "🧾 History":
        history_page()
    elif menu == "📊 Analytics":
        analytics_page()
    elif menu == "⚙️ Settings":
        settings_page()
