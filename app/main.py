"""
Streamlit Frontend for WealthFlow

A thin view over the orchestrator. Every page reads from the user's
FinanceSession and every button calls a FinanceFlow / AuthFlow method.

DESIGN PRINCIPLES:
1. No business logic here - totals come from the dashboard engine
2. Nothing changes on screen until the store emits a new snapshot
3. Auth errors are shown verbatim; other failures as a short message
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from wealthflow.config import validate_all_settings
from wealthflow.dashboard import account_label, filter_transactions, holding_performance
from wealthflow.models.finance import (
    Account,
    AccountType,
    StockHolding,
    Transaction,
    TransactionType,
    categories_for,
)
from wealthflow.orchestrator import (
    AuthFlow,
    FinanceFlow,
    FinanceSession,
    create_app_components,
)
from wealthflow.services.storage import SnapshotPublishingStore, StorageError
from wealthflow.sync import Collection


# Page configuration
st.set_page_config(
    page_title="WealthFlow",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """
    Get or create application components (cached).

    Shared by every browser session. The signed-in user is never kept
    here; see get_auth_flow().
    """
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def get_auth_flow(shared: AuthFlow) -> AuthFlow:
    """This browser session's own AuthFlow; the provider behind it is shared."""
    auth_flow = st.session_state.get("auth_flow")
    if auth_flow is None:
        auth_flow = shared.new_session()
        st.session_state.auth_flow = auth_flow
    return auth_flow


def get_session(user_id: str, record_store) -> FinanceSession:
    """One live session per signed-in user, kept across reruns."""
    session = st.session_state.get("finance_session")
    if session is None or session.user_id != user_id:
        if session is not None:
            session.stop()
        session = FinanceSession(user_id, record_store)
        run_async(session.start())
        st.session_state.finance_session = session
    return session


def money(value: Decimal) -> str:
    return f"${value:,.0f}"


def main():
    """Main application entry point."""
    shared_auth_flow, finance_flow, record_store = get_components()
    auth_flow = get_auth_flow(shared_auth_flow)

    user = auth_flow.current_user
    if user is None:
        render_auth_page(auth_flow)
        return

    session = get_session(user.id, record_store)

    st.sidebar.title("💰 WealthFlow")
    st.sidebar.markdown(f"Signed in as **{user.display_name}**")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🏦 Accounts", "📈 Stocks", "🧾 Transactions", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if isinstance(record_store, SnapshotPublishingStore) and st.sidebar.button("🔄 Reload"):
        for collection in Collection:
            run_async(record_store.refresh(user.id, collection))
        st.rerun()

    if st.sidebar.button("🚪 Sign out"):
        session.stop()
        st.session_state.finance_session = None
        run_async(auth_flow.sign_out())
        st.rerun()

    if page == "📊 Dashboard":
        render_dashboard_page(session)
    elif page == "🏦 Accounts":
        render_accounts_page(session, finance_flow)
    elif page == "📈 Stocks":
        render_stocks_page(session, finance_flow)
    elif page == "🧾 Transactions":
        render_transactions_page(session, finance_flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_auth_page(auth_flow: AuthFlow):
    """Sign-in and registration forms."""
    st.title("💰 WealthFlow")

    mode = st.radio("Mode", ["Sign in", "Register"], horizontal=True, label_visibility="collapsed")

    with st.form("auth_form"):
        display_name = ""
        if mode == "Register":
            display_name = st.text_input("Display name")
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button(mode, type="primary")

    if submitted:
        if mode == "Register":
            outcome = run_async(auth_flow.register(email, password, display_name))
        else:
            outcome = run_async(auth_flow.sign_in(email, password))

        if outcome.error_message:
            st.error(outcome.error_message)
        else:
            st.rerun()


def render_dashboard_page(session: FinanceSession):
    """Totals, expense breakdown and monthly cash flow."""
    st.title("📊 Dashboard")
    summary = session.summary

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total assets", money(summary.total_assets))
    col2.metric("Cash", money(summary.total_cash_balance))
    col3.metric("Stock value", money(summary.stock_market_value))
    col4.metric("Unrealized P/L", money(summary.unrealized_pl))

    st.markdown("---")
    left, right = st.columns(2)

    with left:
        st.markdown("### Expenses by category")
        if summary.expense_breakdown:
            st.bar_chart(
                {
                    "category": [row.category for row in summary.expense_breakdown],
                    "total": [float(row.total) for row in summary.expense_breakdown],
                },
                x="category",
                y="total",
            )
        else:
            st.info("No expenses yet.")

    with right:
        st.markdown("### Monthly cash flow")
        if summary.monthly_cashflow:
            st.bar_chart(
                {
                    "month": [m.month for m in summary.monthly_cashflow],
                    "income": [float(m.income) for m in summary.monthly_cashflow],
                    "expense": [float(m.expense) for m in summary.monthly_cashflow],
                },
                x="month",
                y=["income", "expense"],
            )
        else:
            st.info("No transactions yet.")


def render_accounts_page(session: FinanceSession, finance_flow: FinanceFlow):
    """Account list with add, edit and delete."""
    st.title("🏦 Accounts")

    with st.expander("➕ Add account"):
        with st.form("add_account"):
            name = st.text_input("Name")
            account_type = st.selectbox("Type", list(AccountType), format_func=lambda t: t.value)
            balance = st.number_input("Balance", value=0.0, step=100.0)
            currency = st.text_input("Currency", value="TWD")
            if st.form_submit_button("Save", type="primary"):
                if not name.strip():
                    st.error("Please enter the account name")
                else:
                    try:
                        run_async(finance_flow.add_account(session.user_id, Account(
                            name=name,
                            type=account_type,
                            balance=Decimal(str(balance)),
                            currency=currency or "TWD",
                        )))
                        st.rerun()
                    except StorageError as e:
                        st.error(f"Failed to save: {e}")

    for account in session.accounts:
        with st.expander(f"{account.name} · {account.type.value} · {money(account.balance)} {account.currency}"):
            with st.form(f"edit_{account.id}"):
                name = st.text_input("Name", value=account.name)
                account_type = st.selectbox(
                    "Type",
                    list(AccountType),
                    index=list(AccountType).index(account.type),
                    format_func=lambda t: t.value,
                )
                balance = st.number_input("Balance", value=float(account.balance), step=100.0)
                currency = st.text_input("Currency", value=account.currency)
                col1, col2 = st.columns(2)
                save = col1.form_submit_button("Save")
                delete = col2.form_submit_button("Delete")

            try:
                if save:
                    run_async(finance_flow.edit_account(session.user_id, account.model_copy(update={
                        "name": name,
                        "type": account_type,
                        "balance": Decimal(str(balance)),
                        "currency": currency,
                    })))
                    st.rerun()
                if delete:
                    run_async(finance_flow.delete_account(session.user_id, account.id))
                    st.rerun()
            except StorageError as e:
                st.error(f"Failed to save: {e}")


def render_stocks_page(session: FinanceSession, finance_flow: FinanceFlow):
    """Holdings table, add / delete, and the AI price refresh."""
    st.title("📈 Stocks")

    if st.button("🤖 Refresh prices") and session.stocks:
        with st.spinner("Looking up latest prices..."):
            run_async(finance_flow.refresh_prices(session.user_id, session.stocks))
        st.rerun()

    with st.expander("➕ Add holding"):
        with st.form("add_stock"):
            symbol = st.text_input("Symbol", placeholder="2330.TW")
            name = st.text_input("Name")
            shares = st.number_input("Shares", min_value=0.0, step=1.0)
            avg_price = st.number_input("Average price", min_value=0.0)
            current_price = st.number_input("Current price", min_value=0.0)
            if st.form_submit_button("Save", type="primary"):
                if not symbol.strip():
                    st.error("Please enter the symbol")
                else:
                    try:
                        run_async(finance_flow.add_stock(session.user_id, StockHolding(
                            symbol=symbol,
                            name=name,
                            shares=Decimal(str(shares)),
                            avg_price=Decimal(str(avg_price)),
                            current_price=Decimal(str(current_price)),
                        )))
                        st.rerun()
                    except StorageError as e:
                        st.error(f"Failed to save: {e}")

    for holding in session.stocks:
        perf = holding_performance(holding)
        col1, col2, col3, col4 = st.columns([3, 2, 2, 1])
        col1.markdown(f"**{holding.symbol}** {holding.name}")
        col2.markdown(f"{money(perf.market_value)}")
        col3.markdown(f"{money(perf.profit)} ({perf.profit_percent:.2f}%)")
        if col4.button("🗑️", key=f"del_{holding.id}"):
            try:
                run_async(finance_flow.delete_stock(session.user_id, holding.id))
                st.rerun()
            except StorageError as e:
                st.error(f"Failed to delete: {e}")


def render_transactions_page(session: FinanceSession, finance_flow: FinanceFlow):
    """Transaction entry form and filtered history."""
    st.title("🧾 Transactions")

    if not session.accounts:
        st.info("Add an account first.")
    else:
        with st.expander("➕ Add transaction", expanded=True):
            txn_type = st.selectbox("Type", list(TransactionType), format_func=lambda t: t.value)
            with st.form("add_transaction"):
                account = st.selectbox("Account", session.accounts, format_func=lambda a: a.name)
                amount = st.number_input("Amount", min_value=0.0, step=10.0)
                category = st.selectbox("Category", categories_for(txn_type))
                txn_date = st.date_input("Date", value=date.today())
                note = st.text_input("Note")
                if st.form_submit_button("Save", type="primary"):
                    try:
                        run_async(finance_flow.add_transaction(
                            session.user_id,
                            Transaction(
                                account_id=account.id,
                                type=txn_type,
                                amount=Decimal(str(amount)),
                                category=category,
                                date=txn_date,
                                note=note,
                            ),
                            session.accounts,
                        ))
                        st.rerun()
                    except StorageError as e:
                        st.error(f"Failed to save: {e}")

    st.markdown("---")
    type_filter = st.selectbox(
        "Filter by type",
        options=[None] + list(TransactionType),
        format_func=lambda t: "All" if t is None else t.value,
    )

    rows = [
        {
            "Date": txn.date.isoformat(),
            "Type": txn.type.value,
            "Category": txn.category,
            "Account": account_label(txn.account_id, session.accounts),
            "Amount": float(txn.amount),
            "Note": txn.note,
        }
        for txn in filter_transactions(session.transactions, type_filter)
    ]
    if rows:
        st.dataframe(rows, use_container_width=True, hide_index=True)
    else:
        st.info("No transactions to show.")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (Price refresh)", "gemini"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Connected")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "Set `STORAGE_BACKEND=google_sheets` to use the hosted store; "
        "the in-memory store is used otherwise."
    )


if __name__ == "__main__":
    main()
