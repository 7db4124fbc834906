"""
Streamlit Frontend for Treasury

The treasurer's view of the organization's money:
- the cash register balance and how it is made up
- the bank balance, editable by treasurers
- whether the two agree
- the year's manual transactions

The page is a thin shell over treasury.orchestrator. It holds no
business rules: every figure comes from ReconciliationFlow, every
form submission goes through TransactionEntryFlow.

Authentication is handled by the hosting application, which is
expected to put the signed-in user's id in st.session_state.user_id.
"""

import asyncio
from decimal import Decimal
from uuid import UUID

import streamlit as st

from treasury.config import get_settings, validate_all_settings
from treasury.models.transaction import (
    CATEGORY_LABELS,
    BalanceReadingStatus,
    RecipientType,
    TransactionType,
    categories_for,
)
from treasury.orchestrator import (
    ReconciliationFlow,
    TransactionEntryFlow,
    create_app_components,
)
from treasury.validation import TransactionFormData


st.set_page_config(
    page_title="Treasury",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)


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
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def format_amount(amount: Decimal) -> str:
    currency = get_settings().app.currency_code
    return f"{amount:,.0f} {currency}"


def format_signed_amount(amount: Decimal) -> str:
    currency = get_settings().app.currency_code
    return f"{amount:+,.0f} {currency}"


def current_actor_id():
    """Signed-in user's id, as provided by the hosting application."""
    raw = st.session_state.get("user_id")
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        return None


def get_dashboard() -> ReconciliationFlow:
    service, _ = get_components()
    if "dashboard" not in st.session_state:
        dashboard = ReconciliationFlow(service)
        run_async(dashboard.load())
        st.session_state.dashboard = dashboard
    return st.session_state.dashboard


def main():
    """Main application entry point."""
    st.sidebar.title("💰 Treasury")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Cash & Bank", "⚙️ Settings"],
        index=0,
    )

    if page == "📊 Cash & Bank":
        render_dashboard_page(get_dashboard())
    else:
        render_settings_page()


def render_dashboard_page(dashboard: ReconciliationFlow):
    """Render the reconciliation dashboard."""
    st.title("📊 Cash & Bank")

    actor_id = current_actor_id()

    if dashboard.state.error:
        st.error(dashboard.state.error)

    snapshot = dashboard.snapshot
    if snapshot is None:
        st.info("No data loaded yet.")
        if st.button("🔄 Retry"):
            run_async(dashboard.load())
            st.rerun()
        return

    col1, col2 = st.columns(2)

    with col1:
        st.subheader("👛 Cash register")
        st.metric("Current balance", format_amount(snapshot.cash.total_balance))
        st.markdown(f"Contributions: **{format_amount(snapshot.cash.total_contributions)}**")
        st.markdown(f"Other income: **{format_amount(snapshot.cash.total_manual_income)}**")
        st.markdown(f"Expenses: **{format_amount(snapshot.cash.total_expenses)}**")

        if actor_id is not None:
            add_income, add_expense = st.columns(2)
            if add_income.button("➕ New income"):
                st.session_state.entry_form = run_async(
                    dashboard.open_transaction_form(TransactionType.INCOME)
                )
            if add_expense.button("➖ New expense"):
                st.session_state.entry_form = run_async(
                    dashboard.open_transaction_form(TransactionType.EXPENSE)
                )

    with col2:
        render_bank_balance(dashboard, actor_id)

    entry_form = st.session_state.get("entry_form")
    if entry_form is not None and entry_form.state.is_open and actor_id is not None:
        render_transaction_form(entry_form, actor_id)

    st.markdown("---")
    render_transactions(dashboard, actor_id)


def render_bank_balance(dashboard: ReconciliationFlow, actor_id):
    """Bank balance card with inline edit and reconciliation status."""
    snapshot = dashboard.snapshot

    st.subheader("🏦 Bank")

    if dashboard.state.is_editing_balance:
        new_amount = st.number_input(
            "New bank balance",
            value=float(dashboard.state.pending_bank_balance),
            step=1000.0,
            format="%.0f",
        )
        save, cancel = st.columns(2)
        if save.button("💾 Save"):
            dashboard.set_pending_bank_balance(Decimal(str(new_amount)))
            run_async(dashboard.save_bank_balance(actor_id))
            st.rerun()
        if cancel.button("Cancel"):
            dashboard.cancel_balance_edit()
            st.rerun()
    else:
        st.metric("Bank balance", format_amount(snapshot.bank.amount))
        if snapshot.bank.status == BalanceReadingStatus.UNKNOWN:
            st.warning("The bank balance could not be read; showing 0.")
        elif snapshot.bank.updated_at:
            st.caption(f"Last updated {snapshot.bank.updated_at:%d/%m/%Y %H:%M}")
        if actor_id is not None and st.button("✏️ Update bank balance"):
            dashboard.start_balance_edit()
            st.rerun()

    if snapshot.has_mismatch:
        st.error(
            f"⚠️ Cash and bank differ by {format_amount(abs(snapshot.difference))}"
        )
    else:
        st.success("✅ Balances match")


def render_transaction_form(entry_form: TransactionEntryFlow, actor_id: UUID):
    """Modal-like form for a new income or expense."""
    is_expense = entry_form.transaction_type == TransactionType.EXPENSE
    st.markdown("---")
    st.subheader("New expense" if is_expense else "New income")

    if entry_form.state.error:
        st.error(entry_form.state.error)

    errors = entry_form.state.field_errors
    defaults = entry_form.new_form()

    with st.form("transaction_form"):
        tx_date = st.text_input("Date (YYYY-MM-DD)", value=defaults.date)
        if "date" in errors:
            st.caption(f"❌ {errors['date']}")

        amount = st.number_input("Amount", value=0.0, step=1000.0, format="%.0f")
        if "amount" in errors:
            st.caption(f"❌ {errors['amount']}")

        category = st.selectbox(
            "Category",
            options=[""] + categories_for(entry_form.transaction_type),
            format_func=lambda c: "Select a category" if not c else CATEGORY_LABELS[c],
        )
        if "category" in errors:
            st.caption(f"❌ {errors['category']}")

        description = st.text_input("Description")
        if "description" in errors:
            st.caption(f"❌ {errors['description']}")

        recipient_type = RecipientType.MEMBER.value
        recipient_id = None
        recipient_name = None
        if is_expense:
            recipient_type = st.radio(
                "Recipient",
                options=[r.value for r in RecipientType],
                format_func=lambda r: "Member" if r == "member" else "Other",
                horizontal=True,
            )
            members = entry_form.members.members
            recipient_id = st.selectbox(
                "Member",
                options=[""] + [str(m.id) for m in members],
                format_func=lambda m: "Select a member" if not m else entry_form.members.name_of(m),
            )
            recipient_name = st.text_input("Recipient name (if not a member)")
            if "recipient_name" in errors:
                st.caption(f"❌ {errors['recipient_name']}")

        submitted = st.form_submit_button(
            "Saving..." if entry_form.state.is_loading else "Save",
            disabled=entry_form.state.is_loading,
        )

    if st.button("Close"):
        entry_form.close()
        st.rerun()

    if submitted:
        form = TransactionFormData(
            date=tx_date,
            amount=amount,
            category=category,
            description=description,
            recipient_type=recipient_type,
            recipient_id=recipient_id or None,
            recipient_name=recipient_name or None,
        )
        created = run_async(entry_form.submit(form, actor_id))
        if created is not None:
            st.session_state.entry_form = None
        st.rerun()


def render_transactions(dashboard: ReconciliationFlow, actor_id):
    """The selected year's transactions."""
    header, year_col = st.columns([3, 1])
    header.subheader("📋 Transactions")

    options = dashboard.year_options()
    selected = year_col.selectbox(
        "Year",
        options=options,
        index=options.index(dashboard.state.year) if dashboard.state.year in options else 0,
    )
    if selected != dashboard.state.year:
        run_async(dashboard.select_year(selected))
        st.rerun()

    with st.expander("Totals by category"):
        totals = run_async(dashboard.category_totals())
        for transaction_type, by_category in totals.items():
            if not by_category:
                continue
            st.markdown(f"**{'Income' if transaction_type == TransactionType.INCOME else 'Expenses'}**")
            for category, total in sorted(by_category.items(), key=lambda item: item[1], reverse=True):
                st.markdown(f"- {CATEGORY_LABELS.get(category, category)}: {format_amount(total)}")

    transactions = dashboard.snapshot.transactions
    if not transactions:
        st.info("No transactions for this year.")
        return

    for transaction in transactions:
        left, right, action = st.columns([4, 2, 1])
        left.markdown(
            f"**{transaction.description}**  \n"
            f"{transaction.date:%d/%m/%Y} · {CATEGORY_LABELS.get(transaction.category, transaction.category)}"
            + (f"  \nRecipient: {transaction.recipient}" if transaction.recipient else "")
        )
        right.markdown(f"**{format_signed_amount(transaction.signed_amount)}**")
        if actor_id is not None and action.button("🗑️", key=f"delete-{transaction.id}"):
            run_async(dashboard.delete_transaction(transaction.id, actor_id))
            st.rerun()


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Supabase (Storage)", "supabase"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with "
        "`SUPABASE_URL` and `SUPABASE_KEY`. Set `USE_IN_MEMORY_STORAGE=true` "
        "to run without a database."
    )


if __name__ == "__main__":
    main()
