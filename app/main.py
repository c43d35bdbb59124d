"""
Streamlit Frontend for the Shop Credit Ledger

This is the screen the shop owner uses through the day.

DESIGN PRINCIPLES:
1. One form or button per action
2. Clear messages in simple language after every action
3. Warnings shown before money leaves a pocket
4. Numbers come from the ledger's queries, never recomputed here

The UI holds no ledger state. Every button calls one action, then the
page re-renders from the store.
"""

from datetime import date

import streamlit as st

from src.config import get_settings, validate_all_settings
from src.ledger.formatting import format_inr
from src.models.ledger import (
    AdjustDirection,
    CashPocket,
    CreditInput,
    CustomerInput,
    ExpenseInput,
    PaymentInput,
    PocketAdjustment,
    MAX_AMOUNT,
    PurchaseInput,
)
from src.orchestrator import ActionResult, LedgerActions, LedgerReports, create_app_components


# Page configuration
st.set_page_config(
    page_title="Shop Ledger",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

POCKET_LABELS = {
    CashPocket.KALLA: "Kalla (till)",
    CashPocket.HOME: "Home",
    CashPocket.BANK: "Bank",
    CashPocket.UPI: "UPI",
    CashPocket.OTHER: "Other",
}

# Largest amount the inputs accept; the ledger rejects anything from MAX_AMOUNT up
MAX_INPUT_AMOUNT = float(MAX_AMOUNT) - 1


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def inr(amount) -> str:
    return format_inr(amount, symbol=get_settings().app.currency_symbol)


def show_result(result: ActionResult) -> None:
    """Render an action outcome."""
    if result.success:
        st.success(result.message)
    else:
        st.error(result.message)
    for warning in result.warnings:
        st.warning(warning)


def pocket_select(label: str, key: str) -> CashPocket:
    return st.selectbox(
        label,
        options=list(CashPocket),
        format_func=lambda p: POCKET_LABELS[p],
        key=key,
    )


def main():
    """Main application entry point."""
    try:
        actions, reports, _ = get_components()
    except Exception as e:
        st.error(f"Could not open the ledger: {e}")
        st.stop()

    st.sidebar.title("📒 Shop Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏠 Dashboard", "👥 Customers", "🛒 Purchases", "🧾 Expenses",
         "💵 Cash", "📄 Statements", "⚙️ Settings"],
        index=0,
    )

    if page == "🏠 Dashboard":
        render_dashboard(reports)
    elif page == "👥 Customers":
        render_customers_page(actions, reports)
    elif page == "🛒 Purchases":
        render_purchases_page(actions, reports)
    elif page == "🧾 Expenses":
        render_expenses_page(actions, reports)
    elif page == "💵 Cash":
        render_cash_page(actions)
    elif page == "📄 Statements":
        render_statements_page(reports)
    elif page == "⚙️ Settings":
        render_settings_page(actions, reports)


def render_dashboard(reports: LedgerReports):
    """Render totals, pocket balances and recent activity."""
    st.title("🏠 Dashboard")
    _, _, store = get_components()
    totals = reports.totals()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total outstanding", inr(totals.total_outstanding))
    col2.metric("Today's purchases", inr(totals.today_purchases))
    col3.metric("Total expenses", inr(totals.total_expenses))
    col4.metric("Kalla", inr(store.cash_balances()[CashPocket.KALLA]))

    st.markdown("### Recent activity")
    recent = reports.recent_activity()
    if not recent:
        st.info("Nothing recorded yet.")
    for line in recent:
        st.markdown(f"- {line}")


def render_customers_page(actions: LedgerActions, reports: LedgerReports):
    """Render customer registration, credit/payment forms and the list."""
    st.title("👥 Customers")
    _, _, store = get_components()

    with st.form("add_customer", clear_on_submit=True):
        st.markdown("### Add customer")
        col1, col2, col3 = st.columns(3)
        name = col1.text_input("Name")
        phone = col2.text_input("Mobile")
        opening = col3.number_input(
            "Opening balance", min_value=0.0, max_value=MAX_INPUT_AMOUNT, step=10.0
        )
        if st.form_submit_button("Add"):
            show_result(actions.add_customer(
                CustomerInput(name=name, phone=phone, opening_balance=opening)
            ))

    customers = store.list_customers()
    if not customers:
        st.info("Add your first customer above.")
        return

    st.markdown("### Customers")
    st.dataframe(
        [
            {"Name": c.name, "Mobile": c.phone or "", "Balance": inr(c.balance)}
            for c in customers
        ],
        use_container_width=True,
    )

    by_id = {c.id: c for c in customers}
    customer_id = st.selectbox(
        "Customer",
        options=list(by_id),
        format_func=lambda cid: f"{by_id[cid].name} ({by_id[cid].phone or '-'})",
    )

    credit_col, payment_col = st.columns(2)
    with credit_col:
        with st.form("add_credit", clear_on_submit=True):
            st.markdown("#### Add credit")
            amount = st.number_input(
                "Amount", min_value=0.0, max_value=MAX_INPUT_AMOUNT, step=10.0, key="credit_amount"
            )
            note = st.text_input("Note", value="Sale on credit")
            if st.form_submit_button("Add credit"):
                show_result(actions.add_credit(
                    customer_id, CreditInput(amount=amount, note=note)
                ))

    with payment_col:
        with st.form("receive_payment", clear_on_submit=True):
            st.markdown("#### Record payment")
            amount = st.number_input(
                "Amount", min_value=0.0, max_value=MAX_INPUT_AMOUNT, step=10.0, key="pay_amount"
            )
            pocket = pocket_select("Received into", key="pay_pocket")
            note = st.text_input("Note", value="Payment received")
            if st.form_submit_button("Record payment"):
                show_result(actions.receive_payment(
                    customer_id, PaymentInput(amount=amount, pocket=pocket, note=note)
                ))

    if st.button("📲 WhatsApp reminder"):
        link, message = reports.reminder_link(customer_id)
        if link:
            st.link_button(message, link)
        else:
            st.error(message)


def show_deduction_warnings(reports: LedgerReports, pocket: CashPocket, amount: float) -> None:
    """Warn before submit when the payment would overdraw the pocket."""
    for warning in reports.deduction_warnings(pocket, amount):
        st.warning(warning)


def render_purchases_page(actions: LedgerActions, reports: LedgerReports):
    """Render the purchase entry and list."""
    st.title("🛒 Purchases")
    _, _, store = get_components()

    # Not a form: the pocket warning follows the inputs as they change
    col1, col2, col3, col4 = st.columns(4)
    dealer = col1.text_input("Dealer", key="purchase_dealer")
    amount = col2.number_input(
        "Amount", min_value=0.0, max_value=MAX_INPUT_AMOUNT, step=10.0, key="purchase_amount"
    )
    pocket = col3.selectbox(
        "Paid from", list(CashPocket), format_func=lambda p: POCKET_LABELS[p], key="purchase_pocket"
    )
    purchase_date = col4.date_input("Date", value=date.today(), key="purchase_date")
    show_deduction_warnings(reports, pocket, amount)
    if st.button("Add purchase"):
        show_result(actions.add_purchase(PurchaseInput(
            dealer=dealer, amount=amount, pocket=pocket, purchase_date=purchase_date
        )))

    for purchase in store.list_purchases():
        col1, col2, col3, col4, col5 = st.columns([2, 3, 2, 2, 1])
        col1.write(purchase.purchase_date.isoformat())
        col2.write(purchase.dealer)
        col3.write(inr(purchase.amount))
        col4.write(POCKET_LABELS[purchase.pocket])
        if col5.button("Delete", key=f"del_p_{purchase.id}"):
            show_result(actions.delete_purchase(purchase.id))
            st.rerun()


def render_expenses_page(actions: LedgerActions, reports: LedgerReports):
    """Render the expense entry and list."""
    st.title("🧾 Expenses")
    _, _, store = get_components()

    col1, col2, col3, col4 = st.columns(4)
    title = col1.text_input("Title", key="expense_title")
    amount = col2.number_input(
        "Amount", min_value=0.0, max_value=MAX_INPUT_AMOUNT, step=10.0, key="expense_amount"
    )
    pocket = col3.selectbox(
        "Paid from", list(CashPocket), format_func=lambda p: POCKET_LABELS[p], key="expense_pocket"
    )
    expense_date = col4.date_input("Date", value=date.today(), key="expense_date")
    show_deduction_warnings(reports, pocket, amount)
    if st.button("Add expense"):
        show_result(actions.add_expense(ExpenseInput(
            title=title, amount=amount, pocket=pocket, expense_date=expense_date
        )))

    for expense in store.list_expenses():
        col1, col2, col3, col4, col5 = st.columns([2, 3, 2, 2, 1])
        col1.write(expense.expense_date.isoformat())
        col2.write(expense.title)
        col3.write(inr(expense.amount))
        col4.write(POCKET_LABELS[expense.pocket])
        if col5.button("Delete", key=f"del_e_{expense.id}"):
            show_result(actions.delete_expense(expense.id))
            st.rerun()


def render_cash_page(actions: LedgerActions):
    """Render pocket balances and the manual adjustment form."""
    st.title("💵 Cash")
    _, _, store = get_components()

    balances = store.cash_balances()
    for col, pocket in zip(st.columns(len(CashPocket)), CashPocket):
        col.metric(POCKET_LABELS[pocket], inr(balances[pocket]))

    with st.form("adjust_pocket", clear_on_submit=True):
        st.markdown("### Modify a pocket")
        col1, col2, col3 = st.columns(3)
        pocket = col1.selectbox(
            "Pocket", list(CashPocket), format_func=lambda p: POCKET_LABELS[p]
        )
        direction = col2.selectbox(
            "Action", list(AdjustDirection), format_func=lambda d: d.value.capitalize()
        )
        amount = col3.number_input(
            "Amount", min_value=0.0, max_value=MAX_INPUT_AMOUNT, step=10.0
        )
        if st.form_submit_button("Apply"):
            show_result(actions.adjust_pocket(
                PocketAdjustment(pocket=pocket, amount=amount, direction=direction)
            ))


def render_statements_page(reports: LedgerReports):
    """Render a customer statement."""
    st.title("📄 Statements")
    _, _, store = get_components()

    customers = store.list_customers()
    if not customers:
        st.info("No customers yet.")
        return

    by_id = {c.id: c for c in customers}
    customer_id = st.selectbox(
        "Customer",
        options=list(by_id),
        format_func=lambda cid: f"{by_id[cid].name} ({by_id[cid].phone or '-'})",
    )
    if not st.button("Generate statement"):
        return

    statement, message = reports.statement(customer_id)
    if statement is None:
        st.error(message)
        return

    st.markdown(f"### Statement - {statement.name}")
    st.markdown(f"Mobile: {statement.phone or '-'}")
    st.markdown(f"Balance: **{inr(statement.balance)}**")
    if message:
        st.warning(message)
    st.table([
        {
            "Date": entry.entry_date.isoformat(),
            "Type": entry.kind.value,
            "Amount": inr(entry.amount),
            "Note": entry.note,
        }
        for entry in statement.entries
    ])


def render_settings_page(actions: LedgerActions, reports: LedgerReports):
    """Render reminder template, backup/import and clear-all."""
    st.title("⚙️ Settings")
    _, _, store = get_components()

    st.markdown("### WhatsApp reminder")
    with st.form("reminder_template"):
        template = st.text_area(
            "Message ({name} and {balance} are filled in)",
            value=store.reminder_template,
        )
        if st.form_submit_button("Save message"):
            show_result(actions.update_reminder_template(template))

    st.markdown("---")
    st.markdown("### Backup")
    filename, payload = reports.export_backup()
    st.download_button(
        "⬇️ Download backup",
        data=payload,
        file_name=filename,
        mime="application/json",
    )

    uploaded = st.file_uploader("Import backup (replaces all data)", type=["json"])
    if uploaded is not None and st.button("Import"):
        show_result(actions.import_backup(uploaded.getvalue()))

    st.markdown("---")
    st.markdown("### Danger zone")
    confirm = st.checkbox("I understand this deletes all data")
    if st.button("Clear ALL data", disabled=not confirm):
        show_result(actions.clear_all())

    st.markdown("---")
    st.markdown("### Configuration")
    status = validate_all_settings()
    for key in ("storage", "messaging", "app"):
        if status.get(key, False):
            st.success(f"✅ {key.capitalize()} settings OK")
        else:
            st.error(f"❌ {key.capitalize()} - {status.get(f'{key}_error', 'Not configured')}")
    settings = get_settings()
    st.caption(f"Ledger file: {settings.storage.data_file} ({settings.app.app_environment})")


if __name__ == "__main__":
    main()
