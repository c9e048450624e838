"""
Streamlit Frontend for Pocket Bank

Web front-end over the same ledger the console driver uses.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before loans move money
3. Clear error messages in simple language
4. Visual feedback for all operations
5. No hidden actions

The ledger components are shared (cached) across browser sessions;
each browser session keeps its own login in st.session_state.

Run with:
    streamlit run app/main.py
"""

from decimal import Decimal

import streamlit as st

from pocketbank.audit import configure_logging
from pocketbank.config import get_settings
from pocketbank.errors import LedgerError
from pocketbank.models.account import TransactionReceipt, TransactionStatus
from pocketbank.models.market import AssetKind, CurrencyKind
from pocketbank.orchestrator import AppComponents, create_app_components
from pocketbank.session import Session


# Page configuration
st.set_page_config(
    page_title="Pocket Bank",
    page_icon="🏦",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    configure_logging(get_settings().logging)
    return create_app_components()


def get_session(components: AppComponents) -> Session:
    """One login per browser session."""
    if "session" not in st.session_state:
        st.session_state.session = Session(components.store, components.audit_logger)
    return st.session_state.session


def money(amount: Decimal) -> str:
    symbol = get_settings().ledger.currency_symbol
    return f"{symbol}{amount:,.2f}"


def show_receipt(receipt: TransactionReceipt) -> None:
    """Render a receipt as a coloured box."""
    if receipt.status == TransactionStatus.COMPLETED:
        st.markdown(f"""
        <div class="success-box">
            <h4>✅ {receipt.message}</h4>
            <p><strong>New balance:</strong> {money(receipt.cash_balance)}</p>
        </div>
        """, unsafe_allow_html=True)
    else:
        st.markdown(f"""
        <div class="info-box">
            <h4>ℹ️ {receipt.message}</h4>
        </div>
        """, unsafe_allow_html=True)


def show_error(error: LedgerError) -> None:
    st.markdown(f"""
    <div class="error-box">
        <h4>❌ {error}</h4>
    </div>
    """, unsafe_allow_html=True)


def main():
    """Main application entry point."""
    try:
        components = get_components()
    except LedgerError as e:
        st.error(f"Failed to load accounts: {e}")
        st.stop()

    session = get_session(components)

    # Sidebar navigation
    st.sidebar.title("🏦 Pocket Bank")
    st.sidebar.markdown("---")

    if not session.is_authenticated:
        render_login_page(components, session)
        return

    st.sidebar.markdown(f"Logged in as **{session.current}**")
    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "💵 Cash", "📈 Invest", "🏛️ Loan", "💱 Forex", "📉 Market", "📜 Activity"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Logout"):
        session.logout()
        st.rerun()

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(components, session)
    elif page == "💵 Cash":
        render_cash_page(components, session)
    elif page == "📈 Invest":
        render_invest_page(components, session)
    elif page == "🏛️ Loan":
        render_loan_page(components, session)
    elif page == "💱 Forex":
        render_forex_page(components, session)
    elif page == "📉 Market":
        render_market_page(components)
    elif page == "📜 Activity":
        render_activity_page(components, session)


def render_login_page(components: AppComponents, session: Session):
    """Login and account creation."""
    st.title("🔐 Welcome to Pocket Bank")

    login_tab, register_tab = st.tabs(["Login", "Create Account"])

    with login_tab:
        name = st.text_input("Name", key="login_name")
        pin = st.text_input("PIN", type="password", max_chars=4, key="login_pin")
        if st.button("Login", type="primary"):
            try:
                session.login(name.strip(), pin.strip())
                st.rerun()
            except LedgerError as e:
                show_error(e)

    with register_tab:
        settings = components.store.settings
        st.markdown(
            f"New accounts start with **{money(settings.starting_balance)}**. "
            f"Names are letters only; PINs are 4 digits (1000-9999) and must be unique."
        )
        name = st.text_input("Name", key="register_name")
        pin = st.text_input("PIN", type="password", max_chars=4, key="register_pin")
        if st.button("Create Account"):
            try:
                handle = components.store.register(name.strip(), pin.strip())
                st.success(f"✅ Account created for {handle}. You can log in now.")
            except LedgerError as e:
                show_error(e)


def render_dashboard_page(components: AppComponents, session: Session):
    """Account status report."""
    handle = session.require()
    statement = components.engine.statement(handle)

    st.title("📊 Account Status")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("**Cash balance**")
        st.markdown(f'<div class="big-number">{money(statement.cash_balance)}</div>',
                    unsafe_allow_html=True)
    with col2:
        st.markdown("**Outstanding loan**")
        st.markdown(f'<div class="big-number">{money(statement.loan_outstanding)}</div>',
                    unsafe_allow_html=True)
    with col3:
        st.markdown("**Net worth**")
        st.markdown(f'<div class="big-number">{money(statement.net_worth)}</div>',
                    unsafe_allow_html=True)

    st.markdown("---")
    col1, col2 = st.columns(2)
    with col1:
        st.markdown(f"### Assets ({money(statement.total_assets)})")
        st.table([
            {
                "Asset": line.instrument.title(),
                "Units": f"{line.units:.4f}",
                "Price": money(line.unit_value),
                "Value": money(line.value),
            }
            for line in statement.assets
        ])
    with col2:
        st.markdown(f"### Forex ({money(statement.total_forex)})")
        st.table([
            {
                "Currency": line.instrument,
                "Units": f"{line.units:.2f}",
                "Rate": f"{line.unit_value:.4f}",
                "Value": money(line.value),
            }
            for line in statement.currencies
        ])


def render_cash_page(components: AppComponents, session: Session):
    """Deposit and withdraw."""
    handle = session.require()
    st.title("💵 Cash Transaction")

    deposit_col, withdraw_col = st.columns(2)

    with deposit_col:
        st.markdown("### Deposit")
        amount = st.number_input("Amount", min_value=0.0, step=10.0, format="%.2f",
                                 key="deposit_amount")
        if st.button("Deposit", type="primary"):
            try:
                show_receipt(components.engine.deposit(handle, str(amount)))
            except LedgerError as e:
                show_error(e)

    with withdraw_col:
        st.markdown("### Withdraw")
        amount = st.number_input("Amount", min_value=0.0, step=10.0, format="%.2f",
                                 key="withdraw_amount")
        pin = st.text_input("PIN", type="password", max_chars=4, key="withdraw_pin")
        if st.button("Withdraw"):
            try:
                show_receipt(components.engine.withdraw(handle, str(amount), pin))
            except LedgerError as e:
                show_error(e)


def render_invest_page(components: AppComponents, session: Session):
    """Buy assets with the fixed purchase amount."""
    handle = session.require()
    settings = components.store.settings
    st.title("📈 Purchase Assets")
    st.markdown(f"Each purchase invests **{money(settings.asset_purchase_amount)}** at today's price.")

    asset = st.radio(
        "Asset",
        options=list(AssetKind),
        format_func=lambda k: f"{k.value.title()} ({money(components.price_feed.current_price(k))}/unit)",
    )
    pin = st.text_input("PIN", type="password", max_chars=4, key="invest_pin")
    if st.button("Buy", type="primary"):
        try:
            show_receipt(components.engine.purchase_asset(handle, asset, pin))
        except LedgerError as e:
            show_error(e)


def render_loan_page(components: AppComponents, session: Session):
    """Take or repay the fixed-size loan."""
    handle = session.require()
    status = components.engine.loan_status(handle)
    st.title("🏛️ Loan Management")

    pin = st.text_input("PIN", type="password", max_chars=4, key="loan_pin")

    if not status.has_loan:
        st.markdown("You have no outstanding loan.")
        confirmed = st.checkbox(f"Yes, I want to take a loan of {money(status.loan_amount_offered)}")
        if st.button("Submit", type="primary"):
            try:
                show_receipt(components.engine.take_loan(handle, pin, confirmed))
            except LedgerError as e:
                show_error(e)
    else:
        st.markdown(f"Outstanding loan: **{money(status.loan_outstanding)}**")
        if not status.can_repay:
            st.warning("Your cash balance does not cover the loan yet.")
        confirmed = st.checkbox("Yes, repay the full loan")
        if st.button("Submit", type="primary"):
            try:
                show_receipt(components.engine.repay_loan(handle, pin, confirmed))
            except LedgerError as e:
                show_error(e)


def render_forex_page(components: AppComponents, session: Session):
    """Buy and sell foreign currency."""
    handle = session.require()
    statement = components.engine.statement(handle)
    st.title("💱 Forex Wallet")
    st.markdown(f"USD balance: **{money(statement.cash_balance)}**")

    for line in statement.currencies:
        st.markdown(f"- {line.instrument}: {line.units:.2f} (≈ {money(line.value)})")

    buy_col, sell_col = st.columns(2)
    with buy_col:
        st.markdown("### USD → Foreign")
        currency = st.selectbox("Currency", options=list(CurrencyKind),
                                format_func=lambda c: c.value, key="buy_currency")
        amount = st.number_input("USD amount", min_value=0.0, step=10.0, format="%.2f",
                                 key="buy_amount")
        if st.button("Convert to foreign", type="primary"):
            try:
                show_receipt(components.engine.convert_to_foreign(handle, currency, str(amount)))
            except LedgerError as e:
                show_error(e)

    with sell_col:
        st.markdown("### Foreign → USD")
        currency = st.selectbox("Currency", options=list(CurrencyKind),
                                format_func=lambda c: c.value, key="sell_currency")
        amount = st.number_input("Foreign amount", min_value=0.0, step=10.0, format="%.2f",
                                 key="sell_amount")
        if st.button("Convert to USD"):
            try:
                show_receipt(components.engine.convert_from_foreign(handle, currency, str(amount)))
            except LedgerError as e:
                show_error(e)


def render_market_page(components: AppComponents):
    """Current prices and the market update button."""
    st.title("📉 Market")

    if st.button("🎲 Update Market", type="primary"):
        update = components.price_feed.advance()
        components.audit_logger.log_market_update(update)
        for change in update.changes:
            st.markdown(
                f"- **{change.asset.value.title()}**: {money(change.old_price)} → "
                f"{money(change.new_price)} ({change.change_percent:+d}%)"
            )

    snapshot = components.price_feed.snapshot()
    col1, col2 = st.columns(2)
    with col1:
        st.markdown("### Asset prices")
        st.table([
            {"Asset": kind.value.title(), "Price per unit": money(price)}
            for kind, price in snapshot.prices.items()
        ])
    with col2:
        st.markdown("### Exchange rates (USD per unit)")
        st.table([
            {"Currency": kind.value, "Rate": f"{rate:.4f}"}
            for kind, rate in snapshot.rates.items()
        ])


def render_activity_page(components: AppComponents, session: Session):
    """Recent audit events for the logged-in account."""
    handle = session.require()
    st.title("📜 Recent Activity")

    events = list(reversed(components.audit_logger.events_for(handle.name, limit=50)))
    if not events:
        st.info("📋 No activity yet in this session.")
        return

    columns = ["Time", "Event", "Severity", "Account", "Amount", "Description", "Details"]
    st.dataframe(
        [dict(zip(columns, event.to_activity_row())) for event in events],
        use_container_width=True,
    )


if __name__ == "__main__":
    main()
