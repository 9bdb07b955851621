"""
Streamlit Console for Envelope Ledger

A small operator console over the envelope ledger: see balances, move money
between envelopes, and manage the envelopes themselves.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every action goes through the same service the tests exercise
3. Clear error messages in simple language
4. Visual feedback for all operations

The ledger store runs a single writer task on one event loop. Streamlit
re-runs this script on every interaction, so the loop lives in a background
thread owned by a cached LedgerRuntime and calls are handed to it.
"""

import asyncio
import threading
from decimal import Decimal

import streamlit as st

from envelope_ledger.audit import create_correlation_id
from envelope_ledger.config import get_settings, validate_all_settings
from envelope_ledger.errors import ErrorKind, LedgerError
from envelope_ledger.orchestrator import EnvelopeService, create_app_components


# Page configuration
st.set_page_config(
    page_title="Envelope Ledger",
    page_icon="✉️",
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
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


ERROR_TITLES = {
    ErrorKind.NOT_FOUND: "Not found",
    ErrorKind.CONFLICT: "Not allowed",
    ErrorKind.VALIDATION: "Please check your input",
    ErrorKind.FATAL: "Could not save",
}


class LedgerRuntime:
    """Owns the event loop thread and the initialized service."""

    def __init__(self):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever,
            name="ledger-event-loop",
            daemon=True,
        )
        self._thread.start()
        self.service, self.store = self.run(create_app_components())

    def run(self, coro):
        """Run a coroutine on the ledger loop and wait for its result."""
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()


@st.cache_resource
def get_runtime() -> LedgerRuntime:
    """Get or create the ledger runtime (cached)."""
    return LedgerRuntime()


def format_money(amount) -> str:
    symbol = get_settings().app.currency_symbol
    return f"{symbol}{Decimal(str(amount)):,.2f}"


def show_error(error: LedgerError):
    """Render a ledger error in plain language."""
    title = ERROR_TITLES.get(error.kind, "Error")
    st.markdown(f"""
    <div class="error-box">
        <h4>❌ {title}</h4>
        <p>{error.message}</p>
    </div>
    """, unsafe_allow_html=True)
    issues = getattr(error, "issues", None)
    if issues:
        for issue in issues:
            st.markdown(f"- **{issue['field']}**: {issue['message']}")


def envelope_options(service: EnvelopeService) -> dict[str, int]:
    return {
        f"{e.id} · {e.name} ({format_money(e.balance)})": e.id
        for e in service.list_envelopes().data
    }


def main():
    """Main application entry point."""
    try:
        runtime = get_runtime()
    except LedgerError as e:
        st.error(f"Failed to open the ledger: {e.message}")
        st.stop()

    # Sidebar navigation
    st.sidebar.title("✉️ Envelope Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Envelopes", "💸 Move Money", "🗂️ Manage", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Check your envelope balances
        2. Deposit, withdraw or transfer
        3. Add, rename or remove envelopes
        """
    )

    # Route to appropriate page
    if page == "📊 Envelopes":
        render_envelopes_page(runtime)
    elif page == "💸 Move Money":
        render_money_page(runtime)
    elif page == "🗂️ Manage":
        render_manage_page(runtime)
    elif page == "⚙️ Settings":
        render_settings_page(runtime)


def render_envelopes_page(runtime: LedgerRuntime):
    """Render the balances overview."""
    st.title("📊 Your Envelopes")

    listing = runtime.service.list_envelopes()

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**Total balance**")
        st.markdown(
            f'<div class="big-number">{format_money(listing.total_balance)}</div>',
            unsafe_allow_html=True,
        )
    with col2:
        st.markdown("**Envelopes**")
        st.markdown(
            f'<div class="big-number">{listing.count}</div>',
            unsafe_allow_html=True,
        )

    st.markdown("---")

    if not listing.data:
        st.info("No envelopes yet. Use the 'Manage' page to add one.")
        return

    st.dataframe(
        [
            {
                "ID": e.id,
                "Name": e.name,
                "Balance": format_money(e.balance),
                "Updated": e.updated_at.strftime("%Y-%m-%d %H:%M"),
            }
            for e in listing.data
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_money_page(runtime: LedgerRuntime):
    """Render deposit / withdraw / transfer forms."""
    st.title("💸 Move Money")
    service = runtime.service
    options = envelope_options(service)

    if not options:
        st.info("Add an envelope first.")
        return

    st.markdown("### Deposit or Withdraw")
    with st.form("transaction_form"):
        col1, col2, col3 = st.columns([2, 1, 1])
        with col1:
            label = st.selectbox("Envelope", list(options))
        with col2:
            kind = st.radio("Type", ["deposit", "withdraw"], horizontal=True)
        with col3:
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
        submitted = st.form_submit_button("Apply")

    if submitted:
        try:
            view = runtime.run(
                service.create_transaction(
                    options[label],
                    {"type": kind, "amount": str(amount)},
                    correlation_id=create_correlation_id(),
                )
            )
            st.success(f"✅ {view.name} now holds {format_money(view.balance)}")
        except LedgerError as e:
            show_error(e)

    st.markdown("---")
    st.markdown("### Transfer")
    with st.form("transfer_form"):
        col1, col2, col3 = st.columns([2, 2, 1])
        with col1:
            from_label = st.selectbox("From", list(options), key="transfer_from")
        with col2:
            to_label = st.selectbox("To", list(options), key="transfer_to")
        with col3:
            transfer_amount = st.number_input(
                "Amount", min_value=0.0, step=1.0, format="%.2f", key="transfer_amount",
            )
        submitted = st.form_submit_button("Transfer")

    if submitted:
        try:
            result = runtime.run(
                service.create_transfer(
                    {
                        "fromId": options[from_label],
                        "toId": options[to_label],
                        "amount": str(transfer_amount),
                    },
                    correlation_id=create_correlation_id(),
                )
            )
            st.markdown(f"""
            <div class="success-box">
                <h4>✅ Transferred {format_money(result.amount)}</h4>
                <p>{result.from_envelope.name}: {format_money(result.from_envelope.balance)}<br>
                {result.to_envelope.name}: {format_money(result.to_envelope.balance)}</p>
            </div>
            """, unsafe_allow_html=True)
        except LedgerError as e:
            show_error(e)


def render_manage_page(runtime: LedgerRuntime):
    """Render create / rename / delete forms."""
    st.title("🗂️ Manage Envelopes")
    service = runtime.service

    st.markdown("### New Envelope")
    with st.form("create_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name", max_chars=get_settings().app.max_name_length)
        with col2:
            balance = st.number_input(
                "Starting balance", min_value=0.0, step=1.0, format="%.2f",
            )
        submitted = st.form_submit_button("Create")

    if submitted:
        try:
            view = runtime.run(
                service.create_envelope(
                    {"name": name, "balance": str(balance)},
                    correlation_id=create_correlation_id(),
                )
            )
            st.success(f"✅ Created '{view.name}' (id {view.id})")
        except LedgerError as e:
            show_error(e)

    options = envelope_options(service)
    if not options:
        return

    st.markdown("---")
    st.markdown("### Rename")
    with st.form("rename_form"):
        col1, col2 = st.columns(2)
        with col1:
            label = st.selectbox("Envelope", list(options), key="rename_target")
        with col2:
            new_name = st.text_input("New name", key="rename_name")
        submitted = st.form_submit_button("Rename")

    if submitted:
        try:
            view = runtime.run(
                service.patch_envelope(
                    options[label],
                    {"name": new_name},
                    correlation_id=create_correlation_id(),
                )
            )
            st.success(f"✅ Renamed to '{view.name}'")
        except LedgerError as e:
            show_error(e)

    st.markdown("---")
    st.markdown("### Delete")
    with st.form("delete_form"):
        label = st.selectbox("Envelope", list(options), key="delete_target")
        confirm = st.checkbox("I understand its balance will be removed too")
        submitted = st.form_submit_button("Delete")

    if submitted:
        if not confirm:
            st.warning("Please tick the confirmation box first")
            return
        try:
            runtime.run(
                service.delete_envelope(
                    options[label],
                    correlation_id=create_correlation_id(),
                )
            )
            st.success("✅ Envelope deleted")
        except LedgerError as e:
            show_error(e)


def render_settings_page(runtime: LedgerRuntime):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Storage", "storage"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Ledger")
    st.markdown(f"**Data file:** `{runtime.store.storage.location}`")
    st.markdown(f"**Next envelope id:** {runtime.store.next_id}")
    st.markdown(
        "Settings are read from the environment or a `.env` file. "
        "Use `LEDGER_STORAGE_DATA_FILE` to change where balances are kept."
    )


if __name__ == "__main__":
    main()
