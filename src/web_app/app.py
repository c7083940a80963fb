import uuid

import streamlit as st

from src.core.config import SETTINGS
from src.pages import accounts, charts, chat, import_export, settings
from src.utils.formatters import format_currency
from src.utils.logging import setup_logging
from src.web_app.agent_helpers import get_preferences, get_store, now_utc

# Setup logging
setup_logging(SETTINGS.log_level)

st.set_page_config(page_title="Growth Tracker", layout="wide")


# Session initialization
def _init_session() -> None:
    st.session_state.setdefault("session_id", str(uuid.uuid4()))
    st.session_state.setdefault("turn_id", 0)
    st.session_state.setdefault("chat", [])  # list[dict]
    st.session_state.setdefault("last_chat_meta", {})
    if "balances_refreshed" not in st.session_state:
        get_store().refresh_balances(now=now_utc())
        st.session_state["balances_refreshed"] = True


_init_session()

# Sidebar summary
with st.sidebar:
    st.subheader("Portfolio")
    prefs = get_preferences()
    all_accounts = get_store().list()
    st.metric("Accounts", len(all_accounts))
    st.metric("Total balance", format_currency(sum(a.current_balance for a in all_accounts), prefs.currency))

    st.divider()
    st.caption(f"Chat mode: {SETTINGS.chat_mode} · provider: {SETTINGS.llm_provider}")
    st.caption(f"Session: {st.session_state['session_id']}")
    st.caption(f"Turn: {st.session_state['turn_id']}")

# Main UI
st.title("Growth Tracker")

tab_accounts, tab_charts, tab_io, tab_chat, tab_settings = st.tabs(
    ["Accounts", "Charts", "Import / Export", "Chat", "Settings"]
)

with tab_accounts:
    accounts.render()

with tab_charts:
    charts.render()

with tab_io:
    import_export.render()

with tab_chat:
    chat.render()

with tab_settings:
    settings.render()
