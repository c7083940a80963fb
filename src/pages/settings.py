from __future__ import annotations

import streamlit as st

from src.core.schemas import AppPreferences
from src.web_app.agent_helpers import get_preferences, get_preferences_store, get_store, now_utc

CURRENCIES = ["USD", "EUR", "GBP", "JPY", "INR", "CAD", "AUD"]


def render():
    st.subheader("Settings")
    prefs = get_preferences()

    with st.form("preferences"):
        months = st.number_input(
            "Default projection months", min_value=1, max_value=600, step=1,
            value=int(prefs.default_projection_months),
        )
        currency = st.selectbox(
            "Currency", CURRENCIES,
            index=CURRENCIES.index(prefs.currency) if prefs.currency in CURRENCIES else 0,
        )
        if st.form_submit_button("Save", type="primary"):
            saved = get_preferences_store().save(AppPreferences(default_projection_months=int(months), currency=currency))
            st.session_state["preferences"] = saved
            st.success("Settings saved")

    c1, c2 = st.columns(2)
    with c1:
        if st.button("Reset to defaults"):
            st.session_state["preferences"] = get_preferences_store().reset()
            st.rerun()
    with c2:
        if st.button("Recalculate current balances"):
            get_store().refresh_balances(now=now_utc())
            st.success("Balances updated")
