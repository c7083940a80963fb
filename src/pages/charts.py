from __future__ import annotations

import streamlit as st

from src.web_app.agent_helpers import get_preferences, get_store, now_utc
from src.web_app.ui_helpers import account_labels, comparison_figure, growth_figure, portfolio_figure


def render():
    st.subheader("Charts")
    accounts = get_store().list()
    if not accounts:
        st.info("Create an account to see projections.")
        return

    prefs = get_preferences()
    months = st.slider("Projection months", min_value=1, max_value=600, value=prefs.default_projection_months)
    now = now_utc()

    by_id = {a.id: a for a in accounts}
    labels = account_labels(accounts)
    picked = st.selectbox("Account", list(by_id), format_func=labels.get)
    st.plotly_chart(growth_figure(by_id[picked], months, now=now), use_container_width=True)

    if len(accounts) > 1:
        chosen = st.multiselect("Compare accounts", list(by_id), default=list(by_id)[:3], format_func=labels.get)
        if chosen:
            st.plotly_chart(comparison_figure([by_id[i] for i in chosen], months, now=now), use_container_width=True)

    st.plotly_chart(portfolio_figure(accounts, months, now=now), use_container_width=True)
