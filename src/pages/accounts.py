from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

import streamlit as st
from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

from src.core.schemas import Account, AccountDraft
from src.utils.formatters import format_currency, format_date, format_percentage
from src.utils.quant_models import AmountGoal, DateGoal, DefaultGoal
from src.utils.validators import validate_account
from src.web_app.agent_helpers import get_preferences, get_store, now_utc
from src.web_app.ui_helpers import _badge, goal_status

FREQUENCIES = ["daily", "monthly", "yearly"]
GOAL_TYPES = ["default", "amount", "date"]


def _account_form(key: str, existing: Optional[Account] = None) -> Optional[AccountDraft]:
    """Render the account form; returns a validated draft on submit."""
    today = now_utc().date()
    goal_type = st.selectbox(
        "Goal type",
        GOAL_TYPES,
        index=GOAL_TYPES.index(existing.goal.kind) if existing else 0,
        key=f"{key}_goal_type",
    )

    with st.form(key, clear_on_submit=existing is None):
        name = st.text_input("Account name", value=existing.name if existing else "")
        c1, c2 = st.columns(2)
        with c1:
            starting_balance = st.number_input(
                "Starting balance", min_value=0.0, step=100.0,
                value=float(existing.starting_balance) if existing else 1000.0,
            )
            rate_pct = st.number_input(
                "Interest rate (APY %)", min_value=0.0, max_value=100.0, step=0.1,
                value=float(existing.interest_rate * 100) if existing else 4.0,
            )
        with c2:
            frequency = st.selectbox(
                "Compound frequency", FREQUENCIES,
                index=FREQUENCIES.index(existing.compound_frequency) if existing else 1,
            )
            contribution = st.number_input(
                "Monthly contribution", min_value=0.0, step=50.0,
                value=float(existing.monthly_contribution) if existing else 0.0,
            )

        target_amount = 0.0
        target_date: Optional[date] = None
        if goal_type == "amount":
            target_amount = st.number_input(
                "Target amount", min_value=0.0, step=500.0,
                value=float(existing.target_amount or 10000.0) if existing else 10000.0,
            )
        elif goal_type == "date":
            target_date = st.date_input(
                "Target date",
                value=(existing.target_date if existing and existing.target_date else today + relativedelta(years=1)),
                min_value=today,
            )

        submitted = st.form_submit_button("Save" if existing else "Create account", type="primary")

    if not submitted:
        return None

    payload: Dict[str, Any] = {
        "name": name.strip(),
        "starting_balance": starting_balance,
        "interest_rate": rate_pct / 100,
        "compound_frequency": frequency,
        "monthly_contribution": contribution,
    }
    try:
        if goal_type == "amount":
            payload["goal"] = AmountGoal(target_amount=target_amount)
        elif goal_type == "date":
            payload["goal"] = DateGoal(target_date=target_date)
        else:
            payload["goal"] = DefaultGoal()
        draft = AccountDraft(**payload)
    except ValidationError as e:
        st.error(f"Invalid input: {e.errors()[0].get('msg')}")
        return None

    result = validate_account(draft, now=now_utc())
    if not result.is_valid:
        st.error(result.error)
        return None
    return draft


def _render_card(account: Account) -> None:
    prefs = get_preferences()
    store = get_store()
    with st.container(border=True):
        head, actions = st.columns([0.75, 0.25])
        with head:
            st.markdown(f"#### {account.name}")
            st.caption(
                f"{format_percentage(account.interest_rate)} · compounded {account.compound_frequency} · "
                f"created {format_date(account.created_at)}"
            )
        with actions:
            if st.button("Delete", key=f"del_{account.id}"):
                store.delete(account.id)
                st.rerun()

        m1, m2, m3 = st.columns(3)
        m1.metric("Current balance", format_currency(account.current_balance, prefs.currency))
        m2.metric("Starting balance", format_currency(account.starting_balance, prefs.currency))
        m3.metric("Monthly contribution", format_currency(account.monthly_contribution, prefs.currency))

        label, kind = goal_status(
            account, now=now_utc(), default_months=prefs.default_projection_months, currency=prefs.currency
        )
        _badge(label, kind)

        with st.expander("Edit"):
            draft = _account_form(f"edit_{account.id}", existing=account)
            if draft is not None:
                store.update(Account.model_validate({**account.model_dump(), **draft.model_dump()}), now=now_utc())
                st.success("Account updated")
                st.rerun()


def render():
    st.subheader("Accounts")
    left, right = st.columns([0.38, 0.62], gap="large")

    with left:
        st.markdown("**New account**")
        draft = _account_form("new_account")
        if draft is not None:
            account = get_store().add(draft, now=now_utc())
            st.success(f"Created {account.name}")
            st.rerun()

    with right:
        accounts = get_store().list()
        if not accounts:
            st.info("No accounts yet. Create one, import a file, or ask the assistant.")
        for account in accounts:
            _render_card(account)
