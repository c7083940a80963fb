from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Sequence, Tuple

import pandas as pd
import plotly.express as px
import streamlit as st

from src.core.schemas import Account
from src.data_io.exporter import portfolio_frame
from src.utils.formatters import chart_color, format_currency, format_duration
from src.utils.quant_engine import project_account, project_goal


def _badge(text: str, kind: str = "info") -> None:
    """Small colored badge using HTML."""
    color = {
        "ok": "#0f9d58",
        "warn": "#f4b400",
        "bad": "#db4437",
        "info": "#4285f4",
    }.get(kind, "#4285f4")
    st.markdown(
        f"""
        <span style="display:inline-block;padding:2px 10px;border-radius:999px;font-size:12px;background:{color};color:white;">
          {text}
        </span>
        """,
        unsafe_allow_html=True,
    )


def _render_agent_trace(trace: List[str] | None, route: Any = None) -> None:
    if route:
        st.markdown(f"**Route:** `{route}`")
    if not trace:
        st.caption("No trace")
        return
    st.code("\n".join([f"- {t}" for t in trace]), language="text")


def _render_tool_calls(calls: List[Dict[str, Any]] | None) -> None:
    if not calls:
        return
    rows = [
        {"Tool": c.get("tool_name"), "Status": c.get("status"), "Started": c.get("started_at")}
        for c in calls
    ]
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)


def goal_status(account: Account, *, now: datetime, default_months: int, currency: str) -> Tuple[str, str]:
    """(label, badge kind) describing the account's goal verdict."""
    proj = project_goal(account.snapshot(), now=now, default_months=default_months)
    kind = account.goal.kind

    if kind == "amount":
        if proj.achievable:
            return (f"Goal reached in {format_duration(proj.time_to_goal_months or 0)}", "ok")
        needed = f" · needs {format_currency(proj.monthly_needed, currency)}/mo" if proj.monthly_needed else ""
        return ("Goal not reachable with current plan" + needed, "bad")

    if kind == "date":
        if not proj.achievable:
            return ("Target date has passed", "warn")
        return (f"{format_currency(proj.final_amount or 0, currency)} by target date", "ok")

    return (f"{format_currency(proj.final_amount or 0, currency)} in {default_months} months", "info")


def growth_frame(account: Account, months: int, *, now: datetime) -> pd.DataFrame:
    points = project_account(account.snapshot(), months, now=now)
    return pd.DataFrame(
        [
            {
                "Date": p.calendar_date,
                "Balance": p.balance,
                "Contributions": account.starting_balance + p.cumulative_contributions,
                "Interest": p.interest_earned,
            }
            for p in points
        ]
    )


def growth_figure(account: Account, months: int, *, now: datetime):
    df = growth_frame(account, months, now=now)
    long_df = df.melt(id_vars="Date", var_name="Series", value_name="Amount")
    fig = px.line(long_df, x="Date", y="Amount", color="Series", title=f"{account.name}: projected growth")
    if account.target_amount:
        fig.add_hline(y=account.target_amount, line_dash="dash", annotation_text="Target")
    return fig


def account_labels(accounts: Sequence[Account]) -> Dict[str, str]:
    """id -> display name; repeated names get a numeric suffix."""
    seen: Dict[str, int] = {}
    labels: Dict[str, str] = {}
    for a in accounts:
        seen[a.name] = seen.get(a.name, 0) + 1
        labels[a.id] = a.name if seen[a.name] == 1 else f"{a.name} ({seen[a.name]})"
    return labels


def comparison_figure(accounts: Sequence[Account], months: int, *, now: datetime):
    frames = []
    labels = account_labels(accounts)
    for a in accounts:
        df = growth_frame(a, months, now=now)[["Date", "Balance"]]
        df["Account"] = labels[a.id]
        frames.append(df)
    long_df = pd.concat(frames, ignore_index=True)
    return px.line(
        long_df,
        x="Date",
        y="Balance",
        color="Account",
        color_discrete_sequence=[chart_color(i) for i in range(len(accounts))],
        title="Account comparison",
    )


def portfolio_figure(accounts: Sequence[Account], months: int, *, now: datetime):
    df = portfolio_frame(accounts, months, now=now)
    long_df = df.melt(
        id_vars="Month",
        value_vars=["Total Portfolio Value", "Total Contributions", "Total Interest Earned"],
        var_name="Series",
        value_name="Amount",
    )
    return px.line(long_df, x="Month", y="Amount", color="Series", title="Portfolio value")
