from __future__ import annotations

import pandas as pd
import streamlit as st

from src.data_io.exporter import ExportError, export_filename, export_workbook
from src.data_io.importer import ImportFormatError, import_accounts
from src.data_io.mapper import import_template_csv
from src.web_app.agent_helpers import get_preferences, get_store, now_utc


def _render_import() -> None:
    st.markdown("**Import accounts**")
    st.download_button(
        "Download CSV template",
        data=import_template_csv(),
        file_name="accounts_template.csv",
        mime="text/csv",
    )

    uploaded = st.file_uploader("Upload CSV or Excel", type=["csv", "xlsx", "xls"], accept_multiple_files=False)
    if not uploaded:
        return

    try:
        result = import_accounts(uploaded.getvalue(), uploaded.name, now=now_utc())
    except ImportFormatError as e:
        st.error(str(e))
        return

    s = result.stats
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Rows", s.total_rows)
    c2.metric("Valid", s.valid_rows)
    c3.metric("Errors", s.error_rows)
    c4.metric("Warnings", s.warning_rows)

    issues = result.errors + result.warnings
    if issues:
        st.dataframe(
            pd.DataFrame([i.model_dump() for i in issues]).sort_values("row"),
            use_container_width=True,
            hide_index=True,
        )

    if result.accounts:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Name": d.name,
                        "Starting Balance": d.starting_balance,
                        "Rate": d.interest_rate,
                        "Frequency": d.compound_frequency,
                        "Goal": d.goal.kind,
                        "Monthly": d.monthly_contribution,
                    }
                    for d in result.accounts
                ]
            ),
            use_container_width=True,
            hide_index=True,
        )
        if st.button(f"Import {len(result.accounts)} accounts", type="primary"):
            created = get_store().bulk_import(result.accounts, now=now_utc())
            st.success(f"Imported {len(created)} accounts")
    else:
        st.warning("No valid rows to import.")


def _render_export() -> None:
    st.markdown("**Export accounts**")
    accounts = get_store().list()
    if not accounts:
        st.caption("Nothing to export yet.")
        return

    prefs = get_preferences()
    kind = st.radio("Export type", ["summary", "detailed"], horizontal=True)
    now = now_utc()
    try:
        data = export_workbook(accounts, kind, prefs.default_projection_months, now=now)
    except ExportError as e:
        st.error(str(e))
        return
    st.download_button(
        "Download Excel",
        data=data,
        file_name=export_filename(kind, now.date()),
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


def render():
    st.subheader("Import / Export")
    left, right = st.columns([0.6, 0.4], gap="large")
    with left:
        _render_import()
    with right:
        _render_export()
