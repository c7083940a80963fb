from __future__ import annotations

import io
import re
from datetime import date, datetime
from typing import List, Literal, Sequence

import pandas as pd

from src.core.schemas import Account
from src.utils.formatters import format_date
from src.utils.logging import get_logger
from src.utils.quant_engine import project_account

log = get_logger(__name__)

ExportKind = Literal["summary", "detailed"]

PORTFOLIO_MONTHS = 60
_HEADER_FORMAT = {"bold": True, "bg_color": "#E2E8F0", "border": 1}
_BAD_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


class ExportError(RuntimeError):
    pass


def summary_frame(accounts: Sequence[Account], months: int, *, now: datetime) -> pd.DataFrame:
    rows = []
    for a in accounts:
        final = project_account(a.snapshot(), months, now=now)[-1]
        rows.append(
            {
                "Account Name": a.name,
                "Starting Balance": a.starting_balance,
                "Interest Rate": f"{a.interest_rate * 100:.2f}%",
                "Compound Frequency": a.compound_frequency,
                "Monthly Contribution": a.monthly_contribution,
                "Goal Type": a.goal.kind,
                "Target Amount": a.target_amount if a.target_amount is not None else "N/A",
                "Target Date": format_date(a.target_date) if a.target_date else "N/A",
                f"Final Balance ({months} months)": final.balance,
                "Total Contributions": final.cumulative_contributions,
                "Interest Earned": final.interest_earned,
                "Created Date": format_date(a.created_at),
                "Last Updated": format_date(a.updated_at),
            }
        )
    return pd.DataFrame(rows)


def account_detail_frame(account: Account, months: int, *, now: datetime) -> pd.DataFrame:
    points = project_account(account.snapshot(), months, now=now)
    rows = []
    prev = None
    for p in points:
        rows.append(
            {
                "Month": p.month_index,
                "Date": format_date(p.calendar_date),
                "Balance": p.balance,
                "Principal": account.starting_balance,
                "Total Contributions": p.cumulative_contributions,
                "Interest Earned": p.interest_earned,
                "Monthly Growth": 0.0 if prev is None else p.balance - prev,
            }
        )
        prev = p.balance
    return pd.DataFrame(rows)


def portfolio_frame(accounts: Sequence[Account], months: int = PORTFOLIO_MONTHS, *, now: datetime) -> pd.DataFrame:
    """Monthly totals across every account."""
    series = [project_account(a.snapshot(), months, now=now) for a in accounts]
    rows = []
    for m in range(months + 1):
        rows.append(
            {
                "Month": m,
                "Date": format_date(series[0][m].calendar_date) if series else "",
                "Total Portfolio Value": sum(s[m].balance for s in series),
                "Total Contributions": sum(s[m].cumulative_contributions for s in series),
                "Total Interest Earned": sum(s[m].interest_earned for s in series),
                "Number of Accounts": len(series),
            }
        )
    return pd.DataFrame(rows)


def _sheet_names(accounts: Sequence[Account]) -> List[str]:
    taken = {"account summary", "portfolio overview"}
    names: List[str] = []
    for a in accounts:
        base = _BAD_SHEET_CHARS.sub("_", a.name).strip()[:30] or "Account"
        name, n = base, 2
        while name.lower() in taken:
            suffix = f" ({n})"
            name = base[: 30 - len(suffix)] + suffix
            n += 1
        taken.add(name.lower())
        names.append(name)
    return names


def _write_sheet(writer: pd.ExcelWriter, df: pd.DataFrame, sheet: str, width: int) -> None:
    df.to_excel(writer, sheet_name=sheet, index=False)
    ws = writer.sheets[sheet]
    header = writer.book.add_format(_HEADER_FORMAT)
    for col, name in enumerate(df.columns):
        ws.write(0, col, name, header)
    if len(df.columns):
        ws.set_column(0, len(df.columns) - 1, width)


def export_workbook(
    accounts: Sequence[Account],
    kind: ExportKind = "summary",
    months: int = 36,
    *,
    now: datetime,
) -> bytes:
    if not accounts:
        raise ExportError("No accounts to export")

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="xlsxwriter") as writer:
        _write_sheet(writer, summary_frame(accounts, months, now=now), "Account Summary", 20)
        if kind == "detailed":
            for account, sheet in zip(accounts, _sheet_names(accounts)):
                _write_sheet(writer, account_detail_frame(account, months, now=now), sheet, 15)
            _write_sheet(writer, portfolio_frame(accounts, now=now), "Portfolio Overview", 20)

    log.info("exported %s workbook accounts=%d months=%d", kind, len(accounts), months)
    return buffer.getvalue()


def export_filename(kind: ExportKind, today: date) -> str:
    return f"savings_calculator_{kind}_{today.isoformat()}.xlsx"
