from __future__ import annotations

import io
import math
from datetime import date
from typing import Dict, Iterable, List, Optional

import pandas as pd
from dateutil import parser as date_parser

from src.core.schemas import Account, AccountDraft, ImportIssue
from src.utils.logging import get_logger
from src.utils.quant_models import AmountGoal, CompoundFrequency, DateGoal, DefaultGoal, Goal

log = get_logger(__name__)

ACCOUNT_NAME = "Account Name"
STARTING_BALANCE = "Starting Balance"
INTEREST_RATE = "Interest Rate"
COMPOUND_FREQUENCY = "Compound Frequency"
GOAL_TYPE = "Goal Type"
TARGET_AMOUNT = "Target Amount"
TARGET_DATE = "Target Date"
MONTHLY_CONTRIBUTION = "Monthly Contribution"

REQUIRED_COLUMNS = [ACCOUNT_NAME, STARTING_BALANCE, INTEREST_RATE, COMPOUND_FREQUENCY, GOAL_TYPE]
ALL_COLUMNS = REQUIRED_COLUMNS + [TARGET_AMOUNT, TARGET_DATE, MONTHLY_CONTRIBUTION]


def parse_number(value: Optional[str]) -> Optional[float]:
    text = (value or "").strip().replace(",", "").lstrip("$")
    if not text:
        return None
    try:
        x = float(text)
    except ValueError:
        return None
    return None if math.isnan(x) else x


def parse_date_text(value: Optional[str]) -> Optional[date]:
    text = (value or "").strip()
    if not text:
        return None
    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError):
        return None


def parse_interest_rate(value: Optional[str]) -> float:
    """'4%' -> 0.04, '4' -> 0.04, '0.04' -> 0.04. Unparseable -> 0."""
    text = (value or "").strip()
    if not text:
        return 0.0
    if text.endswith("%"):
        x = parse_number(text[:-1])
        return 0.0 if x is None else x / 100
    x = parse_number(text)
    if x is None:
        return 0.0
    return x / 100 if x > 1 else x


def normalize_frequency(value: Optional[str]) -> CompoundFrequency:
    v = (value or "").strip().lower()
    if v == "daily":
        return "daily"
    if v in ("yearly", "annual"):
        return "yearly"
    return "monthly"


def _goal_from_row(row: Dict[str, str]) -> Goal:
    kind = (row.get(GOAL_TYPE) or "").strip().lower()
    if kind == "amount":
        amount = parse_number(row.get(TARGET_AMOUNT))
        if amount is not None and amount > 0:
            return AmountGoal(target_amount=amount)
    elif kind == "date":
        target = parse_date_text(row.get(TARGET_DATE))
        if target is not None:
            return DateGoal(target_date=target)
    return DefaultGoal()


def map_rows_to_drafts(rows: List[Dict[str, str]], issues: Iterable[ImportIssue]) -> List[AccountDraft]:
    """Turn validated rows into drafts, skipping every row that has an error."""
    bad_rows = {i.row for i in issues if i.severity == "error"}
    drafts: List[AccountDraft] = []

    for index, row in enumerate(rows, start=1):
        if index in bad_rows:
            continue

        name = (row.get(ACCOUNT_NAME) or "").strip()
        balance = parse_number(row.get(STARTING_BALANCE)) or 0.0
        rate = parse_interest_rate(row.get(INTEREST_RATE))
        contribution = parse_number(row.get(MONTHLY_CONTRIBUTION)) or 0.0

        if not name or balance < 0 or rate < 0:
            continue
        try:
            drafts.append(
                AccountDraft(
                    name=name,
                    starting_balance=balance,
                    interest_rate=rate,
                    compound_frequency=normalize_frequency(row.get(COMPOUND_FREQUENCY)),
                    monthly_contribution=contribution,
                    goal=_goal_from_row(row),
                )
            )
        except ValueError as e:
            log.warning("skipping malformed row %d: %s", index, e)

    return drafts


def account_to_row(account: AccountDraft | Account) -> Dict[str, str]:
    goal = account.goal
    return {
        ACCOUNT_NAME: account.name,
        STARTING_BALANCE: str(account.starting_balance),
        INTEREST_RATE: str(account.interest_rate),
        COMPOUND_FREQUENCY: account.compound_frequency,
        GOAL_TYPE: goal.kind,
        TARGET_AMOUNT: str(goal.target_amount) if isinstance(goal, AmountGoal) else "",
        TARGET_DATE: goal.target_date.isoformat() if isinstance(goal, DateGoal) else "",
        MONTHLY_CONTRIBUTION: str(account.monthly_contribution) if account.monthly_contribution else "",
    }


def import_template_csv() -> str:
    sample = [
        {
            ACCOUNT_NAME: "Emergency Fund",
            STARTING_BALANCE: "5000",
            INTEREST_RATE: "4.5%",
            COMPOUND_FREQUENCY: "monthly",
            GOAL_TYPE: "amount",
            TARGET_AMOUNT: "15000",
            TARGET_DATE: "",
            MONTHLY_CONTRIBUTION: "250",
        },
        {
            ACCOUNT_NAME: "House Down Payment",
            STARTING_BALANCE: "20000",
            INTEREST_RATE: "0.04",
            COMPOUND_FREQUENCY: "daily",
            GOAL_TYPE: "date",
            TARGET_AMOUNT: "",
            TARGET_DATE: "2030-06-01",
            MONTHLY_CONTRIBUTION: "1000",
        },
    ]
    buf = io.StringIO()
    pd.DataFrame(sample, columns=ALL_COLUMNS).to_csv(buf, index=False)
    return buf.getvalue()
