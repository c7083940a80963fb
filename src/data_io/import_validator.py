from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from src.core.schemas import ImportIssue
from src.data_io.mapper import (
    ACCOUNT_NAME, COMPOUND_FREQUENCY, GOAL_TYPE, INTEREST_RATE, MONTHLY_CONTRIBUTION,
    REQUIRED_COLUMNS, STARTING_BALANCE, TARGET_AMOUNT, TARGET_DATE,
    parse_date_text, parse_number,
)

_FREQUENCIES = ("daily", "monthly", "yearly")
_GOAL_TYPES = ("amount", "date", "default")


def rate_as_percent(value: Optional[str]) -> Optional[float]:
    """Read a rate cell as a percentage: '4%' and '4' are 4, '0.04' is 4."""
    text = (value or "").strip()
    if not text:
        return None
    if text.endswith("%"):
        return parse_number(text[:-1])
    x = parse_number(text)
    if x is not None and x < 1:
        return x * 100
    return x


def validate_headers(headers: List[str]) -> List[str]:
    """Required columns missing from headers (case-insensitive)."""
    present = {h.strip().lower() for h in headers}
    return [c for c in REQUIRED_COLUMNS if c.lower() not in present]


def validate_import_rows(rows: List[Dict[str, str]], *, now: datetime) -> List[ImportIssue]:
    issues: List[ImportIssue] = []

    if not rows:
        issues.append(ImportIssue(row=0, column="all", message="No data found in the file", severity="error"))
        return issues

    def err(row: int, col: str, msg: str) -> None:
        issues.append(ImportIssue(row=row, column=col, message=msg, severity="error"))

    def warn(row: int, col: str, msg: str) -> None:
        issues.append(ImportIssue(row=row, column=col, message=msg, severity="warning"))

    for n, row in enumerate(rows, start=1):
        name = row.get(ACCOUNT_NAME) or ""
        if not name.strip():
            err(n, ACCOUNT_NAME, "Account name is required")
        elif len(name) > 50:
            warn(n, ACCOUNT_NAME, "Account name must be 50 characters or less")

        balance = parse_number(row.get(STARTING_BALANCE))
        if balance is None:
            err(n, STARTING_BALANCE, "Starting balance must be a valid number")
        elif balance < 0:
            err(n, STARTING_BALANCE, "Starting balance must be positive")

        rate = rate_as_percent(row.get(INTEREST_RATE))
        if rate is None:
            err(n, INTEREST_RATE, "Interest rate must be a valid number")
        elif rate < 0 or rate > 100:
            err(n, INTEREST_RATE, "Interest rate must be between 0 and 100 percent")

        freq = (row.get(COMPOUND_FREQUENCY) or "").strip().lower()
        if freq not in _FREQUENCIES:
            err(n, COMPOUND_FREQUENCY, 'Compound frequency must be "daily", "monthly", or "yearly"')

        goal_type = (row.get(GOAL_TYPE) or "").strip().lower()
        if goal_type not in _GOAL_TYPES:
            err(n, GOAL_TYPE, 'Goal type must be "amount", "date", or "default"')

        if goal_type == "amount":
            target = parse_number(row.get(TARGET_AMOUNT))
            if target is None:
                err(n, TARGET_AMOUNT, 'Target amount is required when goal type is "amount"')
            elif target <= 0:
                err(n, TARGET_AMOUNT, "Target amount must be positive")

        if goal_type == "date":
            raw_date = (row.get(TARGET_DATE) or "").strip()
            if not raw_date:
                err(n, TARGET_DATE, 'Target date is required when goal type is "date"')
            else:
                target_date = parse_date_text(raw_date)
                if target_date is None:
                    err(n, TARGET_DATE, "Target date must be a valid date (YYYY-MM-DD format)")
                elif target_date <= now.date():
                    warn(n, TARGET_DATE, "Target date must be in the future")

        if (row.get(MONTHLY_CONTRIBUTION) or "").strip():
            contribution = parse_number(row.get(MONTHLY_CONTRIBUTION))
            if contribution is None:
                err(n, MONTHLY_CONTRIBUTION, "Monthly contribution must be a valid number")
            elif contribution < 0:
                err(n, MONTHLY_CONTRIBUTION, "Monthly contribution must be positive")

    return issues

