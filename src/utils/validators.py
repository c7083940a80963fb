from __future__ import annotations

import math
from datetime import date, datetime

from dateutil.relativedelta import relativedelta

from src.core.schemas import AccountDraft, ValidationResult
from src.utils.quant_models import AmountGoal, DateGoal

MAX_BALANCE = 10_000_000
MAX_RATE = 0.5
MAX_TARGET_AMOUNT = 50_000_000
MAX_MONTHLY_CONTRIBUTION = 100_000

_OK = ValidationResult(is_valid=True)


def _fail(msg: str) -> ValidationResult:
    return ValidationResult(is_valid=False, error=msg)


def _bad_number(x: float) -> bool:
    return x is None or math.isnan(x)


def validate_account_name(name: str) -> ValidationResult:
    if not name or not name.strip():
        return _fail("Account name is required")
    if len(name.strip()) < 2:
        return _fail("Account name must be at least 2 characters long")
    if len(name) > 50:
        return _fail("Account name must be less than 50 characters")
    return _OK


def validate_balance(balance: float) -> ValidationResult:
    if _bad_number(balance) or balance < 0:
        return _fail("Balance must be a positive number")
    if balance > MAX_BALANCE:
        return _fail("Balance cannot exceed $10,000,000")
    return _OK


def validate_interest_rate(rate: float) -> ValidationResult:
    if _bad_number(rate) or rate < 0:
        return _fail("Interest rate must be a positive number")
    if rate > MAX_RATE:
        return _fail("Interest rate cannot exceed 50%")
    return _OK


def validate_target_amount(amount: float, starting_balance: float) -> ValidationResult:
    if _bad_number(amount) or amount <= 0:
        return _fail("Target amount must be a positive number")
    if amount <= starting_balance:
        return _fail("Target amount must be greater than starting balance")
    if amount > MAX_TARGET_AMOUNT:
        return _fail("Target amount cannot exceed $50,000,000")
    return _OK


def validate_target_date(target: date, *, now: datetime) -> ValidationResult:
    today = now.date()
    if target < today + relativedelta(months=1):
        return _fail("Target date must be at least one month in the future")
    if target > today + relativedelta(years=50):
        return _fail("Target date cannot be more than 50 years in the future")
    return _OK


def validate_monthly_contribution(contribution: float) -> ValidationResult:
    if _bad_number(contribution) or contribution < 0:
        return _fail("Monthly contribution must be a positive number")
    if contribution > MAX_MONTHLY_CONTRIBUTION:
        return _fail("Monthly contribution cannot exceed $100,000")
    return _OK


def validate_account(draft: AccountDraft, *, now: datetime) -> ValidationResult:
    """Run the form checks in order; the first failure wins."""
    checks = [
        validate_account_name(draft.name),
        validate_balance(draft.starting_balance),
        validate_interest_rate(draft.interest_rate),
    ]
    if isinstance(draft.goal, AmountGoal):
        checks.append(validate_target_amount(draft.goal.target_amount, draft.starting_balance))
    if isinstance(draft.goal, DateGoal):
        checks.append(validate_target_date(draft.goal.target_date, now=now))
    checks.append(validate_monthly_contribution(draft.monthly_contribution))

    for result in checks:
        if not result.is_valid:
            return result
    return _OK
