from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from src.utils.quant_models import (
    AccountSnapshot, AmountGoal, CompoundFrequency, DateGoal,
    GoalProjection, ProjectionPoint,
)

SEARCH_MAX_MONTHS = 1000.0
SEARCH_EPSILON = 0.01
APPROX_MONTH = timedelta(days=30)

_PERIODS_PER_YEAR = {
    "daily": 365,
    "monthly": 12,
    "yearly": 1,
}


def periods_per_year(frequency: CompoundFrequency) -> int:
    return _PERIODS_PER_YEAR.get(frequency, 12)


def compound_interest(principal: float, annual_rate: float, periods: int, years: float) -> float:
    """A = P(1 + r/n)^(nt)"""
    return principal * (1 + annual_rate / periods) ** (periods * years)


def future_value_with_contributions(
    principal: float,
    annual_rate: float,
    periods: int,
    years: float,
    monthly_contribution: float,
) -> float:
    """Compounded principal plus an ordinary annuity of monthly contributions.

    The annuity uses the monthly rate annual_rate/12 over years*12 (possibly
    fractional) periods. It is the objective of the time-to-goal search and is
    deliberately not the same model as `project_account`, which adds each
    contribution to principal and compounds the total from month 0.
    """
    principal_fv = compound_interest(principal, annual_rate, periods, years)

    monthly_rate = annual_rate / 12
    total_months = years * 12
    if monthly_contribution == 0 or monthly_rate == 0:
        return principal_fv

    annuity_fv = monthly_contribution * ((1 + monthly_rate) ** total_months - 1) / monthly_rate
    return principal_fv + annuity_fv


def project_account(snapshot: AccountSnapshot, months: int, *, now: datetime) -> List[ProjectionPoint]:
    """Month-by-month balances for months 0..months inclusive.

    Each point is recomputed from the closed form rather than carried forward,
    so month m always equals compound_interest(start + m*contribution, m/12).
    """
    periods = periods_per_year(snapshot.compound_frequency)
    contribution = snapshot.monthly_contribution

    points: List[ProjectionPoint] = []
    total_contributions = 0.0
    for month in range(0, max(0, months) + 1):
        if month > 0:
            total_contributions += contribution

        principal = snapshot.starting_balance + total_contributions
        balance = compound_interest(principal, snapshot.interest_rate, periods, month / 12)

        points.append(
            ProjectionPoint(
                month_index=month,
                balance=balance,
                cumulative_contributions=total_contributions,
                interest_earned=balance - principal,
                calendar_date=now + relativedelta(months=month),
            )
        )
    return points


def time_to_reach_amount(
    principal: float,
    target_amount: float,
    annual_rate: float,
    periods: int,
    monthly_contribution: float,
) -> Optional[float]:
    """Months until the contribution-annuity model reaches target_amount.

    Bisection over [0, SEARCH_MAX_MONTHS] until the bracket is narrower than
    SEARCH_EPSILON; returns the bracket midpoint. None when even the upper
    bound falls short.
    """
    if target_amount <= principal:
        return 0.0

    def reached(months: float) -> float:
        return future_value_with_contributions(principal, annual_rate, periods, months / 12, monthly_contribution)

    if reached(SEARCH_MAX_MONTHS) < target_amount:
        return None

    low, high = 0.0, SEARCH_MAX_MONTHS
    while high - low > SEARCH_EPSILON:
        mid = (low + high) / 2
        if reached(mid) < target_amount:
            low = mid
        else:
            high = mid
    return (low + high) / 2


def months_until(target: date, *, now: datetime) -> int:
    """Whole 30-day months from now to target, rounded up."""
    if isinstance(target, datetime):
        target_dt = target
    else:
        target_dt = datetime.combine(target, time.min, tzinfo=now.tzinfo)
    return math.ceil((target_dt - now) / APPROX_MONTH)


def monthly_payment_needed(
    principal: float,
    target_amount: float,
    annual_rate: float,
    periods: int,
    months: int,
) -> float:
    principal_fv = compound_interest(principal, annual_rate, periods, months / 12)
    needed = target_amount - principal_fv
    if needed <= 0:
        return 0.0
    if months <= 0:
        return math.inf

    monthly_rate = annual_rate / 12
    if monthly_rate == 0:
        return needed / months

    return needed * monthly_rate / ((1 + monthly_rate) ** months - 1)


def project_goal(snapshot: AccountSnapshot, *, now: datetime, default_months: int) -> GoalProjection:
    periods = periods_per_year(snapshot.compound_frequency)
    goal = snapshot.goal

    if isinstance(goal, AmountGoal):
        months = time_to_reach_amount(
            snapshot.starting_balance,
            goal.target_amount,
            snapshot.interest_rate,
            periods,
            snapshot.monthly_contribution,
        )
        if months is None:
            needed = monthly_payment_needed(
                snapshot.starting_balance,
                goal.target_amount,
                snapshot.interest_rate,
                periods,
                max(1, default_months),
            )
            return GoalProjection(achievable=False, monthly_needed=needed)
        return GoalProjection(achievable=True, time_to_goal_months=months)

    if isinstance(goal, DateGoal):
        months_to_target = months_until(goal.target_date, now=now)
        if months_to_target <= 0:
            return GoalProjection(achievable=False)
        final = project_account(snapshot, months_to_target, now=now)[-1]
        return GoalProjection(achievable=True, final_amount=final.balance)

    final = project_account(snapshot, default_months, now=now)[-1]
    return GoalProjection(achievable=True, final_amount=final.balance)


def current_balance(snapshot: AccountSnapshot, created_at: datetime, *, now: datetime) -> float:
    """Balance after the whole 30-day months elapsed since created_at."""
    months_elapsed = math.floor((now - created_at) / APPROX_MONTH)
    if months_elapsed <= 0:
        return snapshot.starting_balance

    periods = periods_per_year(snapshot.compound_frequency)
    total_contributions = months_elapsed * snapshot.monthly_contribution
    return compound_interest(
        snapshot.starting_balance + total_contributions,
        snapshot.interest_rate,
        periods,
        months_elapsed / 12,
    )
