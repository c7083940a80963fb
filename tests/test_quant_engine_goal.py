import math
from datetime import UTC, date, datetime

import pytest

from src.utils.quant_engine import (
    months_until,
    monthly_payment_needed,
    project_account,
    project_goal,
    time_to_reach_amount,
)
from src.utils.quant_models import AccountSnapshot, AmountGoal, DateGoal, DefaultGoal

NOW = datetime(2024, 1, 1, tzinfo=UTC)


def test_time_to_reach_amount_matches_closed_form():
    months = time_to_reach_amount(0, 10000, 0.04, 1, 750)
    r = 0.04 / 12
    exact = math.log(1 + 10000 * r / 750) / math.log(1 + r)
    assert months == pytest.approx(exact, abs=0.01)
    assert 13 < months < 13.2


def test_target_at_or_below_principal_is_immediate():
    assert time_to_reach_amount(5000, 5000, 0.05, 12, 0) == 0
    snap = AccountSnapshot(starting_balance=5000, interest_rate=0.05, goal=AmountGoal(target_amount=3000))
    out = project_goal(snap, now=NOW, default_months=36)
    assert out.achievable is True
    assert out.time_to_goal_months == 0


def test_unreachable_amount_goal():
    assert time_to_reach_amount(0, 10000, 0.0, 12, 5) is None

    snap = AccountSnapshot(
        starting_balance=0, interest_rate=0.0, monthly_contribution=5, goal=AmountGoal(target_amount=10000)
    )
    out = project_goal(snap, now=NOW, default_months=36)
    assert out.achievable is False
    assert out.time_to_goal_months is None
    assert out.final_amount is None
    assert out.monthly_needed == pytest.approx(10000 / 36)


def test_reachable_amount_goal():
    snap = AccountSnapshot(
        starting_balance=0,
        interest_rate=0.04,
        compound_frequency="yearly",
        monthly_contribution=750,
        goal=AmountGoal(target_amount=10000),
    )
    out = project_goal(snap, now=NOW, default_months=36)
    assert out.achievable is True
    assert out.time_to_goal_months == pytest.approx(13.07, abs=0.05)
    assert out.monthly_needed is None


def test_months_until_rounds_up_thirty_day_months():
    assert months_until(date(2025, 1, 1), now=NOW) == 13  # 366 days
    assert months_until(date(2024, 1, 31), now=NOW) == 1
    assert months_until(date(2023, 12, 1), now=NOW) <= 0


def test_past_date_goal_is_not_achievable():
    snap = AccountSnapshot(starting_balance=1000, interest_rate=0.05, goal=DateGoal(target_date=date(2023, 6, 1)))
    out = project_goal(snap, now=NOW, default_months=36)
    assert out.achievable is False
    assert out.final_amount is None


def test_future_date_goal_uses_last_projected_balance():
    snap = AccountSnapshot(
        starting_balance=1000, interest_rate=0.05, monthly_contribution=50, goal=DateGoal(target_date=date(2025, 1, 1))
    )
    out = project_goal(snap, now=NOW, default_months=36)
    assert out.achievable is True
    assert out.final_amount == pytest.approx(project_account(snap, 13, now=NOW)[-1].balance)


def test_default_goal_uses_default_horizon():
    snap = AccountSnapshot(starting_balance=1000, interest_rate=0.05, goal=DefaultGoal())
    out = project_goal(snap, now=NOW, default_months=24)
    assert out.achievable is True
    assert out.final_amount == pytest.approx(1000 * (1 + 0.05 / 12) ** 24)


def test_monthly_payment_needed_zero_when_principal_suffices():
    assert monthly_payment_needed(10000, 5000, 0.05, 12, 12) == 0


def test_monthly_payment_needed_inverts_annuity():
    needed = monthly_payment_needed(1000, 10000, 0.06, 12, 36)
    r = 0.06 / 12
    fv_principal = 1000 * (1 + r) ** 36
    assert needed == pytest.approx((10000 - fv_principal) * r / ((1 + r) ** 36 - 1))


def test_monthly_payment_needed_zero_rate():
    assert monthly_payment_needed(1000, 4000, 0.0, 12, 30) == pytest.approx(100)


def test_monthly_payment_needed_zero_horizon():
    assert monthly_payment_needed(1000, 2000, 0.05, 12, 0) == math.inf
    assert monthly_payment_needed(1000, 2000, 0.0, 12, 0) == math.inf
    assert monthly_payment_needed(2000, 1000, 0.05, 12, 0) == 0


def test_target_date_today_is_not_achievable():
    snap = AccountSnapshot(starting_balance=1000, interest_rate=0.05, goal=DateGoal(target_date=NOW.date()))
    out = project_goal(snap, now=NOW, default_months=36)
    assert out.achievable is False
    assert out.final_amount is None


@pytest.mark.parametrize("frequency", [1, 12, 365])
@pytest.mark.parametrize(
    "principal,target,rate,contribution",
    [(0, 10000, 0.04, 750), (2500, 50000, 0.07, 300), (100, 1000, 0.0, 25)],
)
def test_goal_search_is_repeatable(frequency, principal, target, rate, contribution):
    first = time_to_reach_amount(principal, target, rate, frequency, contribution)
    second = time_to_reach_amount(principal, target, rate, frequency, contribution)
    assert first is not None
    assert abs(first - second) <= 0.01
