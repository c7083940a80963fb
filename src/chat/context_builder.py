from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from src.core.schemas import Account, ChatMessage
from src.utils.formatters import format_currency, format_duration
from src.utils.quant_engine import project_account, project_goal
from src.utils.quant_models import AmountGoal, GoalProjection, ProjectionPoint

CALCULATION_HORIZON_MONTHS = 60
RECENT_HISTORY = 5


class ContextBuilder:
    """Builds the account context handed to the assistant prompt."""

    @classmethod
    def build_context(
        cls,
        accounts: Sequence[Account],
        history: Sequence[ChatMessage] = (),
        *,
        now: datetime,
    ) -> Dict[str, Any]:
        return {
            "accounts": [
                {
                    "id": a.id,
                    "name": a.name,
                    "startingBalance": a.starting_balance,
                    "currentBalance": a.current_balance,
                    "interestRate": a.interest_rate,
                    "compoundFrequency": a.compound_frequency,
                    "goalType": a.goal.kind,
                    "targetAmount": a.target_amount,
                    "targetDate": a.target_date.isoformat() if a.target_date else None,
                    "monthlyContribution": a.monthly_contribution,
                    "createdAt": a.created_at.isoformat(),
                    "updatedAt": a.updated_at.isoformat(),
                }
                for a in accounts
            ],
            "summary": cls.generate_summary(accounts),
            "recentHistory": [{"role": m.role, "content": m.content} for m in list(history)[-RECENT_HISTORY:]],
            "timestamp": now.isoformat(),
        }

    @staticmethod
    def generate_summary(accounts: Sequence[Account], currency: str = "USD") -> str:
        if not accounts:
            return "No accounts created yet."

        n = len(accounts)
        total_balance = sum(a.current_balance for a in accounts)
        with_goals = [a for a in accounts if a.target_amount]
        total_goal = sum(a.target_amount or 0 for a in with_goals)

        summary = (
            f"User has {n} account{'s' if n > 1 else ''} with a total balance of "
            f"{format_currency(total_balance, currency)}."
        )
        if with_goals:
            k = len(with_goals)
            summary += (
                f" {k} account{'s have' if k > 1 else ' has'} specific goals totaling "
                f"{format_currency(total_goal, currency)}."
            )

        latest = max(accounts, key=lambda a: a.created_at)
        summary += f' Most recent account: "{latest.name}" with {format_currency(latest.current_balance, currency)}.'
        return summary

    @classmethod
    def build_calculation_context(cls, account: Account, *, now: datetime, default_months: int) -> Dict[str, Any]:
        """First year of a five-year projection plus the goal verdict for one account."""
        projection = project_account(account.snapshot(), CALCULATION_HORIZON_MONTHS, now=now)
        goal_projection = (
            project_goal(account.snapshot(), now=now, default_months=default_months)
            if isinstance(account.goal, AmountGoal)
            else None
        )
        first_year = projection[:13]
        return {
            "account": account,
            "projection": first_year,
            "goal_projection": goal_projection,
            "projection_summary": cls.projection_summary(first_year, goal_projection),
        }

    @staticmethod
    def projection_summary(
        first_year: List[ProjectionPoint],
        goal_projection: Optional[GoalProjection],
        currency: str = "USD",
    ) -> str:
        if not first_year:
            return "No projection data available."

        last = first_year[-1]
        summary = (
            f"After 1 year, the balance would be {format_currency(last.balance, currency)} "
            f"with {format_currency(last.interest_earned, currency)} in interest earned."
        )

        if goal_projection is None:
            return summary
        if goal_projection.achievable:
            if goal_projection.time_to_goal_months is not None:
                summary += f" Goal is achievable in {format_duration(goal_projection.time_to_goal_months)}."
        else:
            summary += " Current plan will not reach the goal."
            if goal_projection.monthly_needed:
                summary += (
                    f" Would need {format_currency(goal_projection.monthly_needed, currency)} "
                    "monthly to reach the goal."
                )
        return summary
