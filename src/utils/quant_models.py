from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

CompoundFrequency = Literal["daily", "monthly", "yearly"]
GoalKind = Literal["default", "amount", "date"]


class DefaultGoal(BaseModel):
    """No explicit goal; the caller's default horizon is used."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["default"] = "default"


class AmountGoal(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["amount"] = "amount"
    target_amount: float = Field(..., gt=0)


class DateGoal(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["date"] = "date"
    target_date: date


Goal = Annotated[Union[DefaultGoal, AmountGoal, DateGoal], Field(discriminator="kind")]


class AccountSnapshot(BaseModel):
    """Financial parameters of one account, frozen for the duration of a calculation.

    Construction rejects negative balances, rates and contributions, so every
    snapshot that reaches the engine is inside its supported domain.
    """

    model_config = ConfigDict(frozen=True)

    starting_balance: float = Field(..., ge=0)
    interest_rate: float = Field(..., ge=0, le=1, description="Annual nominal rate as a decimal (0.05 = 5%).")
    compound_frequency: CompoundFrequency = "monthly"
    monthly_contribution: float = Field(0.0, ge=0)
    goal: Goal = Field(default_factory=DefaultGoal)


class ProjectionPoint(BaseModel):
    month_index: int = Field(..., ge=0)
    balance: float
    cumulative_contributions: float
    interest_earned: float
    calendar_date: datetime


class GoalProjection(BaseModel):
    achievable: bool
    time_to_goal_months: Optional[float] = Field(None, description="Only set for amount goals that are reachable.")
    final_amount: Optional[float] = Field(None, description="Balance at the resolved horizon (default/date goals).")
    monthly_needed: Optional[float] = Field(None, description="Contribution that would reach an unreachable amount goal.")
