from __future__ import annotations

from datetime import date, datetime, UTC
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from src.utils.quant_models import AccountSnapshot, CompoundFrequency, DefaultGoal, Goal


# -------------------------
# Accounts
# -------------------------

class AccountDraft(BaseModel):
    """Fields a caller supplies when creating an account (form, import, chat)."""

    name: str
    starting_balance: float = Field(..., ge=0)
    interest_rate: float = Field(..., ge=0, le=1)
    compound_frequency: CompoundFrequency = "monthly"
    monthly_contribution: float = Field(0.0, ge=0)
    goal: Goal = Field(default_factory=DefaultGoal)


class Account(AccountDraft):
    id: str = Field(default_factory=lambda: str(uuid4()))
    current_balance: float = 0.0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            starting_balance=self.starting_balance,
            interest_rate=self.interest_rate,
            compound_frequency=self.compound_frequency,
            monthly_contribution=self.monthly_contribution,
            goal=self.goal,
        )

    @property
    def target_amount(self) -> Optional[float]:
        return getattr(self.goal, "target_amount", None)

    @property
    def target_date(self) -> Optional[date]:
        return getattr(self.goal, "target_date", None)


class AppPreferences(BaseModel):
    default_projection_months: int = Field(36, ge=1, le=600)
    currency: str = "USD"


# -------------------------
# Validation / Import
# -------------------------

class ValidationResult(BaseModel):
    is_valid: bool
    error: Optional[str] = None


class ImportIssue(BaseModel):
    row: int
    column: str
    message: str
    severity: Literal["error", "warning"] = "error"


class ImportStats(BaseModel):
    total_rows: int = 0
    valid_rows: int = 0
    error_rows: int = 0
    warning_rows: int = 0


class ImportResult(BaseModel):
    accounts: List[AccountDraft] = Field(default_factory=list)
    errors: List[ImportIssue] = Field(default_factory=list)
    warnings: List[ImportIssue] = Field(default_factory=list)
    stats: ImportStats = Field(default_factory=ImportStats)


# -------------------------
# Chat
# -------------------------

class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    role: Literal["user", "assistant"] = "user"
    content: str
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))
    accounts_created: List[str] = Field(default_factory=list)


class AccountPrompt(BaseModel):
    """Loosely-typed account request pulled out of a chat message.

    interest_rate is in percent here (4 means 4%), as users and the LLM say it.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    starting_balance: Optional[float] = Field(None, alias="startingBalance")
    interest_rate: Optional[float] = Field(None, alias="interestRate")
    compound_frequency: Optional[CompoundFrequency] = Field(None, alias="compoundFrequency")
    goal_type: Optional[Literal["amount", "date", "default"]] = Field(None, alias="goalType")
    target_amount: Optional[float] = Field(None, alias="targetAmount")
    target_date: Optional[date] = Field(None, alias="targetDate")
    monthly_contribution: Optional[float] = Field(None, alias="monthlyContribution")

    @field_validator("compound_frequency", mode="before")
    @classmethod
    def _normalize_frequency(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return {"annual": "yearly", "annually": "yearly", "year": "yearly", "day": "daily", "month": "monthly"}.get(v, v)
        return v

    @field_validator("goal_type", mode="before")
    @classmethod
    def _normalize_goal_type(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


class ParsedAccountData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    accounts: List[AccountPrompt] = Field(default_factory=list)
    user_query: str = Field("", alias="userQuery")
    requires_calculation: bool = Field(False, alias="requiresCalculation")
    calculation_result: Optional[str] = Field(None, alias="calculationResult")
    requires_validation: bool = Field(False, alias="requiresValidation")
    missing_info: List[str] = Field(default_factory=list, alias="missingInfo")


# -------------------------
# Agents
# -------------------------

class ErrorEnvelope(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    retriable: bool = False


class ToolResult(BaseModel):
    call_id: str
    tool_name: str
    ok: bool = True
    data: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[ErrorEnvelope] = None
    completed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ToolCall(BaseModel):
    call_id: str
    tool_name: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    status: Literal["started", "ok", "error"] = "started"
    result: Optional[ToolResult] = None


class AgentRequest(BaseModel):
    request_id: str
    session_id: str
    turn_id: int

    user_text: str
    messages: List[ChatMessage] = Field(default_factory=list)
    # Clock used for projections and date parsing; None means "now".
    now: Optional[datetime] = None
    # Per-session preferences; None falls back to the agent defaults.
    default_months: Optional[int] = None
    currency: Optional[str] = None


class AgentResponse(BaseModel):
    """Standard agent output. `data` carries structured extras (created account ids, projections)."""

    model_config = ConfigDict(extra="allow")

    agent_name: str
    answer_md: str
    data: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    confidence: Literal["high", "medium", "low"] = "medium"
    error: Optional[Dict[str, Any]] = None
