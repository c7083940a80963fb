from __future__ import annotations

from datetime import datetime, UTC
from typing import List, Optional

from pydantic import ValidationError

from src.chat.message_parser import MessageParser
from src.core.schemas import Account, AccountDraft, AccountPrompt, ParsedAccountData
from src.utils.account_store import AccountStore
from src.utils.logging import get_logger
from src.utils.quant_models import AmountGoal, DateGoal, DefaultGoal, Goal

log = get_logger(__name__)


def _goal_from_prompt(prompt: AccountPrompt) -> Goal:
    kind = prompt.goal_type
    if kind is None:
        kind = "amount" if prompt.target_amount else "date" if prompt.target_date else "default"

    if kind == "amount" and prompt.target_amount:
        return AmountGoal(target_amount=prompt.target_amount)
    if kind == "date" and prompt.target_date:
        return DateGoal(target_date=prompt.target_date)
    return DefaultGoal()


def draft_from_prompt(prompt: AccountPrompt, *, now: datetime) -> AccountDraft:
    """AccountPrompt (rate in percent) -> AccountDraft (rate as decimal)."""
    return AccountDraft(
        name=(prompt.name or "").strip() or f"Account {int(now.timestamp() * 1000)}",
        starting_balance=prompt.starting_balance or 0.0,
        interest_rate=(prompt.interest_rate or 0.0) / 100,
        compound_frequency=prompt.compound_frequency or "monthly",
        monthly_contribution=prompt.monthly_contribution or 0.0,
        goal=_goal_from_prompt(prompt),
    )


class AccountGenerator:
    """Turns extracted account requests into stored accounts."""

    def __init__(self, store: AccountStore) -> None:
        self.store = store

    def generate(self, parsed: ParsedAccountData, *, now: Optional[datetime] = None) -> List[Account]:
        ts = now or datetime.now(UTC)
        created: List[Account] = []
        for prompt in parsed.accounts:
            if not MessageParser.validate_account_data(prompt):
                log.warning("skipping invalid account request: %s", prompt.model_dump(exclude_none=True))
                continue
            try:
                draft = draft_from_prompt(prompt, now=ts)
            except ValidationError as e:
                log.warning("skipping account request outside supported range: %s", e)
                continue
            created.append(self.store.add(draft, now=ts))
        return created
