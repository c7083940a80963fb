from __future__ import annotations

import re
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from src.core.schemas import AccountPrompt, ParsedAccountData
from src.utils.quant_models import CompoundFrequency

CREATION_KEYWORDS = [
    "create account",
    "new account",
    "start saving",
    "open account",
    "add account",
    "save for",
    "saving for",
    "want to save",
    "need to save",
    "goal is",
    "my goal",
    "retirement",
    "emergency fund",
    "vacation fund",
]

CALCULATION_KEYWORDS = [
    "how much",
    "how long",
    "when will",
    "calculate",
    "projection",
    "forecast",
    "compound",
    "interest",
    "grow to",
    "reach my goal",
    "need to save",
    "need to put",
]

CONFIRMATION_KEYWORDS = [
    "yes, create",
    "yes create",
    "create the account",
    "make the account",
    "yes please",
    "go ahead",
    "create it",
    "make it",
]

_MONTHS = "january|february|march|april|may|june|july|august|september|october|november|december"

_NUMBER = r"(?<!by )(?<!in )\$?(\d[\d,]*(?:\.\d+)?)(?![\d.,]*\s*(?:%|percent|years?\b|months?\b))"

_RATE_PATTERNS = [
    re.compile(r"(\d+(?:\.\d+)?)\s*%"),
    re.compile(r"(\d+(?:\.\d+)?)\s*percent", re.I),
    re.compile(r"rate\s+of\s+(\d+(?:\.\d+)?)", re.I),
    re.compile(r"(\d+(?:\.\d+)?)\s*apy", re.I),
]

_PER_MONTH = re.compile(r"\$?(\d[\d,]*(?:\.\d+)?)\s*(?:a|per|each|every)\s+month", re.I)

_COMPOUNDING = [
    re.compile(r"compound(?:ed|ing|s)?\s+(daily|monthly|yearly|annually)", re.I),
    re.compile(r"(daily|monthly|yearly|annual|annually)\s+compounding", re.I),
]

_NAME_PATTERNS = [
    re.compile(r"\b((?:[a-z]+\s+){0,2}?[a-z]+)\s+(account|fund|savings)\b", re.I),
    re.compile(r"\bsav(?:e|ing)\s+for\s+((?:[a-z]+\s*){1,3})", re.I),
]

_NAME_FILLER = {
    "a", "an", "the", "my", "new", "create", "open", "add", "start", "please", "me", "i",
    "want", "to", "for", "savings", "saving", "some", "up", "set",
}
_NAME_STOP = {"with", "at", "and", "of", "by", "in", "that", "which", "to", "starting", "i", "it", "using"}


def _lower(message: str) -> str:
    return (message or "").lower()


def is_account_creation_request(message: str) -> bool:
    text = _lower(message)
    return any(k in text for k in CREATION_KEYWORDS)


def requires_calculation(message: str) -> bool:
    text = _lower(message)
    return any(k in text for k in CALCULATION_KEYWORDS)


def has_confirmation(message: str) -> bool:
    text = _lower(message)
    return any(k in text for k in CONFIRMATION_KEYWORDS)


def _to_float(text: str) -> Optional[float]:
    try:
        return float(text.replace(",", ""))
    except ValueError:
        return None


class MessageParser:
    """Keyword/regex extraction of an account request from free text.

    Used when no LLM is available. Rates are returned in percent.
    """

    @classmethod
    def parse_account_data(cls, message: str, *, now: datetime) -> ParsedAccountData:
        accounts: List[AccountPrompt] = []
        if is_account_creation_request(message):
            accounts.append(cls.extract_account_info(message, now=now))
        return ParsedAccountData(
            accounts=accounts,
            user_query=message,
            requires_calculation=requires_calculation(message),
        )

    @classmethod
    def extract_account_info(cls, message: str, *, now: datetime) -> AccountPrompt:
        goal_type, target_amount, target_date = cls.extract_goal_info(message, now=now)
        return AccountPrompt(
            name=cls.extract_account_name(message),
            starting_balance=cls.extract_amount(message, ["starting", "start", "initial", "have", "current"]),
            interest_rate=cls.extract_interest_rate(message),
            compound_frequency=cls.extract_compound_frequency(message),
            goal_type=goal_type,
            target_amount=target_amount,
            target_date=target_date,
            monthly_contribution=cls.extract_monthly_contribution(message),
        )

    @staticmethod
    def extract_account_name(message: str) -> Optional[str]:
        for pat in _NAME_PATTERNS:
            m = pat.search(message or "")
            if not m:
                continue
            words = m.group(1).split()
            while words and words[0].lower() in _NAME_FILLER:
                words.pop(0)
            kept: List[str] = []
            for w in words:
                if w.lower() in _NAME_STOP:
                    break
                kept.append(w)
            if not kept:
                continue
            suffix = m.group(2) if m.lastindex and m.lastindex >= 2 else ""
            if suffix and suffix.lower() != "savings":
                kept.append(suffix)
            return " ".join(kept).title()
        return None

    @staticmethod
    def extract_amount(message: str, keywords: Sequence[str]) -> Optional[float]:
        for kw in keywords:
            m = re.search(rf"\b{re.escape(kw)}\w*[^\d%]{{0,30}}?{_NUMBER}", message or "", flags=re.I)
            if m:
                amount = _to_float(m.group(1))
                if amount is not None:
                    return amount
        return None

    @classmethod
    def extract_monthly_contribution(cls, message: str) -> Optional[float]:
        m = _PER_MONTH.search(message or "")
        if m:
            return _to_float(m.group(1))
        return cls.extract_amount(message, ["monthly", "contribute", "add", "deposit"])

    @staticmethod
    def extract_interest_rate(message: str) -> Optional[float]:
        for pat in _RATE_PATTERNS:
            m = pat.search(message or "")
            if m:
                return _to_float(m.group(1))
        return None

    @staticmethod
    def extract_compound_frequency(message: str) -> CompoundFrequency:
        for pat in _COMPOUNDING:
            m = pat.search(message or "")
            if m:
                word = m.group(1).lower()
                if word == "daily":
                    return "daily"
                if word == "monthly":
                    return "monthly"
                return "yearly"

        text = _lower(message)
        if re.search(r"\b(daily|day)\b", text):
            return "daily"
        if re.search(r"\b(monthly|month)\b", text):
            return "monthly"
        if re.search(r"\b(yearly|annual|annually|year)\b", text):
            return "yearly"
        return "monthly"

    @classmethod
    def extract_goal_info(cls, message: str, *, now: datetime) -> Tuple[str, Optional[float], Optional[date]]:
        target_amount = cls.extract_amount(message, ["reach", "goal", "target", "want", "need"])
        target_date = cls.extract_date(message, now=now)
        if target_amount:
            return "amount", target_amount, target_date
        if target_date:
            return "date", None, target_date
        return "default", None, None

    @staticmethod
    def extract_date(message: str, *, now: datetime) -> Optional[date]:
        text = message or ""

        m = re.search(r"\b(\d{1,2}/\d{1,2}/\d{4})\b", text)
        if m:
            try:
                return datetime.strptime(m.group(1), "%m/%d/%Y").date()
            except ValueError:
                pass

        m = re.search(r"\b(\d{4}-\d{1,2}-\d{1,2})\b", text)
        if m:
            try:
                return datetime.strptime(m.group(1), "%Y-%m-%d").date()
            except ValueError:
                pass

        m = re.search(rf"\b(?:{_MONTHS})\s+\d{{1,2}},?\s+\d{{4}}", text, flags=re.I)
        if m:
            try:
                return date_parser.parse(m.group(0)).date()
            except (ValueError, OverflowError):
                pass

        m = re.search(r"\bin\s+(\d+)\s+years?\b", text, flags=re.I)
        if m:
            return now.date() + relativedelta(years=int(m.group(1)))

        m = re.search(r"\bby\s+(\d{4})\b", text, flags=re.I)
        if m:
            return date(int(m.group(1)), 12, 31)

        return None

    @staticmethod
    def validate_account_data(data: AccountPrompt) -> bool:
        if data.starting_balance is not None and data.starting_balance < 0:
            return False
        if data.interest_rate is not None and not (0 <= data.interest_rate <= 100):
            return False
        if data.target_amount is not None and data.target_amount <= 0:
            return False
        if data.monthly_contribution is not None and data.monthly_contribution < 0:
            return False
        return True

    @staticmethod
    def missing_info(data: AccountPrompt) -> List[str]:
        """Crucial fields still unknown: balance, rate, and a target amount or date."""
        missing: List[str] = []
        if data.starting_balance is None:
            missing.append("startingBalance")
        if data.interest_rate is None:
            missing.append("interestRate")
        if data.target_amount is None and data.target_date is None:
            missing.append("targetAmount")
        return missing
