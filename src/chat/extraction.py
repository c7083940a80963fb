from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from src.chat.message_parser import MessageParser, is_account_creation_request, requires_calculation
from src.chat.prompts import EXTRACTION_SYSTEM_PROMPT, extraction_prompt
from src.core.llm_client import LLMClient
from src.core.schemas import ChatMessage, ParsedAccountData
from src.utils.logging import get_logger

log = get_logger(__name__)

RECENT_CONTEXT_MESSAGES = 5

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.I)


def parse_extraction_json(text: str, *, user_text: str) -> ParsedAccountData:
    """Parse the extractor's JSON reply. Anything unparseable means 'no accounts'."""
    raw = _FENCE_RE.sub("", (text or "").strip())
    if not raw.startswith("{"):
        m = re.search(r"\{.*\}", raw, flags=re.S)
        raw = m.group(0) if m else raw
    try:
        obj: Dict[str, Any] = json.loads(raw)
        if not isinstance(obj, dict):
            raise ValueError(f"expected a JSON object, got {type(obj).__name__}")
        obj["userQuery"] = user_text
        return ParsedAccountData.model_validate(obj)
    except (ValueError, ValidationError) as e:
        log.warning("account extraction reply not usable: %s", e)
        return ParsedAccountData(user_query=user_text)


def _recent_context(history: Sequence[ChatMessage]) -> str:
    return "\n".join(f"{m.role}: {m.content}" for m in list(history)[-RECENT_CONTEXT_MESSAGES:])


def extract_with_llm(llm: LLMClient, user_text: str, history: Sequence[ChatMessage], *, now: datetime) -> ParsedAccountData:
    prompt = extraction_prompt(
        recent_context=_recent_context(history),
        user_text=user_text,
        today=now.date().isoformat(),
    )
    reply = llm.chat(EXTRACTION_SYSTEM_PROMPT, prompt).text
    return parse_extraction_json(reply, user_text=user_text)


def extract_with_rules(user_text: str, history: Sequence[ChatMessage], *, now: datetime) -> ParsedAccountData:
    """Find the latest account request in the user's recent messages and parse it."""
    candidates: List[str] = [user_text] + [
        m.content for m in reversed(list(history)[-RECENT_CONTEXT_MESSAGES:]) if m.role == "user"
    ]
    for text in candidates:
        if not is_account_creation_request(text):
            continue
        parsed = MessageParser.parse_account_data(text, now=now)
        prompt = parsed.accounts[0]
        missing = MessageParser.missing_info(prompt)
        if missing:
            return ParsedAccountData(user_query=user_text, requires_validation=True, missing_info=missing)
        return ParsedAccountData(
            accounts=[prompt],
            user_query=user_text,
            requires_calculation=parsed.requires_calculation,
        )

    return ParsedAccountData(
        user_query=user_text,
        requires_calculation=requires_calculation(user_text),
        requires_validation=True,
        missing_info=["startingBalance", "interestRate", "targetAmount"],
    )
