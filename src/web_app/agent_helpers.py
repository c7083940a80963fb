from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import streamlit as st

from src.agents.chat_agent import SavingsChatAgent
from src.core.config import SETTINGS
from src.core.schemas import AgentRequest, AgentResponse, AppPreferences, ChatMessage
from src.utils.account_store import AccountStore, PreferencesStore


@dataclass
class ChatTurn:
    role: str
    content: str
    meta: Dict[str, Any] = field(default_factory=dict)


_STORE: Optional[AccountStore] = None
_PREFS: Optional[PreferencesStore] = None
_AGENT: Optional[SavingsChatAgent] = None


def get_store() -> AccountStore:
    global _STORE
    if _STORE is None:
        _STORE = AccountStore(SETTINGS.accounts_path)
    return _STORE


def get_preferences_store() -> PreferencesStore:
    global _PREFS
    if _PREFS is None:
        _PREFS = PreferencesStore(
            SETTINGS.preferences_path,
            AppPreferences(default_projection_months=SETTINGS.default_projection_months, currency=SETTINGS.currency),
        )
    return _PREFS


def get_preferences() -> AppPreferences:
    prefs = st.session_state.get("preferences")
    if prefs is None:
        prefs = get_preferences_store().load()
        st.session_state["preferences"] = prefs
    return prefs


def _get_agent() -> SavingsChatAgent:
    global _AGENT
    if _AGENT is None:
        _AGENT = SavingsChatAgent(get_store())
    return _AGENT


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _mk_messages() -> List[ChatMessage]:
    # Streamlit chat history -> schema messages (the current turn is not included)
    msgs = []
    for t in st.session_state.get("chat", [])[:-1]:
        role = t.get("role")
        content = t.get("content")
        if role and content:
            msgs.append(ChatMessage(role=role, content=content))
    return msgs


def run_chat_turn(user_text: str) -> Tuple[AgentResponse, Dict[str, Any]]:
    """Single entry point for the chat tab."""
    prefs = get_preferences()

    st.session_state["turn_id"] = int(st.session_state.get("turn_id") or 0) + 1
    req = AgentRequest(
        request_id=str(uuid.uuid4()),
        session_id=st.session_state.get("session_id") or "local",
        turn_id=st.session_state["turn_id"],
        user_text=user_text,
        messages=_mk_messages(),
        now=now_utc(),
        default_months=prefs.default_projection_months,
        currency=prefs.currency,
    )
    return _get_agent().run_turn(req)
