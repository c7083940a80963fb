from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4

from langgraph.graph import END, START, StateGraph

from src.chat.account_generator import AccountGenerator
from src.chat.context_builder import ContextBuilder
from src.chat.extraction import extract_with_llm, extract_with_rules
from src.chat.message_parser import MessageParser, has_confirmation, is_account_creation_request, requires_calculation
from src.chat.prompts import ASSISTANT_SYSTEM_PROMPT, assistant_user_prompt
from src.core.config import SETTINGS
from src.core.llm_client import LLMClient
from src.core.schemas import AgentResponse, ErrorEnvelope, ParsedAccountData, ToolCall, ToolResult
from src.tools.quant_tools import tool_compute_goal_projection
from src.utils.formatters import format_currency, format_duration, format_percentage
from src.utils.logging import get_logger

log = get_logger(__name__)

AGENT_NAME = "SavingsChatAgent"

MISSING_FIELD_LABELS = {
    "startingBalance": "starting balance",
    "interestRate": "interest rate (APY)",
    "targetAmount": "target amount",
    "targetDate": "target date",
}

APOLOGY = (
    "I apologize, but I encountered an error processing your request. "
    "Please try again or rephrase your message."
)


# -----------------------------
# Helpers
# -----------------------------

def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clock(state: Dict[str, Any]) -> datetime:
    return state.get("now") or _now()


def _tool_start(state: Dict[str, Any], tool_name: str) -> str:
    call_id = str(uuid4())
    calls = state.get("tool_calls") or []
    calls.append(ToolCall(call_id=call_id, tool_name=tool_name, started_at=_now()))
    state["tool_calls"] = calls
    return call_id


def _tool_end_ok(state: Dict[str, Any], call_id: str, tool_name: str, data: Dict[str, Any]) -> None:
    for c in state.get("tool_calls") or []:
        if c.call_id == call_id:
            c.status = "ok"
            c.ended_at = _now()
            c.result = ToolResult(call_id=call_id, tool_name=tool_name, ok=True, data=data)
            return


def _tool_end_error(state: Dict[str, Any], call_id: str, tool_name: str, code: str, message: str) -> None:
    for c in state.get("tool_calls") or []:
        if c.call_id == call_id:
            c.status = "error"
            c.ended_at = _now()
            c.result = ToolResult(
                call_id=call_id,
                tool_name=tool_name,
                ok=False,
                error=ErrorEnvelope(code=code, message=message, retriable=True),
            )
            state["error"] = c.result.error
            return


def _append_trace(state: Dict[str, Any], label: str) -> None:
    trace = state.get("agent_trace") or []
    trace.append(label)
    state["agent_trace"] = trace


def _warn(state: Dict[str, Any], code: str) -> None:
    warnings: List[str] = state.get("warnings") or []
    if code not in warnings:
        warnings.append(code)
    state["warnings"] = warnings


def _use_llm(state: Dict[str, Any]) -> bool:
    return state.get("mode", SETTINGS.chat_mode) == "llm"


def _fallback_enabled(state: Dict[str, Any]) -> bool:
    return bool(state.get("fallback_enabled", SETTINGS.chat_fallback_enabled))


def _final(state: Dict[str, Any], answer_md: str, *, confidence: str = "medium", data: Dict[str, Any] | None = None) -> None:
    state["final"] = AgentResponse(
        agent_name=AGENT_NAME,
        answer_md=answer_md,
        data=data or {},
        warnings=list(state.get("warnings") or []),
        confidence=confidence,
    )


# -----------------------------
# Rule-based replies
# -----------------------------

def _describe_request(state: Dict[str, Any], text: str) -> str:
    """Engine-backed answer for a message that describes a new account."""
    now = _clock(state)
    currency = state.get("currency", SETTINGS.currency)
    prompt = MessageParser.parse_account_data(text, now=now).accounts[0]
    missing = MessageParser.missing_info(prompt)
    if missing:
        labels = ", ".join(MISSING_FIELD_LABELS.get(m, m) for m in missing)
        return f"That sounds like a good savings plan. To set it up I still need: {labels}."

    payload = {
        "starting_balance": prompt.starting_balance,
        "interest_rate": (prompt.interest_rate or 0) / 100,
        "compound_frequency": prompt.compound_frequency or "monthly",
        "monthly_contribution": prompt.monthly_contribution or 0,
        "goal_type": prompt.goal_type,
        "target_amount": prompt.target_amount,
        "target_date": prompt.target_date,
    }
    proj = tool_compute_goal_projection(payload, now=now, default_months=state.get("default_months", SETTINGS.default_projection_months))

    lines = [
        f"**{prompt.name or 'New account'}**: {format_currency(prompt.starting_balance or 0, currency)} "
        f"at {format_percentage(payload['interest_rate'])} compounded {payload['compound_frequency']}"
        + (f", adding {format_currency(payload['monthly_contribution'], currency)} a month." if payload["monthly_contribution"] else ".")
    ]
    if proj["goal_type"] == "amount":
        if proj["achievable"]:
            lines.append(
                f"You would reach {format_currency(prompt.target_amount or 0, currency)} in about "
                f"{format_duration(proj['time_to_goal_months'])}."
            )
        else:
            lines.append("The current plan will not reach the target.")
            if proj.get("monthly_needed"):
                lines.append(f"You would need about {format_currency(proj['monthly_needed'], currency)} a month.")
    elif proj["goal_type"] == "date":
        if proj["achievable"]:
            lines.append(f"By the target date the balance would be {format_currency(proj['final_amount'], currency)}.")
        else:
            lines.append("That target date has already passed.")

    lines.append("Would you like me to create this account for you?")
    return "\n\n".join(lines)


def _rules_reply(state: Dict[str, Any]) -> str:
    text = state.get("user_text") or ""
    store = state.get("store")
    accounts = store.list() if store is not None else []
    currency = state.get("currency", SETTINGS.currency)

    if is_account_creation_request(text):
        return _describe_request(state, text)

    if requires_calculation(text) and accounts:
        latest = max(accounts, key=lambda a: a.created_at)
        ctx = ContextBuilder.build_calculation_context(
            latest,
            now=_clock(state),
            default_months=state.get("default_months", SETTINGS.default_projection_months),
        )
        return f"For **{latest.name}**: {ctx['projection_summary']}"

    return (
        f"{ContextBuilder.generate_summary(accounts, currency)}\n\n"
        "Describe a savings goal (for example: *save for a vacation, I have $2,000 and want "
        "to reach $10,000 with 4% interest*) and I will project it for you."
    )


# -----------------------------
# Nodes
# -----------------------------

def intake_node(state: Dict[str, Any]) -> Dict[str, Any]:
    state.setdefault("session_id", "local")
    state.setdefault("turn_id", 0)
    state.setdefault("request_id", str(uuid4()))
    state.setdefault("messages", [])
    _append_trace(state, "IntakeNode")

    state["route"] = "EXTRACT" if has_confirmation(state.get("user_text") or "") else "RESPOND"
    return state


def extract_node(state: Dict[str, Any]) -> Dict[str, Any]:
    _append_trace(state, "ExtractNode")
    text = state.get("user_text") or ""
    history = state.get("messages") or []
    now = _clock(state)

    if not _use_llm(state):
        state["parsed"] = extract_with_rules(text, history, now=now)
        return state

    tool_name = "LLM_EXTRACT"
    call_id = _tool_start(state, tool_name)
    try:
        parsed = extract_with_llm(LLMClient(temperature=0.1), text, history, now=now)
        _tool_end_ok(state, call_id, tool_name, {"accounts": len(parsed.accounts)})
        state["parsed"] = parsed
    except Exception as e:
        log.warning("LLM extraction failed: %s", e)
        _tool_end_error(state, call_id, tool_name, "LLM_UNAVAILABLE", str(e))
        _warn(state, "LLM_UNAVAILABLE")
        if _fallback_enabled(state):
            state["parsed"] = extract_with_rules(text, history, now=now)
        else:
            state["parsed"] = None
    return state


def _after_extract(state: Dict[str, Any]) -> str:
    parsed: ParsedAccountData | None = state.get("parsed")
    if parsed is None:
        return "fail"
    if parsed.requires_validation and parsed.missing_info:
        return "clarify"
    if parsed.accounts:
        return "create"
    return "respond"


def clarify_node(state: Dict[str, Any]) -> Dict[str, Any]:
    _append_trace(state, "ClarifyNode")
    parsed: ParsedAccountData = state["parsed"]
    fields = ", ".join(MISSING_FIELD_LABELS.get(m, m) for m in parsed.missing_info)
    _final(
        state,
        f"I need more information to create your account. Please provide: {fields}.",
        data={"missing_info": list(parsed.missing_info)},
    )
    return state


def create_node(state: Dict[str, Any]) -> Dict[str, Any]:
    _append_trace(state, "CreateNode")
    tool_name = "CREATE_ACCOUNT"
    call_id = _tool_start(state, tool_name)
    parsed: ParsedAccountData = state["parsed"]

    created = AccountGenerator(state["store"]).generate(parsed, now=_clock(state))
    ids = [a.id for a in created]
    _tool_end_ok(state, call_id, tool_name, {"account_ids": ids})
    state["accounts_created"] = ids

    if not created:
        _final(
            state,
            "I couldn't create that account because some of the values are out of range. "
            "Please check the balance, interest rate and target.",
            confidence="low",
        )
        return state

    _final(
        state,
        f"✅ Account created successfully! Your {created[0].name} is now ready.",
        confidence="high",
        data={"accounts_created": ids},
    )
    return state


def respond_node(state: Dict[str, Any]) -> Dict[str, Any]:
    _append_trace(state, "RespondNode")

    if not _use_llm(state):
        _final(state, _rules_reply(state))
        return state

    tool_name = "LLM_RESPOND"
    call_id = _tool_start(state, tool_name)
    store = state.get("store")
    accounts = store.list() if store is not None else []
    ctx = ContextBuilder.build_context(accounts, state.get("messages") or [], now=_clock(state))
    try:
        reply = LLMClient().chat(
            ASSISTANT_SYSTEM_PROMPT,
            assistant_user_prompt(
                accounts_json=json.dumps(ctx["accounts"], default=str),
                summary=ctx["summary"],
                user_text=state.get("user_text") or "",
            ),
        )
        _tool_end_ok(state, call_id, tool_name, {"chars": len(reply.text)})
        _final(state, reply.text)
    except Exception as e:
        log.warning("LLM reply failed: %s", e)
        _tool_end_error(state, call_id, tool_name, "LLM_UNAVAILABLE", str(e))
        _warn(state, "LLM_UNAVAILABLE")
        if _fallback_enabled(state):
            _final(state, _rules_reply(state), confidence="low")
        else:
            state["final"] = _failure(state)
    return state


def _failure(state: Dict[str, Any]) -> AgentResponse:
    err: ErrorEnvelope | None = state.get("error")
    return AgentResponse(
        agent_name=AGENT_NAME,
        answer_md=APOLOGY,
        warnings=list(state.get("warnings") or []),
        confidence="low",
        error=(err or ErrorEnvelope(code="LLM_UNAVAILABLE", message="LLM unavailable")).model_dump(),
    )


def fail_node(state: Dict[str, Any]) -> Dict[str, Any]:
    _append_trace(state, "FailNode")
    state["final"] = _failure(state)
    return state


# -----------------------------
# Graph
# -----------------------------

def build_graph():
    g = StateGraph(dict)

    g.add_node("intake", intake_node)
    g.add_node("extract", extract_node)
    g.add_node("clarify", clarify_node)
    g.add_node("create", create_node)
    g.add_node("respond", respond_node)
    g.add_node("fail", fail_node)

    g.add_edge(START, "intake")

    g.add_conditional_edges(
        "intake",
        lambda s: s.get("route", "RESPOND"),
        {"EXTRACT": "extract", "RESPOND": "respond"},
    )
    g.add_conditional_edges(
        "extract",
        _after_extract,
        {"clarify": "clarify", "create": "create", "respond": "respond", "fail": "fail"},
    )

    g.add_edge("clarify", END)
    g.add_edge("create", END)
    g.add_edge("respond", END)
    g.add_edge("fail", END)

    return g.compile()
