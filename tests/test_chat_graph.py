import uuid
from datetime import UTC, datetime

import pytest

from src.agents.chat_agent import SavingsChatAgent, trim_history
from src.core.llm_client import LLMResponse
from src.core.schemas import AgentRequest, ChatMessage
from src.utils.account_store import AccountStore
from src.utils.quant_models import AmountGoal
from src.workflow import graph as graph_mod

NOW = datetime(2024, 1, 1, tzinfo=UTC)

VACATION = (
    "I want to save for a vacation. I have $2,000 and want to reach $10,000 "
    "with 4% interest compounded monthly, adding $300 a month."
)

EXTRACTED = (
    '{"accounts": [{"name": "Travel Account", "startingBalance": 1000, "interestRate": 4, '
    '"compoundFrequency": "yearly", "goalType": "amount", "targetAmount": 10000, '
    '"monthlyContribution": 750}], "requiresCalculation": false, "requiresValidation": false, "missingInfo": []}'
)


@pytest.fixture()
def store(tmp_path):
    return AccountStore(tmp_path / "accounts.json")


def _req(text, messages=(), **kwargs):
    return AgentRequest(
        request_id=str(uuid.uuid4()),
        session_id="test-session",
        turn_id=1,
        user_text=text,
        messages=list(messages),
        now=NOW,
        **kwargs,
    )


def _fake_llm(reply=None, exc=None):
    class FakeLLM:
        def __init__(self, *args, **kwargs):
            pass

        def chat(self, system, user):
            if exc is not None:
                raise exc
            return LLMResponse(text=reply(system, user) if callable(reply) else reply)

    return FakeLLM


def test_rules_mode_describes_request_without_creating(store):
    out, meta = SavingsChatAgent(store, mode="rules").run_turn(_req(VACATION))

    assert out.agent_name == "SavingsChatAgent"
    assert "Vacation" in out.answer_md
    assert "You would reach $10,000.00" in out.answer_md
    assert out.answer_md.endswith("Would you like me to create this account for you?")
    assert store.list() == []
    assert meta["trace"] == ["IntakeNode", "RespondNode"]


def test_rules_mode_creates_on_confirmation(store):
    history = [
        ChatMessage(role="user", content=VACATION),
        ChatMessage(role="assistant", content="Would you like me to create this account for you?"),
    ]
    out = SavingsChatAgent(store, mode="rules").run(_req("Yes, create it", history))

    assert out.answer_md == "✅ Account created successfully! Your Vacation is now ready."
    accounts = store.list()
    assert len(accounts) == 1
    assert accounts[0].interest_rate == pytest.approx(0.04)
    assert accounts[0].goal == AmountGoal(target_amount=10000)
    assert accounts[0].created_at == NOW
    assert out.data["accounts_created"] == [accounts[0].id]


def test_confirmation_with_missing_info_asks_for_it(store):
    history = [ChatMessage(role="user", content="I want to save for a car")]
    out = SavingsChatAgent(store, mode="rules").run(_req("go ahead", history))

    assert out.answer_md == (
        "I need more information to create your account. "
        "Please provide: starting balance, interest rate (APY), target amount."
    )
    assert store.list() == []


def test_rules_mode_calculation_uses_latest_account(store):
    agent = SavingsChatAgent(store, mode="rules")
    agent.run(_req("Yes, create it", [ChatMessage(role="user", content=VACATION)]))

    out = agent.run(_req("How much interest will I earn?"))
    assert out.answer_md.startswith("For **Vacation**: After 1 year, the balance would be")
    assert "Goal is achievable in" in out.answer_md


def test_llm_mode_extracts_and_creates(monkeypatch, store):
    monkeypatch.setattr(graph_mod, "LLMClient", _fake_llm(reply=EXTRACTED))
    out, meta = SavingsChatAgent(store, mode="llm").run_turn(_req("yes please"))

    assert "Travel Account" in out.answer_md
    acc = store.list()[0]
    assert acc.compound_frequency == "yearly"
    assert acc.interest_rate == pytest.approx(0.04)
    assert [t["tool_name"] for t in meta["tool_calls"]] == ["LLM_EXTRACT", "CREATE_ACCOUNT"]


def test_llm_mode_answers_with_account_context(monkeypatch, store):
    seen = {}

    def reply(system, user):
        seen["user"] = user
        return "Your savings look healthy."

    monkeypatch.setattr(graph_mod, "LLMClient", _fake_llm(reply=reply))
    out, meta = SavingsChatAgent(store, mode="llm").run_turn(_req("How am I doing?"))

    assert out.answer_md == "Your savings look healthy."
    assert "Summary: No accounts created yet." in seen["user"]
    assert "User message: How am I doing?" in seen["user"]
    assert [t["tool_name"] for t in meta["tool_calls"]] == ["LLM_RESPOND"]


def test_llm_failure_falls_back_to_rules(monkeypatch, store):
    monkeypatch.setattr(graph_mod, "LLMClient", _fake_llm(exc=RuntimeError("no api key")))
    out = SavingsChatAgent(store, mode="llm", fallback_enabled=True).run(_req(VACATION))

    assert out.warnings == ["LLM_UNAVAILABLE"]
    assert out.confidence == "low"
    assert "Would you like me to create this account for you?" in out.answer_md


def test_llm_failure_without_fallback_returns_error(monkeypatch, store):
    monkeypatch.setattr(graph_mod, "LLMClient", _fake_llm(exc=RuntimeError("no api key")))
    out = SavingsChatAgent(store, mode="llm", fallback_enabled=False).run(_req("yes, create it"))

    assert out.answer_md == graph_mod.APOLOGY
    assert out.error["code"] == "LLM_UNAVAILABLE"
    assert store.list() == []


def test_agent_never_raises(monkeypatch, store):
    def boom(self, parsed, *, now=None):
        raise RuntimeError("disk full")

    monkeypatch.setattr(graph_mod.AccountGenerator, "generate", boom)
    out = SavingsChatAgent(store, mode="rules").run(_req("yes create it", [ChatMessage(role="user", content=VACATION)]))

    assert out.warnings == ["AGENT_FAILED"]
    assert out.error["code"] == "AGENT_FAILED"
    assert "disk full" in out.error["message"]


def test_request_preferences_do_not_stick_to_the_agent(store):
    agent = SavingsChatAgent(store, mode="rules", currency="USD")

    eur, _ = agent.run_turn(_req(VACATION, currency="EUR"))
    usd, _ = agent.run_turn(_req(VACATION))

    assert "€2,000.00" in eur.answer_md
    assert "$2,000.00" in usd.answer_md
    assert agent.currency == "USD"


def test_failed_turn_returns_empty_meta(monkeypatch, store):
    agent = SavingsChatAgent(store, mode="rules")
    _, first = agent.run_turn(_req(VACATION))
    assert first["trace"]

    def boom(self, parsed, *, now=None):
        raise RuntimeError("disk full")

    monkeypatch.setattr(graph_mod.AccountGenerator, "generate", boom)
    out, meta = agent.run_turn(_req("yes create it", [ChatMessage(role="user", content=VACATION)]))

    assert out.warnings == ["AGENT_FAILED"]
    assert meta == {"trace": [], "tool_calls": [], "route": None}


def test_trim_history():
    msgs = [ChatMessage(role="user", content=str(i)) for i in range(5)]
    assert [m.content for m in trim_history(msgs, 2)] == ["3", "4"]
    assert trim_history(msgs, 0) == []
