from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from src.agents.base_agent import BaseAgent
from src.core.config import SETTINGS
from src.core.schemas import AgentRequest, AgentResponse, ChatMessage, ErrorEnvelope
from src.utils.account_store import AccountStore
from src.utils.logging import get_logger, set_log_context
from src.workflow.graph import APOLOGY, build_graph

log = get_logger(__name__)


def trim_history(messages: List[ChatMessage], max_history: int) -> List[ChatMessage]:
    if max_history <= 0:
        return []
    return list(messages)[-max_history:]


class SavingsChatAgent(BaseAgent):
    name = "SavingsChatAgent"

    def __init__(
        self,
        store: AccountStore,
        *,
        mode: Optional[str] = None,
        fallback_enabled: Optional[bool] = None,
        default_months: Optional[int] = None,
        currency: Optional[str] = None,
        max_history: Optional[int] = None,
    ) -> None:
        self.store = store
        self.mode = mode or SETTINGS.chat_mode
        self.fallback_enabled = SETTINGS.chat_fallback_enabled if fallback_enabled is None else fallback_enabled
        self.default_months = default_months or SETTINGS.default_projection_months
        self.currency = currency or SETTINGS.currency
        self.max_history = SETTINGS.chat_max_history if max_history is None else max_history
        self._graph = build_graph()

    def run(self, req: AgentRequest) -> AgentResponse:
        resp, _meta = self.run_turn(req)
        return resp

    def run_turn(self, req: AgentRequest) -> Tuple[AgentResponse, Dict[str, Any]]:
        """Run one turn and return the answer with its trace/tool-call meta."""
        set_log_context(session_id=req.session_id, turn_id=req.turn_id, agent=self.name)
        try:
            state = {
                "request_id": req.request_id,
                "session_id": req.session_id,
                "turn_id": req.turn_id,
                "user_text": req.user_text,
                "messages": trim_history(req.messages, self.max_history),
                "now": req.now,
                "store": self.store,
                "mode": self.mode,
                "fallback_enabled": self.fallback_enabled,
                "default_months": req.default_months or self.default_months,
                "currency": req.currency or self.currency,
            }
            out = self._graph.invoke(state)
            resp: AgentResponse = out["final"]
            meta = {
                "trace": out.get("agent_trace") or [],
                "tool_calls": [t.model_dump(mode="json") for t in (out.get("tool_calls") or [])],
                "route": out.get("route"),
            }
            log.info("chat turn done trace=%s warnings=%s", ",".join(meta["trace"]), resp.warnings)
            return resp, meta
        except Exception as e:
            log.exception("chat turn failed")
            resp = AgentResponse(
                agent_name=self.name,
                answer_md=APOLOGY,
                warnings=["AGENT_FAILED"],
                confidence="low",
                error=ErrorEnvelope(code="AGENT_FAILED", message=str(e)).model_dump(),
            )
            return resp, {"trace": [], "tool_calls": [], "route": None}
