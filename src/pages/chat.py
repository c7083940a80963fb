import streamlit as st

from src.core.config import SETTINGS
from src.web_app.agent_helpers import ChatTurn, get_store, run_chat_turn
from src.web_app.ui_helpers import _render_agent_trace, _render_tool_calls


def render():
    left, right = st.columns([0.68, 0.32], gap="large")

    with left:
        st.subheader("Assistant")
        if st.button("Clear chat"):
            st.session_state["chat"] = []
            st.session_state["last_chat_meta"] = {}
            st.rerun()

        names = {a.id: a.name for a in get_store().list()}

        # Render history
        for t in st.session_state["chat"]:
            turn = ChatTurn(**t)
            with st.chat_message(turn.role):
                st.markdown(turn.content)
                if turn.role == "assistant":
                    created = turn.meta.get("accounts_created") or []
                    if created:
                        st.caption("Created: " + ", ".join(names.get(i, i) for i in created))
                    if turn.meta.get("warnings"):
                        st.caption("Warnings: " + ", ".join(turn.meta["warnings"]))

        # Input
        user_text = st.chat_input("Describe a savings goal or ask about your accounts")
        if user_text:
            st.session_state["chat"].append({"role": "user", "content": user_text, "meta": {}})

            resp, meta = run_chat_turn(user_text)

            st.session_state["last_chat_meta"] = {
                "agent_name": resp.agent_name,
                "trace": meta.get("trace"),
                "route": meta.get("route"),
                "tool_calls": meta.get("tool_calls"),
                "warnings": resp.warnings or [],
            }
            st.session_state["chat"].append(
                {
                    "role": "assistant",
                    "content": resp.answer_md,
                    "meta": {
                        "agent_name": resp.agent_name,
                        "accounts_created": (resp.data or {}).get("accounts_created") or [],
                        "warnings": resp.warnings or [],
                    },
                }
            )
            st.session_state["chat"] = st.session_state["chat"][-SETTINGS.chat_max_history:]
            st.rerun()

    with right:
        st.subheader("Agent trace")
        meta = st.session_state.get("last_chat_meta") or {}
        _render_agent_trace(meta.get("trace"), meta.get("route"))
        _render_tool_calls(meta.get("tool_calls"))
