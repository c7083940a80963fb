from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, UTC
from typing import Optional

# Per-session context stamped onto every record
session_id_var: ContextVar[str] = ContextVar("session_id", default="-")
turn_id_var: ContextVar[str] = ContextVar("turn_id", default="-")
agent_var: ContextVar[str] = ContextVar("agent", default="-")


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = session_id_var.get()
        record.turn_id = turn_id_var.get()
        record.agent = agent_var.get()
        return True


class SimpleStructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")
        line = (
            f"{ts} level={record.levelname} logger={record.name} "
            f"session_id={getattr(record, 'session_id', '-')} turn_id={getattr(record, 'turn_id', '-')} "
            f"agent={getattr(record, 'agent', '-')} msg={record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO") -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(lvl)

    # Replace handlers (Streamlit re-runs the script on every interaction)
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(lvl)
    handler.addFilter(ContextFilter())
    handler.setFormatter(SimpleStructuredFormatter())

    root.addHandler(handler)


def set_log_context(*, session_id: Optional[str] = None, turn_id: Optional[int] = None, agent: Optional[str] = None) -> None:
    if session_id is not None:
        session_id_var.set(session_id)
    if turn_id is not None:
        turn_id_var.set(str(turn_id))
    if agent is not None:
        agent_var.set(agent)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
